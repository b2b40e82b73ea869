# backend/modules/feedback/services/response_policy.py

"""
Admin response visibility and notification policy.

Anonymous submissions have no private channel, so their responses are always
public. A notification intent is produced only for non-anonymous items with a
contact address on file; delivering it is the dispatcher's job.
"""

from datetime import datetime
from typing import Optional
import logging

from jinja2 import Template

from core.exceptions import ValidationError
from modules.feedback.constants import NOTIFICATION_SUBJECT_PREFIX
from modules.feedback.models.feedback_models import Feedback
from modules.feedback.schemas.feedback_schemas import NotificationIntent
from modules.feedback.templates.email_templates import RESPONSE_NOTIFICATION_TEXT

logger = logging.getLogger(__name__)

_body_template = Template(RESPONSE_NOTIFICATION_TEXT, keep_trailing_newline=False)


def resolve_visibility(is_anonymous: bool, requested_visibility: bool) -> bool:
    return True if is_anonymous else bool(requested_visibility)


def validate_response_text(response_text: Optional[str]) -> str:
    if response_text is None or not response_text.strip():
        raise ValidationError("Response text is required", field="response_text")
    return response_text


def build_notification_intent(
    item: Feedback, response_text: str
) -> Optional[NotificationIntent]:
    """Build the email payload for ``item``, or ``None`` when there is no private channel"""
    if item.is_anonymous:
        return None

    recipient = item.submitter_email
    if not recipient:
        return None

    body = _body_template.render(
        title=item.title,
        description=item.description,
        response_text=response_text,
    ).strip()

    return NotificationIntent(
        recipient=recipient,
        subject=f"{NOTIFICATION_SUBJECT_PREFIX}{item.title}",
        body=body,
    )


def apply_response(
    item: Feedback,
    response_text: str,
    requested_visibility: bool,
    now: Optional[datetime] = None,
) -> Optional[NotificationIntent]:
    """Write the response onto ``item`` and return the notification intent, if any.

    A second call overwrites the previous response; no history is kept.
    """
    response_text = validate_response_text(response_text)

    item.response_text = response_text
    item.response_visible_public = resolve_visibility(
        item.is_anonymous, requested_visibility
    )
    item.responded_at = now or datetime.utcnow()

    return build_notification_intent(item, response_text)
