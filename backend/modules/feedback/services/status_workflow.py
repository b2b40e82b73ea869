# backend/modules/feedback/services/status_workflow.py

"""
Feedback status state machine.

Items start at ``pending``. An admin may move an item to any of the four
statuses; there is no forward-only rule. Only ``published`` items are shown
in the public feed. Concurrent transitions on one item resolve as
last-write-wins in the store.
"""

from typing import Dict, Iterable, Union
import logging

from core.exceptions import ValidationError
from modules.feedback.models.feedback_models import Feedback, FeedbackStatus

logger = logging.getLogger(__name__)

INITIAL_STATUS = FeedbackStatus.PENDING


def parse_status(value: Union[str, FeedbackStatus]) -> FeedbackStatus:
    """Coerce ``value`` to a status, rejecting anything outside the enumeration"""
    if isinstance(value, FeedbackStatus):
        return value
    try:
        return FeedbackStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown status '{value}'", field="status")


def transition(item: Feedback, new_status: Union[str, FeedbackStatus]) -> FeedbackStatus:
    """Set ``item.status`` and return the previous status.

    Response fields and every other attribute are left untouched.
    """
    target = parse_status(new_status)
    previous = item.status
    item.status = target
    if previous != target:
        logger.debug(f"Feedback {item.id} status {previous} -> {target}")
    return previous


def is_public(status: FeedbackStatus) -> bool:
    return status == FeedbackStatus.PUBLISHED


def status_counts(items: Iterable[Feedback]) -> Dict[str, int]:
    """Per-status counts plus ``all``, in a single pass"""
    counts = {status.value: 0 for status in FeedbackStatus}
    total = 0
    for item in items:
        counts[item.status.value] += 1
        total += 1
    counts["all"] = total
    return counts
