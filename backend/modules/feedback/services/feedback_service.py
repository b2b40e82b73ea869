# backend/modules/feedback/services/feedback_service.py

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import Optional, List, Union
from datetime import datetime
import logging

from core.auth_context import RequestContext
from core.exceptions import NotFoundError, StorageError, ValidationError
from modules.feedback.constants import author_label
from modules.feedback.models.feedback_models import (
    Feedback,
    FeedbackStatus,
)
from modules.feedback.schemas.feedback_schemas import (
    FeedbackAdminView,
    FeedbackCreate,
    FeedbackFilters,
    FeedbackPublicView,
    RespondResult,
    StatusCounts,
)
from modules.feedback.services import response_policy, status_workflow
from modules.feedback.services.profile_service import ProfileService

logger = logging.getLogger(__name__)


def to_admin_view(feedback: Feedback) -> FeedbackAdminView:
    """Dashboard projection"""
    return FeedbackAdminView(
        id=feedback.id,
        title=feedback.title,
        description=feedback.description,
        category=feedback.category,
        priority=feedback.priority,
        status=feedback.status,
        is_anonymous=feedback.is_anonymous,
        created_at=feedback.created_at,
        author=author_label(feedback),
        submitter_name=feedback.submitter_name,
        submitter_email=feedback.submitter_email,
        response_text=feedback.response_text,
        response_visible_public=feedback.response_visible_public,
        responded_at=feedback.responded_at,
    )


def to_public_view(feedback: Feedback) -> FeedbackPublicView:
    """Public feed projection; private responses are withheld"""
    show_response = bool(feedback.response_visible_public and feedback.response_text)
    return FeedbackPublicView(
        id=feedback.id,
        title=feedback.title,
        description=feedback.description,
        category=feedback.category,
        priority=feedback.priority,
        created_at=feedback.created_at,
        author=author_label(feedback),
        response_text=feedback.response_text if show_response else None,
        responded_at=feedback.responded_at if show_response else None,
    )


def _search_author(feedback: Feedback) -> str:
    if feedback.is_anonymous:
        return "anonymous"
    return feedback.submitter_name or feedback.submitter_email or ""


def matches_filters(feedback: Feedback, filters: Optional[FeedbackFilters]) -> bool:
    """Dashboard tab / category / priority / free-text filter"""
    if filters is None:
        return True
    if filters.status and feedback.status != filters.status:
        return False
    if filters.category and feedback.category != filters.category:
        return False
    if filters.priority and feedback.priority != filters.priority:
        return False

    if filters.search and filters.search.strip():
        query = filters.search.strip().lower()
        return (
            query in feedback.title.lower()
            or query in feedback.description.lower()
            or query in _search_author(feedback).lower()
        )
    return True


class FeedbackService:
    """Submission, moderation and listing of feedback items"""

    def __init__(self, db: Session):
        self.db = db
        self.profiles = ProfileService(db)

    def submit_feedback(
        self, context: RequestContext, feedback_data: FeedbackCreate
    ) -> Feedback:
        """Create a new feedback item at ``pending``"""

        if not feedback_data.title.strip():
            raise ValidationError("Title is required", field="title")
        if not feedback_data.description.strip():
            raise ValidationError("Description is required", field="description")

        self.profiles.ensure_profile(context, commit=False)

        contact_email = None
        if not feedback_data.is_anonymous and feedback_data.contact_email:
            contact_email = str(feedback_data.contact_email)

        feedback = Feedback(
            user_id=context.user_id,
            title=feedback_data.title.strip(),
            description=feedback_data.description.strip(),
            category=feedback_data.category,
            priority=feedback_data.priority,
            status=status_workflow.INITIAL_STATUS,
            is_anonymous=feedback_data.is_anonymous,
            contact_email=contact_email,
        )

        try:
            self.db.add(feedback)
            self.db.commit()
            self.db.refresh(feedback)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating feedback: {e}")
            raise StorageError("Could not submit feedback. Please try again.")

        logger.info(
            f"Created feedback {feedback.id} from "
            f"{'anonymous submitter' if feedback.is_anonymous else context.user_id}"
        )
        return feedback

    def get_feedback(self, feedback_id: str) -> Feedback:
        """Get a specific feedback item by ID"""

        feedback = self.db.query(Feedback).filter(Feedback.id == feedback_id).first()
        if not feedback:
            raise NotFoundError(f"Feedback {feedback_id} not found")
        return feedback

    def get_published_feedback(self, feedback_id: str) -> Feedback:
        """Get an item users may react to or comment on"""

        feedback = self.get_feedback(feedback_id)
        if not status_workflow.is_public(feedback.status):
            raise NotFoundError(f"Feedback {feedback_id} not found")
        return feedback

    def list_feedback(self, filters: Optional[FeedbackFilters] = None) -> List[Feedback]:
        """All items for the admin dashboard, newest first"""

        query = self.db.query(Feedback)
        if filters:
            if filters.status:
                query = query.filter(Feedback.status == filters.status)
            if filters.category:
                query = query.filter(Feedback.category == filters.category)
            if filters.priority:
                query = query.filter(Feedback.priority == filters.priority)

        try:
            items = query.order_by(Feedback.created_at.desc()).all()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Dashboard fetch error: {e}")
            raise StorageError("Could not load feedback")

        # Author search runs over the joined profile
        return [item for item in items if matches_filters(item, filters)]

    def list_public_feed(self) -> List[Feedback]:
        """Published items, newest first"""

        try:
            return (
                self.db.query(Feedback)
                .filter(Feedback.status == FeedbackStatus.PUBLISHED)
                .order_by(Feedback.created_at.desc())
                .all()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Public feed fetch error: {e}")
            raise StorageError("Could not load the public feed")

    def get_published_items(self, feedback_ids: List[str]) -> List[Feedback]:
        """Published items among ``feedback_ids``, newest first"""
        if not feedback_ids:
            return []

        try:
            return (
                self.db.query(Feedback)
                .filter(
                    Feedback.id.in_(feedback_ids),
                    Feedback.status == FeedbackStatus.PUBLISHED,
                )
                .order_by(Feedback.created_at.desc())
                .all()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Published items fetch error: {e}")
            raise StorageError("Could not load the public feed")

    def get_status_counts(self) -> StatusCounts:
        try:
            items = self.db.query(Feedback).all()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Status count fetch error: {e}")
            raise StorageError("Could not load feedback")
        return StatusCounts(**status_workflow.status_counts(items))

    def transition_status(
        self, feedback_id: str, new_status: Union[str, FeedbackStatus]
    ) -> Feedback:
        """Admin status transition; last write wins"""

        target = status_workflow.parse_status(new_status)
        feedback = self.get_feedback(feedback_id)
        previous = status_workflow.transition(feedback, target)

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Update status error for feedback {feedback_id}: {e}")
            raise StorageError("Could not update status")

        logger.info(f"Feedback {feedback_id} status changed: {previous} -> {target}")
        return feedback

    def respond(
        self,
        feedback_id: str,
        response_text: str,
        visible_public: bool,
        now: Optional[datetime] = None,
    ) -> RespondResult:
        """Save an admin response and build the notification intent, if any"""

        response_text = response_policy.validate_response_text(response_text)
        feedback = self.get_feedback(feedback_id)
        intent = response_policy.apply_response(
            feedback, response_text, visible_public, now=now
        )

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Response update error for feedback {feedback_id}: {e}")
            raise StorageError("Could not save response.")

        logger.info(
            f"Responded to feedback {feedback_id} "
            f"({'public' if feedback.response_visible_public else 'private'})"
        )
        return RespondResult(item=to_admin_view(feedback), notification=intent)
