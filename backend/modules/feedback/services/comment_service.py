# backend/modules/feedback/services/comment_service.py

from typing import Dict, Iterable, List, Optional
import logging

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.exceptions import StorageError, ValidationError
from modules.feedback.models.feedback_models import FeedbackComment

logger = logging.getLogger(__name__)


def validate_comment_content(content: Optional[str]) -> str:
    """Return the stripped content, rejecting empty or whitespace-only text"""
    if content is None or not content.strip():
        raise ValidationError("Comment cannot be empty", field="content")
    return content.strip()


def zero_counts(item_ids: Iterable[str]) -> Dict[str, int]:
    return {item_id: 0 for item_id in item_ids}


def group_counts(feedback_ids: Iterable[str], item_ids: Iterable[str]) -> Dict[str, int]:
    """Client-side group-and-count over raw ``feedback_id`` values"""
    counts = zero_counts(item_ids)
    for feedback_id in feedback_ids:
        counts[feedback_id] = counts.get(feedback_id, 0) + 1
    return counts


class CommentService:
    """Comment store and batched count aggregation"""

    def __init__(self, db: Session):
        self.db = db

    def list_comments(self, feedback_id: str) -> List[FeedbackComment]:
        """Comments for one item, oldest first"""
        try:
            return (
                self.db.query(FeedbackComment)
                .filter(FeedbackComment.feedback_id == feedback_id)
                .order_by(FeedbackComment.created_at.asc())
                .all()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Comments fetch error for feedback {feedback_id}: {e}")
            raise StorageError("Could not load comments")

    def add_comment(
        self, feedback_id: str, user_id: str, content: str
    ) -> FeedbackComment:
        content = validate_comment_content(content)

        comment = FeedbackComment(
            feedback_id=feedback_id,
            user_id=user_id,
            content=content,
        )
        try:
            self.db.add(comment)
            self.db.commit()
            self.db.refresh(comment)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Insert comment error on feedback {feedback_id}: {e}")
            raise StorageError("Could not post comment")

        logger.info(f"Added comment {comment.id} to feedback {feedback_id}")
        return comment

    def count_comments(self, item_ids: List[str]) -> Dict[str, int]:
        """Comment counts for every id in ``item_ids``; zero-comment items map to 0.

        Uses one grouped aggregate query, falling back to fetching raw rows and
        counting client-side when the aggregate fails.
        """
        if not item_ids:
            return {}

        try:
            return self._aggregate_counts(item_ids)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Comment count aggregate unavailable, falling back: {e}")

        try:
            return self._fallback_counts(item_ids)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Comments count fetch error: {e}")
            return zero_counts(item_ids)

    def _aggregate_counts(self, item_ids: List[str]) -> Dict[str, int]:
        rows = (
            self.db.query(
                FeedbackComment.feedback_id,
                func.count(FeedbackComment.id).label("count"),
            )
            .filter(FeedbackComment.feedback_id.in_(item_ids))
            .group_by(FeedbackComment.feedback_id)
            .all()
        )

        counts = zero_counts(item_ids)
        for row in rows:
            counts[row.feedback_id] = int(row.count or 0)
        return counts

    def _fallback_counts(self, item_ids: List[str]) -> Dict[str, int]:
        rows = (
            self.db.query(FeedbackComment.feedback_id)
            .filter(FeedbackComment.feedback_id.in_(item_ids))
            .all()
        )
        return group_counts((row.feedback_id for row in rows), item_ids)
