# backend/modules/feedback/services/engagement_session.py

"""
Engagement state for one view of the public feed.

The session owns the reaction aggregates, comment counts and lazily loaded
comment lists for a fixed set of items. Reaction toggles are applied locally
first and then persisted; a failed write leaves the optimistic counts in
place and marks the item stale until ``refresh_reactions`` reloads it.
"""

from typing import Dict, Iterable, List, Optional, Set
import logging

from sqlalchemy.orm import Session

from core.auth_context import RequestContext
from core.exceptions import StorageError
from modules.feedback.models.feedback_models import (
    Feedback,
    FeedbackComment,
    ReactionKind,
)
from modules.feedback.services.comment_service import (
    CommentService,
    validate_comment_content,
)
from modules.feedback.services.reaction_service import (
    ReactionService,
    ReactionState,
    apply_toggle,
    reconcile,
)

logger = logging.getLogger(__name__)


class FeedEngagementSession:
    """Reaction and comment state for the items of one page view"""

    def __init__(
        self,
        db: Session,
        context: Optional[RequestContext],
        items: Iterable[Feedback],
    ):
        self.db = db
        self.context = context
        self.items: List[Feedback] = list(items)
        self.reactions: Dict[str, ReactionState] = {}
        self.comment_counts: Dict[str, int] = {}
        self.comments: Dict[str, List[FeedbackComment]] = {}
        self.stale: Set[str] = set()

        self.reaction_service = ReactionService(db)
        self.comment_service = CommentService(db)

    @property
    def user_id(self) -> Optional[str]:
        return self.context.user_id if self.context else None

    @property
    def item_ids(self) -> List[str]:
        return [item.id for item in self.items]

    def load(self) -> None:
        """Fetch reaction states and comment counts for every item"""
        ids = self.item_ids
        self.reactions = self.reaction_service.load_states(ids, self.user_id)
        self.comment_counts = self.comment_service.count_comments(ids)
        self.stale.clear()

    def reaction_state(self, item_id: str) -> ReactionState:
        return self.reactions.get(item_id, ReactionState())

    def toggle_reaction(
        self, item_id: str, kind: ReactionKind
    ) -> Optional[ReactionState]:
        """Apply locally, persist, reconcile. Returns the displayed state."""
        if self.user_id is None:
            return None

        new_state, intent = apply_toggle(
            self.reaction_state(item_id), kind, item_id, self.user_id
        )
        self.reactions[item_id] = new_state

        try:
            self.reaction_service.persist(intent)
            confirmed = True
        except StorageError:
            confirmed = False

        reconcile(intent, confirmed, self.stale)
        return new_state

    def refresh_reactions(self, item_ids: Optional[Iterable[str]] = None) -> None:
        """Reload ground truth for ``item_ids`` (default: stale items)"""
        ids = list(item_ids) if item_ids is not None else sorted(self.stale)
        if not ids:
            return

        self.reactions.update(self.reaction_service.load_states(ids, self.user_id))
        self.stale.difference_update(ids)

    def open_comments(self, item_id: str) -> List[FeedbackComment]:
        """Comments for ``item_id``, fetched once per session"""
        if item_id in self.comments:
            return self.comments[item_id]

        try:
            comments = self.comment_service.list_comments(item_id)
        except StorageError:
            comments = []
        self.comments[item_id] = comments
        return comments

    def add_comment(self, item_id: str, content: str) -> Optional[FeedbackComment]:
        if self.user_id is None:
            return None

        content = validate_comment_content(content)
        comment = self.comment_service.add_comment(item_id, self.user_id, content)

        # An unopened list is fetched in full on first view
        if item_id in self.comments:
            self.comments[item_id].append(comment)
        self.comment_counts[item_id] = self.comment_counts.get(item_id, 0) + 1
        return comment
