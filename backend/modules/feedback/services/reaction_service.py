# backend/modules/feedback/services/reaction_service.py

"""
Reaction engine: like / dislike toggles with optimistic counts.

A toggle is three separate steps:

1. ``apply_toggle`` updates the local aggregate (pure, no I/O);
2. ``ReactionService.persist`` issues exactly one store write, an upsert
   keyed on (feedback_id, user_id) or a delete by exact match;
3. ``reconcile`` records the outcome. A failed write is logged and the item
   is marked stale; the optimistic counts are not rolled back.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set, Tuple
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.database_utils import upsert_statement
from core.exceptions import StorageError
from modules.feedback.models.feedback_models import FeedbackReaction, ReactionKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReactionState:
    """Per-item aggregate as seen by one user"""

    likes: int = 0
    dislikes: int = 0
    user_reaction: Optional[ReactionKind] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "likes": self.likes,
            "dislikes": self.dislikes,
            "user_reaction": self.user_reaction.value if self.user_reaction else None,
        }


@dataclass(frozen=True)
class ReactionIntent:
    """The single store write a toggle requires"""

    feedback_id: str
    user_id: str
    previous: Optional[ReactionKind]
    next: Optional[ReactionKind]

    @property
    def is_delete(self) -> bool:
        return self.next is None


def next_reaction(
    current: Optional[ReactionKind], kind: ReactionKind
) -> Optional[ReactionKind]:
    """Clicking the active reaction clears it; anything else replaces it"""
    kind = ReactionKind(kind)
    return None if current == kind else kind


def apply_toggle(
    state: ReactionState, kind: ReactionKind, feedback_id: str, user_id: str
) -> Tuple[ReactionState, ReactionIntent]:
    """Local apply step. Returns the new state and the write to persist."""
    previous = state.user_reaction
    new = next_reaction(previous, kind)

    likes = state.likes
    dislikes = state.dislikes

    if previous == ReactionKind.LIKE:
        likes -= 1
    elif previous == ReactionKind.DISLIKE:
        dislikes -= 1

    if new == ReactionKind.LIKE:
        likes += 1
    elif new == ReactionKind.DISLIKE:
        dislikes += 1

    new_state = replace(state, likes=likes, dislikes=dislikes, user_reaction=new)
    intent = ReactionIntent(
        feedback_id=feedback_id, user_id=user_id, previous=previous, next=new
    )
    return new_state, intent


def reconcile(intent: ReactionIntent, confirmed: bool, stale_items: Set[str]) -> bool:
    """Reconcile step. Returns ``True`` when the local state matches the store."""
    if confirmed:
        stale_items.discard(intent.feedback_id)
        return True

    logger.error(
        f"Reaction write for feedback {intent.feedback_id} by user {intent.user_id} "
        f"failed ({intent.previous} -> {intent.next}); local counts may drift until reload"
    )
    stale_items.add(intent.feedback_id)
    return False


def empty_states(item_ids: Iterable[str]) -> Dict[str, ReactionState]:
    return {item_id: ReactionState() for item_id in item_ids}


def compute_reaction_states(
    rows: Iterable, item_ids: Iterable[str], user_id: Optional[str]
) -> Dict[str, ReactionState]:
    """Group reaction rows by item in one pass.

    ``rows`` need ``feedback_id``, ``user_id`` and ``reaction`` attributes and
    may arrive in any order. Every id in ``item_ids`` is present in the result.
    """
    counts: Dict[str, List[int]] = {}
    mine: Dict[str, ReactionKind] = {}

    for row in rows:
        reaction = ReactionKind(row.reaction)
        bucket = counts.setdefault(row.feedback_id, [0, 0])
        if reaction == ReactionKind.LIKE:
            bucket[0] += 1
        else:
            bucket[1] += 1
        if user_id is not None and row.user_id == user_id:
            mine[row.feedback_id] = reaction

    states = empty_states(item_ids)
    for feedback_id, (likes, dislikes) in counts.items():
        states[feedback_id] = ReactionState(
            likes=likes, dislikes=dislikes, user_reaction=mine.get(feedback_id)
        )
    return states


class ReactionService:
    """Store access for reactions"""

    def __init__(self, db: Session):
        self.db = db

    def _fetch_rows(self, item_ids: List[str]) -> List[Tuple[str, str, ReactionKind]]:
        try:
            return (
                self.db.query(
                    FeedbackReaction.feedback_id,
                    FeedbackReaction.user_id,
                    FeedbackReaction.reaction,
                )
                .filter(FeedbackReaction.feedback_id.in_(item_ids))
                .all()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Reaction fetch error: {e}")
            raise StorageError("Could not load reactions")

    def load_states(
        self, item_ids: List[str], user_id: Optional[str]
    ) -> Dict[str, ReactionState]:
        """Load-time aggregate for a batch of items.

        A failed fetch degrades to zero state for every requested id.
        """
        if not item_ids:
            return {}

        try:
            rows = self._fetch_rows(item_ids)
        except StorageError:
            return empty_states(item_ids)

        return compute_reaction_states(rows, item_ids, user_id)

    def get_state(self, feedback_id: str, user_id: Optional[str]) -> ReactionState:
        return self.load_states([feedback_id], user_id)[feedback_id]

    def read_state(self, feedback_id: str, user_id: Optional[str]) -> ReactionState:
        """Like ``get_state`` but raises ``StorageError`` instead of degrading"""
        rows = self._fetch_rows([feedback_id])
        return compute_reaction_states(rows, [feedback_id], user_id)[feedback_id]

    def persist(self, intent: ReactionIntent) -> None:
        """Issue the single write for ``intent``. Raises ``StorageError`` on failure."""
        try:
            if intent.is_delete:
                self._delete(intent.feedback_id, intent.user_id)
            else:
                self._upsert(intent.feedback_id, intent.user_id, intent.next)
            self.db.commit()
        except (SQLAlchemyError, NotImplementedError) as e:
            self.db.rollback()
            action = "Remove" if intent.is_delete else "Upsert"
            logger.error(f"{action} reaction error: {e}")
            raise StorageError("Could not save reaction")

    def toggle(
        self, feedback_id: str, user_id: str, kind: ReactionKind
    ) -> ReactionState:
        """Server-side toggle against the stored reaction; returns the confirmed state"""
        current = self.read_state(feedback_id, user_id)
        _, intent = apply_toggle(current, kind, feedback_id, user_id)
        self.persist(intent)

        logger.info(
            f"Reaction on feedback {feedback_id} by user {user_id}: "
            f"{intent.previous} -> {intent.next}"
        )
        return self.read_state(feedback_id, user_id)

    def _upsert(self, feedback_id: str, user_id: str, reaction: ReactionKind) -> None:
        now = datetime.utcnow()
        stmt = upsert_statement(
            self.db,
            FeedbackReaction,
            values={
                "feedback_id": feedback_id,
                "user_id": user_id,
                "reaction": reaction,
                "created_at": now,
                "updated_at": now,
            },
            conflict_columns=["feedback_id", "user_id"],
            update_columns=["reaction", "updated_at"],
        )
        self.db.execute(stmt)

    def _delete(self, feedback_id: str, user_id: str) -> None:
        self.db.query(FeedbackReaction).filter(
            FeedbackReaction.feedback_id == feedback_id,
            FeedbackReaction.user_id == user_id,
        ).delete(synchronize_session=False)
