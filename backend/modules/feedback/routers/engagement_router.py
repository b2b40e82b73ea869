# backend/modules/feedback/routers/engagement_router.py

from fastapi import APIRouter, Depends, Query, Path, Body
from sqlalchemy.orm import Session
from typing import Optional, List
import logging

from core.auth import get_request_context, get_request_context_optional
from core.auth_context import RequestContext
from core.database import get_db
from modules.feedback.schemas.feedback_schemas import (
    CommentCreate,
    CommentView,
    EngagementSummary,
    ReactionStateSchema,
    ReactionToggleRequest,
)
from modules.feedback.services.comment_service import CommentService
from modules.feedback.services.engagement_session import FeedEngagementSession
from modules.feedback.services.feedback_service import FeedbackService
from modules.feedback.services.reaction_service import ReactionService, ReactionState

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/feedback", tags=["Feedback Engagement"])


def _state_schema(state: ReactionState) -> ReactionStateSchema:
    return ReactionStateSchema(
        likes=state.likes,
        dislikes=state.dislikes,
        user_reaction=state.user_reaction,
    )


@router.get("/engagement", response_model=EngagementSummary)
async def get_engagement(
    ids: Optional[List[str]] = Query(
        None, description="Published feedback IDs; defaults to the whole public feed"
    ),
    db: Session = Depends(get_db),
    context: Optional[RequestContext] = Depends(get_request_context_optional),
):
    """Reaction states and comment counts for a page of the public feed"""

    feedback_service = FeedbackService(db)
    if ids:
        items = feedback_service.get_published_items(ids)
    else:
        items = feedback_service.list_public_feed()

    session = FeedEngagementSession(db, context, items)
    session.load()

    return EngagementSummary(
        reactions={
            item_id: _state_schema(state)
            for item_id, state in session.reactions.items()
        },
        comment_counts=session.comment_counts,
    )


@router.post("/{feedback_id}/reactions", response_model=ReactionStateSchema)
async def toggle_reaction(
    feedback_id: str = Path(..., description="Feedback ID"),
    toggle: ReactionToggleRequest = Body(...),
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    """Like / dislike a published item; repeating the same reaction clears it"""

    FeedbackService(db).get_published_feedback(feedback_id)
    state = ReactionService(db).toggle(feedback_id, context.user_id, toggle.kind)
    return _state_schema(state)


@router.get("/{feedback_id}/comments", response_model=List[CommentView])
async def list_comments(
    feedback_id: str = Path(..., description="Feedback ID"),
    db: Session = Depends(get_db),
):
    """Comments on a published item, oldest first"""

    FeedbackService(db).get_published_feedback(feedback_id)
    return CommentService(db).list_comments(feedback_id)


@router.post("/{feedback_id}/comments", response_model=CommentView)
async def add_comment(
    feedback_id: str = Path(..., description="Feedback ID"),
    comment_data: CommentCreate = Body(...),
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    FeedbackService(db).get_published_feedback(feedback_id)
    return CommentService(db).add_comment(
        feedback_id, context.user_id, comment_data.content
    )
