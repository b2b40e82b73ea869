# backend/modules/feedback/routers/feedback_router.py

from fastapi import APIRouter, Depends, Query, Path, Body
from sqlalchemy.orm import Session
from typing import Optional, List
import logging

from core.auth import require_admin, require_submitter
from core.auth_context import RequestContext
from core.database import get_db
from modules.feedback.models.feedback_models import (
    FeedbackCategory,
    FeedbackPriority,
)
from modules.feedback.schemas.feedback_schemas import (
    AnalyticsSnapshot,
    FeedbackAdminView,
    FeedbackCreate,
    FeedbackFilters,
    FeedbackPublicView,
    RespondRequest,
    RespondResult,
    StatusCounts,
    StatusUpdate,
)
from modules.feedback.services import status_workflow
from modules.feedback.services.analytics_service import FeedbackAnalyticsService
from modules.feedback.services.feedback_service import (
    FeedbackService,
    to_admin_view,
    to_public_view,
)
from modules.feedback.services.notification_service import (
    NotificationService,
    get_notification_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/feedback", tags=["Feedback"])

ALL_STATUSES = "all"


@router.post("/", response_model=FeedbackAdminView)
async def submit_feedback(
    feedback_data: FeedbackCreate,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(require_submitter),
):
    """Submit new feedback; it starts out pending review"""

    feedback = FeedbackService(db).submit_feedback(context, feedback_data)
    return to_admin_view(feedback)


@router.get("/", response_model=List[FeedbackAdminView])
async def list_feedback(
    status: Optional[str] = Query(
        ALL_STATUSES, description="Status tab; 'all' disables the filter"
    ),
    category: Optional[FeedbackCategory] = Query(None, description="Filter by category"),
    priority: Optional[FeedbackPriority] = Query(None, description="Filter by priority"),
    search: Optional[str] = Query(
        None, description="Case-insensitive match on title, description or author"
    ),
    db: Session = Depends(get_db),
    _admin: RequestContext = Depends(require_admin),
):
    """Admin dashboard listing, newest first"""

    filters = FeedbackFilters(
        status=None
        if not status or status == ALL_STATUSES
        else status_workflow.parse_status(status),
        category=category,
        priority=priority,
        search=search,
    )
    items = FeedbackService(db).list_feedback(filters)
    return [to_admin_view(item) for item in items]


@router.get("/public", response_model=List[FeedbackPublicView])
async def public_feed(db: Session = Depends(get_db)):
    """Published feedback, newest first"""

    items = FeedbackService(db).list_public_feed()
    return [to_public_view(item) for item in items]


@router.get("/analytics", response_model=AnalyticsSnapshot)
async def feedback_analytics(
    db: Session = Depends(get_db),
    _admin: RequestContext = Depends(require_admin),
):
    """Dashboard analytics over every feedback item"""

    return FeedbackAnalyticsService(db).get_snapshot()


@router.get("/status-counts", response_model=StatusCounts)
async def status_counts(
    db: Session = Depends(get_db),
    _admin: RequestContext = Depends(require_admin),
):
    return FeedbackService(db).get_status_counts()


@router.get("/{feedback_id}", response_model=FeedbackAdminView)
async def get_feedback(
    feedback_id: str = Path(..., description="Feedback ID"),
    db: Session = Depends(get_db),
    _admin: RequestContext = Depends(require_admin),
):
    """Get specific feedback by ID (admin only)"""

    return to_admin_view(FeedbackService(db).get_feedback(feedback_id))


@router.patch("/{feedback_id}/status", response_model=FeedbackAdminView)
async def update_status(
    feedback_id: str = Path(..., description="Feedback ID"),
    update: StatusUpdate = Body(...),
    db: Session = Depends(get_db),
    admin: RequestContext = Depends(require_admin),
):
    """Move feedback to any status (admin only)"""

    feedback = FeedbackService(db).transition_status(feedback_id, update.status)
    logger.info(f"Admin {admin.user_id} set feedback {feedback_id} to {update.status.value}")
    return to_admin_view(feedback)


@router.post("/{feedback_id}/respond", response_model=RespondResult)
async def respond_to_feedback(
    feedback_id: str = Path(..., description="Feedback ID"),
    response_data: RespondRequest = Body(...),
    db: Session = Depends(get_db),
    _admin: RequestContext = Depends(require_admin),
    notifications: NotificationService = Depends(get_notification_service),
):
    """Save an admin response and notify the submitter when possible"""

    result = FeedbackService(db).respond(
        feedback_id, response_data.response_text, response_data.visible_public
    )

    # The response is committed; delivery problems are only reported
    if result.notification is not None:
        delivery = await notifications.dispatch(result.notification)
        result.notification_dispatched = bool(delivery.get("success"))

    return result
