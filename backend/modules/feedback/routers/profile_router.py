# backend/modules/feedback/routers/profile_router.py

from fastapi import APIRouter, Depends, Body
from sqlalchemy.orm import Session

from core.auth import get_request_context
from core.auth_context import RequestContext
from core.database import get_db
from modules.feedback.schemas.feedback_schemas import ProfileUpdate, ProfileView
from modules.feedback.services.profile_service import ProfileService

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("/me", response_model=ProfileView)
async def get_my_profile(
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    """Current user's profile, created on first access"""
    return ProfileService(db).ensure_profile(context)


@router.patch("/me", response_model=ProfileView)
async def update_my_profile(
    update: ProfileUpdate = Body(...),
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    return ProfileService(db).update_display_name(context, update.display_name)
