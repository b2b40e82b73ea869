# backend/modules/feedback/services/profile_service.py

from datetime import datetime
from typing import Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.auth_context import RequestContext
from core.database_utils import upsert_statement
from core.exceptions import NotFoundError, StorageError
from modules.feedback.models.feedback_models import Profile, UserRole

logger = logging.getLogger(__name__)


def derive_display_name(context: RequestContext) -> Optional[str]:
    """Full name from the session, else the local part of the email"""
    if context.full_name and context.full_name.strip():
        return context.full_name.strip()
    if context.email:
        return context.email.split("@")[0] or None
    return None


class ProfileService:
    """Submitter profiles keyed by session user id"""

    def __init__(self, db: Session):
        self.db = db

    def ensure_profile(self, context: RequestContext, commit: bool = True) -> Profile:
        """Upsert the caller's profile, keeping any stored role"""
        now = datetime.utcnow()
        display_name = derive_display_name(context)

        values = {
            "id": context.user_id,
            "email": context.email,
            "display_name": display_name,
            "role": UserRole.ADMIN if context.is_admin else UserRole.USER,
            "created_at": now,
            "updated_at": now,
        }
        # A chosen display name survives later sign-ins
        update_columns = ["updated_at"]
        if context.email:
            update_columns.append("email")

        try:
            self.db.execute(
                upsert_statement(
                    self.db,
                    Profile,
                    values=values,
                    conflict_columns=["id"],
                    update_columns=update_columns,
                )
            )
            if commit:
                self.db.commit()
            else:
                self.db.flush()
        except (SQLAlchemyError, NotImplementedError) as e:
            self.db.rollback()
            logger.error(f"Profile upsert error for user {context.user_id}: {e}")
            raise StorageError("Could not create profile. Please try again.")

        profile = self.db.get(Profile, context.user_id)
        # The upsert bypasses the identity map
        self.db.refresh(profile)
        return profile

    def get_profile(self, user_id: str) -> Profile:
        profile = self.db.get(Profile, user_id)
        if not profile:
            raise NotFoundError(f"Profile {user_id} not found")
        return profile

    def update_display_name(
        self, context: RequestContext, display_name: Optional[str]
    ) -> Profile:
        """Set the caller's display name; blank clears it"""
        profile = self.db.get(Profile, context.user_id)
        if profile is None:
            profile = self.ensure_profile(context)

        cleaned = display_name.strip() if display_name else ""
        profile.display_name = cleaned or None

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Profile update error for user {context.user_id}: {e}")
            raise StorageError("Could not update profile. Please try again.")

        logger.info(f"Updated display name for user {context.user_id}")
        return profile
