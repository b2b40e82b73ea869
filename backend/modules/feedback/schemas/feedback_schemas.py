# backend/modules/feedback/schemas/feedback_schemas.py

from pydantic import BaseModel, ConfigDict, EmailStr, Field, computed_field, field_validator
from typing import Optional, List, Dict
from datetime import datetime
from urllib.parse import quote

from modules.feedback.models.feedback_models import (
    FeedbackCategory,
    FeedbackPriority,
    FeedbackStatus,
    ReactionKind,
    UserRole,
)


# Submission
class FeedbackCreate(BaseModel):
    """Schema for submitting feedback"""

    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1, max_length=5000)
    category: FeedbackCategory
    priority: FeedbackPriority = FeedbackPriority.LOW
    is_anonymous: bool = False
    contact_email: Optional[EmailStr] = None

    @field_validator("title", "description")
    @classmethod
    def strip_required_text(cls, v):
        if not v.strip():
            raise ValueError("This field is required")
        return v.strip()


class StatusUpdate(BaseModel):
    """Schema for an admin status transition"""

    status: FeedbackStatus


class RespondRequest(BaseModel):
    """Schema for an admin response"""

    response_text: str = Field(..., min_length=1, max_length=5000)
    visible_public: bool = False


class FeedbackFilters(BaseModel):
    """Dashboard filters; ``None`` means no filter on that field"""

    status: Optional[FeedbackStatus] = None
    category: Optional[FeedbackCategory] = None
    priority: Optional[FeedbackPriority] = None
    search: Optional[str] = None


# Projections
class FeedbackAdminView(BaseModel):
    """Dashboard projection, including the submitter contact"""

    id: str
    title: str
    description: str
    category: FeedbackCategory
    priority: FeedbackPriority
    status: FeedbackStatus
    is_anonymous: bool
    created_at: datetime
    author: str
    submitter_name: Optional[str] = None
    submitter_email: Optional[str] = None
    response_text: Optional[str] = None
    response_visible_public: Optional[bool] = None
    responded_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class FeedbackPublicView(BaseModel):
    """Public feed projection; no contact details, public responses only"""

    id: str
    title: str
    description: str
    category: FeedbackCategory
    priority: FeedbackPriority
    created_at: datetime
    author: str
    response_text: Optional[str] = None
    responded_at: Optional[datetime] = None


class StatusCounts(BaseModel):
    pending: int = 0
    in_progress: int = 0
    published: int = 0
    rejected: int = 0
    all: int = 0


# Notification
class NotificationIntent(BaseModel):
    """Structured payload handed to the notification dispatcher"""

    recipient: str
    subject: str
    body: str

    model_config = ConfigDict(frozen=True)

    @computed_field
    @property
    def mailto_url(self) -> str:
        return (
            "mailto:" + quote(self.recipient, safe="")
            + "?subject=" + quote(self.subject, safe="")
            + "&body=" + quote(self.body, safe="")
        )


class RespondResult(BaseModel):
    item: FeedbackAdminView
    notification: Optional[NotificationIntent] = None
    notification_dispatched: bool = False


# Engagement
class ReactionToggleRequest(BaseModel):
    kind: ReactionKind


class ReactionStateSchema(BaseModel):
    likes: int = 0
    dislikes: int = 0
    user_reaction: Optional[ReactionKind] = None


class EngagementSummary(BaseModel):
    reactions: Dict[str, ReactionStateSchema]
    comment_counts: Dict[str, int]


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)


class CommentView(BaseModel):
    id: str
    feedback_id: str
    content: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Profile
class ProfileUpdate(BaseModel):
    display_name: Optional[str] = Field(None, max_length=100)


class ProfileView(BaseModel):
    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    role: UserRole

    model_config = ConfigDict(from_attributes=True)


# Analytics
class CategoryShare(BaseModel):
    key: FeedbackCategory
    name: str
    value: int
    percentage: float
    color: str


class PriorityBar(BaseModel):
    priority: FeedbackPriority
    label: str
    count: int
    width_percent: float
    color: str


class TrendBucket(BaseModel):
    key: str
    label: str
    value: int


class RecentActivity(BaseModel):
    id: str
    title: str
    author: str
    status: FeedbackStatus
    created_at: datetime


class AnalyticsSnapshot(BaseModel):
    total: int
    pending: int
    in_progress: int
    published: int
    rejected: int
    responded: int
    response_rate: int
    anonymous: int
    anonymous_rate: int
    category_data: List[CategoryShare]
    priority_data: List[PriorityBar]
    max_priority_count: int
    trends_data: List[TrendBucket]
    max_trend: int
    recent: List[RecentActivity]
