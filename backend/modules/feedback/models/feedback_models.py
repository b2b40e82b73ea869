# backend/modules/feedback/models/feedback_models.py

from sqlalchemy import (
    Column,
    String,
    Text,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
import uuid
import enum

from core.database import Base
from core.mixins import TimestampMixin


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


def _new_id() -> str:
    return str(uuid.uuid4())


class FeedbackCategory(str, enum.Enum):
    """Areas a submission can be filed under"""
    ACADEMICS = "academics"
    FACILITIES = "facilities"
    INFIRMARY = "infirmary"
    CAFETERIA = "cafeteria"
    LIBRARY = "library"
    DORMITORY = "dormitory"
    EVENTS = "events"
    TRANSPORTATION = "transportation"
    TECHNOLOGY = "technology"
    ADMINISTRATION = "administration"
    SAFETY = "safety"
    OTHER = "other"


class FeedbackPriority(str, enum.Enum):
    """Priority levels, declared in ranking order"""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class FeedbackStatus(str, enum.Enum):
    """Moderation status"""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    PUBLISHED = "published"
    REJECTED = "rejected"


class ReactionKind(str, enum.Enum):
    LIKE = "like"
    DISLIKE = "dislike"


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"


# Database Models
class Profile(Base, TimestampMixin):
    """Submitter profile keyed by the session user id"""
    __tablename__ = "profiles"

    id = Column(String(64), primary_key=True)
    email = Column(String(255), nullable=True)
    display_name = Column(String(100), nullable=True)
    role = Column(
        Enum(UserRole, values_callable=_enum_values, name="user_role"),
        default=UserRole.USER,
        nullable=False,
    )

    feedback = relationship("Feedback", back_populates="submitter")


class Feedback(Base, TimestampMixin):
    """A submitted feedback item and its admin response"""
    __tablename__ = "feedback"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(64), ForeignKey("profiles.id"), nullable=True, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(
        Enum(FeedbackCategory, values_callable=_enum_values, name="feedback_category"),
        nullable=False,
        index=True,
    )
    priority = Column(
        Enum(FeedbackPriority, values_callable=_enum_values, name="feedback_priority"),
        nullable=False,
        index=True,
    )
    status = Column(
        Enum(FeedbackStatus, values_callable=_enum_values, name="feedback_status"),
        default=FeedbackStatus.PENDING,
        nullable=False,
        index=True,
    )

    # Immutable after creation
    is_anonymous = Column(Boolean, default=False, nullable=False)
    # Never stored for anonymous submissions
    contact_email = Column(String(255), nullable=True)

    # Admin response
    response_text = Column(Text, nullable=True)
    response_visible_public = Column(Boolean, nullable=True)
    responded_at = Column(DateTime, nullable=True)

    submitter = relationship("Profile", back_populates="feedback", lazy="joined")
    reactions = relationship("FeedbackReaction", back_populates="feedback")
    comments = relationship(
        "FeedbackComment",
        back_populates="feedback",
        order_by="FeedbackComment.created_at",
    )

    __table_args__ = (
        Index("idx_feedback_status_created", "status", "created_at"),
    )

    @property
    def submitter_name(self):
        if self.is_anonymous or self.submitter is None:
            return None
        return self.submitter.display_name

    @property
    def submitter_email(self):
        """Contact address on file; never exposed for anonymous items"""
        if self.is_anonymous:
            return None
        if self.contact_email:
            return self.contact_email
        if self.submitter is not None:
            return self.submitter.email
        return None


class FeedbackReaction(Base, TimestampMixin):
    """One like or dislike per user per item"""
    __tablename__ = "feedback_reactions"

    id = Column(String(36), primary_key=True, default=_new_id)
    feedback_id = Column(String(36), ForeignKey("feedback.id"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    reaction = Column(
        Enum(ReactionKind, values_callable=_enum_values, name="reaction_kind"),
        nullable=False,
    )

    feedback = relationship("Feedback", back_populates="reactions")

    __table_args__ = (
        UniqueConstraint("feedback_id", "user_id", name="uq_feedback_reaction_user"),
    )


class FeedbackComment(Base, TimestampMixin):
    """Append-only comment on a feedback item"""
    __tablename__ = "feedback_comments"

    id = Column(String(36), primary_key=True, default=_new_id)
    feedback_id = Column(String(36), ForeignKey("feedback.id"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    content = Column(Text, nullable=False)

    feedback = relationship("Feedback", back_populates="comments")

    __table_args__ = (
        Index("idx_feedback_comment_item_created", "feedback_id", "created_at"),
    )
