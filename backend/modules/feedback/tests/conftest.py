# backend/modules/feedback/tests/conftest.py

import pytest
from typing import Callable, Generator, Dict, Any
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from core.auth import create_access_token
from core.auth_context import RequestContext, ROLE_ADMIN, ROLE_USER
from core.database import Base, get_db
from modules.feedback.models.feedback_models import (
    Feedback,
    FeedbackCategory,
    FeedbackPriority,
    FeedbackStatus,
    Profile,
    UserRole,
)
from modules.feedback.services.comment_service import CommentService
from modules.feedback.services.feedback_service import FeedbackService
from modules.feedback.services.profile_service import ProfileService
from modules.feedback.services.reaction_service import ReactionService
from modules.feedback.services.analytics_service import FeedbackAnalyticsService


# Test database setup
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """Create a test database session on fresh tables."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def override_get_db(db_session: Session):
    """Override the get_db dependency for testing."""
    def _override_get_db():
        yield db_session

    return _override_get_db


@pytest.fixture
def client(override_get_db):
    """Create a test client."""
    from app.main import app

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# Service fixtures
@pytest.fixture
def feedback_service(db_session: Session) -> FeedbackService:
    """Create a feedback service instance."""
    return FeedbackService(db_session)


@pytest.fixture
def reaction_service(db_session: Session) -> ReactionService:
    return ReactionService(db_session)


@pytest.fixture
def comment_service(db_session: Session) -> CommentService:
    return CommentService(db_session)


@pytest.fixture
def profile_service(db_session: Session) -> ProfileService:
    return ProfileService(db_session)


@pytest.fixture
def analytics_service(db_session: Session) -> FeedbackAnalyticsService:
    return FeedbackAnalyticsService(db_session)


# Session identities
@pytest.fixture
def user_context() -> RequestContext:
    """A signed-in student."""
    return RequestContext(
        user_id="user-1",
        role=ROLE_USER,
        email="jane.doe@example.com",
        full_name="Jane Doe",
    )


@pytest.fixture
def other_user_context() -> RequestContext:
    return RequestContext(
        user_id="user-2",
        role=ROLE_USER,
        email="sam.lee@example.com",
        full_name="Sam Lee",
    )


@pytest.fixture
def admin_context() -> RequestContext:
    return RequestContext(
        user_id="admin-1",
        role=ROLE_ADMIN,
        email="admin@example.com",
        full_name="Portal Admin",
    )


@pytest.fixture
def auth_headers_user(user_context: RequestContext) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_context)}"}


@pytest.fixture
def auth_headers_other_user(other_user_context: RequestContext) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(other_user_context)}"}


@pytest.fixture
def auth_headers_admin(admin_context: RequestContext) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(admin_context)}"}


# Mock data fixtures
@pytest.fixture
def sample_feedback_data() -> Dict[str, Any]:
    """Sample submission payload."""
    return {
        "title": "Broken heater in lecture hall B",
        "description": "The heater in hall B has not worked for two weeks.",
        "category": "facilities",
        "priority": "high",
        "is_anonymous": False,
        "contact_email": "jane.contact@example.com",
    }


@pytest.fixture
def submitter_profile(db_session: Session, user_context: RequestContext) -> Profile:
    """The student's profile row."""
    profile = Profile(
        id=user_context.user_id,
        email=user_context.email,
        display_name=user_context.full_name,
        role=UserRole.USER,
    )
    db_session.add(profile)
    db_session.commit()
    return profile


@pytest.fixture
def make_feedback(db_session: Session, submitter_profile: Profile) -> Callable[..., Feedback]:
    """Factory inserting feedback items owned by the student."""

    def _make_feedback(**overrides) -> Feedback:
        values = {
            "user_id": submitter_profile.id,
            "title": "Cafeteria queue",
            "description": "Lunch queues run past twenty minutes.",
            "category": FeedbackCategory.CAFETERIA,
            "priority": FeedbackPriority.MEDIUM,
            "status": FeedbackStatus.PENDING,
            "is_anonymous": False,
        }
        values.update(overrides)
        feedback = Feedback(**values)
        db_session.add(feedback)
        db_session.commit()
        db_session.refresh(feedback)
        return feedback

    return _make_feedback


@pytest.fixture
def published_feedback(make_feedback) -> Feedback:
    return make_feedback(
        title="Library hours",
        description="Please keep the library open until midnight.",
        category=FeedbackCategory.LIBRARY,
        status=FeedbackStatus.PUBLISHED,
    )


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 6, 15, 12, 0, 0)
