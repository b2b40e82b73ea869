# backend/modules/feedback/tests/test_api_endpoints.py

import pytest
from unittest.mock import patch

from fastapi.testclient import TestClient

from core.exceptions import StorageError
from modules.feedback.models.feedback_models import FeedbackStatus
from modules.feedback.services.notification_service import get_notification_service
from modules.feedback.services.reaction_service import ReactionService

API = "/api/v1"


class FakeNotificationService:
    """Records dispatched intents instead of sending email"""

    def __init__(self, success=True):
        self.success = success
        self.sent = []

    async def dispatch(self, intent):
        self.sent.append(intent)
        return {"success": self.success}


@pytest.fixture
def notifications(client):
    from app.main import app

    fake = FakeNotificationService()
    app.dependency_overrides[get_notification_service] = lambda: fake
    return fake


class TestSubmitAPI:
    """Test cases for feedback submission endpoints"""

    def test_submit_success(self, client: TestClient, sample_feedback_data, auth_headers_user):
        response = client.post(f"{API}/feedback/", json=sample_feedback_data, headers=auth_headers_user)

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "pending"
        assert data["category"] == "facilities"
        assert data["priority"] == "high"
        assert data["author"] == "Jane Doe"
        assert data["response_text"] is None

    def test_submit_unauthenticated(self, client: TestClient, sample_feedback_data):
        response = client.post(f"{API}/feedback/", json=sample_feedback_data)

        assert response.status_code == 401
        assert response.json()["error_code"] == "AUTH_FAILED"

    def test_admin_cannot_submit(self, client: TestClient, sample_feedback_data, auth_headers_admin):
        response = client.post(f"{API}/feedback/", json=sample_feedback_data, headers=auth_headers_admin)

        assert response.status_code == 403

    @pytest.mark.parametrize(
        "field,value",
        [("category", "parking"), ("priority", "urgent"), ("title", "   "), ("contact_email", "nope")],
    )
    def test_submit_validation_error(
        self, client: TestClient, sample_feedback_data, auth_headers_user, field, value
    ):
        sample_feedback_data[field] = value

        response = client.post(f"{API}/feedback/", json=sample_feedback_data, headers=auth_headers_user)

        assert response.status_code == 422

    def test_anonymous_submission_hides_contact(
        self, client: TestClient, sample_feedback_data, auth_headers_user, auth_headers_admin
    ):
        sample_feedback_data["is_anonymous"] = True
        created = client.post(f"{API}/feedback/", json=sample_feedback_data, headers=auth_headers_user).json()

        response = client.get(f"{API}/feedback/{created['id']}", headers=auth_headers_admin)

        data = response.json()
        assert data["author"] == "Anonymous"
        assert data["submitter_email"] is None
        assert data["submitter_name"] is None


class TestDashboardAPI:

    def test_list_requires_admin(self, client: TestClient, auth_headers_user):
        response = client.get(f"{API}/feedback/", headers=auth_headers_user)

        assert response.status_code == 403
        assert response.json()["error_code"] == "PERMISSION_DENIED"

    def test_list_with_filters(self, client: TestClient, make_feedback, auth_headers_admin):
        make_feedback(title="Heater", status=FeedbackStatus.PENDING)
        make_feedback(title="Menu", status=FeedbackStatus.PUBLISHED)

        all_items = client.get(f"{API}/feedback/?status=all", headers=auth_headers_admin).json()
        published = client.get(f"{API}/feedback/?status=published", headers=auth_headers_admin).json()
        searched = client.get(f"{API}/feedback/?search=heat", headers=auth_headers_admin).json()

        assert len(all_items) == 2
        assert [item["title"] for item in published] == ["Menu"]
        assert [item["title"] for item in searched] == ["Heater"]

    def test_unknown_status_filter(self, client: TestClient, auth_headers_admin):
        response = client.get(f"{API}/feedback/?status=archived", headers=auth_headers_admin)

        assert response.status_code == 400
        assert response.json()["field"] == "status"

    def test_status_counts(self, client: TestClient, make_feedback, auth_headers_admin):
        make_feedback(status=FeedbackStatus.PENDING)
        make_feedback(status=FeedbackStatus.REJECTED)

        data = client.get(f"{API}/feedback/status-counts", headers=auth_headers_admin).json()

        assert data == {"pending": 1, "in_progress": 0, "published": 0, "rejected": 1, "all": 2}

    def test_analytics(self, client: TestClient, make_feedback, auth_headers_admin):
        make_feedback(is_anonymous=True)

        data = client.get(f"{API}/feedback/analytics", headers=auth_headers_admin).json()

        assert data["total"] == 1
        assert data["anonymous_rate"] == 100
        assert len(data["trends_data"]) == 6

    def test_get_unknown_item(self, client: TestClient, auth_headers_admin):
        response = client.get(f"{API}/feedback/missing", headers=auth_headers_admin)

        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"

    def test_invalid_status_body(self, client: TestClient, make_feedback, auth_headers_admin):
        item = make_feedback()

        response = client.patch(
            f"{API}/feedback/{item.id}/status", json={"status": "archived"}, headers=auth_headers_admin
        )

        assert response.status_code == 422


class TestEndToEndScenarios:
    """Complete moderation and engagement flows"""

    def test_submit_then_publish(
        self, client: TestClient, sample_feedback_data, auth_headers_user, auth_headers_admin
    ):
        created = client.post(f"{API}/feedback/", json=sample_feedback_data, headers=auth_headers_user).json()
        assert created["status"] == "pending"
        assert client.get(f"{API}/feedback/public").json() == []

        response = client.patch(
            f"{API}/feedback/{created['id']}/status",
            json={"status": "published"},
            headers=auth_headers_admin,
        )
        assert response.status_code == 200
        assert response.json()["status"] == "published"

        public = client.get(f"{API}/feedback/public").json()
        assert [item["id"] for item in public] == [created["id"]]
        assert "submitter_email" not in public[0]

    def test_respond_to_anonymous_item(
        self, client: TestClient, make_feedback, auth_headers_admin, notifications
    ):
        item = make_feedback(is_anonymous=True)

        response = client.post(
            f"{API}/feedback/{item.id}/respond",
            json={"response_text": "Fixed next week", "visible_public": False},
            headers=auth_headers_admin,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["item"]["response_visible_public"] is True
        assert data["item"]["responded_at"] is not None
        assert data["notification"] is None
        assert data["notification_dispatched"] is False
        assert notifications.sent == []

    def test_respond_privately_with_contact(
        self, client: TestClient, make_feedback, auth_headers_admin, notifications
    ):
        item = make_feedback(contact_email="jane.contact@example.com")

        response = client.post(
            f"{API}/feedback/{item.id}/respond",
            json={"response_text": "We replaced the heater", "visible_public": False},
            headers=auth_headers_admin,
        )

        data = response.json()
        assert data["item"]["response_visible_public"] is False
        assert data["notification"]["recipient"] == "jane.contact@example.com"
        assert data["notification"]["mailto_url"].startswith("mailto:jane.contact%40example.com")
        assert data["notification_dispatched"] is True
        assert len(notifications.sent) == 1
        assert notifications.sent[0].recipient == "jane.contact@example.com"

    def test_private_response_hidden_from_public_feed(
        self, client: TestClient, make_feedback, auth_headers_admin, notifications
    ):
        item = make_feedback(status=FeedbackStatus.PUBLISHED)
        client.post(
            f"{API}/feedback/{item.id}/respond",
            json={"response_text": "Internal note", "visible_public": False},
            headers=auth_headers_admin,
        )

        public = client.get(f"{API}/feedback/public").json()

        assert public[0]["response_text"] is None

    def test_reaction_toggle_sequence(
        self, client: TestClient, published_feedback, auth_headers_other_user
    ):
        url = f"{API}/feedback/{published_feedback.id}/reactions"

        liked = client.post(url, json={"kind": "like"}, headers=auth_headers_other_user).json()
        assert liked == {"likes": 1, "dislikes": 0, "user_reaction": "like"}

        switched = client.post(url, json={"kind": "dislike"}, headers=auth_headers_other_user).json()
        assert switched == {"likes": 0, "dislikes": 1, "user_reaction": "dislike"}

        cleared = client.post(url, json={"kind": "dislike"}, headers=auth_headers_other_user).json()
        assert cleared == {"likes": 0, "dislikes": 0, "user_reaction": None}


class TestEngagementAPI:

    def test_reaction_requires_sign_in(self, client: TestClient, published_feedback):
        response = client.post(
            f"{API}/feedback/{published_feedback.id}/reactions", json={"kind": "like"}
        )

        assert response.status_code == 401

    def test_cannot_react_to_pending_item(self, client: TestClient, make_feedback, auth_headers_user):
        item = make_feedback(status=FeedbackStatus.PENDING)

        response = client.post(
            f"{API}/feedback/{item.id}/reactions", json={"kind": "like"}, headers=auth_headers_user
        )

        assert response.status_code == 404

    def test_reaction_read_failure_is_surfaced(
        self, client: TestClient, published_feedback, auth_headers_user
    ):
        url = f"{API}/feedback/{published_feedback.id}/reactions"

        with patch.object(
            ReactionService, "_fetch_rows", side_effect=StorageError("Could not load reactions")
        ):
            response = client.post(url, json={"kind": "like"}, headers=auth_headers_user)

        assert response.status_code == 503

    def test_comments_flow(self, client: TestClient, published_feedback, auth_headers_other_user):
        url = f"{API}/feedback/{published_feedback.id}/comments"

        created = client.post(url, json={"content": "  Same here  "}, headers=auth_headers_other_user)
        assert created.status_code == 200
        assert created.json()["content"] == "Same here"

        comments = client.get(url).json()
        assert [c["content"] for c in comments] == ["Same here"]

    def test_blank_comment_rejected(self, client: TestClient, published_feedback, auth_headers_user):
        response = client.post(
            f"{API}/feedback/{published_feedback.id}/comments",
            json={"content": "   "},
            headers=auth_headers_user,
        )

        assert response.status_code == 400
        assert response.json()["field"] == "content"

    def test_engagement_summary(
        self, client: TestClient, published_feedback, make_feedback, auth_headers_other_user
    ):
        quiet = make_feedback(status=FeedbackStatus.PUBLISHED, title="Quiet")
        client.post(
            f"{API}/feedback/{published_feedback.id}/reactions",
            json={"kind": "like"},
            headers=auth_headers_other_user,
        )
        client.post(
            f"{API}/feedback/{published_feedback.id}/comments",
            json={"content": "+1"},
            headers=auth_headers_other_user,
        )

        response = client.get(
            f"{API}/feedback/engagement",
            params={"ids": [published_feedback.id, quiet.id]},
            headers=auth_headers_other_user,
        )

        data = response.json()
        assert data["reactions"][published_feedback.id] == {
            "likes": 1,
            "dislikes": 0,
            "user_reaction": "like",
        }
        assert data["reactions"][quiet.id]["likes"] == 0
        assert data["comment_counts"] == {published_feedback.id: 1, quiet.id: 0}

    def test_engagement_summary_signed_out(self, client: TestClient, published_feedback):
        data = client.get(f"{API}/feedback/engagement").json()

        assert data["reactions"][published_feedback.id]["user_reaction"] is None
        assert data["comment_counts"][published_feedback.id] == 0


class TestProfileAPI:

    def test_get_profile_creates_it(self, client: TestClient, auth_headers_user):
        data = client.get(f"{API}/profile/me", headers=auth_headers_user).json()

        assert data["id"] == "user-1"
        assert data["display_name"] == "Jane Doe"
        assert data["role"] == "user"

    def test_update_display_name(self, client: TestClient, auth_headers_user):
        updated = client.patch(
            f"{API}/profile/me", json={"display_name": "  JD  "}, headers=auth_headers_user
        ).json()
        assert updated["display_name"] == "JD"

        again = client.get(f"{API}/profile/me", headers=auth_headers_user).json()
        assert again["display_name"] == "JD"

    def test_blank_display_name_clears(self, client: TestClient, auth_headers_user):
        data = client.patch(
            f"{API}/profile/me", json={"display_name": "   "}, headers=auth_headers_user
        ).json()

        assert data["display_name"] is None


class TestPageGate:

    def test_anonymous_dashboard_redirects_to_login(self, client: TestClient):
        response = client.get("/dashboard", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/login"

    def test_student_dashboard_redirects_home(self, client: TestClient, auth_headers_user):
        response = client.get("/dashboard", headers=auth_headers_user, follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/"

    def test_api_is_not_gated(self, client: TestClient):
        response = client.get(f"{API}/feedback/public", follow_redirects=False)

        assert response.status_code == 200

    def test_health(self, client: TestClient):
        assert client.get("/health").json() == {"status": "ok"}
