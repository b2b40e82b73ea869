# backend/modules/feedback/tests/test_comment_service.py

import pytest
from datetime import datetime, timedelta
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from core.exceptions import StorageError, ValidationError
from modules.feedback.models.feedback_models import FeedbackComment
from modules.feedback.services.comment_service import (
    group_counts,
    validate_comment_content,
)


def _store_error():
    return OperationalError("SELECT", {}, Exception("database unavailable"))


class TestCommentValidation:

    @pytest.mark.parametrize("content", ["", "   ", "\n", None])
    def test_blank_content_rejected(self, content):
        with pytest.raises(ValidationError) as exc_info:
            validate_comment_content(content)

        assert exc_info.value.field == "content"

    def test_content_stripped(self):
        assert validate_comment_content("  agreed  ") == "agreed"


class TestCommentService:
    """Test cases for the comment store"""

    def test_add_comment_stores_stripped_content(self, comment_service, published_feedback):
        comment = comment_service.add_comment(
            published_feedback.id, "user-2", "  Same problem here  "
        )

        assert comment.id is not None
        assert comment.content == "Same problem here"
        assert comment.user_id == "user-2"

    def test_blank_comment_never_reaches_store(
        self, comment_service, published_feedback, db_session
    ):
        with patch.object(db_session, "add") as add:
            with pytest.raises(ValidationError):
                comment_service.add_comment(published_feedback.id, "user-2", "   ")

        add.assert_not_called()

    def test_list_comments_oldest_first(self, comment_service, published_feedback, db_session):
        base = datetime(2024, 4, 1, 12, 0)
        for offset, text in [(2, "third"), (0, "first"), (1, "second")]:
            db_session.add(
                FeedbackComment(
                    feedback_id=published_feedback.id,
                    user_id="user-2",
                    content=text,
                    created_at=base + timedelta(minutes=offset),
                )
            )
        db_session.commit()

        comments = comment_service.list_comments(published_feedback.id)

        assert [c.content for c in comments] == ["first", "second", "third"]

    def test_list_comments_failure_raises(self, comment_service, db_session):
        with patch.object(db_session, "query", side_effect=_store_error()):
            with pytest.raises(StorageError):
                comment_service.list_comments("missing")


class TestCommentCounts:
    """Aggregate and fallback count paths"""

    @pytest.fixture
    def items_with_comments(self, comment_service, make_feedback):
        busy = make_feedback(title="Busy")
        quiet = make_feedback(title="Quiet")
        single = make_feedback(title="Single")
        for text in ("one", "two", "three"):
            comment_service.add_comment(busy.id, "user-2", text)
        comment_service.add_comment(single.id, "user-3", "only")
        return [busy.id, quiet.id, single.id]

    def test_empty_id_list(self, comment_service, db_session):
        with patch.object(db_session, "query") as query:
            assert comment_service.count_comments([]) == {}

        query.assert_not_called()

    def test_aggregate_counts(self, comment_service, items_with_comments):
        busy, quiet, single = items_with_comments

        counts = comment_service.count_comments(items_with_comments)

        assert counts == {busy: 3, quiet: 0, single: 1}

    def test_aggregate_and_fallback_agree(self, comment_service, items_with_comments):
        aggregate = comment_service._aggregate_counts(items_with_comments)
        fallback = comment_service._fallback_counts(items_with_comments)

        assert aggregate == fallback

    def test_paths_agree_with_no_comments(self, comment_service, make_feedback):
        ids = [make_feedback(title="Silent").id, "unknown-id"]

        aggregate = comment_service._aggregate_counts(ids)
        fallback = comment_service._fallback_counts(ids)

        assert aggregate == fallback == {ids[0]: 0, "unknown-id": 0}

    def test_fallback_used_when_aggregate_fails(
        self, comment_service, items_with_comments, caplog
    ):
        busy, quiet, single = items_with_comments

        with patch.object(
            comment_service, "_aggregate_counts", side_effect=_store_error()
        ):
            counts = comment_service.count_comments(items_with_comments)

        assert counts == {busy: 3, quiet: 0, single: 1}
        assert "falling back" in caplog.text

    def test_both_paths_failing_yields_zeros(self, comment_service, db_session):
        with patch.object(db_session, "query", side_effect=_store_error()):
            counts = comment_service.count_comments(["a", "b"])

        assert counts == {"a": 0, "b": 0}

    def test_group_counts(self):
        counts = group_counts(["a", "b", "a"], ["a", "b", "c"])

        assert counts == {"a": 2, "b": 1, "c": 0}
