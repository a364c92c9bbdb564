"""Unit tests for PostgresCommentRepository."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from pinco.adapters.comments.postgres import PostgresCommentRepository
from pinco.core.comments.types import CommentDetails
from tests.fixtures.domain_objects import NOW


def comment_row(**overrides: Any) -> dict[str, Any]:
    row: dict[str, Any] = {
        "id": 100,
        "uniqid": "abc123XYZ0001",
        "message": "Fix this",
        "user_id": 1,
        "site_id": 10,
        "url": "/pricing",
        "reference": None,
        "details": None,
        "resolved": False,
        "screenshot": None,
        "created": NOW,
        "updated": NOW,
    }
    row.update(overrides)
    return row


def reply_row(**overrides: Any) -> dict[str, Any]:
    row: dict[str, Any] = {
        "id": 1000,
        "comment_id": 100,
        "user_id": 1,
        "message": "Done",
        "created": NOW,
        "updated": NOW,
    }
    row.update(overrides)
    return row


class TestPostgresCommentRepository:
    """Tests for PostgresCommentRepository."""

    @pytest.fixture
    def mock_db(self) -> MagicMock:
        """Return a mock app database."""
        db = MagicMock()
        db.fetch_one = AsyncMock(return_value=None)
        db.fetch_all = AsyncMock(return_value=[])
        db.execute = AsyncMock(return_value="OK")
        return db

    @pytest.fixture
    def repo(self, mock_db: MagicMock) -> PostgresCommentRepository:
        """Return a repository over the mock database."""
        return PostgresCommentRepository(mock_db)

    async def test_details_json_string_is_parsed(
        self, repo: PostgresCommentRepository, mock_db: MagicMock
    ) -> None:
        """Test that jsonb returned as text becomes CommentDetails."""
        mock_db.fetch_one.return_value = comment_row(details='{"vh": 900, "env": "Chrome"}')

        comment = await repo.get_comment(100, 10)

        assert comment is not None
        assert comment.details == CommentDetails(vh=900, env="Chrome")

    async def test_get_comment_scoped_to_site(
        self, repo: PostgresCommentRepository, mock_db: MagicMock
    ) -> None:
        """Test that comment lookup filters by site."""
        await repo.get_comment(100, 10)

        query, *params = mock_db.fetch_one.await_args.args
        assert "site_id = $2" in query
        assert params == [100, 10]

    async def test_list_site_comments_attaches_replies(
        self, repo: PostgresCommentRepository, mock_db: MagicMock
    ) -> None:
        """Test that replies are grouped under their comments with authors."""
        mock_db.fetch_all.side_effect = [
            [
                comment_row(id=101, viewed=NOW),
                comment_row(id=100),
            ],
            [
                reply_row(
                    id=1,
                    comment_id=100,
                    author__id=2,
                    author__email="bob@example.com",
                    author__name="Bob",
                    author__username="bob",
                    author__active=True,
                    author__roles=[],
                    author__created=NOW,
                    author__updated=NOW,
                ),
            ],
        ]

        comments = await repo.list_site_comments(10, 1)

        assert [c.id for c in comments] == [101, 100]
        assert comments[0].viewed == NOW
        assert comments[0].replies == []
        assert comments[1].viewed is None
        assert [r.id for r in comments[1].replies] == [1]
        assert comments[1].replies[0].user is not None
        assert comments[1].replies[0].user.username == "bob"
        assert mock_db.fetch_all.await_args_list[1].args[1] == [101, 100]

    async def test_list_site_comments_empty_skips_replies(
        self, repo: PostgresCommentRepository, mock_db: MagicMock
    ) -> None:
        """Test that no reply query runs for a site without comments."""
        assert await repo.list_site_comments(10, 1) == []
        assert mock_db.fetch_all.await_count == 1

    async def test_create_comment_serializes_details(
        self, repo: PostgresCommentRepository, mock_db: MagicMock
    ) -> None:
        """Test that details are written as JSON."""
        mock_db.fetch_one.return_value = comment_row(details={"vw": 1440})

        comment = await repo.create_comment(
            "abc123XYZ0001", "Fix", 1, 10, "/", CommentDetails(vw=1440), None, None
        )

        assert '"vw":1440' in mock_db.fetch_one.await_args.args[6].replace(" ", "")
        assert comment.details == CommentDetails(vw=1440)

    async def test_update_comment_ignores_unknown_columns(
        self, repo: PostgresCommentRepository, mock_db: MagicMock
    ) -> None:
        """Test that only editable columns are updated."""
        mock_db.fetch_one.return_value = comment_row(resolved=True)

        await repo.update_comment(100, {"resolved": True, "user_id": 5})

        query, *params = mock_db.fetch_one.await_args.args
        assert "resolved = $1" in query
        assert "user_id" not in query
        assert params[0] is True
        assert params[-1] == 100

    async def test_add_view_keeps_first_timestamp(
        self, repo: PostgresCommentRepository, mock_db: MagicMock
    ) -> None:
        """Test that re-viewing does not move the view time."""
        mock_db.fetch_one.return_value = {"comment_id": 100, "user_id": 1, "viewed": NOW}

        view = await repo.add_view(100, 1)

        assert "ON CONFLICT" in mock_db.fetch_one.await_args.args[0]
        assert view.viewed == NOW

    async def test_get_reply_scoped_to_site(
        self, repo: PostgresCommentRepository, mock_db: MagicMock
    ) -> None:
        """Test that reply lookup goes through the comment's site."""
        mock_db.fetch_one.return_value = reply_row()

        reply = await repo.get_reply(1000, 10)

        assert reply is not None
        assert reply.user is None
        assert mock_db.fetch_one.await_args.args[1:] == (1000, 10)

    async def test_get_thread_loads_author_replies_and_view(
        self, repo: PostgresCommentRepository, mock_db: MagicMock
    ) -> None:
        """Test that a thread carries its author, replies and the viewer's view."""
        mock_db.fetch_one.return_value = comment_row(
            viewed=NOW,
            author__id=1,
            author__email="alice@example.com",
            author__name="Alice",
            author__username="alice",
            author__active=True,
            author__roles=[],
            author__created=NOW,
            author__updated=NOW,
        )
        mock_db.fetch_all.return_value = [reply_row(id=1, comment_id=100)]

        thread = await repo.get_thread(100, 10, 1)

        assert thread is not None
        assert thread.user is not None
        assert thread.user.username == "alice"
        assert thread.viewed == NOW
        assert [r.id for r in thread.replies] == [1]
        query, *params = mock_db.fetch_one.await_args.args
        assert "comment_views" in query
        assert params == [100, 10, 1]

    async def test_get_thread_missing(
        self, repo: PostgresCommentRepository, mock_db: MagicMock
    ) -> None:
        """Test that an unknown comment yields None without loading replies."""
        assert await repo.get_thread(100, 10, 1) is None
        assert mock_db.fetch_all.await_count == 0
