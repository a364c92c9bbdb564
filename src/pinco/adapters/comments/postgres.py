"""PostgreSQL implementation of CommentRepository."""

import json
from datetime import UTC, datetime
from typing import Any

from pinco.adapters.db.app_db import AppDatabase
from pinco.core.auth.types import User, UserRole
from pinco.core.comments.types import Comment, CommentDetails, CommentView, Reply

COMMENT_COLUMNS = {"message", "details", "reference", "url", "resolved"}

_AUTHOR_SELECT = """
    u.id AS author__id, u.email AS author__email, u.name AS author__name,
    u.username AS author__username, u.active AS author__active,
    u.roles AS author__roles, u.created AS author__created, u.updated AS author__updated
"""


class PostgresCommentRepository:
    """PostgreSQL implementation of comment repository."""

    def __init__(self, db: AppDatabase) -> None:
        """Initialize with database connection.

        Args:
            db: Application database instance.
        """
        self._db = db

    def _row_to_author(self, row: dict[str, Any]) -> User | None:
        """Convert the joined author columns to a User model."""
        if row.get("author__id") is None:
            return None
        return User(
            id=row["author__id"],
            email=row["author__email"],
            name=row["author__name"],
            username=row["author__username"],
            active=row["author__active"],
            roles=[UserRole(r) for r in row.get("author__roles") or []],
            created=row["author__created"],
            updated=row["author__updated"],
        )

    def _row_to_comment(self, row: dict[str, Any]) -> Comment:
        """Convert database row to Comment model."""
        details = row.get("details")
        if isinstance(details, str):
            details = json.loads(details)
        return Comment(
            id=row["id"],
            uniqid=row["uniqid"],
            message=row["message"],
            user_id=row["user_id"],
            site_id=row["site_id"],
            url=row["url"],
            reference=row.get("reference"),
            details=CommentDetails(**details) if details else None,
            resolved=row.get("resolved", False),
            screenshot=row.get("screenshot"),
            created=row["created"],
            updated=row["updated"],
            user=self._row_to_author(row),
            viewed=row.get("viewed"),
        )

    def _row_to_reply(self, row: dict[str, Any]) -> Reply:
        """Convert database row to Reply model."""
        return Reply(
            id=row["id"],
            comment_id=row["comment_id"],
            user_id=row["user_id"],
            message=row["message"],
            created=row["created"],
            updated=row["updated"],
            user=self._row_to_author(row),
        )

    def _row_to_view(self, row: dict[str, Any]) -> CommentView:
        """Convert database row to CommentView model."""
        return CommentView(
            comment_id=row["comment_id"],
            user_id=row["user_id"],
            viewed=row["viewed"],
        )

    # Comment operations
    async def list_site_comments(self, site_id: int, viewer_id: int) -> list[Comment]:
        """List a site's comments newest first, with replies oldest first."""
        rows = await self._db.fetch_all(
            f"""
            SELECT c.*, v.viewed, {_AUTHOR_SELECT}
            FROM comments c
            LEFT JOIN users u ON u.id = c.user_id
            LEFT JOIN comment_views v ON v.comment_id = c.id AND v.user_id = $2
            WHERE c.site_id = $1
            ORDER BY c.created DESC
            """,
            site_id,
            viewer_id,
        )
        return await self._attach_replies([self._row_to_comment(row) for row in rows])

    async def _attach_replies(self, comments: list[Comment]) -> list[Comment]:
        """Load the replies of the comments, oldest first, with their authors."""
        if not comments:
            return comments

        reply_rows = await self._db.fetch_all(
            f"""
            SELECT r.*, {_AUTHOR_SELECT}
            FROM replies r
            LEFT JOIN users u ON u.id = r.user_id
            WHERE r.comment_id = ANY($1::int[])
            ORDER BY r.created ASC
            """,
            [c.id for c in comments],
        )
        by_comment: dict[int, list[Reply]] = {}
        for row in reply_rows:
            reply = self._row_to_reply(row)
            by_comment.setdefault(reply.comment_id, []).append(reply)

        for comment in comments:
            comment.replies = by_comment.get(comment.id, [])
        return comments

    async def list_comments(self, site_id: int | None = None) -> list[Comment]:
        """List comments across sites, newest first."""
        query = f"""
            SELECT c.*, {_AUTHOR_SELECT}
            FROM comments c
            LEFT JOIN users u ON u.id = c.user_id
        """
        if site_id is None:
            rows = await self._db.fetch_all(query + " ORDER BY c.created DESC")
        else:
            rows = await self._db.fetch_all(
                query + " WHERE c.site_id = $1 ORDER BY c.created DESC", site_id
            )
        return [self._row_to_comment(row) for row in rows]

    async def get_comment(self, comment_id: int, site_id: int) -> Comment | None:
        """Get a comment by ID within a site."""
        row = await self._db.fetch_one(
            "SELECT * FROM comments WHERE id = $1 AND site_id = $2",
            comment_id,
            site_id,
        )
        return self._row_to_comment(row) if row else None

    async def get_thread(self, comment_id: int, site_id: int, viewer_id: int) -> Comment | None:
        """Get a comment of a site with its author, replies and the viewer's view."""
        row = await self._db.fetch_one(
            f"""
            SELECT c.*, v.viewed, {_AUTHOR_SELECT}
            FROM comments c
            LEFT JOIN users u ON u.id = c.user_id
            LEFT JOIN comment_views v ON v.comment_id = c.id AND v.user_id = $3
            WHERE c.id = $1 AND c.site_id = $2
            """,
            comment_id,
            site_id,
            viewer_id,
        )
        if row is None:
            return None
        (comment,) = await self._attach_replies([self._row_to_comment(row)])
        return comment

    async def create_comment(
        self,
        uniqid: str,
        message: str,
        user_id: int,
        site_id: int,
        url: str,
        details: CommentDetails | None,
        reference: str | None,
        screenshot: str | None,
    ) -> Comment:
        """Create a new comment."""
        row = await self._db.fetch_one(
            """
            INSERT INTO comments
                (uniqid, message, user_id, site_id, url, details, reference, screenshot)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
            RETURNING *
            """,
            uniqid,
            message,
            user_id,
            site_id,
            url,
            details.model_dump_json() if details else None,
            reference,
            screenshot,
        )
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_comment(row)

    async def update_comment(self, comment_id: int, fields: dict[str, Any]) -> Comment | None:
        """Update comment fields."""
        updates = []
        params: list[Any] = []
        param_idx = 1

        for column, value in fields.items():
            if column not in COMMENT_COLUMNS:
                continue
            if isinstance(value, CommentDetails):
                value = value.model_dump_json()
            updates.append(f"{column} = ${param_idx}")
            params.append(value)
            param_idx += 1

        if not updates:
            row = await self._db.fetch_one("SELECT * FROM comments WHERE id = $1", comment_id)
            return self._row_to_comment(row) if row else None

        updates.append(f"updated = ${param_idx}")
        params.append(datetime.now(UTC))
        param_idx += 1

        params.append(comment_id)
        query = f"""
            UPDATE comments SET {", ".join(updates)}
            WHERE id = ${param_idx}
            RETURNING *
        """
        row = await self._db.fetch_one(query, *params)
        return self._row_to_comment(row) if row else None

    # View operations
    async def get_view(self, comment_id: int, user_id: int) -> CommentView | None:
        """Get a user's view of a comment."""
        row = await self._db.fetch_one(
            "SELECT * FROM comment_views WHERE comment_id = $1 AND user_id = $2",
            comment_id,
            user_id,
        )
        return self._row_to_view(row) if row else None

    async def add_view(self, comment_id: int, user_id: int) -> CommentView:
        """Record that a user has seen a comment."""
        row = await self._db.fetch_one(
            """
            INSERT INTO comment_views (comment_id, user_id, viewed)
            VALUES ($1, $2, NOW())
            ON CONFLICT (comment_id, user_id) DO UPDATE SET viewed = comment_views.viewed
            RETURNING *
            """,
            comment_id,
            user_id,
        )
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_view(row)

    async def delete_view(self, comment_id: int, user_id: int) -> None:
        """Forget that a user has seen a comment."""
        await self._db.execute(
            "DELETE FROM comment_views WHERE comment_id = $1 AND user_id = $2",
            comment_id,
            user_id,
        )

    async def add_site_views(self, site_id: int, user_id: int) -> None:
        """Mark every comment of a site as seen by a user."""
        await self._db.execute(
            """
            INSERT INTO comment_views (comment_id, user_id, viewed)
            SELECT id, $2, NOW() FROM comments WHERE site_id = $1
            ON CONFLICT (comment_id, user_id) DO UPDATE SET viewed = EXCLUDED.viewed
            """,
            site_id,
            user_id,
        )

    # Reply operations
    async def list_site_replies(self, site_id: int) -> list[Reply]:
        """List replies to a site's comments, newest first."""
        rows = await self._db.fetch_all(
            f"""
            SELECT r.*, {_AUTHOR_SELECT}
            FROM replies r
            JOIN comments c ON c.id = r.comment_id
            LEFT JOIN users u ON u.id = r.user_id
            WHERE c.site_id = $1
            ORDER BY r.created DESC
            """,
            site_id,
        )
        return [self._row_to_reply(row) for row in rows]

    async def list_replies(self, site_id: int | None = None) -> list[Reply]:
        """List replies across sites, newest first."""
        query = f"""
            SELECT r.*, {_AUTHOR_SELECT}
            FROM replies r
            JOIN comments c ON c.id = r.comment_id
            LEFT JOIN users u ON u.id = r.user_id
        """
        if site_id is None:
            rows = await self._db.fetch_all(query + " ORDER BY r.created DESC")
        else:
            rows = await self._db.fetch_all(
                query + " WHERE c.site_id = $1 ORDER BY r.created DESC", site_id
            )
        return [self._row_to_reply(row) for row in rows]

    async def get_reply(self, reply_id: int, site_id: int) -> Reply | None:
        """Get a reply by ID within a site."""
        row = await self._db.fetch_one(
            """
            SELECT r.* FROM replies r
            JOIN comments c ON c.id = r.comment_id
            WHERE r.id = $1 AND c.site_id = $2
            """,
            reply_id,
            site_id,
        )
        return self._row_to_reply(row) if row else None

    async def create_reply(self, comment_id: int, user_id: int, message: str) -> Reply:
        """Create a new reply."""
        row = await self._db.fetch_one(
            """
            INSERT INTO replies (comment_id, user_id, message)
            VALUES ($1, $2, $3)
            RETURNING *
            """,
            comment_id,
            user_id,
            message,
        )
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_reply(row)

    async def update_reply(self, reply_id: int, message: str) -> Reply | None:
        """Update a reply's message."""
        row = await self._db.fetch_one(
            """
            UPDATE replies SET message = $1, updated = NOW()
            WHERE id = $2
            RETURNING *
            """,
            message,
            reply_id,
        )
        return self._row_to_reply(row) if row else None
