"""Comment repository protocol for database operations."""

from typing import Any, Protocol, runtime_checkable

from pinco.core.comments.types import Comment, CommentDetails, CommentView, Reply


@runtime_checkable
class CommentRepository(Protocol):
    """Protocol for comments, replies and view state storage."""

    # Comment operations
    async def list_site_comments(self, site_id: int, viewer_id: int) -> list[Comment]:
        """List a site's comments newest first, with replies oldest first.

        ``viewed`` on each comment is the viewer's own view timestamp.
        """
        ...

    async def list_comments(self, site_id: int | None = None) -> list[Comment]:
        """List comments across sites, newest first."""
        ...

    async def get_comment(self, comment_id: int, site_id: int) -> Comment | None:
        """Get a comment by ID within a site."""
        ...

    async def get_thread(self, comment_id: int, site_id: int, viewer_id: int) -> Comment | None:
        """Get a comment of a site with its author and replies.

        ``viewed`` is the viewer's own view timestamp.
        """
        ...

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
        ...

    async def update_comment(self, comment_id: int, fields: dict[str, Any]) -> Comment | None:
        """Update comment fields."""
        ...

    # View operations
    async def get_view(self, comment_id: int, user_id: int) -> CommentView | None:
        """Get a user's view of a comment."""
        ...

    async def add_view(self, comment_id: int, user_id: int) -> CommentView:
        """Record that a user has seen a comment."""
        ...

    async def delete_view(self, comment_id: int, user_id: int) -> None:
        """Forget that a user has seen a comment."""
        ...

    async def add_site_views(self, site_id: int, user_id: int) -> None:
        """Mark every comment of a site as seen by a user."""
        ...

    # Reply operations
    async def list_site_replies(self, site_id: int) -> list[Reply]:
        """List replies to a site's comments, newest first."""
        ...

    async def list_replies(self, site_id: int | None = None) -> list[Reply]:
        """List replies across sites, newest first."""
        ...

    async def get_reply(self, reply_id: int, site_id: int) -> Reply | None:
        """Get a reply by ID within a site."""
        ...

    async def create_reply(self, comment_id: int, user_id: int, message: str) -> Reply:
        """Create a new reply."""
        ...

    async def update_reply(self, reply_id: int, message: str) -> Reply | None:
        """Update a reply's message."""
        ...
