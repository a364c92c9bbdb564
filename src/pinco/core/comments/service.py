"""Comment and reply services."""

from __future__ import annotations

from typing import Any

import structlog

from pinco.core.auth.codes import generate_uniqid
from pinco.core.auth.repository import AuthRepository
from pinco.core.auth.types import Identity, Site, User
from pinco.core.comments.repository import CommentRepository
from pinco.core.comments.screenshots import ScreenshotStorage
from pinco.core.comments.types import (
    RESOLVED_MESSAGE,
    Comment,
    CommentDetails,
    CommentView,
    Reply,
)
from pinco.core.events import CommentCreated, ReplyCreated
from pinco.core.exceptions import NotFoundError, ValidationError

logger = structlog.get_logger()

UPDATABLE_COMMENT_FIELDS = ("message", "details", "reference", "url", "resolved")


async def _load_author(users: AuthRepository, acting: Identity) -> User:
    author = await users.get_user_by_id(acting.id)
    if author is None:
        raise NotFoundError(f"User with ID {acting.id} not found")
    return author


class ReplyService:
    """Service for replies in comment threads."""

    def __init__(self, repo: CommentRepository, users: AuthRepository) -> None:
        """Initialize the service.

        Args:
            repo: Comment repository for database operations.
            users: Auth repository used to load reply authors.
        """
        self._repo = repo
        self._users = users

    async def find_all(self, site: Site) -> list[Reply]:
        """List the replies of a site, newest first."""
        return await self._repo.list_site_replies(site.id)

    async def list_replies(self, site_id: int | None = None) -> list[Reply]:
        """List replies across sites, optionally for one site."""
        return await self._repo.list_replies(site_id)

    async def create(
        self, site: Site, acting: Identity, comment_id: int, message: str
    ) -> tuple[Reply, list[ReplyCreated]]:
        """Reply to a comment of the site.

        Raises:
            NotFoundError: If the comment does not belong to the site.
        """
        comment = await self._repo.get_comment(comment_id, site.id)
        if comment is None:
            raise NotFoundError(f"Comment with ID {comment_id} not found")

        author = await _load_author(self._users, acting)
        reply = await self._repo.create_reply(comment.id, acting.id, message)
        reply = reply.model_copy(update={"user": author})
        logger.info("reply_created", reply_id=reply.id, comment_id=comment.id, site_id=site.id)

        event = ReplyCreated(reply=reply, comment=comment, site=site, author=author)
        return reply, [event]

    async def update(self, reply_id: int, site: Site, acting: Identity, message: str) -> Reply:
        """Edit the message of your own reply.

        Raises:
            NotFoundError: If the reply does not belong to the site.
            ValidationError: If the caller is not the author.
        """
        reply = await self._repo.get_reply(reply_id, site.id)
        if reply is None:
            raise NotFoundError(f"Reply with ID {reply_id} not found")
        if reply.user_id != acting.id:
            raise ValidationError("You can only edit your own replies")

        updated = await self._repo.update_reply(reply_id, message)
        if updated is None:
            raise NotFoundError(f"Reply with ID {reply_id} not found")
        return updated

    async def add_resolve_reply(self, comment: Comment, user_id: int) -> Reply:
        """Append the system reply marking a comment as resolved."""
        return await self._repo.create_reply(comment.id, user_id, RESOLVED_MESSAGE)


class CommentService:
    """Service for comments and their per-user view state."""

    def __init__(
        self,
        repo: CommentRepository,
        users: AuthRepository,
        replies: ReplyService,
        screenshots: ScreenshotStorage,
    ) -> None:
        """Initialize the service.

        Args:
            repo: Comment repository for database operations.
            users: Auth repository used to load comment authors.
            replies: Reply service, used for the resolve reply.
            screenshots: Storage for attached screenshots.
        """
        self._repo = repo
        self._users = users
        self._replies = replies
        self._screenshots = screenshots

    def _with_screenshot_url(self, comment: Comment) -> Comment:
        if not comment.screenshot:
            return comment
        return comment.model_copy(
            update={"screenshot": self._screenshots.get_url(comment.screenshot)}
        )

    async def _get(self, comment_id: int, site: Site) -> Comment:
        comment = await self._repo.get_comment(comment_id, site.id)
        if comment is None:
            raise NotFoundError(f"Comment with ID {comment_id} not found")
        return comment

    async def find_all(self, site: Site, acting: Identity) -> list[Comment]:
        """List a site's comments as seen by the caller."""
        comments = await self._repo.list_site_comments(site.id, acting.id)
        return [self._with_screenshot_url(c) for c in comments]

    async def list_comments(self, site_id: int | None = None) -> list[Comment]:
        """List comments across sites, optionally for one site."""
        comments = await self._repo.list_comments(site_id)
        return [self._with_screenshot_url(c) for c in comments]

    async def create(
        self,
        site: Site,
        acting: Identity,
        message: str,
        url: str,
        details: CommentDetails | None = None,
        reference: str | None = None,
        screenshot: bytes | None = None,
    ) -> tuple[Comment, list[CommentCreated]]:
        """Post a comment on a page of the site.

        The author is recorded as having seen their own comment.

        Returns:
            The comment and the events to dispatch.
        """
        author = await _load_author(self._users, acting)
        uniqid = generate_uniqid()

        filename = None
        if screenshot:
            filename = await self._screenshots.save(screenshot, uniqid)

        comment = await self._repo.create_comment(
            uniqid=uniqid,
            message=message,
            user_id=acting.id,
            site_id=site.id,
            url=url,
            details=details,
            reference=reference,
            screenshot=filename,
        )
        view = await self._repo.add_view(comment.id, acting.id)
        comment = comment.model_copy(update={"user": author, "viewed": view.viewed, "replies": []})
        logger.info("comment_created", comment_id=comment.id, site_id=site.id)

        event = CommentCreated(comment=comment, site=site, author=author)
        return self._with_screenshot_url(comment), [event]

    async def update(
        self, comment_id: int, site: Site, acting: Identity, fields: dict[str, Any]
    ) -> Comment:
        """Edit your own comment. Resolving it appends a resolve reply.

        Returns:
            The whole thread as the caller sees it after the change.

        Raises:
            NotFoundError: If the comment does not belong to the site.
            ValidationError: If the caller is not the author.
        """
        comment = await self._get(comment_id, site)
        if comment.user_id != acting.id:
            raise ValidationError("You can only edit your own comments")

        changes = {
            k: v for k, v in fields.items() if k in UPDATABLE_COMMENT_FIELDS and v is not None
        }
        updated = await self._repo.update_comment(comment_id, changes) if changes else comment
        if updated is None:
            raise NotFoundError(f"Comment with ID {comment_id} not found")

        if changes.get("resolved") is True:
            await self._replies.add_resolve_reply(updated, acting.id)
            logger.info("comment_resolved", comment_id=comment_id, site_id=site.id)

        thread = await self._repo.get_thread(comment_id, site.id, acting.id)
        if thread is None:
            raise NotFoundError(f"Comment with ID {comment_id} not found")
        return self._with_screenshot_url(thread)

    async def mark_as_viewed(self, comment_id: int, site: Site, acting: Identity) -> CommentView:
        """Record that the caller has seen a comment. Idempotent."""
        await self._get(comment_id, site)
        existing = await self._repo.get_view(comment_id, acting.id)
        if existing is not None:
            return existing
        return await self._repo.add_view(comment_id, acting.id)

    async def mark_as_unviewed(self, comment_id: int, site: Site, acting: Identity) -> None:
        """Forget that the caller has seen a comment."""
        await self._get(comment_id, site)
        await self._repo.delete_view(comment_id, acting.id)

    async def mark_all_as_viewed(self, site: Site, acting: Identity) -> None:
        """Mark every comment of the site as seen by the caller."""
        await self._repo.add_site_views(site.id, acting.id)
