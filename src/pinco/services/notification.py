"""Notification service consuming domain events."""

from __future__ import annotations

import asyncio
import re
from collections.abc import Iterable
from typing import Literal

import structlog

from pinco.adapters.notifications.email import EmailNotifier
from pinco.core.auth.repository import AuthRepository
from pinco.core.auth.types import Site, User
from pinco.core.events import CommentCreated, Event, ReplyCreated, UserInvited
from pinco.services.templates import InvitationTemplate, MentionTemplate, RenderedEmail

logger = structlog.get_logger()

_MENTION_RE = re.compile(r"(?<![@\w])@(\w+)")


def extract_mentions(text: str) -> list[str]:
    """Find the usernames mentioned with ``@username`` in a message.

    A mention must not be glued to a preceding word or ``@``, so email
    addresses and ``@@name`` are ignored. Duplicates are dropped, first
    occurrence order is kept.
    """
    return list(dict.fromkeys(_MENTION_RE.findall(text)))


class NotificationService:
    """Turns domain events into emails."""

    def __init__(self, repo: AuthRepository, notifier: EmailNotifier, app_url: str) -> None:
        """Initialize the service.

        Args:
            repo: Auth repository used to resolve mentioned users.
            notifier: Email delivery channel.
            app_url: Public base URL of the API, with a trailing slash.
        """
        self._repo = repo
        self._notifier = notifier
        self._app_url = app_url

    async def dispatch(self, events: Iterable[Event]) -> None:
        """Handle every event, logging failures instead of raising them.

        Runs after the response has been sent, so there is nobody left to
        report an error to.
        """
        for event in events:
            try:
                if isinstance(event, UserInvited):
                    await self.send_invite(event)
                elif isinstance(event, CommentCreated):
                    await self.notify_comment_mentions(event)
                elif isinstance(event, ReplyCreated):
                    await self.notify_reply_mentions(event)
            except Exception:
                logger.exception("notification_failed", event_type=type(event).__name__)

    async def _send(self, to: str, email: RenderedEmail) -> bool:
        return await asyncio.to_thread(self._notifier.send, to, email)

    def invite_url(self, invite_token: str) -> str:
        """Build the link that accepts an invitation."""
        return f"{self._app_url}v1/auth/login?invite={invite_token}"

    async def send_invite(self, event: UserInvited) -> bool:
        """Email an invitation to the invited user."""
        email = InvitationTemplate(
            site_name=event.site.name,
            login_url=self.invite_url(event.invite_token),
        ).render()
        sent = await self._send(event.user.email, email)
        logger.info(
            "invite_email_processed", user_id=event.user.id, site_id=event.site.id, sent=sent
        )
        return sent

    async def send_mention(
        self,
        username: str,
        author: User,
        site: Site,
        content: str,
        url: str,
        mention_type: Literal["comment", "reply"],
    ) -> bool:
        """Email an active user mentioned by username. Unknown users are skipped."""
        user = await self._repo.get_user_by_username(username)
        if user is None or not user.active:
            logger.debug("mention_skipped", username=username)
            return False

        email = MentionTemplate(
            author_name=author.name,
            mention_type=mention_type,
            site_name=site.name,
            content=content,
            url=url,
        ).render()
        return await self._send(user.email, email)

    async def notify_comment_mentions(self, event: CommentCreated) -> None:
        """Email everyone mentioned in a new comment."""
        comment = event.comment
        url = f"{event.site.url}{comment.url}#{comment.anchor}"
        for username in extract_mentions(comment.message):
            await self.send_mention(
                username, event.author, event.site, comment.message, url, "comment"
            )

    async def notify_reply_mentions(self, event: ReplyCreated) -> None:
        """Email everyone mentioned in a new reply."""
        reply = event.reply
        url = f"{event.site.url}{event.comment.url}#{event.comment.anchor}"
        for username in extract_mentions(reply.message):
            await self.send_mention(username, event.author, event.site, reply.message, url, "reply")
