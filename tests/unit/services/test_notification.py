"""Unit tests for NotificationService and mention extraction."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from pinco.core.auth.types import Site, User
from pinco.core.events import CommentCreated, ReplyCreated, UserInvited
from pinco.services.notification import NotificationService, extract_mentions
from tests.fixtures.domain_objects import make_comment, make_reply, make_user


class TestExtractMentions:
    """Tests for extract_mentions."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("@bob please check", ["bob"]),
            ("cc @bob, @carol.", ["bob", "carol"]),
            ("@a @b", ["a", "b"]),
            ("@bob @bob @bob", ["bob"]),
            ("mail me at bob@example.com", []),
            ("@@bob", []),
            ("(@dave)", ["dave"]),
            ("no mentions here", []),
            ("", []),
        ],
    )
    def test_extract(self, text: str, expected: list[str]) -> None:
        """Test mention boundaries and de-duplication."""
        assert extract_mentions(text) == expected


class TestNotificationService:
    """Tests for NotificationService."""

    @pytest.fixture
    def notifier(self) -> MagicMock:
        """Return a mock email notifier."""
        notifier = MagicMock()
        notifier.send.return_value = True
        return notifier

    @pytest.fixture
    def service(self, mock_auth_repo: AsyncMock, notifier: MagicMock) -> NotificationService:
        """Return a notification service."""
        return NotificationService(mock_auth_repo, notifier, "https://api.pinco.test/")

    def test_invite_url(self, service: NotificationService) -> None:
        """Test the invitation link format."""
        assert service.invite_url("tok") == "https://api.pinco.test/v1/auth/login?invite=tok"

    async def test_send_invite(
        self,
        service: NotificationService,
        notifier: MagicMock,
        sample_user: User,
        sample_site: Site,
    ) -> None:
        """Test that an invite email carries the login link."""
        event = UserInvited(user=sample_user, site=sample_site, invite_token="tok")

        assert await service.send_invite(event) is True

        to, email = notifier.send.call_args.args
        assert to == "alice@example.com"
        assert email.subject == "You've been invited to collaborate on Test Site"
        assert "https://api.pinco.test/v1/auth/login?invite=tok" in email.html
        assert "Accept Invitation" in email.text

    async def test_comment_mentions_active_users_only(
        self,
        service: NotificationService,
        mock_auth_repo: AsyncMock,
        notifier: MagicMock,
        sample_user: User,
        sample_site: Site,
    ) -> None:
        """Test that only known active users are emailed."""
        bob = make_user(2, username="bob", email="bob@example.com")
        carol = make_user(3, username="carol", active=False)
        users = {"bob": bob, "carol": carol}
        mock_auth_repo.get_user_by_username.side_effect = lambda name: users.get(name)
        comment = make_comment(message="@bob @carol @ghost look")
        event = CommentCreated(comment=comment, site=sample_site, author=sample_user)

        await service.notify_comment_mentions(event)

        assert notifier.send.call_count == 1
        to, email = notifier.send.call_args.args
        assert to == "bob@example.com"
        assert email.subject == "Alice mentioned you in a comment on Test Site"
        assert "https://test.com/pricing#c-abc123XYZ0001" in email.html

    async def test_reply_mentions_link_to_comment(
        self,
        service: NotificationService,
        mock_auth_repo: AsyncMock,
        notifier: MagicMock,
        sample_user: User,
        sample_site: Site,
    ) -> None:
        """Test that reply mentions link to the parent comment's anchor."""
        mock_auth_repo.get_user_by_username.return_value = make_user(2, username="bob")
        event = ReplyCreated(
            reply=make_reply(message="thanks @bob"),
            comment=make_comment(),
            site=sample_site,
            author=sample_user,
        )

        await service.notify_reply_mentions(event)

        _, email = notifier.send.call_args.args
        assert "in a reply" in email.subject
        assert "#c-abc123XYZ0001" in email.html

    async def test_dispatch_routes_events(
        self,
        service: NotificationService,
        notifier: MagicMock,
        sample_user: User,
        sample_site: Site,
    ) -> None:
        """Test that dispatch handles every event type."""
        events = [
            UserInvited(user=sample_user, site=sample_site, invite_token="tok"),
            CommentCreated(comment=make_comment(), site=sample_site, author=sample_user),
        ]

        await service.dispatch(events)

        assert notifier.send.call_count == 1

    async def test_dispatch_logs_failures(
        self,
        service: NotificationService,
        mock_auth_repo: AsyncMock,
        notifier: MagicMock,
        sample_user: User,
        sample_site: Site,
    ) -> None:
        """Test that a failing event does not stop the others."""
        mock_auth_repo.get_user_by_username.side_effect = ConnectionError("db down")
        events = [
            CommentCreated(
                comment=make_comment(message="@bob"), site=sample_site, author=sample_user
            ),
            UserInvited(user=sample_user, site=sample_site, invite_token="tok"),
        ]

        await service.dispatch(events)

        assert notifier.send.call_count == 1
