"""Tests for the comment routes and the guard chain in front of them."""

from __future__ import annotations

import json
from collections.abc import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from pinco.core.auth.types import Site, User
from pinco.core.comments.types import CommentDetails, CommentView
from pinco.core.events import CommentCreated
from tests.fixtures.domain_objects import (
    NOW,
    make_comment,
    make_membership,
    make_reply,
    make_site,
    make_user,
)

ORIGIN = {"Origin": "https://test.com"}


@pytest.fixture
def collaborator(
    login_as: Callable[[User], None],
    mock_auth_repo: AsyncMock,
    sample_user: User,
    sample_site: Site,
) -> User:
    """Log in the sample user as a collaborator of the sample site."""
    mock_auth_repo.get_user_sites.return_value = [make_membership(1, 10, site=sample_site)]
    mock_auth_repo.get_active_site_by_domain.return_value = sample_site
    mock_auth_repo.get_user_by_id.return_value = sample_user
    login_as(sample_user)
    return sample_user


class TestGuardChain:
    """Tests for authentication and origin checks on GET /comments."""

    def test_no_cookie(self, client: TestClient) -> None:
        """Test that an anonymous caller is 401."""
        response = client.get("/api/v1/comments", headers=ORIGIN)

        assert response.status_code == 401
        assert response.json() == {"detail": "No authentication token found"}

    def test_tampered_cookie(self, client: TestClient) -> None:
        """Test that a cookie with a bad signature counts as missing."""
        client.cookies.set("token", "s:header.payload.sig.badsignature")

        response = client.get("/api/v1/comments", headers=ORIGIN)

        assert response.status_code == 401
        assert response.json() == {"detail": "No authentication token found"}

    def test_unknown_origin(
        self, client: TestClient, collaborator: User, mock_auth_repo: AsyncMock
    ) -> None:
        """Test that an origin mapping to no active site is 403."""
        mock_auth_repo.get_active_site_by_domain.return_value = None

        response = client.get("/api/v1/comments", headers={"Origin": "https://evil.com"})

        assert response.status_code == 403
        assert response.json() == {"detail": "Invalid or inactive site"}
        mock_auth_repo.get_active_site_by_domain.assert_awaited_once_with("evil.com")

    def test_missing_origin(self, client: TestClient, collaborator: User) -> None:
        """Test that a request without origin or referer is 403."""
        response = client.get("/api/v1/comments")

        assert response.status_code == 403
        assert response.json() == {"detail": "Origin not provided"}

    def test_collaborator_allowed(
        self, client: TestClient, collaborator: User, mock_comment_repo: AsyncMock
    ) -> None:
        """Test that a collaborator lists the site's comments."""
        mock_comment_repo.list_site_comments.return_value = [make_comment()]

        response = client.get("/api/v1/comments", headers=ORIGIN)

        assert response.status_code == 200
        body = response.json()
        assert [c["uniqid"] for c in body] == ["abc123XYZ0001"]
        mock_comment_repo.list_site_comments.assert_awaited_once_with(10, 1)

    def test_member_of_other_site_denied(
        self,
        client: TestClient,
        collaborator: User,
        mock_auth_repo: AsyncMock,
    ) -> None:
        """Test that membership elsewhere does not grant access."""
        mock_auth_repo.get_user_sites.return_value = [
            make_membership(1, 99, site=make_site(99, domain="other.com"))
        ]

        response = client.get("/api/v1/comments", headers=ORIGIN)

        assert response.status_code == 403
        assert response.json() == {"detail": "User does not have access to this site"}

    def test_member_without_roles_denied(
        self,
        client: TestClient,
        collaborator: User,
        mock_auth_repo: AsyncMock,
        sample_site: Site,
    ) -> None:
        """Test that a membership without the collaborator role does not grant access."""
        mock_auth_repo.get_user_sites.return_value = [
            make_membership(1, 10, roles=[], site=sample_site)
        ]

        response = client.get("/api/v1/comments", headers=ORIGIN)

        assert response.status_code == 403
        assert response.json() == {"detail": "User does not have access to this site"}

    def test_list_requires_root(self, client: TestClient, collaborator: User) -> None:
        """Test that the backoffice listing is ROOT-only."""
        response = client.get("/api/v1/comments/list")

        assert response.status_code == 403
        assert response.json() == {"detail": "Forbidden resource"}

    def test_root_lists_by_site(
        self,
        client: TestClient,
        login_as: Callable[[User], None],
        root_user: User,
        mock_comment_repo: AsyncMock,
    ) -> None:
        """Test that ROOT lists comments of one site without an origin."""
        mock_comment_repo.list_comments.return_value = []
        login_as(root_user)

        response = client.get("/api/v1/comments/list", params={"siteId": 10})

        assert response.status_code == 200
        mock_comment_repo.list_comments.assert_awaited_once_with(10)


class TestCommentRoutes:
    """Tests for creating and updating comments."""

    def test_create_multipart(
        self,
        client: TestClient,
        collaborator: User,
        mock_comment_repo: AsyncMock,
        mock_screenshots: MagicMock,
        mock_notifications: AsyncMock,
        sample_view: CommentView,
    ) -> None:
        """Test posting a comment with details and a screenshot."""
        mock_comment_repo.create_comment.side_effect = lambda **kw: make_comment(
            uniqid=kw["uniqid"], screenshot=kw["screenshot"], details=kw["details"]
        )
        mock_comment_repo.add_view.return_value = sample_view

        response = client.post(
            "/api/v1/comments",
            headers=ORIGIN,
            data={
                "message": "Fix this button",
                "url": "/pricing",
                "details": json.dumps({"vw": 1440, "vh": 900, "vx": 0.5, "vy": 0.25}),
                "reference": "#buy",
            },
            files={"screenshot": ("shot.png", b"\x89PNG", "image/png")},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["details"]["vw"] == 1440
        assert body["screenshot"] == "https://files.test/abc123XYZ0001.png"
        assert body["viewed"] is not None
        assert body["user"]["username"] == "alice"
        assert mock_screenshots.save.await_args.args[0] == b"\x89PNG"
        (events,) = mock_notifications.dispatch.await_args.args
        assert isinstance(events[0], CommentCreated)

    def test_create_rejects_bad_details(
        self, client: TestClient, collaborator: User, mock_comment_repo: AsyncMock
    ) -> None:
        """Test that details must be a JSON object."""
        response = client.post(
            "/api/v1/comments",
            headers=ORIGIN,
            data={"message": "hi", "url": "/", "details": "not json"},
        )

        assert response.status_code == 400
        assert response.json() == {"detail": "details must be a JSON object"}
        mock_comment_repo.create_comment.assert_not_awaited()

    def test_create_requires_message(self, client: TestClient, collaborator: User) -> None:
        """Test that an empty message is rejected."""
        response = client.post(
            "/api/v1/comments", headers=ORIGIN, data={"message": "", "url": "/"}
        )

        assert response.status_code == 422

    def test_resolve(
        self, client: TestClient, collaborator: User, mock_comment_repo: AsyncMock
    ) -> None:
        """Test that resolving returns the whole thread with the resolve reply."""
        mock_comment_repo.get_comment.return_value = make_comment()
        mock_comment_repo.update_comment.return_value = make_comment(resolved=True)
        mock_comment_repo.get_thread.return_value = make_comment(
            resolved=True,
            user=make_user(username="alice"),
            viewed=NOW,
            replies=[make_reply(message="{{{resolved}}}", user=make_user(username="alice"))],
        )

        response = client.post("/api/v1/comments/100", headers=ORIGIN, data={"resolved": "true"})

        assert response.status_code == 200
        body = response.json()
        assert body["resolved"] is True
        assert body["user"]["username"] == "alice"
        assert body["viewed"] == "2024-01-15T12:00:00Z"
        assert [r["message"] for r in body["replies"]] == ["{{{resolved}}}"]
        mock_comment_repo.update_comment.assert_awaited_once_with(100, {"resolved": True})
        mock_comment_repo.create_reply.assert_awaited_once()

    def test_edit_with_form_fields(
        self, client: TestClient, collaborator: User, mock_comment_repo: AsyncMock
    ) -> None:
        """Test that an edit is sent as form fields like a new comment."""
        mock_comment_repo.get_comment.return_value = make_comment()
        mock_comment_repo.update_comment.return_value = make_comment(message="edited")
        mock_comment_repo.get_thread.return_value = make_comment(message="edited")

        response = client.post(
            "/api/v1/comments/100",
            headers=ORIGIN,
            data={"message": "edited", "details": json.dumps({"vw": 1280})},
        )

        assert response.status_code == 200
        assert response.json()["message"] == "edited"
        mock_comment_repo.update_comment.assert_awaited_once_with(
            100, {"message": "edited", "details": CommentDetails(vw=1280)}
        )

    def test_update_other_authors_comment(
        self, client: TestClient, collaborator: User, mock_comment_repo: AsyncMock
    ) -> None:
        """Test that editing someone else's comment is 400."""
        mock_comment_repo.get_comment.return_value = make_comment(user_id=99)

        response = client.post("/api/v1/comments/100", headers=ORIGIN, data={"message": "x"})

        assert response.status_code == 400

    def test_view_and_unview(
        self,
        client: TestClient,
        collaborator: User,
        mock_comment_repo: AsyncMock,
        sample_view: CommentView,
    ) -> None:
        """Test toggling the view state of a comment."""
        mock_comment_repo.get_comment.return_value = make_comment()
        mock_comment_repo.add_view.return_value = sample_view

        viewed = client.get("/api/v1/comments/100/view", headers=ORIGIN)
        unviewed = client.get("/api/v1/comments/100/unview", headers=ORIGIN)

        assert viewed.json() == {"user_id": 1, "viewed": "2024-01-15T12:00:00Z"}
        assert unviewed.json() == {"user_id": 1, "viewed": None}
        mock_comment_repo.delete_view.assert_awaited_once_with(100, 1)

    def test_view_all(
        self, client: TestClient, collaborator: User, mock_comment_repo: AsyncMock
    ) -> None:
        """Test marking the whole site as seen."""
        response = client.get("/api/v1/comments/view-all", headers=ORIGIN)

        assert response.status_code == 200
        assert response.content == b""
        mock_comment_repo.add_site_views.assert_awaited_once_with(10, 1)
