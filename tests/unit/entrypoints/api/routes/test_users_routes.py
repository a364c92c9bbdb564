"""Tests for the user and membership routes."""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from pinco.core.auth.types import Site, SiteRole, User
from pinco.core.events import UserInvited
from tests.fixtures.domain_objects import make_membership, make_user


@pytest.fixture
def as_root(login_as: Callable[[User], None], root_user: User) -> User:
    """Log in as ROOT."""
    login_as(root_user)
    return root_user


class TestWidgetUserRoutes:
    """Tests for the routes the widget calls."""

    def test_me(
        self,
        client: TestClient,
        login_as: Callable[[User], None],
        mock_auth_repo: AsyncMock,
        sample_user: User,
    ) -> None:
        """Test that /me returns public fields only."""
        mock_auth_repo.get_user_by_id.return_value = sample_user.model_copy(
            update={"password_hash": "hash", "secret_token": "secret"}
        )
        login_as(sample_user)

        response = client.get("/api/v1/users/me")

        assert response.status_code == 200
        body = response.json()
        assert body["username"] == "alice"
        assert body["color"].startswith("#")
        assert "password_hash" not in body
        assert "secret_token" not in body
        assert "roles" not in body

    def test_site_users(
        self,
        client: TestClient,
        login_as: Callable[[User], None],
        mock_auth_repo: AsyncMock,
        sample_user: User,
        sample_site: Site,
    ) -> None:
        """Test listing the users of the calling site."""
        mock_auth_repo.get_user_sites.return_value = [make_membership(site=sample_site)]
        mock_auth_repo.get_active_site_by_domain.return_value = sample_site
        mock_auth_repo.list_users.return_value = [sample_user, make_user(3)]
        login_as(sample_user)

        response = client.get("/api/v1/users", headers={"Origin": "https://test.com"})

        assert response.status_code == 200
        assert [u["id"] for u in response.json()] == [1, 3]
        mock_auth_repo.list_users.assert_awaited_once_with(10)


class TestBackofficeUserRoutes:
    """Tests for the ROOT-only user routes."""

    def test_requires_root(
        self, client: TestClient, login_as: Callable[[User], None], sample_user: User
    ) -> None:
        """Test that a collaborator cannot list all users."""
        login_as(sample_user)

        response = client.get("/api/v1/users/list")

        assert response.status_code == 403
        assert response.json() == {"detail": "Forbidden resource"}

    def test_list_with_memberships(
        self, client: TestClient, as_root: User, mock_auth_repo: AsyncMock
    ) -> None:
        """Test that the backoffice list includes memberships."""
        mock_auth_repo.list_users.return_value = [make_user(1)]
        mock_auth_repo.list_memberships.return_value = [make_membership(invite_code="code")]

        response = client.get("/api/v1/users/list")

        assert response.status_code == 200
        (user,) = response.json()
        assert user["has_secret"] is False
        assert user["sites"][0]["pending"] is True
        assert "invite_code" not in user["sites"][0]

    def test_create_user(
        self,
        client: TestClient,
        as_root: User,
        mock_auth_repo: AsyncMock,
        mock_notifications: AsyncMock,
    ) -> None:
        """Test creating a user without sites dispatches nothing."""
        mock_auth_repo.create_user.return_value = make_user(5, username="bob")

        response = client.post(
            "/api/v1/users",
            json={"email": "bob@example.com", "name": "Bob", "username": "bob"},
        )

        assert response.status_code == 201
        assert response.json()["username"] == "bob"
        mock_notifications.dispatch.assert_not_awaited()

    def test_create_user_invalid_username(self, client: TestClient, as_root: User) -> None:
        """Test that usernames must be mentionable."""
        response = client.post(
            "/api/v1/users",
            json={"email": "bob@example.com", "name": "Bob", "username": "bob smith"},
        )

        assert response.status_code == 422

    def test_create_user_duplicate(
        self, client: TestClient, as_root: User, mock_auth_repo: AsyncMock, sample_user: User
    ) -> None:
        """Test that a taken email is 409."""
        mock_auth_repo.get_user_by_email.return_value = sample_user

        response = client.post(
            "/api/v1/users",
            json={"email": "alice@example.com", "name": "Alice", "username": "alice2"},
        )

        assert response.status_code == 409

    def test_get_missing_user(self, client: TestClient, as_root: User) -> None:
        """Test that an unknown user is 404."""
        response = client.get("/api/v1/users/404")

        assert response.status_code == 404

    def test_delete_self(
        self, client: TestClient, as_root: User, mock_auth_repo: AsyncMock
    ) -> None:
        """Test that ROOT cannot delete their own account."""
        mock_auth_repo.get_user_by_id.return_value = as_root

        response = client.delete(f"/api/v1/users/{as_root.id}")

        assert response.status_code == 400
        mock_auth_repo.delete_user.assert_not_awaited()

    def test_delete_author_of_content(
        self, client: TestClient, as_root: User, mock_auth_repo: AsyncMock, sample_user: User
    ) -> None:
        """Test that a user who still has comments is 409 and stays."""
        mock_auth_repo.get_user_by_id.return_value = sample_user
        mock_auth_repo.count_user_content.return_value = 1

        response = client.delete("/api/v1/users/1")

        assert response.status_code == 409
        assert response.json() == {"detail": "User still has comments or replies"}
        mock_auth_repo.delete_user.assert_not_awaited()

    def test_issue_and_revoke_secret(
        self,
        client: TestClient,
        as_root: User,
        mock_auth_repo: AsyncMock,
        sample_user: User,
    ) -> None:
        """Test the secret token lifecycle."""
        mock_auth_repo.get_user_by_id.return_value = sample_user

        issued = client.post("/api/v1/users/1/secret")
        revoked = client.delete("/api/v1/users/1/secret")

        assert issued.status_code == 200
        secret = issued.json()["secret"]
        assert secret
        assert mock_auth_repo.set_secret_token.await_args_list[0].args == (1, secret)
        assert revoked.status_code == 204
        assert mock_auth_repo.set_secret_token.await_args_list[1].args == (1, None)


class TestMembershipRoutes:
    """Tests for connecting users to sites."""

    def test_add_with_invite_dispatches_event(
        self,
        client: TestClient,
        as_root: User,
        mock_auth_repo: AsyncMock,
        mock_notifications: AsyncMock,
        sample_user: User,
        sample_site: Site,
    ) -> None:
        """Test that inviting creates a pending membership and queues the email."""
        mock_auth_repo.get_user_by_id.return_value = sample_user
        mock_auth_repo.get_site_by_id.return_value = sample_site
        pending = make_membership(invite_code="code123")
        # Missing before creation, pending afterwards.
        mock_auth_repo.get_membership.side_effect = [None, pending, pending]
        mock_auth_repo.create_membership.return_value = pending

        response = client.post(
            "/api/v1/users/invite", json={"user_id": 1, "site_id": 10, "invite": True}
        )

        assert response.status_code == 201
        assert response.json()["pending"] is True
        roles = mock_auth_repo.create_membership.await_args.args[2]
        assert roles == [SiteRole.COLLABORATOR]
        (events,) = mock_notifications.dispatch.await_args.args
        assert isinstance(events[0], UserInvited)
        assert events[0].invite_token

    def test_add_existing_membership(
        self,
        client: TestClient,
        as_root: User,
        mock_auth_repo: AsyncMock,
        sample_user: User,
        sample_site: Site,
    ) -> None:
        """Test that connecting twice is a conflict."""
        mock_auth_repo.get_user_by_id.return_value = sample_user
        mock_auth_repo.get_site_by_id.return_value = sample_site
        mock_auth_repo.get_membership.return_value = make_membership()

        response = client.post("/api/v1/users/invite", json={"user_id": 1, "site_id": 10})

        assert response.status_code == 409

    def test_update_roles(
        self, client: TestClient, as_root: User, mock_auth_repo: AsyncMock
    ) -> None:
        """Test replacing the roles of a membership."""
        mock_auth_repo.update_membership_roles.return_value = make_membership(
            roles=[SiteRole.ADMIN]
        )

        response = client.patch(
            "/api/v1/users/invite/update",
            json={"user_id": 1, "site_id": 10, "roles": ["ADMIN"]},
        )

        assert response.status_code == 200
        assert response.json()["roles"] == ["ADMIN"]

    def test_remove_and_revoke(
        self, client: TestClient, as_root: User, mock_auth_repo: AsyncMock
    ) -> None:
        """Test disconnecting a user and revoking an invite."""
        body = {"user_id": 1, "site_id": 10}

        assert client.post("/api/v1/users/invite/revoke", json=body).status_code == 204
        assert client.post("/api/v1/users/invite/delete", json=body).status_code == 204

        mock_auth_repo.set_invite_code.assert_awaited_once_with(1, 10, None)
        mock_auth_repo.delete_membership.assert_awaited_once_with(1, 10)

    def test_resend_unknown_membership(
        self,
        client: TestClient,
        as_root: User,
        mock_auth_repo: AsyncMock,
        mock_notifications: AsyncMock,
        sample_user: User,
        sample_site: Site,
    ) -> None:
        """Test that resending needs an existing membership."""
        mock_auth_repo.get_user_by_id.return_value = sample_user
        mock_auth_repo.get_site_by_id.return_value = sample_site

        response = client.post("/api/v1/users/invite/resend", json={"user_id": 1, "site_id": 10})

        assert response.status_code == 404
        mock_notifications.dispatch.assert_not_awaited()
