"""Tests for the site routes."""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from pinco.core.auth.types import Site, User
from tests.fixtures.domain_objects import make_membership, make_site


@pytest.fixture(autouse=True)
def as_root(login_as: Callable[[User], None], root_user: User) -> User:
    """Log in as ROOT for every test in this module."""
    login_as(root_user)
    return root_user


class TestSiteRoutes:
    """Tests for the ROOT-only site routes."""

    def test_create_derives_domain(
        self, client: TestClient, mock_auth_repo: AsyncMock, sample_site: Site
    ) -> None:
        """Test that the domain is the hostname of the URL."""
        mock_auth_repo.create_site.return_value = sample_site

        response = client.post(
            "/api/v1/sites",
            json={"name": "Test Site", "license": "LIC-123", "url": "https://Test.com/path"},
        )

        assert response.status_code == 201
        assert response.json()["domain"] == "test.com"
        assert mock_auth_repo.create_site.await_args.args[2] == "test.com"

    def test_create_duplicate_domain(
        self, client: TestClient, mock_auth_repo: AsyncMock, sample_site: Site
    ) -> None:
        """Test that one domain maps to one site."""
        mock_auth_repo.get_site_by_domain.return_value = sample_site

        response = client.post(
            "/api/v1/sites",
            json={"name": "Again", "license": "LIC-9", "url": "https://test.com"},
        )

        assert response.status_code == 409

    def test_list(self, client: TestClient, mock_auth_repo: AsyncMock) -> None:
        """Test listing all sites."""
        mock_auth_repo.list_sites.return_value = [make_site(10), make_site(11, domain="b.com")]

        response = client.get("/api/v1/sites/list")

        assert [s["id"] for s in response.json()] == [10, 11]

    def test_get_missing(self, client: TestClient) -> None:
        """Test that an unknown site is 404."""
        assert client.get("/api/v1/sites/404").status_code == 404

    def test_delete(
        self, client: TestClient, mock_auth_repo: AsyncMock, sample_site: Site
    ) -> None:
        """Test deleting a site."""
        mock_auth_repo.get_site_by_id.return_value = sample_site

        response = client.delete("/api/v1/sites/10")

        assert response.status_code == 204
        mock_auth_repo.delete_site.assert_awaited_once_with(10)

    def test_site_users(
        self, client: TestClient, mock_auth_repo: AsyncMock, sample_site: Site
    ) -> None:
        """Test listing the memberships of a site."""
        mock_auth_repo.get_site_by_id.return_value = sample_site
        mock_auth_repo.get_site_users.return_value = [make_membership(1, 10)]

        response = client.get("/api/v1/sites/10/users")

        assert response.status_code == 200
        assert response.json()[0]["user_id"] == 1

    def test_collaborator_denied(
        self,
        client: TestClient,
        login_as: Callable[[User], None],
        sample_user: User,
    ) -> None:
        """Test that site management is ROOT-only."""
        login_as(sample_user)

        response = client.get("/api/v1/sites/list")

        assert response.status_code == 403
