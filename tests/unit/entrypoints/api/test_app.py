"""Tests for application wiring: health, widget script and error handling."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

from fastapi import FastAPI
from fastapi.testclient import TestClient

from pinco.core.exceptions import ConflictError, PincoError
from pinco.entrypoints.api.app import pinco_error_handler


class TestApp:
    """Tests for the application factory."""

    def test_health(self, client: TestClient) -> None:
        """Test the health check."""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_unknown_route(self, client: TestClient) -> None:
        """Test that unknown routes are 404."""
        assert client.get("/api/v1/nope").status_code == 404

    def test_cors_reflects_origin_with_credentials(self, client: TestClient) -> None:
        """Test that widget origins may send the session cookie."""
        response = client.options(
            "/api/v1/comments",
            headers={
                "Origin": "https://test.com",
                "Access-Control-Request-Method": "GET",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "https://test.com"
        assert response.headers["access-control-allow-credentials"] == "true"

    def test_unexpected_domain_error_is_500(self, app: FastAPI) -> None:
        """Test that a bare domain error maps to a 500 with its message."""

        @app.get("/boom")
        async def boom() -> None:
            raise PincoError("storage unavailable")

        response = TestClient(app).get("/boom")

        assert response.status_code == 500
        assert response.json() == {"detail": "storage unavailable"}

    async def test_error_handler_maps_status_and_message(self) -> None:
        """Test that the handler answers with the error's status and message."""
        request = MagicMock()
        request.url.path = "/api/v1/users/3"

        response = await pinco_error_handler(request, ConflictError("User is busy"))

        assert response.status_code == 409
        assert json.loads(response.body) == {"detail": "User is busy"}


class TestWidgetScript:
    """Tests for GET /widget.js."""

    def test_widget_script(self, client: TestClient) -> None:
        """Test the loader script and its open CORS headers."""
        response = client.get("/widget.js", params={"key": "LIC-123"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/javascript")
        assert response.headers["access-control-allow-origin"] == "*"
        body = response.text
        assert body.startswith("var Pinco = {")
        assert '"key": "LIC-123"' in body
        assert '"apiRoot": "https://api.pinco.test/"' in body
        assert "https://cdn.pinco.test/ui.js" in body

    def test_widget_script_without_key(self, client: TestClient) -> None:
        """Test that the key defaults to empty."""
        response = client.get("/widget.js")

        assert response.status_code == 200
        assert '"key": ""' in response.text
