"""FastAPI application definition."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import cast

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pinco import __version__
from pinco.config import Settings
from pinco.core.auth.jwt import TokenCodec
from pinco.core.exceptions import PincoError
from pinco.entrypoints.api.deps import lifespan
from pinco.entrypoints.api.middleware.rate_limit import LoginRateLimitMiddleware, LoginThrottle
from pinco.entrypoints.api.routes import api_router, widget_router

logger = structlog.get_logger()


async def pinco_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Translate domain errors to JSON responses."""
    error = cast(PincoError, exc)
    if error.status_code >= 500:
        logger.error("request_failed", path=request.url.path, error=error.message)
    return JSONResponse(status_code=error.status_code, content={"detail": error.message})


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application.

    Args:
        settings: Settings to run with. Read from the environment if omitted.
    """
    settings = settings or Settings.from_env()

    app = FastAPI(
        title="pinco",
        description="Annotation widget backend",
        version=__version__,
        lifespan=lifespan,
        redirect_slashes=False,
    )
    app.state.settings = settings
    app.state.codec = TokenCodec(
        settings.auth_secret,
        settings.auth_token_expires_in,
        settings.invite_token_expires_in,
    )

    app.add_middleware(
        LoginRateLimitMiddleware,
        paths=[f"{settings.api_prefix}/auth/login"],
        throttle=LoginThrottle(
            per_minute=settings.login_rate_limit_per_minute,
            burst=settings.login_rate_limit_burst,
        ),
    )
    # Widget requests come from every registered site and carry the session cookie
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(PincoError, pinco_error_handler)

    app.include_router(api_router, prefix=settings.api_prefix)
    app.include_router(widget_router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "timestamp": datetime.now(UTC).isoformat()}

    return app


app = create_app()
