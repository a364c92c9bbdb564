"""Dependency injection and application lifespan management."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Annotated

import structlog
from fastapi import Depends, Request

from pinco.adapters.auth.postgres import PostgresAuthRepository
from pinco.adapters.comments.postgres import PostgresCommentRepository
from pinco.adapters.db.app_db import AppDatabase
from pinco.adapters.notifications.email import EmailConfig, EmailNotifier
from pinco.adapters.screenshots.local import LocalScreenshotStorage
from pinco.config import Settings
from pinco.core.auth.invites import InviteService
from pinco.core.auth.jwt import TokenCodec
from pinco.core.auth.repository import AuthRepository
from pinco.core.auth.secret_tokens import SecretTokenStore
from pinco.core.auth.service import AuthService
from pinco.core.auth.sites import SiteService
from pinco.core.auth.users import UserService
from pinco.core.comments.repository import CommentRepository
from pinco.core.comments.screenshots import ScreenshotStorage
from pinco.core.comments.service import CommentService, ReplyService
from pinco.services.notification import NotificationService

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan - setup and teardown.

    This context manager handles:
    - Database connection pool setup
    - Email and screenshot adapters
    """
    settings: Settings = app.state.settings

    app_db = AppDatabase(settings.database_url)
    await app_db.connect()

    app.state.app_db = app_db
    app.state.screenshots = LocalScreenshotStorage(
        settings.screenshot_base_dir, settings.screenshot_base_url
    )
    app.state.email_notifier = EmailNotifier(
        EmailConfig(
            smtp_host=settings.smtp_host,
            smtp_port=settings.smtp_port,
            smtp_user=settings.smtp_user,
            smtp_password=settings.smtp_password,
            from_email=settings.email_from,
            from_name=settings.email_from_name,
            use_tls=settings.smtp_use_tls,
        )
    )
    logger.info("application_started", api_prefix=settings.api_prefix)

    yield

    await app_db.close()


def get_settings(request: Request) -> Settings:
    """Get the application settings."""
    settings: Settings = request.app.state.settings
    return settings


def get_codec(request: Request) -> TokenCodec:
    """Get the token codec."""
    codec: TokenCodec = request.app.state.codec
    return codec


def get_app_db(request: Request) -> AppDatabase:
    """Get the application database."""
    app_db: AppDatabase = request.app.state.app_db
    return app_db


def get_auth_repo(request: Request) -> AuthRepository:
    """Get the users, sites and memberships repository."""
    return PostgresAuthRepository(get_app_db(request))


def get_comment_repo(request: Request) -> CommentRepository:
    """Get the comments repository."""
    return PostgresCommentRepository(get_app_db(request))


def get_screenshots(request: Request) -> ScreenshotStorage:
    """Get the screenshot storage."""
    storage: ScreenshotStorage = request.app.state.screenshots
    return storage


SettingsDep = Annotated[Settings, Depends(get_settings)]
CodecDep = Annotated[TokenCodec, Depends(get_codec)]
AuthRepoDep = Annotated[AuthRepository, Depends(get_auth_repo)]
CommentRepoDep = Annotated[CommentRepository, Depends(get_comment_repo)]


def get_site_service(repo: AuthRepoDep) -> SiteService:
    """Get the site service."""
    return SiteService(repo)


def get_invite_service(repo: AuthRepoDep, codec: CodecDep) -> InviteService:
    """Get the invite service."""
    return InviteService(repo, codec)


def get_secret_store(repo: AuthRepoDep) -> SecretTokenStore:
    """Get the secret token store."""
    return SecretTokenStore(repo)


def get_user_service(
    repo: AuthRepoDep, invites: Annotated[InviteService, Depends(get_invite_service)]
) -> UserService:
    """Get the user service."""
    return UserService(repo, invites)


def get_auth_service(
    repo: AuthRepoDep,
    codec: CodecDep,
    invites: Annotated[InviteService, Depends(get_invite_service)],
    secrets: Annotated[SecretTokenStore, Depends(get_secret_store)],
) -> AuthService:
    """Get the auth service."""
    return AuthService(repo, codec, invites, secrets)


def get_reply_service(repo: CommentRepoDep, users: AuthRepoDep) -> ReplyService:
    """Get the reply service."""
    return ReplyService(repo, users)


def get_comment_service(
    repo: CommentRepoDep,
    users: AuthRepoDep,
    replies: Annotated[ReplyService, Depends(get_reply_service)],
    screenshots: Annotated[ScreenshotStorage, Depends(get_screenshots)],
) -> CommentService:
    """Get the comment service."""
    return CommentService(repo, users, replies, screenshots)


def get_notification_service(request: Request, repo: AuthRepoDep) -> NotificationService:
    """Get the notification service that consumes domain events."""
    settings = get_settings(request)
    return NotificationService(repo, request.app.state.email_notifier, settings.app_url)


SiteServiceDep = Annotated[SiteService, Depends(get_site_service)]
InviteServiceDep = Annotated[InviteService, Depends(get_invite_service)]
SecretStoreDep = Annotated[SecretTokenStore, Depends(get_secret_store)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
CommentServiceDep = Annotated[CommentService, Depends(get_comment_service)]
ReplyServiceDep = Annotated[ReplyService, Depends(get_reply_service)]
NotificationDep = Annotated[NotificationService, Depends(get_notification_service)]
