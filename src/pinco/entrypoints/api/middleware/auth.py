"""Guard dependencies: session cookie, origin site and global roles.

Routes compose these explicitly, for example::

    @router.get("")
    async def list_comments(user: CurrentUser, site: CurrentSite) -> ...:
        ...

FastAPI caches dependencies per request, so ``require_user`` runs once
even when both the route and ``require_site`` depend on it.
"""

from collections.abc import Callable
from typing import Annotated, Any

import structlog
from fastapi import Depends, Request

from pinco.config import Settings
from pinco.core.auth.guards import authenticate, authorize_roles, resolve_site
from pinco.core.auth.types import Identity, Site, UserRole
from pinco.core.exceptions import AccessDeniedError
from pinco.entrypoints.api.cookies import TOKEN_COOKIE, unsign_cookie
from pinco.entrypoints.api.deps import AuthRepoDep, CodecDep, SettingsDep, SiteServiceDep

logger = structlog.get_logger()


def _session_token(request: Request, settings: Settings) -> str | None:
    return unsign_cookie(request.cookies.get(TOKEN_COOKIE), settings.auth_secret)


async def require_user(
    request: Request,
    settings: SettingsDep,
    codec: CodecDep,
    sites: SiteServiceDep,
) -> Identity:
    """Authenticate the caller from the session cookie.

    Raises:
        AuthenticationError: 401 if the cookie is missing or invalid.
    """
    identity = await authenticate(_session_token(request, settings), codec, sites)
    request.state.user = identity
    return identity


async def optional_user(
    request: Request,
    settings: SettingsDep,
    codec: CodecDep,
    sites: SiteServiceDep,
) -> Identity | None:
    """Authenticate the caller if possible, returning None otherwise."""
    identity = await authenticate(_session_token(request, settings), codec, sites, optional=True)
    request.state.user = identity
    return identity


async def require_site(
    request: Request,
    identity: Annotated[Identity, Depends(require_user)],
    repo: AuthRepoDep,
) -> Site:
    """Resolve the site the request comes from.

    Raises:
        AccessDeniedError: 403 if the origin is unknown or the caller is
            not a collaborator of the site.
    """
    site = await resolve_site(
        request.headers.get("origin"),
        request.headers.get("referer"),
        identity,
        repo,
    )
    request.state.site = site
    return site


def require_roles(*roles: UserRole) -> Callable[..., Any]:
    """Dependency to require any of the given global roles.

    Usage:
        @router.delete("/{id}")
        async def delete_item(user: Annotated[Identity, Depends(require_roles(UserRole.ROOT))]):
            ...

    Args:
        roles: Accepted global roles.

    Returns:
        Dependency function that validates roles.
    """

    async def role_checker(identity: Annotated[Identity, Depends(require_user)]) -> Identity:
        if not authorize_roles(roles, identity):
            logger.warning(
                "role_check_failed",
                user_id=identity.id,
                required=[r.value for r in roles],
            )
            raise AccessDeniedError("Forbidden resource")
        return identity

    return role_checker


CurrentUser = Annotated[Identity, Depends(require_user)]
OptionalUser = Annotated[Identity | None, Depends(optional_user)]
CurrentSite = Annotated[Site, Depends(require_site)]
RequireRoot = Annotated[Identity, Depends(require_roles(UserRole.ROOT))]
