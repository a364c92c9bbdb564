"""Request guards: authentication, origin-to-site resolution, role checks.

Each guard is a plain function over explicit inputs. The API layer
composes them per route, in order: authenticate, then resolve the site
from the origin, then check global roles.
"""

from collections.abc import Iterable
from typing import Literal, overload

import structlog

from pinco.core.auth.jwt import TokenCodec
from pinco.core.auth.repository import AuthRepository
from pinco.core.auth.sites import SiteService, hostname_of
from pinco.core.auth.types import Identity, Site, UserRole
from pinco.core.exceptions import AccessDeniedError, AuthenticationError

logger = structlog.get_logger()


@overload
async def authenticate(
    token: str | None,
    codec: TokenCodec,
    sites: SiteService,
    optional: Literal[False] = False,
) -> Identity: ...


@overload
async def authenticate(
    token: str | None,
    codec: TokenCodec,
    sites: SiteService,
    optional: bool,
) -> Identity | None: ...


async def authenticate(
    token: str | None,
    codec: TokenCodec,
    sites: SiteService,
    optional: bool = False,
) -> Identity | None:
    """Turn a session token into the caller's identity.

    Args:
        token: Token read from the verified session cookie, if any.
        codec: Codec verifying the token.
        sites: Service resolving the caller's memberships.
        optional: Proceed anonymously instead of failing.

    Returns:
        The identity with its memberships, or None for an anonymous
        caller when ``optional`` is set.

    Raises:
        AuthenticationError: If the token is missing or invalid and the
            route requires authentication.
    """
    if not token:
        if optional:
            return None
        raise AuthenticationError("No authentication token found")

    try:
        payload = codec.verify(token)
    except AuthenticationError as e:
        logger.debug("session_token_rejected", error=str(e))
        if optional:
            return None
        raise AuthenticationError("Invalid authentication token") from None

    memberships = await sites.memberships_of(payload.sub)
    return Identity(
        id=payload.sub,
        email=payload.email,
        roles=list(payload.roles),
        sites=memberships,
    )


async def resolve_site(
    origin: str | None,
    referer: str | None,
    identity: Identity | None,
    repo: AuthRepository,
) -> Site:
    """Map the calling page to an active site the caller collaborates on.

    Args:
        origin: ``Origin`` request header.
        referer: ``Referer`` request header, used when there is no origin.
        identity: The authenticated caller, if any.
        repo: Repository for the site lookup.

    Returns:
        The site the request acts on.

    Raises:
        AccessDeniedError: If the origin is missing or unparseable, maps
            to no active site, or the caller may not work on that site.
    """
    source = origin or referer
    domain = hostname_of(source) if source else None
    if domain is None:
        raise AccessDeniedError("Origin not provided")

    site = await repo.get_active_site_by_domain(domain)
    if site is None:
        logger.warning("origin_rejected", domain=domain)
        raise AccessDeniedError("Invalid or inactive site")

    membership = identity.membership(site.id) if identity else None
    if membership is None or not membership.can_collaborate:
        logger.warning(
            "site_access_denied",
            site_id=site.id,
            user_id=identity.id if identity else None,
        )
        raise AccessDeniedError("User does not have access to this site")

    return site


def authorize_roles(required: Iterable[UserRole], identity: Identity | None) -> bool:
    """Check whether the caller holds any of the required global roles.

    An empty requirement allows everyone. A missing identity or one
    without roles is refused.
    """
    required = list(required)
    if not required:
        return True
    if identity is None or not identity.roles:
        return False
    return any(role in identity.roles for role in required)
