"""API middleware."""

from pinco.entrypoints.api.middleware.auth import (
    CurrentSite,
    CurrentUser,
    OptionalUser,
    RequireRoot,
    optional_user,
    require_roles,
    require_site,
    require_user,
)
from pinco.entrypoints.api.middleware.rate_limit import LoginRateLimitMiddleware, LoginThrottle

__all__ = [
    "CurrentSite",
    "CurrentUser",
    "OptionalUser",
    "RequireRoot",
    "optional_user",
    "require_roles",
    "require_site",
    "require_user",
    "LoginRateLimitMiddleware",
    "LoginThrottle",
]
