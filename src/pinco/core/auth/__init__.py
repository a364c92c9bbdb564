"""Auth domain: identities, sites, memberships, tokens and guards."""

from pinco.core.auth.jwt import TokenCodec
from pinco.core.auth.password import hash_password, verify_password
from pinco.core.auth.repository import AuthRepository
from pinco.core.auth.types import (
    Identity,
    InvitePayload,
    Site,
    SiteRole,
    TokenPayload,
    User,
    UserRole,
    UserSite,
)

__all__ = [
    "User",
    "Site",
    "UserSite",
    "Identity",
    "UserRole",
    "SiteRole",
    "TokenPayload",
    "InvitePayload",
    "TokenCodec",
    "hash_password",
    "verify_password",
    "AuthRepository",
]
