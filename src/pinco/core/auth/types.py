"""Auth domain types: identities, tenants and memberships."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from pydantic import BaseModel

USER_COLORS = (
    "#4C53F1",
    "#119AFA",
    "#EDAB00",
    "#D64D4D",
    "#48B836",
    "#B865DF",
    "#ED741C",
    "#00A0D2",
    "#E04DAE",
    "#148F63",
)


def color_for_email(email: str) -> str:
    """Pick a stable display color for an email address.

    Uses the 32-bit ``h * 31 + c`` string hash so a user keeps the same
    color across sessions and clients.
    """
    h = 0
    for ch in email:
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return USER_COLORS[abs(h) % len(USER_COLORS)]


class UserRole(str, Enum):
    """Global roles, independent of any site."""

    ROOT = "ROOT"
    ADMIN = "ADMIN"


class SiteRole(str, Enum):
    """Roles granted on a single site."""

    ADMIN = "ADMIN"
    COLLABORATOR = "COLLABORATOR"


# Site roles that allow working with a site's comments.
COLLABORATOR_ROLES = frozenset({SiteRole.ADMIN, SiteRole.COLLABORATOR})


class User(BaseModel):
    """A registered account."""

    id: int
    email: str
    name: str
    username: str
    password_hash: str | None = None
    active: bool = True
    roles: list[UserRole] = []
    secret_token: str | None = None
    secret_expires: datetime | None = None
    created: datetime
    updated: datetime

    @property
    def color(self) -> str:
        """Display color derived from the email."""
        return color_for_email(self.email)

    def has_role(self, *roles: UserRole) -> bool:
        """Check whether the user holds any of the given global roles."""
        return any(role in self.roles for role in roles)


class Site(BaseModel):
    """A registered website (tenant)."""

    id: int
    name: str
    license: str
    domain: str
    url: str
    active: bool = True
    created: datetime
    updated: datetime


class UserSite(BaseModel):
    """Membership of a user in a site.

    A row with an invite code is a pending invitation; once the code is
    cleared the membership is active.
    """

    user_id: int
    site_id: int
    roles: list[SiteRole] = []
    invite_code: str | None = None
    created: datetime
    updated: datetime
    site: Site | None = None
    user: User | None = None

    @property
    def pending(self) -> bool:
        """Whether an invitation is still outstanding."""
        return self.invite_code is not None

    @property
    def can_collaborate(self) -> bool:
        """Whether the membership grants access to the site's comments."""
        return any(role in COLLABORATOR_ROLES for role in self.roles)


class TokenPayload(BaseModel):
    """Verified contents of a session token."""

    sub: int
    email: str
    roles: list[UserRole]
    exp: int
    iat: int


class InvitePayload(BaseModel):
    """Verified contents of an invite token."""

    user_id: int
    site_id: int
    invite_code: str
    exp: int
    iat: int


@dataclass
class Identity:
    """The authenticated caller attached to a request."""

    id: int
    email: str
    roles: list[UserRole]
    sites: list[UserSite] = field(default_factory=list)

    def membership(self, site_id: int) -> UserSite | None:
        """Return the caller's membership of a site, if any."""
        for user_site in self.sites:
            if user_site.site_id == site_id:
                return user_site
        return None
