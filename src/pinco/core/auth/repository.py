"""Auth repository protocol for database operations."""

from typing import Any, Protocol, runtime_checkable

from pinco.core.auth.types import Site, SiteRole, User, UserRole, UserSite


@runtime_checkable
class AuthRepository(Protocol):
    """Protocol for users, sites and memberships storage.

    Implementations provide actual database access (PostgreSQL, etc).
    """

    # User operations
    async def get_user_by_id(self, user_id: int) -> User | None:
        """Get user by ID."""
        ...

    async def get_user_by_email(self, email: str) -> User | None:
        """Get user by email address."""
        ...

    async def get_user_by_username(self, username: str) -> User | None:
        """Get user by username."""
        ...

    async def get_active_user_by_secret(self, secret: str) -> User | None:
        """Get an active user holding the given secret token."""
        ...

    async def list_users(self, site_id: int | None = None) -> list[User]:
        """List users, optionally only those connected to a site."""
        ...

    async def create_user(
        self,
        email: str,
        name: str,
        username: str,
        password_hash: str | None,
        roles: list[UserRole],
        active: bool = True,
    ) -> User:
        """Create a new user."""
        ...

    async def update_user(self, user_id: int, fields: dict[str, Any]) -> User | None:
        """Update user fields."""
        ...

    async def delete_user(self, user_id: int) -> None:
        """Delete a user."""
        ...

    async def count_user_content(self, user_id: int) -> int:
        """Count the comments and replies written by a user."""
        ...

    async def set_secret_token(self, user_id: int, secret: str | None) -> None:
        """Store or clear a user's secret token."""
        ...

    # Site operations
    async def get_site_by_id(self, site_id: int) -> Site | None:
        """Get site by ID."""
        ...

    async def get_site_by_domain(self, domain: str) -> Site | None:
        """Get site by domain, active or not."""
        ...

    async def get_active_site_by_domain(self, domain: str) -> Site | None:
        """Get an active site by domain."""
        ...

    async def list_sites(self) -> list[Site]:
        """List sites, newest first."""
        ...

    async def create_site(
        self, name: str, license: str, domain: str, url: str, active: bool = True
    ) -> Site:
        """Create a new site."""
        ...

    async def update_site(self, site_id: int, fields: dict[str, Any]) -> Site | None:
        """Update site fields."""
        ...

    async def delete_site(self, site_id: int) -> None:
        """Delete a site."""
        ...

    # Membership operations
    async def get_user_sites(self, user_id: int) -> list[UserSite]:
        """Get a user's memberships with their sites."""
        ...

    async def get_site_users(self, site_id: int) -> list[UserSite]:
        """Get a site's memberships with their users, newest first."""
        ...

    async def list_memberships(self, site_id: int | None = None) -> list[UserSite]:
        """List memberships with their sites, optionally for one site."""
        ...

    async def get_membership(self, user_id: int, site_id: int) -> UserSite | None:
        """Get the membership of a user in a site."""
        ...

    async def get_membership_by_invite(
        self, user_id: int, site_id: int, invite_code: str
    ) -> UserSite | None:
        """Get a membership whose live invite code matches."""
        ...

    async def create_membership(
        self,
        user_id: int,
        site_id: int,
        roles: list[SiteRole],
        invite_code: str | None = None,
    ) -> UserSite:
        """Connect a user to a site."""
        ...

    async def update_membership_roles(
        self, user_id: int, site_id: int, roles: list[SiteRole]
    ) -> UserSite | None:
        """Replace the site roles of a membership."""
        ...

    async def set_invite_code(self, user_id: int, site_id: int, invite_code: str | None) -> None:
        """Store or clear the invite code of a membership."""
        ...

    async def delete_membership(self, user_id: int, site_id: int) -> None:
        """Disconnect a user from a site."""
        ...
