"""User account management."""

from typing import Any

import structlog

from pinco.core.auth.invites import InviteService
from pinco.core.auth.password import hash_password
from pinco.core.auth.repository import AuthRepository
from pinco.core.auth.types import Identity, SiteRole, User, UserRole, UserSite
from pinco.core.events import UserInvited
from pinco.core.exceptions import (
    AccessDeniedError,
    ConflictError,
    NotFoundError,
    ValidationError,
)

logger = structlog.get_logger()


class UserService:
    """Service for creating, reading, updating and deleting accounts."""

    def __init__(self, repo: AuthRepository, invites: InviteService) -> None:
        """Initialize the service.

        Args:
            repo: Auth repository for database operations.
            invites: Service used to connect new users to sites.
        """
        self._repo = repo
        self._invites = invites

    async def _ensure_unique(
        self, email: str | None, username: str | None, current: User | None = None
    ) -> None:
        if email and (current is None or email != current.email):
            if await self._repo.get_user_by_email(email) is not None:
                raise ConflictError("User with this email already exists")
        if username and (current is None or username != current.username):
            if await self._repo.get_user_by_username(username) is not None:
                raise ConflictError("User with this username already exists")

    async def create(
        self,
        email: str,
        name: str,
        username: str,
        password: str | None = None,
        roles: list[UserRole] | None = None,
        active: bool = True,
        site_ids: list[int] | None = None,
        invite: bool = False,
    ) -> tuple[User, list[UserInvited]]:
        """Create an account and optionally connect it to sites.

        Args:
            email: Unique email address.
            name: Display name.
            username: Unique handle used for mentions.
            password: Plain text password, None for invite-only accounts.
            roles: Global roles.
            active: Whether the account may log in.
            site_ids: Sites to add the user to as a collaborator.
            invite: Whether to send an invitation for each site.

        Returns:
            The user and the invitation events to dispatch.

        Raises:
            ConflictError: If the email or username is taken.
        """
        await self._ensure_unique(email, username)

        user = await self._repo.create_user(
            email=email,
            name=name,
            username=username,
            password_hash=hash_password(password) if password else None,
            roles=roles or [],
            active=active,
        )
        logger.info("user_created", user_id=user.id)

        events: list[UserInvited] = []
        for site_id in site_ids or []:
            _, site_events = await self._invites.add_user_to_site(
                user.id, site_id, [SiteRole.COLLABORATOR], invite
            )
            events.extend(site_events)
        return user, events

    async def find_all(self, site_id: int) -> list[User]:
        """List the users connected to a site."""
        return await self._repo.list_users(site_id)

    async def list_users(
        self, site_id: int | None = None
    ) -> list[tuple[User, list[UserSite]]]:
        """List users with their memberships, optionally for one site."""
        users = await self._repo.list_users(site_id)
        by_user: dict[int, list[UserSite]] = {}
        for membership in await self._repo.list_memberships(site_id):
            by_user.setdefault(membership.user_id, []).append(membership)
        return [(user, by_user.get(user.id, [])) for user in users]

    async def find_one(self, user_id: int, acting: Identity) -> User:
        """Get a user the acting identity may see.

        ROOT sees everyone. A plain ADMIN only sees users sharing at least
        one site with them.

        Raises:
            NotFoundError: If no such user exists.
            AccessDeniedError: If an ADMIN shares no site with the user.
        """
        user = await self._repo.get_user_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User with ID {user_id} not found")

        if UserRole.ROOT not in acting.roles and UserRole.ADMIN in acting.roles:
            own_sites = {m.site_id for m in acting.sites}
            their_sites = {m.site_id for m in await self._repo.get_user_sites(user_id)}
            if not own_sites & their_sites:
                raise AccessDeniedError("You do not have access to this user")
        return user

    async def update(self, user_id: int, fields: dict[str, Any], acting: Identity) -> User:
        """Update an account.

        Raises:
            NotFoundError: If no such user exists.
            ConflictError: If the new email or username is taken.
        """
        user = await self.find_one(user_id, acting)
        fields = {k: v for k, v in fields.items() if v is not None}
        await self._ensure_unique(fields.get("email"), fields.get("username"), current=user)

        password = fields.pop("password", None)
        if password:
            fields["password_hash"] = hash_password(password)

        updated = await self._repo.update_user(user_id, fields)
        if updated is None:
            raise NotFoundError(f"User with ID {user_id} not found")
        logger.info("user_updated", user_id=user_id, fields=sorted(fields))
        return updated

    async def remove(self, user_id: int, acting: Identity) -> None:
        """Delete an account.

        Raises:
            ValidationError: If the acting identity tries to delete itself.
            ConflictError: If the user still has comments or replies.
        """
        await self.find_one(user_id, acting)
        if user_id == acting.id:
            raise ValidationError("You cannot delete your own account")
        if await self._repo.count_user_content(user_id) > 0:
            raise ConflictError("User still has comments or replies")

        await self._repo.delete_user(user_id)
        logger.info("user_deleted", user_id=user_id, deleted_by=acting.id)
