"""Site memberships and invitations."""

import structlog

from pinco.core.auth.codes import generate_invite_code
from pinco.core.auth.jwt import TokenCodec
from pinco.core.auth.repository import AuthRepository
from pinco.core.auth.types import SiteRole, User, UserSite
from pinco.core.events import UserInvited
from pinco.core.exceptions import AuthenticationError, ConflictError, NotFoundError

logger = structlog.get_logger()


class InviteService:
    """Connects users to sites and manages their invitations.

    Every membership can carry one invite code. An invite token embeds
    the code and is valid only while the code still matches the stored
    membership, so generating a new code or revoking the invite
    invalidates every token issued before.
    """

    def __init__(self, repo: AuthRepository, codec: TokenCodec) -> None:
        """Initialize the service.

        Args:
            repo: Auth repository for database operations.
            codec: Codec used to sign invite tokens.
        """
        self._repo = repo
        self._codec = codec

    async def generate_code(self, user_id: int, site_id: int) -> str:
        """Generate and store a new invite code, replacing any previous one."""
        code = generate_invite_code()
        await self._repo.set_invite_code(user_id, site_id, code)
        return code

    async def get_code(self, user_id: int, site_id: int) -> str | None:
        """Return the pending invite code of a membership, if any."""
        membership = await self._repo.get_membership(user_id, site_id)
        return membership.invite_code if membership else None

    async def issue_token(self, user_id: int, site_id: int) -> str:
        """Sign an invite token, reusing the pending code when there is one."""
        code = await self.get_code(user_id, site_id)
        if code is None:
            code = await self.generate_code(user_id, site_id)
        return self._codec.sign_invite(user_id, site_id, code)

    async def validate(self, token: str) -> tuple[UserSite, User]:
        """Validate an invite token against the live membership.

        Returns:
            The membership (with its site) and the invited user.

        Raises:
            AuthenticationError: If the token is forged, expired, or its
                code no longer matches the membership.
        """
        payload = self._codec.verify_invite(token)

        membership = await self._repo.get_membership_by_invite(
            payload.user_id, payload.site_id, payload.invite_code
        )
        user = await self._repo.get_user_by_id(payload.user_id)
        if membership is None or user is None:
            logger.warning(
                "invite_token_rejected", user_id=payload.user_id, site_id=payload.site_id
            )
            raise AuthenticationError("Invalid invite token")

        if membership.site is None:
            membership.site = await self._repo.get_site_by_id(payload.site_id)
        return membership, user

    async def revoke(self, user_id: int, site_id: int) -> None:
        """Clear the invite code of a membership. Idempotent."""
        await self._repo.set_invite_code(user_id, site_id, None)
        logger.info("invite_revoked", user_id=user_id, site_id=site_id)

    async def accept(self, membership: UserSite) -> None:
        """Consume an invitation, turning the membership active."""
        await self._repo.set_invite_code(membership.user_id, membership.site_id, None)
        logger.info("invite_accepted", user_id=membership.user_id, site_id=membership.site_id)

    async def invite(self, user_id: int, site_id: int) -> UserInvited:
        """Build the invitation event for a membership.

        Raises:
            NotFoundError: If the user, site or membership does not exist.
        """
        user = await self._repo.get_user_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User with ID {user_id} not found")
        site = await self._repo.get_site_by_id(site_id)
        if site is None:
            raise NotFoundError(f"Site with ID {site_id} not found")
        if await self._repo.get_membership(user_id, site_id) is None:
            raise NotFoundError("User is not connected to this site")

        token = await self.issue_token(user_id, site_id)
        logger.info("user_invited", user_id=user_id, site_id=site_id)
        return UserInvited(user=user, site=site, invite_token=token)

    async def add_user_to_site(
        self,
        user_id: int,
        site_id: int,
        roles: list[SiteRole],
        invite: bool = False,
    ) -> tuple[UserSite, list[UserInvited]]:
        """Connect a user to a site, optionally inviting them.

        Returns:
            The new membership and the events to dispatch.

        Raises:
            NotFoundError: If the user or site does not exist.
            ConflictError: If the user is already connected to the site.
        """
        if await self._repo.get_user_by_id(user_id) is None:
            raise NotFoundError(f"User with ID {user_id} not found")
        if await self._repo.get_site_by_id(site_id) is None:
            raise NotFoundError(f"Site with ID {site_id} not found")
        if await self._repo.get_membership(user_id, site_id) is not None:
            raise ConflictError("User already has access to this site")

        code = generate_invite_code() if invite else None
        membership = await self._repo.create_membership(user_id, site_id, roles, code)
        logger.info("user_added_to_site", user_id=user_id, site_id=site_id, invite=invite)

        events: list[UserInvited] = []
        if invite:
            events.append(await self.invite(user_id, site_id))
        return membership, events

    async def remove_user_from_site(self, user_id: int, site_id: int) -> None:
        """Disconnect a user from a site."""
        await self._repo.delete_membership(user_id, site_id)
        logger.info("user_removed_from_site", user_id=user_id, site_id=site_id)

    async def update_roles(self, user_id: int, site_id: int, roles: list[SiteRole]) -> UserSite:
        """Replace the site roles of a membership.

        Raises:
            NotFoundError: If the membership does not exist.
        """
        membership = await self._repo.update_membership_roles(user_id, site_id, roles)
        if membership is None:
            raise NotFoundError("User is not connected to this site")
        return membership
