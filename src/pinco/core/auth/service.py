"""Auth service for the password, invite and secret login flows."""

import structlog

from pinco.core.auth.invites import InviteService
from pinco.core.auth.jwt import TokenCodec
from pinco.core.auth.password import verify_password
from pinco.core.auth.repository import AuthRepository
from pinco.core.auth.secret_tokens import SecretTokenStore
from pinco.core.auth.types import Site, User, UserRole
from pinco.core.exceptions import AuthenticationError

logger = structlog.get_logger()

# Global roles allowed to log in with a password.
PASSWORD_LOGIN_ROLES = (UserRole.ROOT, UserRole.ADMIN)


class AuthService:
    """Service for authentication operations."""

    def __init__(
        self,
        repo: AuthRepository,
        codec: TokenCodec,
        invites: InviteService,
        secrets: SecretTokenStore,
    ) -> None:
        """Initialize the service.

        Args:
            repo: Auth repository for database operations.
            codec: Codec used to sign session tokens.
            invites: Service validating invite tokens.
            secrets: Store validating secret tokens.
        """
        self._repo = repo
        self._codec = codec
        self._invites = invites
        self._secrets = secrets

    async def validate_user(self, email: str, password: str) -> User | None:
        """Check credentials of an account allowed to use password login."""
        user = await self._repo.get_user_by_email(email)
        if user is None or not user.active:
            return None
        if not verify_password(password, user.password_hash):
            return None
        if not user.has_role(*PASSWORD_LOGIN_ROLES):
            return None
        return user

    async def login(self, email: str, password: str) -> tuple[User, str]:
        """Authenticate with email and password.

        Returns:
            The user and a fresh session token.

        Raises:
            AuthenticationError: If the credentials are invalid.
        """
        user = await self.validate_user(email, password)
        if user is None:
            logger.warning("login_failed", reason="invalid_credentials")
            raise AuthenticationError("Invalid credentials")

        logger.info("user_logged_in", user_id=user.id, method="password")
        return user, self._codec.sign(user)

    async def login_with_invite(self, invite_token: str) -> tuple[User, Site, str]:
        """Accept an invitation and start a session.

        The invite code is consumed, so the same link cannot be used twice.

        Returns:
            The user, the site they were invited to, and a session token.

        Raises:
            AuthenticationError: If the invite token is invalid.
        """
        membership, user = await self._invites.validate(invite_token)
        if not user.active or membership.site is None:
            raise AuthenticationError("Invalid or expired invite token")

        await self._invites.accept(membership)
        logger.info("user_logged_in", user_id=user.id, method="invite", site_id=membership.site_id)
        return user, membership.site, self._codec.sign(user)

    async def login_with_secret(self, secret: str) -> tuple[User, str]:
        """Authenticate with a persistent secret token.

        Raises:
            AuthenticationError: If the secret is unknown or its user inactive.
        """
        user = await self._secrets.validate(secret)
        if user is None:
            logger.warning("login_failed", reason="invalid_secret")
            raise AuthenticationError("Invalid credentials")

        logger.info("user_logged_in", user_id=user.id, method="secret")
        return user, self._codec.sign(user)
