"""Persistent secret tokens for link-based login."""

import structlog

from pinco.core.auth.codes import generate_secret_token
from pinco.core.auth.repository import AuthRepository
from pinco.core.auth.types import User

logger = structlog.get_logger()


class SecretTokenStore:
    """Issues, validates and revokes per-user login secrets.

    A secret never expires. Issuing a new one replaces the previous
    secret, so the last writer wins.
    """

    def __init__(self, repo: AuthRepository) -> None:
        """Initialize with auth repository."""
        self._repo = repo

    async def issue(self, user_id: int) -> str:
        """Generate and store a fresh secret for a user."""
        secret = generate_secret_token()
        await self._repo.set_secret_token(user_id, secret)
        logger.info("secret_token_issued", user_id=user_id)
        return secret

    async def validate(self, secret: str) -> User | None:
        """Return the active user owning the secret, if any."""
        if not secret:
            return None
        return await self._repo.get_active_user_by_secret(secret)

    async def revoke(self, user_id: int) -> None:
        """Clear a user's secret."""
        await self._repo.set_secret_token(user_id, None)
        logger.info("secret_token_revoked", user_id=user_id)
