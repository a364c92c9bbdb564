"""Session and invite token creation and validation."""

from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from pinco.core.auth.types import InvitePayload, TokenPayload, User, UserRole
from pinco.core.exceptions import AuthenticationError

ALGORITHM = "HS256"

ACCESS_TOKEN_TYPE = "access"
INVITE_TOKEN_TYPE = "invite"


class TokenCodec:
    """Signs and verifies self-contained bearer tokens.

    Session tokens and invite tokens share the secret but carry a
    ``type`` claim so one can never be replayed as the other.
    """

    def __init__(self, secret: str, expires_in: int, invite_expires_in: int) -> None:
        """Initialize the codec.

        Args:
            secret: Server secret used to sign tokens.
            expires_in: Session token lifetime in seconds.
            invite_expires_in: Invite token lifetime in seconds.
        """
        self._secret = secret
        self.expires_in = expires_in
        self.invite_expires_in = invite_expires_in

    def _encode(self, claims: dict[str, Any], lifetime: int) -> str:
        now = datetime.now(UTC)
        payload = {
            **claims,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=lifetime)).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def _decode(self, token: str, token_type: str) -> dict[str, Any]:
        try:
            payload: dict[str, Any] = jwt.decode(token, self._secret, algorithms=[ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token has expired") from None
        except jwt.InvalidTokenError as e:
            raise AuthenticationError(f"Invalid token: {e}") from None

        if payload.get("type") != token_type:
            raise AuthenticationError("Invalid token: wrong token type")
        return payload

    def sign(self, user: User) -> str:
        """Create a session token for a user.

        Args:
            user: The identity to encode.

        Returns:
            Encoded JWT string.
        """
        claims = {
            "sub": str(user.id),
            "email": user.email,
            "roles": [role.value for role in user.roles],
            "type": ACCESS_TOKEN_TYPE,
        }
        return self._encode(claims, self.expires_in)

    def verify(self, token: str) -> TokenPayload:
        """Decode and validate a session token.

        Args:
            token: Encoded JWT string.

        Returns:
            Decoded payload with the subject coerced to an integer id.

        Raises:
            AuthenticationError: If the token is forged, expired or lacks
                a numeric subject.
        """
        payload = self._decode(token, ACCESS_TOKEN_TYPE)
        try:
            user_id = int(payload["sub"])
        except (KeyError, TypeError, ValueError):
            raise AuthenticationError("Invalid token: missing user id") from None

        try:
            roles = [UserRole(role) for role in payload.get("roles") or []]
        except ValueError:
            raise AuthenticationError("Invalid token: unknown role") from None

        return TokenPayload(
            sub=user_id,
            email=str(payload.get("email", "")),
            roles=roles,
            exp=payload["exp"],
            iat=payload["iat"],
        )

    def sign_invite(self, user_id: int, site_id: int, invite_code: str) -> str:
        """Create an invite token bound to a membership's invite code."""
        claims = {
            "user_id": user_id,
            "site_id": site_id,
            "invite_code": invite_code,
            "type": INVITE_TOKEN_TYPE,
        }
        return self._encode(claims, self.invite_expires_in)

    def verify_invite(self, token: str) -> InvitePayload:
        """Decode and validate an invite token's signature and expiry.

        The caller still has to check the code against the stored
        membership, since codes rotate server-side.
        """
        payload = self._decode(token, INVITE_TOKEN_TYPE)
        try:
            return InvitePayload(
                user_id=int(payload["user_id"]),
                site_id=int(payload["site_id"]),
                invite_code=str(payload["invite_code"]),
                exp=payload["exp"],
                iat=payload["iat"],
            )
        except (KeyError, TypeError, ValueError):
            raise AuthenticationError("Invalid invite token") from None
