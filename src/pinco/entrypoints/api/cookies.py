"""Signed session cookie handling."""

import base64
import hashlib
import hmac

from fastapi import Response

from pinco.config import Settings

TOKEN_COOKIE = "token"

_SIGNED_PREFIX = "s:"


def _signature(value: str, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), value.encode("utf-8"), hashlib.sha256).digest()
    return base64.urlsafe_b64encode(digest).decode("utf-8").rstrip("=")


def sign_cookie(value: str, secret: str) -> str:
    """Sign a cookie value as ``s:<value>.<signature>``."""
    return f"{_SIGNED_PREFIX}{value}.{_signature(value, secret)}"


def unsign_cookie(raw: str | None, secret: str) -> str | None:
    """Return the original value of a signed cookie.

    Returns None when the cookie is missing, unsigned, or its signature
    does not match.
    """
    if not raw or not raw.startswith(_SIGNED_PREFIX):
        return None
    value, sep, signature = raw[len(_SIGNED_PREFIX) :].rpartition(".")
    if not sep or not value:
        return None
    if not hmac.compare_digest(signature, _signature(value, secret)):
        return None
    return value


def set_auth_cookie(response: Response, token: str, settings: Settings) -> None:
    """Attach the session token cookie to a response."""
    response.set_cookie(
        key=TOKEN_COOKIE,
        value=sign_cookie(token, settings.auth_secret),
        max_age=settings.auth_token_expires_in,
        httponly=True,
        secure=True,
        samesite="none",
        path="/",
    )


def clear_auth_cookie(response: Response) -> None:
    """Remove the session token cookie."""
    response.delete_cookie(
        key=TOKEN_COOKIE,
        httponly=True,
        secure=True,
        samesite="none",
        path="/",
    )
