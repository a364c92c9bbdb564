"""Domain-specific exceptions.

All exceptions raised by the pinco core inherit from PincoError. Each
carries the HTTP status code the API layer answers with, so a single
exception handler can translate any of them into a response.
"""

from __future__ import annotations


class PincoError(Exception):
    """Base exception for all pinco errors."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        """Initialize with an optional client-facing message."""
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationError(PincoError):
    """The caller could not be identified.

    Raised for a missing or invalid session cookie, a forged or expired
    token, an invalid invite token, and bad login credentials.
    """

    status_code = 401
    default_message = "Unauthorized"


class AccessDeniedError(PincoError):
    """The caller is known but may not act on this tenant.

    Raised by the origin gate when the request carries no origin, the
    origin maps to no active site, or the caller is not a collaborator
    of that site.
    """

    status_code = 403
    default_message = "Forbidden resource"


class NotFoundError(PincoError):
    """A referenced user, site, membership, comment or reply does not exist."""

    status_code = 404
    default_message = "Not found"


class ConflictError(PincoError):
    """A uniqueness rule would be violated.

    Duplicate email, username or site domain, or a user that is already
    connected to a site.
    """

    status_code = 409
    default_message = "Conflict"


class ValidationError(PincoError):
    """The request is well formed but not allowed.

    For example deleting your own account or editing a comment you do
    not own.
    """

    status_code = 400
    default_message = "Bad request"
