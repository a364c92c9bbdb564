"""Core domain - business logic independent of web framework and storage."""

from .events import CommentCreated, Event, ReplyCreated, UserInvited
from .exceptions import (
    AccessDeniedError,
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PincoError,
    ValidationError,
)

__all__ = [
    # Events
    "Event",
    "UserInvited",
    "CommentCreated",
    "ReplyCreated",
    # Exceptions
    "PincoError",
    "AuthenticationError",
    "AccessDeniedError",
    "NotFoundError",
    "ConflictError",
    "ValidationError",
]
