"""Comment domain types."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from pinco.core.auth.types import User

# System message stored as a reply when a comment gets resolved.
RESOLVED_MESSAGE = "{{{resolved}}}"

COMMENT_ANCHOR_PREFIX = "c-"


class CommentDetails(BaseModel):
    """Viewport and environment captured when the comment was placed."""

    vh: float | None = None
    vw: float | None = None
    vx: float | None = None
    vy: float | None = None
    env: str | None = None


class Reply(BaseModel):
    """A reply in a comment thread."""

    id: int
    comment_id: int
    user_id: int
    message: str
    created: datetime
    updated: datetime
    user: User | None = None


class Comment(BaseModel):
    """A positioned comment on a page of a site."""

    id: int
    uniqid: str
    message: str
    user_id: int
    site_id: int
    url: str
    reference: str | None = None
    details: CommentDetails | None = None
    resolved: bool = False
    screenshot: str | None = None
    created: datetime
    updated: datetime
    user: User | None = None
    replies: list[Reply] = []
    viewed: datetime | None = None

    @property
    def anchor(self) -> str:
        """Fragment identifier of the comment on its page."""
        return f"{COMMENT_ANCHOR_PREFIX}{self.uniqid}"


class CommentView(BaseModel):
    """When a user last marked a comment as seen."""

    comment_id: int
    user_id: int
    viewed: datetime
