"""Domain events returned by mutating services.

Services do not send email or call out to other systems themselves.
They return these values and the caller hands them to a consumer
(see ``pinco.services.notification``) once the request has completed.
"""

from __future__ import annotations

from dataclasses import dataclass

from pinco.core.auth.types import Site, User
from pinco.core.comments.types import Comment, Reply


@dataclass(frozen=True)
class UserInvited:
    """A user was invited to a site."""

    user: User
    site: Site
    invite_token: str


@dataclass(frozen=True)
class CommentCreated:
    """A comment was posted on a site."""

    comment: Comment
    site: Site
    author: User


@dataclass(frozen=True)
class ReplyCreated:
    """A reply was posted in a comment thread."""

    reply: Reply
    comment: Comment
    site: Site
    author: User


Event = UserInvited | CommentCreated | ReplyCreated
