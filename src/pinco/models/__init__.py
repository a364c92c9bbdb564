"""SQLAlchemy models for the application database."""
from pinco.models.base import BaseModel
from pinco.models.comment import Comment, CommentView, Reply
from pinco.models.site import Site
from pinco.models.user import User, UserSite

__all__ = [
    "BaseModel",
    "User",
    "UserSite",
    "Site",
    "Comment",
    "Reply",
    "CommentView",
]
