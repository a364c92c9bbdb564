"""Comment domain: comments, replies and view state."""

from pinco.core.comments.repository import CommentRepository
from pinco.core.comments.screenshots import ScreenshotStorage
from pinco.core.comments.types import Comment, CommentDetails, CommentView, Reply

__all__ = [
    "Comment",
    "CommentDetails",
    "CommentView",
    "Reply",
    "CommentRepository",
    "ScreenshotStorage",
]
