"""Comment, reply and view models."""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from pinco.models.base import BaseModel


class Comment(BaseModel):
    """A positioned comment on a page of a site."""

    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    uniqid = Column(String(13), unique=True, nullable=False)
    message = Column(Text, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    site_id = Column(Integer, ForeignKey("sites.id", ondelete="CASCADE"), nullable=False)
    url = Column(String(2048), nullable=False)
    reference = Column(Text)
    details = Column(JSONB)
    resolved = Column(Boolean, nullable=False, default=False, server_default="false")
    screenshot = Column(String(255))

    # Relationships
    user = relationship("User", back_populates="comments")
    site = relationship("Site", back_populates="comments")
    replies = relationship("Reply", back_populates="comment", cascade="all, delete-orphan")
    views = relationship("CommentView", back_populates="comment", cascade="all, delete-orphan")


class Reply(BaseModel):
    """A reply in a comment thread."""

    __tablename__ = "replies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    comment_id = Column(Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    message = Column(Text, nullable=False)

    # Relationships
    comment = relationship("Comment", back_populates="replies")


class CommentView(BaseModel):
    """When a user marked a comment as seen."""

    __tablename__ = "comment_views"

    comment_id = Column(
        Integer, ForeignKey("comments.id", ondelete="CASCADE"), primary_key=True
    )
    user_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), primary_key=True)
    viewed = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    comment = relationship("Comment", back_populates="views")
