"""User and membership models."""
from sqlalchemy import ARRAY, Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from pinco.models.base import BaseModel


class User(BaseModel):
    """A registered account."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    username = Column(String(100), unique=True, nullable=False)
    password_hash = Column(String(255))
    active = Column(Boolean, nullable=False, default=True, server_default="true")
    roles = Column(ARRAY(String(20)), nullable=False, default=list, server_default="{}")
    secret_token = Column(String(24), unique=True)
    secret_expires = Column(DateTime(timezone=True))

    # Relationships
    sites = relationship("UserSite", back_populates="user", cascade="all, delete-orphan")
    comments = relationship("Comment", back_populates="user", passive_deletes="all")


class UserSite(BaseModel):
    """Membership of a user in a site. A set invite code marks it pending."""

    __tablename__ = "user_sites"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    site_id = Column(Integer, ForeignKey("sites.id", ondelete="CASCADE"), primary_key=True)
    roles = Column(ARRAY(String(20)), nullable=False, default=list, server_default="{}")
    invite_code = Column(String(13))

    # Relationships
    user = relationship("User", back_populates="sites")
    site = relationship("Site", back_populates="users")
