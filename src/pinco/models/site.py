"""Site model for multi-tenancy."""
from sqlalchemy import Boolean, Column, Integer, String
from sqlalchemy.orm import relationship

from pinco.models.base import BaseModel


class Site(BaseModel):
    """A website that embeds the widget."""

    __tablename__ = "sites"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    license = Column(String(255), nullable=False)
    domain = Column(String(255), unique=True, nullable=False)
    url = Column(String(2048), nullable=False)
    active = Column(Boolean, nullable=False, default=True, server_default="true")

    # Relationships
    users = relationship("UserSite", back_populates="site", cascade="all, delete-orphan")
    comments = relationship("Comment", back_populates="site", cascade="all, delete-orphan")
