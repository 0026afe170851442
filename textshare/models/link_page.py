"""
SQLAlchemy model for bio-link pages.
"""
from sqlalchemy import JSON, Column, Integer, String
from sqlalchemy.dialects.postgresql import JSONB

from textshare.models.base import Base, ResourceMixin


class LinkPage(ResourceMixin, Base):
    """
    A username, short bio and an ordered list of links.
    Maps to the 'link_pages' table.
    """
    __tablename__ = "link_pages"

    username = Column(String(30), nullable=False)
    bio = Column(String(200), nullable=True)
    links = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False)  # [{"title", "url"}]

    views = Column(Integer, nullable=False, default=0)
