"""
SQLAlchemy model for shortened URLs.
"""
from sqlalchemy import Column, Integer, String

from textshare.models.base import Base, ResourceMixin


class ShortUrl(ResourceMixin, Base):
    """
    Shortened URL.
    Maps to the 'short_urls' table.
    """
    __tablename__ = "short_urls"

    original_url = Column(String(2048), nullable=False)
    title = Column(String(200), nullable=True)

    # Access control
    password_hash = Column(String(128), nullable=True)
    max_clicks = Column(Integer, nullable=True)
    clicks = Column(Integer, nullable=False, default=0)
