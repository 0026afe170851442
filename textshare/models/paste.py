"""
SQLAlchemy model for text pastes.
"""
from sqlalchemy import Column, Integer, String, Text

from textshare.models.base import Base, ResourceMixin


class Paste(ResourceMixin, Base):
    """
    Inline text paste.
    Maps to the 'pastes' table.
    """
    __tablename__ = "pastes"

    title = Column(String(200), nullable=True)
    content = Column(Text, nullable=False)
    content_type = Column(String(20), nullable=False, default="text")  # text | markdown | html

    # Access control
    password_hash = Column(String(128), nullable=True)
    max_views = Column(Integer, nullable=True)
    view_count = Column(Integer, nullable=False, default=0)
