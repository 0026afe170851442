"""
SQLAlchemy model for uploaded files.
The bytes live in object storage under ``filename``; the row only holds metadata.
"""
from sqlalchemy import BigInteger, Column, Integer, String

from textshare.models.base import Base, ResourceMixin


class SharedFile(ResourceMixin, Base):
    """
    Uploaded file metadata.
    Maps to the 'files' table.
    """
    __tablename__ = "files"

    # Object storage key, e.g. "files/ab12cd_1700000000000.pdf"
    filename = Column(String(512), nullable=False)
    original_name = Column(String(255), nullable=False)
    mime_type = Column(String(255), nullable=False)
    size_bytes = Column(BigInteger, nullable=False)
    title = Column(String(200), nullable=True)

    # Files uploaded in one request share a bundle slug
    bundle_slug = Column(String(32), nullable=True, index=True)

    # Access control
    password_hash = Column(String(128), nullable=True)
    max_downloads = Column(Integer, nullable=True)
    download_count = Column(Integer, nullable=False, default=0)
