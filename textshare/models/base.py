"""
Declarative base and columns shared by every resource table.
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator

Base = declarative_base()


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    Timestamp stored as naive UTC and loaded back as aware UTC.

    Keeps comparisons consistent between PostgreSQL and SQLite, which drops
    tzinfo on the way out.
    """
    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


class ResourceMixin:
    """
    Columns common to every slug-addressed resource.

    ``created_at`` and ``expires_at`` are written once by the content
    service; a NULL ``expires_at`` means the resource never expires.
    """

    # Primary Key
    id = Column(Integer, primary_key=True, autoincrement=True)

    # Public identifier
    slug = Column(String(32), unique=True, nullable=False, index=True)

    # Lifecycle
    created_at = Column(UTCDateTime, nullable=False, default=utcnow, index=True)
    expires_at = Column(UTCDateTime, nullable=True, index=True)

    def is_expired_at(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now

    def __repr__(self):
        return f"<{type(self).__name__}(id={self.id}, slug={self.slug})>"
