"""
SQLAlchemy models for the TextShare application.
"""
from textshare.models.base import Base, ResourceMixin, UTCDateTime, utcnow
from textshare.models.paste import Paste
from textshare.models.file import SharedFile
from textshare.models.short_url import ShortUrl
from textshare.models.qr_code import QRCode
from textshare.models.link_page import LinkPage
from textshare.models.registry import KINDS, KindSpec, ResourceKind, spec_for

__all__ = [
    "Base",
    "ResourceMixin",
    "UTCDateTime",
    "utcnow",
    "Paste",
    "SharedFile",
    "ShortUrl",
    "QRCode",
    "LinkPage",
    "KINDS",
    "KindSpec",
    "ResourceKind",
    "spec_for",
]
