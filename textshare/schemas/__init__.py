"""
Pydantic schemas for request/response validation.
"""
from textshare.schemas.common import (
    AccessInfo,
    CreatedResponse,
    ErrorResponse,
    PasswordRequest,
    QuotaCategoryStatus,
    QuotaStatusResponse,
)
from textshare.schemas.paste import (
    ContentType,
    PasteCreate,
    PasteCreateResponse,
    PasteMetadata,
    PasteResponse,
)
from textshare.schemas.file import (
    FileCreated,
    FileDetailResponse,
    FileMetadata,
    FileUploadOptions,
    FileUploadResponse,
    UploadedFile,
)
from textshare.schemas.url import (
    ShortUrlCreate,
    ShortUrlCreateResponse,
    ShortUrlMetadata,
    ShortUrlVisitResponse,
)
from textshare.schemas.qr import QRCodeCreate, QRCodeCreateResponse, QRCodeResponse, QRStyle
from textshare.schemas.link_page import (
    LinkItem,
    LinkPageCreate,
    LinkPageCreateResponse,
    LinkPageResponse,
)
from textshare.schemas.contact import ContactRequest, ContactResponse

__all__ = [
    # Common
    "AccessInfo",
    "CreatedResponse",
    "ErrorResponse",
    "PasswordRequest",
    "QuotaCategoryStatus",
    "QuotaStatusResponse",
    # Pastes
    "ContentType",
    "PasteCreate",
    "PasteCreateResponse",
    "PasteMetadata",
    "PasteResponse",
    # Files
    "FileCreated",
    "FileDetailResponse",
    "FileMetadata",
    "FileUploadOptions",
    "FileUploadResponse",
    "UploadedFile",
    # URLs
    "ShortUrlCreate",
    "ShortUrlCreateResponse",
    "ShortUrlMetadata",
    "ShortUrlVisitResponse",
    # QR codes
    "QRCodeCreate",
    "QRCodeCreateResponse",
    "QRCodeResponse",
    "QRStyle",
    # Link pages
    "LinkItem",
    "LinkPageCreate",
    "LinkPageCreateResponse",
    "LinkPageResponse",
    # Contact
    "ContactRequest",
    "ContactResponse",
]
