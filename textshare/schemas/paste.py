"""
Pydantic schemas for paste requests and responses.
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, validator

from textshare.core.config import settings
from textshare.schemas.common import (
    AccessInfo,
    CreatedResponse,
    CUSTOM_SLUG_DESCRIPTION,
    EXPIRES_IN_DESCRIPTION,
    blank_to_none,
)


class ContentType(str, Enum):
    """Paste rendering hint."""
    TEXT = "text"
    MARKDOWN = "markdown"
    HTML = "html"


# ========================================
# Request Schemas
# ========================================

class PasteCreate(BaseModel):
    """Schema for creating a paste."""
    title: Optional[str] = Field(
        default=None,
        max_length=settings.MAX_TITLE_LENGTH,
        description="Optional title"
    )
    content: str = Field(
        ...,
        min_length=1,
        max_length=settings.MAX_PASTE_LENGTH,
        description="Paste body"
    )
    content_type: ContentType = Field(
        default=ContentType.TEXT,
        description="How the content should be rendered"
    )
    password: Optional[str] = Field(
        default=None,
        max_length=256,
        description="Protect the paste with a password"
    )
    max_views: Optional[int] = Field(
        default=None,
        ge=1,
        description="Delete after this many views"
    )
    expires_in: Optional[str] = Field(
        default=None,
        max_length=16,
        description=EXPIRES_IN_DESCRIPTION
    )
    expires_at: Optional[datetime] = Field(
        default=None,
        description="Absolute expiry instant (alternative to expires_in)"
    )
    custom_slug: Optional[str] = Field(
        default=None,
        description=CUSTOM_SLUG_DESCRIPTION
    )

    @validator("title", "password", "expires_in", "custom_slug", pre=True)
    def empty_strings_are_absent(cls, v):
        """Treat empty form values as not supplied."""
        return blank_to_none(v) if isinstance(v, str) else v

    @validator("content")
    def content_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Content cannot be empty")
        return v

    @validator("expires_at")
    def single_expiry_form(cls, v, values):
        if v is not None and values.get("expires_in"):
            raise ValueError("Use either expires_in or expires_at, not both")
        return v


# ========================================
# Response Schemas
# ========================================

class PasteCreateResponse(CreatedResponse):
    pass


class PasteMetadata(AccessInfo):
    """Paste metadata without its content."""
    title: Optional[str] = None
    content_type: ContentType = ContentType.TEXT


class PasteResponse(PasteMetadata):
    """Unlocked paste including its content."""
    content: str
