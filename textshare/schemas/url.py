"""
Pydantic schemas for URL shortening.
"""
from typing import Optional

from pydantic import BaseModel, Field, validator

from textshare.core.config import settings
from textshare.schemas.common import (
    AccessInfo,
    CreatedResponse,
    CUSTOM_SLUG_DESCRIPTION,
    EXPIRES_IN_DESCRIPTION,
    blank_to_none,
    validate_http_url,
)


class ShortUrlCreate(BaseModel):
    original_url: str = Field(..., description="http(s) URL to shorten")
    title: Optional[str] = Field(None, max_length=settings.MAX_TITLE_LENGTH)
    password: Optional[str] = Field(None, max_length=256)
    max_clicks: Optional[int] = Field(None, ge=1, description="Disable after this many clicks")
    expires_in: Optional[str] = Field(None, max_length=16, description=EXPIRES_IN_DESCRIPTION)
    custom_slug: Optional[str] = Field(None, description=CUSTOM_SLUG_DESCRIPTION)

    @validator("title", "password", "expires_in", "custom_slug", pre=True)
    def empty_strings_are_absent(cls, v):
        return blank_to_none(v) if isinstance(v, str) else v

    @validator("original_url")
    def check_url(cls, v):
        return validate_http_url(v)


class ShortUrlCreateResponse(CreatedResponse):
    original_url: str


class ShortUrlMetadata(AccessInfo):
    title: Optional[str] = None


class ShortUrlVisitResponse(ShortUrlMetadata):
    original_url: str
