"""
Pydantic schemas for bio-link pages.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, validator

from textshare.core.config import settings
from textshare.schemas.common import CreatedResponse, blank_to_none, validate_http_url


class LinkItem(BaseModel):
    title: str = Field(..., min_length=1, max_length=settings.MAX_LINK_TITLE_LENGTH)
    url: str

    @validator("title")
    def strip_title(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Link title is required")
        return v

    @validator("url")
    def check_url(cls, v):
        return validate_http_url(v, max_length=settings.MAX_LINK_URL_LENGTH)


class LinkPageCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=settings.MAX_USERNAME_LENGTH)
    bio: Optional[str] = Field(None, max_length=settings.MAX_BIO_LENGTH)
    links: List[LinkItem] = Field(..., min_length=1, max_length=settings.MAX_LINKS_PER_PAGE)
    custom_slug: Optional[str] = Field(None, description="Optional custom slug")

    @validator("username")
    def strip_username(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Username is required")
        return v

    @validator("bio", "custom_slug", pre=True)
    def empty_strings_are_absent(cls, v):
        return blank_to_none(v) if isinstance(v, str) else v


class LinkPageCreateResponse(CreatedResponse):
    pass


class LinkPageResponse(BaseModel):
    slug: str
    username: str
    bio: Optional[str] = None
    links: List[LinkItem]
    views: int
    created_at: datetime

    class Config:
        from_attributes = True
