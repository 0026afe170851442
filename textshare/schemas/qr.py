"""
Pydantic schemas for QR code records.
"""
import re
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, validator

from textshare.core.config import settings
from textshare.schemas.common import CreatedResponse, blank_to_none, validate_http_url

_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")


class QRStyle(str, Enum):
    SQUARES = "squares"
    DOTS = "dots"
    ROUNDED = "rounded"


class QRCodeCreate(BaseModel):
    url: str = Field(..., description="Target encoded in the QR code")
    title: Optional[str] = Field(None, max_length=settings.MAX_TITLE_LENGTH)
    qr_style: QRStyle = QRStyle.SQUARES
    qr_color: str = Field("#7c3aed", description="Foreground color (#rrggbb)")
    bg_color: str = Field("#ffffff", description="Background color (#rrggbb)")

    @validator("title", pre=True)
    def empty_title_is_absent(cls, v):
        return blank_to_none(v) if isinstance(v, str) else v

    @validator("url")
    def check_url(cls, v):
        return validate_http_url(v)

    @validator("qr_color", "bg_color")
    def check_color(cls, v):
        if not _HEX_COLOR.match(v):
            raise ValueError("Colors must be #rrggbb hex values")
        return v.lower()


class QRCodeCreateResponse(CreatedResponse):
    pass


class QRCodeResponse(BaseModel):
    slug: str
    url: str
    title: Optional[str] = None
    qr_style: str
    qr_color: str
    bg_color: str
    scans: int
    created_at: datetime
    expires_at: Optional[datetime] = None

    class Config:
        from_attributes = True
