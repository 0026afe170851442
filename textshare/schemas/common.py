"""
Schemas shared by every resource endpoint.
"""
from datetime import datetime
from typing import List, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field

from textshare.core.config import settings


EXPIRES_IN_DESCRIPTION = (
    "Lifetime such as 1h, 24h, 7d or 30d, or 'never' where the resource type allows it. "
    f"Clamped to {settings.MAX_RETENTION_DAYS} days."
)
CUSTOM_SLUG_DESCRIPTION = "Optional custom slug (3-32 letters, digits, '-' or '_')"


def validate_http_url(value: str, max_length: int = settings.MAX_URL_LENGTH) -> str:
    """Accept absolute http(s) URLs only."""
    value = (value or "").strip()
    if not value:
        raise ValueError("URL is required")
    if len(value) > max_length:
        raise ValueError(f"URL exceeds maximum length of {max_length} characters")
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("Only http and https URLs are allowed")
    return value


def blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


# ========================================
# Response Schemas
# ========================================

class CreatedResponse(BaseModel):
    """Slug and shareable URL of a newly created resource."""
    slug: str = Field(..., description="Public identifier")
    url: str = Field(..., description="Shareable URL")
    created_at: datetime
    expires_at: Optional[datetime] = Field(None, description="Expiry instant, null for never")


class AccessInfo(BaseModel):
    """Usage counters reported alongside resource metadata."""
    slug: str
    created_at: datetime
    expires_at: Optional[datetime] = None
    usage_count: int = Field(..., description="Views, downloads or clicks so far")
    max_uses: Optional[int] = Field(None, description="Ceiling, null for unlimited")
    remaining: Optional[int] = Field(None, description="Uses left before the resource is exhausted")
    has_password: bool = False


class PasswordRequest(BaseModel):
    """Body for unlock, download and visit calls."""
    password: Optional[str] = Field(None, max_length=256, description="Password for gated resources")


class ErrorResponse(BaseModel):
    error: str = Field(..., description="Machine-readable error code")
    message: str
    status_code: int
    category: Optional[str] = None
    retry_after: Optional[int] = Field(None, description="Seconds until the quota window resets")


class QuotaCategoryStatus(BaseModel):
    category: str
    limit: int
    remaining: int
    reset_at: datetime
    retry_after: int = 0


class QuotaStatusResponse(BaseModel):
    client_id: str
    enabled: bool
    categories: List[QuotaCategoryStatus]
