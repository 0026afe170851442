"""
Error taxonomy for the access and lifecycle engine.

Every failure the engine can surface to a caller is a ShareError subclass
carrying a stable machine-readable ``code`` and the HTTP status the API layer
maps it to. Callers branch on the exception type (or ``code``), never on
message text.
"""
from datetime import datetime
from typing import Any, Dict, Optional


class ShareError(Exception):
    """Base class for engine errors surfaced to API callers."""

    code = "share_error"
    status_code = 500

    def __init__(self, message: str, *, code: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "status_code": self.status_code,
        }

    def headers(self) -> Optional[Dict[str, str]]:
        return None


# ----------------------------------------------------------------------------
# Slug allocation
# ----------------------------------------------------------------------------

class SlugTaken(ShareError):
    code = "slug_taken"
    status_code = 409


class InvalidSlug(ShareError):
    code = "invalid_slug"
    status_code = 400


class AllocationExhausted(ShareError):
    code = "allocation_exhausted"
    status_code = 503


class SlugCollision(Exception):
    """
    Raised by the repository when an insert violates the slug unique
    constraint. Internal: the content service turns it into SlugTaken or a
    fresh allocation.
    """

    def __init__(self, kind: str, slug: str):
        super().__init__(f"Slug '{slug}' already exists for {kind}")
        self.kind = kind
        self.slug = slug


# ----------------------------------------------------------------------------
# Quota
# ----------------------------------------------------------------------------

class QuotaExceeded(ShareError):
    code = "quota_exceeded"
    status_code = 429

    def __init__(
        self,
        category: str,
        retry_after: int,
        limit: int,
        reset_at: datetime,
        message: Optional[str] = None,
    ):
        super().__init__(
            message or f"Rate limit exceeded for '{category}'. Try again in {retry_after}s."
        )
        self.category = category
        self.retry_after = retry_after
        self.limit = limit
        self.reset_at = reset_at

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["category"] = self.category
        payload["retry_after"] = self.retry_after
        return payload

    def headers(self) -> Dict[str, str]:
        return {
            "Retry-After": str(self.retry_after),
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": self.reset_at.isoformat(),
        }


# ----------------------------------------------------------------------------
# Access gate outcomes
# ----------------------------------------------------------------------------

class NotFound(ShareError):
    code = "not_found"
    status_code = 404


class Expired(ShareError):
    code = "expired"
    status_code = 410


class Exhausted(ShareError):
    code = "exhausted"
    status_code = 410


class InvalidPassword(ShareError):
    code = "invalid_password"
    status_code = 401


# ----------------------------------------------------------------------------
# Input and infrastructure
# ----------------------------------------------------------------------------

class InvalidExpiry(ShareError):
    code = "invalid_expiry"
    status_code = 400


class InvalidUpload(ShareError):
    code = "invalid_upload"
    status_code = 400


class PersistenceUnavailable(ShareError):
    code = "persistence_unavailable"
    status_code = 503


class PayloadUnavailable(ShareError):
    code = "payload_unavailable"
    status_code = 503
