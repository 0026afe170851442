"""
API v1 router aggregation.
"""
from fastapi import APIRouter
from textshare.api.v1.endpoints import pastes, files, urls, qr, link_pages, contact, quota
from textshare.schemas.common import ErrorResponse


def error_responses(*status_codes: int) -> dict:
    """OpenAPI ``responses`` entries documenting the shared error body."""
    return {code: {"model": ErrorResponse} for code in status_codes}


GATED_ERRORS = error_responses(400, 401, 404, 409, 410, 429, 503)
UNGATED_ERRORS = error_responses(400, 404, 409, 410, 429, 503)

api_router = APIRouter()

# Include paste endpoints
api_router.include_router(pastes.router, prefix="/pastes", tags=["pastes"], responses=GATED_ERRORS)

# Include file endpoints
api_router.include_router(files.router, prefix="/files", tags=["files"], responses=GATED_ERRORS)

# Include short URL endpoints
api_router.include_router(urls.router, prefix="/urls", tags=["urls"], responses=GATED_ERRORS)

# Include QR code endpoints
api_router.include_router(qr.router, prefix="/qr", tags=["qr"], responses=UNGATED_ERRORS)

# Include link page endpoints
api_router.include_router(link_pages.router, prefix="/link-pages", tags=["link-pages"], responses=UNGATED_ERRORS)

# Include contact form endpoint
api_router.include_router(contact.router, prefix="/contact", tags=["contact"], responses=error_responses(429))

# Include quota status endpoint
api_router.include_router(quota.router, prefix="/quota", tags=["quota"])

__all__ = ["api_router"]
