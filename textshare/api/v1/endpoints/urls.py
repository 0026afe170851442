"""
Short URL endpoints: create, inspect and visit.
"""
from typing import Optional

from fastapi import APIRouter, Depends, status

from textshare.api.deps import QuotaGuard, get_access_gate, get_content_service
from textshare.api.v1.endpoints.common import access_info
from textshare.core.rate_limit import GENERAL, URL
from textshare.models import ResourceKind
from textshare.schemas.common import PasswordRequest
from textshare.schemas.url import (
    ShortUrlCreate,
    ShortUrlCreateResponse,
    ShortUrlMetadata,
    ShortUrlVisitResponse,
)
from textshare.services.access_gate import AccessGate
from textshare.services.content_service import ContentService, public_url

router = APIRouter()


@router.post(
    "",
    response_model=ShortUrlCreateResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(QuotaGuard(GENERAL, URL))],
)
def create_short_url(
    url_data: ShortUrlCreate,
    service: ContentService = Depends(get_content_service),
):
    """
    Shorten a URL.

    Short URLs default to 30 days; ``expires_in="never"`` keeps them until
    their click limit (if any) is reached.
    """
    short_url = service.create_short_url(url_data)
    return ShortUrlCreateResponse(
        slug=short_url.slug,
        url=public_url(ResourceKind.URL, short_url.slug),
        created_at=short_url.created_at,
        expires_at=short_url.expires_at,
        original_url=short_url.original_url,
    )


@router.get("/{slug}", response_model=ShortUrlMetadata)
def get_short_url_metadata(slug: str, gate: AccessGate = Depends(get_access_gate)):
    """Get short URL metadata without counting a click. The target is not revealed."""
    result = gate.inspect(ResourceKind.URL, slug).raise_for_outcome()
    return ShortUrlMetadata(**access_info(result), title=result.resource.title)


@router.post("/{slug}/visit", response_model=ShortUrlVisitResponse)
def visit_short_url(
    slug: str,
    body: Optional[PasswordRequest] = None,
    gate: AccessGate = Depends(get_access_gate),
):
    """Resolve a short URL to its target, counting one click."""
    password = body.password if body else None
    result = gate.access(ResourceKind.URL, slug, password=password).raise_for_outcome()
    return ShortUrlVisitResponse(
        **access_info(result),
        title=result.resource.title,
        original_url=result.resource.original_url,
    )
