"""
Bio-link page endpoints.
"""
from fastapi import APIRouter, Depends, status

from textshare.api.deps import QuotaGuard, get_access_gate, get_content_service
from textshare.core.rate_limit import GENERAL
from textshare.models import ResourceKind
from textshare.schemas.link_page import LinkPageCreate, LinkPageCreateResponse, LinkPageResponse
from textshare.services.access_gate import AccessGate
from textshare.services.content_service import ContentService, public_url

router = APIRouter()


@router.post(
    "",
    response_model=LinkPageCreateResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(QuotaGuard(GENERAL))],
)
def create_link_page(
    page_data: LinkPageCreate,
    service: ContentService = Depends(get_content_service),
):
    """
    Create a link page.

    - **username**: Display name (max 30 characters)
    - **bio**: Optional short bio
    - **links**: 1 to 10 links, each with a title and an http(s) URL
    """
    page = service.create_link_page(page_data)
    return LinkPageCreateResponse(
        slug=page.slug,
        url=public_url(ResourceKind.LINK_PAGE, page.slug),
        created_at=page.created_at,
        expires_at=page.expires_at,
    )


@router.get("/{slug}", response_model=LinkPageResponse)
def view_link_page(slug: str, gate: AccessGate = Depends(get_access_gate)):
    """Fetch a link page, counting one view."""
    result = gate.access(ResourceKind.LINK_PAGE, slug).raise_for_outcome()
    return LinkPageResponse.model_validate(result.resource)
