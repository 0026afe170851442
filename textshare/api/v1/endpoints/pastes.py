"""
Paste endpoints: create, inspect, unlock and raw download.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import PlainTextResponse

from textshare.api.deps import QuotaGuard, get_access_gate, get_content_service
from textshare.api.v1.endpoints.common import access_info
from textshare.core.rate_limit import GENERAL, PASTE
from textshare.models import ResourceKind
from textshare.schemas.common import PasswordRequest
from textshare.schemas.paste import PasteCreate, PasteCreateResponse, PasteMetadata, PasteResponse
from textshare.services.access_gate import AccessGate, AccessResult
from textshare.services.content_service import ContentService, public_url

router = APIRouter()


def _metadata(result: AccessResult) -> dict:
    paste = result.resource
    return dict(access_info(result), title=paste.title, content_type=paste.content_type)


@router.post(
    "",
    response_model=PasteCreateResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(QuotaGuard(GENERAL, PASTE))],
)
def create_paste(
    paste_data: PasteCreate,
    service: ContentService = Depends(get_content_service),
):
    """
    Create a new paste.

    - **content**: Paste body (required)
    - **password**: Optional password; readers must supply it to unlock
    - **max_views**: Optional view limit, after which the paste is gone
    - **expires_in** / **expires_at**: Lifetime, clamped to the retention maximum
    - **custom_slug**: Optional custom identifier
    """
    paste = service.create_paste(paste_data)
    return PasteCreateResponse(
        slug=paste.slug,
        url=public_url(ResourceKind.PASTE, paste.slug),
        created_at=paste.created_at,
        expires_at=paste.expires_at,
    )


@router.get("/{slug}", response_model=PasteMetadata)
def get_paste_metadata(slug: str, gate: AccessGate = Depends(get_access_gate)):
    """
    Get paste metadata without consuming a view.

    Returns 404 for unknown slugs and 410 for expired or exhausted pastes.
    """
    result = gate.inspect(ResourceKind.PASTE, slug).raise_for_outcome()
    return PasteMetadata(**_metadata(result))


@router.post("/{slug}/unlock", response_model=PasteResponse)
def unlock_paste(
    slug: str,
    body: Optional[PasswordRequest] = None,
    gate: AccessGate = Depends(get_access_gate),
):
    """
    Read a paste, consuming one view.

    Wrong passwords return 401 and do not count as a view.
    """
    password = body.password if body else None
    result = gate.access(ResourceKind.PASTE, slug, password=password).raise_for_outcome()
    return PasteResponse(**_metadata(result), content=result.resource.content)


@router.get("/{slug}/raw", response_class=PlainTextResponse)
def get_raw_paste(
    slug: str,
    password: Optional[str] = Query(default=None, description="Password for protected pastes"),
    gate: AccessGate = Depends(get_access_gate),
):
    """Read a paste as plain text, consuming one view."""
    result = gate.access(ResourceKind.PASTE, slug, password=password).raise_for_outcome()
    return PlainTextResponse(
        result.resource.content,
        headers={"X-View-Count": str(result.usage_count)},
    )
