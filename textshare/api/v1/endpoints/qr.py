"""
QR code endpoints.
"""
from fastapi import APIRouter, Depends, status

from textshare.api.deps import QuotaGuard, get_access_gate, get_content_service
from textshare.core.rate_limit import GENERAL
from textshare.models import ResourceKind
from textshare.schemas.qr import QRCodeCreate, QRCodeCreateResponse, QRCodeResponse
from textshare.services.access_gate import AccessGate
from textshare.services.content_service import ContentService, public_url

router = APIRouter()


@router.post(
    "",
    response_model=QRCodeCreateResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(QuotaGuard(GENERAL))],
)
def create_qr_code(
    qr_data: QRCodeCreate,
    service: ContentService = Depends(get_content_service),
):
    """Store a QR code record; the image itself is rendered by the client."""
    qr_code = service.create_qr_code(qr_data)
    return QRCodeCreateResponse(
        slug=qr_code.slug,
        url=public_url(ResourceKind.QR, qr_code.slug),
        created_at=qr_code.created_at,
        expires_at=qr_code.expires_at,
    )


@router.get("/{slug}", response_model=QRCodeResponse)
def scan_qr_code(slug: str, gate: AccessGate = Depends(get_access_gate)):
    """Fetch a QR code record, counting one scan."""
    result = gate.access(ResourceKind.QR, slug).raise_for_outcome()
    return QRCodeResponse.model_validate(result.resource)
