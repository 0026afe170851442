"""
Contact form endpoint.
"""
import logging

from fastapi import APIRouter, Depends

from textshare.api.deps import QuotaGuard, get_client_id
from textshare.core.rate_limit import CONTACT
from textshare.schemas.contact import ContactRequest, ContactResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=ContactResponse,
    dependencies=[Depends(QuotaGuard(CONTACT))],
)
def submit_contact(
    message: ContactRequest,
    client_id: str = Depends(get_client_id),
):
    """Accept a contact form submission. Messages are logged for the operators."""
    logger.info(
        "Contact form submission",
        extra={
            "client_id": client_id,
            "contact_name": message.name,
            "contact_email": message.email,
            "subject": message.subject,
            "message_length": len(message.message),
        },
    )
    return ContactResponse()
