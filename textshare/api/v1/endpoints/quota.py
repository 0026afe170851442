"""
Quota status endpoint.
"""
from typing import Optional

from fastapi import APIRouter, Depends

from textshare.api.deps import get_client_id, get_quota_ledger
from textshare.core.rate_limit import QuotaLedger
from textshare.schemas.common import QuotaCategoryStatus, QuotaStatusResponse

router = APIRouter()


@router.get("", response_model=QuotaStatusResponse)
def get_quota_status(
    client_id: str = Depends(get_client_id),
    ledger: Optional[QuotaLedger] = Depends(get_quota_ledger),
):
    """
    Show the caller's remaining budget in every quota category.

    Does not consume anything.
    """
    if ledger is None:
        return QuotaStatusResponse(client_id=client_id, enabled=False, categories=[])

    categories = []
    for category in ledger.categories:
        decision = ledger.peek(client_id, category)
        categories.append(QuotaCategoryStatus(**decision.to_dict()))
    return QuotaStatusResponse(client_id=client_id, enabled=True, categories=categories)
