"""
Shared FastAPI dependencies.

Process-wide collaborators (quota ledger, payload store) live on
``app.state`` and are created by the application lifespan; per-request
objects (access gate, content service) are built around the request's
database session.
"""
import logging
from typing import Optional

from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session

from textshare.core.rate_limit import QuotaDecision, QuotaLedger, resolve_client_id
from textshare.db import get_db
from textshare.db.repository import ResourceRepository
from textshare.metrics import record_quota_decision
from textshare.services.access_gate import AccessGate
from textshare.services.content_service import ContentService
from textshare.storage.payloads import PayloadStore

logger = logging.getLogger(__name__)


def get_quota_ledger(request: Request) -> Optional[QuotaLedger]:
    """The process ledger, or None when rate limiting is disabled."""
    return getattr(request.app.state, "quota_ledger", None)


def get_payload_store(request: Request) -> Optional[PayloadStore]:
    return getattr(request.app.state, "payload_store", None)


def get_client_id(request: Request) -> str:
    return resolve_client_id(request)


def get_access_gate(db: Session = Depends(get_db)) -> AccessGate:
    return AccessGate(ResourceRepository(db))


def get_content_service(
    db: Session = Depends(get_db),
    payload_store: Optional[PayloadStore] = Depends(get_payload_store),
) -> ContentService:
    return ContentService(db, payload_store=payload_store)


class QuotaGuard:
    """
    Dependency that consumes quota categories in order.

    Stops at the first denied category and raises QuotaExceeded, so later
    categories are not charged for a request that never runs. Admitted
    requests get the ``X-RateLimit-*`` headers of the last category checked.

    Usage:
        @router.post("", dependencies=[Depends(QuotaGuard(GENERAL, PASTE))])
    """

    def __init__(self, *categories: str):
        if not categories:
            raise ValueError("QuotaGuard needs at least one category")
        self.categories = categories

    def __call__(
        self,
        response: Response,
        client_id: str = Depends(get_client_id),
        ledger: Optional[QuotaLedger] = Depends(get_quota_ledger),
    ) -> Optional[QuotaDecision]:
        if ledger is None:
            return None

        decision = None
        for category in self.categories:
            decision = ledger.check_and_consume(client_id, category)
            record_quota_decision(category, decision.admitted)
            decision.raise_if_denied()

        response.headers.update(decision.headers())
        return decision
