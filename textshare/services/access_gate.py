"""
Access Gate

Decides whether a resource may be read or consumed, and performs the
usage-counter increment for granted accesses.

Checks run in order, each one terminal:
1. NOT_FOUND         - no row with this slug
2. EXPIRED           - expires_at is set and not in the future
3. EXHAUSTED         - a ceiling is set and the counter has reached it
4. INVALID_PASSWORD  - the resource is gated and the password does not match;
                       the counter is left untouched
5. GRANTED           - the counter is incremented by one conditional UPDATE
                       that re-checks expiry and ceiling in the same statement

Outcomes come back as an AccessResult rather than an exception so callers
branch on ``result.outcome``. ``raise_for_outcome()`` converts a refusal into
the matching ShareError for the HTTP layer.
"""
import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from sqlalchemy.orm.attributes import set_committed_value

from textshare.core.errors import Exhausted, Expired, InvalidPassword, NotFound
from textshare.core.security import verify_password
from textshare.db.repository import ResourceRepository
from textshare.metrics import record_access_decision
from textshare.models.base import utcnow
from textshare.models.registry import KindSpec, ResourceKind, spec_for

logger = logging.getLogger(__name__)

KIND_LABELS = {
    ResourceKind.PASTE: "Paste",
    ResourceKind.FILE: "File",
    ResourceKind.URL: "URL",
    ResourceKind.QR: "QR code",
    ResourceKind.LINK_PAGE: "Link page",
}


class AccessOutcome(str, enum.Enum):
    """Access attempt outcome enumeration."""
    GRANTED = "granted"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"
    INVALID_PASSWORD = "invalid_password"


@dataclass
class AccessResult:
    """Result of an access attempt or inspection."""
    outcome: AccessOutcome
    kind: ResourceKind
    slug: str
    resource: Any = None
    usage_count: Optional[int] = None
    ceiling: Optional[int] = None
    password_required: bool = False

    @property
    def granted(self) -> bool:
        return self.outcome == AccessOutcome.GRANTED

    @property
    def gone(self) -> bool:
        """True when the resource will never be served again."""
        return self.outcome in (AccessOutcome.EXPIRED, AccessOutcome.EXHAUSTED)

    @property
    def remaining(self) -> Optional[int]:
        if self.ceiling is None or self.usage_count is None:
            return None
        return max(0, self.ceiling - self.usage_count)

    def raise_for_outcome(self) -> "AccessResult":
        """
        Raise the ShareError matching a refused outcome.

        Returns:
            AccessResult: self, when access was granted
        """
        label = KIND_LABELS[self.kind]
        if self.outcome == AccessOutcome.NOT_FOUND:
            raise NotFound(f"{label} not found")
        if self.outcome == AccessOutcome.EXPIRED:
            raise Expired(f"This {label.lower()} has expired")
        if self.outcome == AccessOutcome.EXHAUSTED:
            raise Exhausted(f"This {label.lower()} has reached its access limit")
        if self.outcome == AccessOutcome.INVALID_PASSWORD:
            raise InvalidPassword("Invalid password")
        return self


class AccessGate:
    """
    Per-resource access state machine.

    The gate holds no state of its own; linearizability per resource comes
    from the conditional UPDATE in ``ResourceRepository.conditional_increment``.
    """

    def __init__(
        self,
        repository: ResourceRepository,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.repository = repository
        self.clock = clock

    def inspect(self, kind, slug: str, now: Optional[datetime] = None) -> AccessResult:
        """
        Classify a resource without consuming an access.

        Runs the not-found, expired and exhausted checks only. A GRANTED
        result here means the resource is alive; ``password_required`` tells
        the caller whether an access will need a password.
        """
        spec = spec_for(kind)
        now = now or self.clock()
        resource = self.repository.find_by_slug(spec.kind, slug)
        result = self._classify(spec, slug, resource, now)
        record_access_decision(spec.kind.value, f"inspect_{result.outcome.value}")
        return result

    def access(
        self,
        kind,
        slug: str,
        password: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AccessResult:
        """
        Attempt to read or consume a resource.

        Args:
            kind: Resource kind
            slug: Public identifier
            password: Plaintext password for gated resources
            now: Reference instant; defaults to the gate's clock

        Returns:
            AccessResult: GRANTED carries the resource and the post-increment
            count; every other outcome leaves the counter untouched
        """
        spec = spec_for(kind)
        now = now or self.clock()
        resource = self.repository.find_by_slug(spec.kind, slug)

        result = self._classify(spec, slug, resource, now)
        if result.granted and result.password_required:
            if not verify_password(password, spec.password_hash_of(resource)):
                result.outcome = AccessOutcome.INVALID_PASSWORD

        if result.granted:
            result = self._consume(spec, slug, resource, now)

        record_access_decision(spec.kind.value, result.outcome.value)
        if not result.granted:
            logger.info(
                "Access refused",
                extra={"kind": spec.kind.value, "slug": slug, "outcome": result.outcome.value},
            )
        return result

    def _classify(self, spec: KindSpec, slug: str, resource, now: datetime) -> AccessResult:
        if resource is None:
            return AccessResult(AccessOutcome.NOT_FOUND, spec.kind, slug)

        result = AccessResult(
            AccessOutcome.GRANTED,
            spec.kind,
            slug,
            resource=resource,
            usage_count=spec.usage(resource),
            ceiling=spec.ceiling_of(resource),
            password_required=bool(spec.password_hash_of(resource)),
        )
        if resource.is_expired_at(now):
            result.outcome = AccessOutcome.EXPIRED
        elif result.ceiling is not None and result.usage_count >= result.ceiling:
            result.outcome = AccessOutcome.EXHAUSTED
        return result

    def _consume(self, spec: KindSpec, slug: str, resource, now: datetime) -> AccessResult:
        count = self.repository.conditional_increment(spec.kind, resource.id, now)

        if count is None:
            # Lost a race between the checks above and the UPDATE; re-read to report why.
            fresh = self.repository.find_by_id(spec.kind, resource.id)
            result = self._classify(spec, slug, fresh, now)
            if result.granted:
                result.outcome = AccessOutcome.EXHAUSTED
            return result

        set_committed_value(resource, spec.counter, count)
        return AccessResult(
            AccessOutcome.GRANTED,
            spec.kind,
            slug,
            resource=resource,
            usage_count=count,
            ceiling=spec.ceiling_of(resource),
            password_required=bool(spec.password_hash_of(resource)),
        )
