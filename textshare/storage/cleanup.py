"""
Lifecycle Sweeper

Deletes resources whose lifecycle has ended:
- Expired records (expires_at <= now), for every kind
- Exhausted records (usage counter reached its ceiling)
- Long-idle records matched by a retention rule, independent of expiry

Each kind is swept in its own session. A failure in one kind is logged and
collected in the report; the remaining kinds are still swept. For kinds with
an out-of-band payload the object is deleted first and the row only after
its payload is confirmed gone, so a failed payload delete leaves the row for
the next sweep instead of orphaning the object.

Run once from the command line with ``python -m textshare.storage.cleanup``.
"""
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from textshare.core.config import settings
from textshare.db.repository import ResourceRepository
from textshare.metrics import record_sweep
from textshare.models.registry import KINDS, KindSpec, ResourceKind
from textshare.storage.payloads import PayloadStore

logger = logging.getLogger(__name__)


@dataclass
class RetentionRule:
    """
    Age-based deletion rule for an inline-payload kind.
    """
    name: str
    kind: ResourceKind
    max_age_days: int
    require_unused: bool = False
    enabled: bool = True
    description: str = ""


@dataclass
class SweepResult:
    """
    Outcome of sweeping one resource kind
    """
    kind: str
    expired_deleted: int = 0
    exhausted_deleted: int = 0
    retention_deleted: int = 0
    payloads_deleted: int = 0
    errors: List[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def deleted(self) -> int:
        return self.expired_deleted + self.exhausted_deleted + self.retention_deleted

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind,
            'expired_deleted': self.expired_deleted,
            'exhausted_deleted': self.exhausted_deleted,
            'retention_deleted': self.retention_deleted,
            'payloads_deleted': self.payloads_deleted,
            'deleted': self.deleted,
            'errors': self.errors,
            'duration_seconds': round(self.duration_seconds, 3),
        }


@dataclass
class SweepReport:
    """
    Outcome of a full sweep across all kinds
    """
    started_at: datetime
    results: List[SweepResult]
    duration_seconds: float

    @property
    def total_deleted(self) -> int:
        return sum(r.deleted for r in self.results)

    @property
    def errors(self) -> List[str]:
        return [f"{r.kind}: {error}" for r in self.results for error in r.errors]

    def result_for(self, kind) -> Optional[SweepResult]:
        value = ResourceKind(kind).value
        return next((r for r in self.results if r.kind == value), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'started_at': self.started_at.isoformat(),
            'total_deleted': self.total_deleted,
            'errors': self.errors,
            'duration_seconds': round(self.duration_seconds, 3),
            'results': [r.to_dict() for r in self.results],
        }


def default_retention_rules(config=settings) -> List[RetentionRule]:
    return [
        RetentionRule(
            name="idle-link-pages",
            kind=ResourceKind.LINK_PAGE,
            max_age_days=config.IDLE_RETENTION_DAYS,
            require_unused=True,
            description=f"Remove link pages with zero views older than {config.IDLE_RETENTION_DAYS} days",
        ),
        RetentionRule(
            name="old-qr-codes",
            kind=ResourceKind.QR,
            max_age_days=config.IDLE_RETENTION_DAYS,
            description=f"Remove QR records older than {config.IDLE_RETENTION_DAYS} days",
        ),
    ]


class LifecycleSweeper:
    """
    Periodic garbage collector for dead resources.

    Features:
    - Expired and exhausted deletion for every kind
    - Payload-first deletion for kinds with out-of-band payloads
    - Retention rules for long-idle inline records
    - Per-kind error isolation and a readable report
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        payload_store: Optional[PayloadStore] = None,
        rules: Optional[List[RetentionRule]] = None,
        kinds: Optional[List[ResourceKind]] = None,
    ):
        """
        Args:
            session_factory: Callable returning a new SQLAlchemy session
            payload_store: Store holding out-of-band payloads (files)
            rules: Retention rules; defaults to the configured idle rules
            kinds: Kinds to sweep, in order; defaults to every kind
        """
        self.session_factory = session_factory
        self.payload_store = payload_store
        self.rules = default_retention_rules() if rules is None else rules
        self.kinds = list(kinds or KINDS)

        for rule in self.rules:
            if KINDS[rule.kind].payload_attr:
                raise ValueError(f"Retention rule '{rule.name}' targets a kind with payloads")

        logger.info(
            f"LifecycleSweeper initialized for {len(self.kinds)} kinds "
            f"with {len(self.rules)} retention rules"
        )

    def sweep(self, now: Optional[datetime] = None) -> SweepReport:
        """
        Sweep every configured kind once.

        Args:
            now: Reference instant; defaults to the current UTC time

        Returns:
            SweepReport with per-kind results and collected errors
        """
        now = now or datetime.now(timezone.utc)
        started = time.monotonic()
        logger.info(f"Starting lifecycle sweep at {now.isoformat()}")

        results = []
        for kind in self.kinds:
            kind_started = time.monotonic()
            result = SweepResult(kind=ResourceKind(kind).value)
            try:
                with self.session_factory() as db:
                    self._sweep_kind(ResourceRepository(db), KINDS[kind], now, result)
            except Exception as e:
                logger.exception(f"Sweep of {result.kind} failed")
                result.errors.append(f"Sweep failed: {e}")
            result.duration_seconds = time.monotonic() - kind_started
            results.append(result)

        report = SweepReport(
            started_at=now,
            results=results,
            duration_seconds=time.monotonic() - started,
        )
        logger.info(
            f"Lifecycle sweep completed: {report.total_deleted} deleted, "
            f"{len(report.errors)} errors, {report.duration_seconds:.2f}s"
        )
        record_sweep(report)
        return report

    def _sweep_kind(
        self,
        repo: ResourceRepository,
        spec: KindSpec,
        now: datetime,
        result: SweepResult,
    ) -> None:
        if spec.payload_attr:
            self._sweep_payload_kind(repo, spec, now, result)
        else:
            result.expired_deleted = repo.delete_where_expired(spec.kind, now)
            result.exhausted_deleted = repo.delete_where_exhausted(spec.kind)

        for rule in self.rules:
            if rule.kind != spec.kind:
                continue
            if not rule.enabled:
                logger.info(f"Skipping disabled rule: {rule.name}")
                continue
            cutoff = now - timedelta(days=rule.max_age_days)
            deleted = repo.delete_idle(spec.kind, cutoff, require_unused=rule.require_unused)
            result.retention_deleted += deleted
            logger.debug(f"Retention rule {rule.name}: {deleted} deleted")

        if result.deleted:
            logger.info(
                f"Swept {result.kind}: expired={result.expired_deleted} "
                f"exhausted={result.exhausted_deleted} retention={result.retention_deleted}"
            )

    def _sweep_payload_kind(
        self,
        repo: ResourceRepository,
        spec: KindSpec,
        now: datetime,
        result: SweepResult,
    ) -> None:
        dead = repo.find_dead(spec.kind, now)
        if not dead:
            return
        if self.payload_store is None:
            result.errors.append(f"{len(dead)} dead rows kept: no payload store configured")
            return

        cleared = []
        expired_ids = set()
        for resource in dead:
            ref = spec.payload_ref_of(resource)
            if ref and not self.payload_store.delete(ref):
                result.errors.append(f"Failed to delete payload {ref}; row {resource.slug} kept")
                continue
            if ref:
                result.payloads_deleted += 1
            cleared.append(resource.id)
            if resource.is_expired_at(now):
                expired_ids.add(resource.id)

        deleted = repo.delete_by_ids(spec.kind, cleared)
        expired = min(len(expired_ids), deleted)
        result.expired_deleted += expired
        result.exhausted_deleted += deleted - expired

    def get_sweep_report(self, report: SweepReport) -> str:
        """
        Generate human-readable sweep report

        Args:
            report: SweepReport returned by sweep()

        Returns:
            Formatted report string
        """
        lines = []
        lines.append("=" * 60)
        lines.append("LIFECYCLE SWEEP REPORT")
        lines.append("=" * 60)
        lines.append(f"Started at: {report.started_at.isoformat()}")
        lines.append(f"Total deleted: {report.total_deleted}")
        lines.append(f"Total errors: {len(report.errors)}")
        lines.append(f"Duration: {report.duration_seconds:.2f}s")
        lines.append("=" * 60)

        for result in report.results:
            lines.append(f"\nKind: {result.kind}")
            lines.append(f"  Expired deleted: {result.expired_deleted}")
            lines.append(f"  Exhausted deleted: {result.exhausted_deleted}")
            lines.append(f"  Retention deleted: {result.retention_deleted}")
            if result.payloads_deleted:
                lines.append(f"  Payloads deleted: {result.payloads_deleted}")
            lines.append(f"  Duration: {result.duration_seconds:.2f}s")

            if result.errors:
                lines.append(f"  Errors: {len(result.errors)}")
                for error in result.errors[:5]:  # Show first 5 errors
                    lines.append(f"    - {error}")

        return "\n".join(lines)


def main() -> int:
    from textshare.core.logging import configure_logging
    from textshare.db.session import SessionLocal

    configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    sweeper = LifecycleSweeper(SessionLocal, PayloadStore.from_settings())
    report = sweeper.sweep()
    print(sweeper.get_sweep_report(report))
    return 1 if report.errors else 0


if __name__ == "__main__":
    raise SystemExit(main())
