"""
Rate limiting module with an in-process fixed-window quota ledger.

Each (client_id, category) key owns a counter and a window reset time. The
first request in a window opens it with ``count = 1``; later requests are
admitted while the count stays within the category limit. Once the window
has elapsed it is replaced wholesale, so a client can burst up to twice the
limit across a boundary.

The ledger is sharded: every key hashes to one shard, and each shard is a
lock plus the dict of windows it guards. Read, check and increment for a key
happen inside one critical section on its shard; different shards never
contend.
"""
import logging
import math
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from textshare.core.config import settings
from textshare.core.errors import QuotaExceeded

logger = logging.getLogger(__name__)

GENERAL = "general"
UPLOAD = "upload"
PASTE = "paste"
URL = "url"
CONTACT = "contact"

UNKNOWN_CLIENT = "unknown"


@dataclass(frozen=True)
class QuotaRule:
    """Limit and window length for one quota category."""
    category: str
    limit: int
    window_seconds: int


@dataclass
class QuotaDecision:
    """Outcome of a quota check for one (client, category) key."""
    admitted: bool
    category: str
    limit: int
    remaining: int
    reset_at: datetime
    retry_after: int = 0

    def headers(self) -> Dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": self.reset_at.isoformat(),
        }

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "limit": self.limit,
            "remaining": self.remaining,
            "reset_at": self.reset_at.isoformat(),
            "retry_after": self.retry_after,
        }

    def raise_if_denied(self) -> None:
        if not self.admitted:
            raise QuotaExceeded(
                category=self.category,
                retry_after=self.retry_after,
                limit=self.limit,
                reset_at=self.reset_at,
            )


class _Window:
    __slots__ = ("count", "reset_at")

    def __init__(self, count: int, reset_at: float):
        self.count = count
        self.reset_at = reset_at


def _to_datetime(epoch: float) -> datetime:
    return datetime.fromtimestamp(epoch, tz=timezone.utc)


class QuotaLedger:
    """
    Fixed-window quota counters keyed by (client_id, category).

    Construct one per process (see ``from_settings``) and share it between
    request handlers; tests build isolated instances with their own rules
    and clock.
    """

    def __init__(
        self,
        rules: Iterable[QuotaRule],
        shards: int = 64,
        clock: Callable[[], float] = time.time,
    ):
        self._rules: Dict[str, QuotaRule] = {rule.category: rule for rule in rules}
        if shards < 1:
            raise ValueError("shards must be >= 1")
        self._clock = clock
        self._shards: List[Tuple[threading.Lock, Dict[Tuple[str, str], _Window]]] = [
            (threading.Lock(), {}) for _ in range(shards)
        ]

    @classmethod
    def from_settings(cls, config=settings, clock: Callable[[], float] = time.time) -> "QuotaLedger":
        rules = [
            QuotaRule(category=category, limit=limit, window_seconds=window)
            for category, (limit, window) in config.quota_rules.items()
        ]
        return cls(rules, shards=config.RATE_LIMIT_SHARDS, clock=clock)

    @property
    def categories(self) -> List[str]:
        return list(self._rules)

    def rule(self, category: str) -> QuotaRule:
        try:
            return self._rules[category]
        except KeyError:
            raise ValueError(f"Unknown quota category: {category!r}") from None

    def _shard(self, key: Tuple[str, str]):
        return self._shards[hash(key) % len(self._shards)]

    def check_and_consume(self, client_id: str, category: str) -> QuotaDecision:
        """
        Consume one unit of ``category`` for ``client_id`` if the window allows.

        A denied request does not bump the counter, so a client hammering a
        closed window never extends its own lockout.

        Raises:
            ValueError: If the category has no configured rule
        """
        rule = self.rule(category)
        key = (client_id, category)
        lock, windows = self._shard(key)
        now = self._clock()

        with lock:
            window = windows.get(key)
            if window is None or now >= window.reset_at:
                window = _Window(0, now + rule.window_seconds)
                windows[key] = window
            admitted = window.count < rule.limit
            if admitted:
                window.count += 1
            count, reset_at = window.count, window.reset_at

        decision = QuotaDecision(
            admitted=admitted,
            category=category,
            limit=rule.limit,
            remaining=max(0, rule.limit - count),
            reset_at=_to_datetime(reset_at),
            retry_after=0 if admitted else max(1, math.ceil(reset_at - now)),
        )
        if not admitted:
            logger.info(
                "Quota denied",
                extra={"client_id": client_id, "category": category, "retry_after": decision.retry_after},
            )
        return decision

    def peek(self, client_id: str, category: str) -> QuotaDecision:
        """Report the current state of a key without consuming anything."""
        rule = self.rule(category)
        key = (client_id, category)
        lock, windows = self._shard(key)
        now = self._clock()

        with lock:
            window = windows.get(key)
            if window is None or now >= window.reset_at:
                count, reset_at = 0, now + rule.window_seconds
            else:
                count, reset_at = window.count, window.reset_at

        remaining = max(0, rule.limit - count)
        return QuotaDecision(
            admitted=remaining > 0,
            category=category,
            limit=rule.limit,
            remaining=remaining,
            reset_at=_to_datetime(reset_at),
            retry_after=0 if remaining > 0 else max(1, math.ceil(reset_at - now)),
        )

    def reap(self, now: Optional[float] = None) -> int:
        """
        Remove windows that have already elapsed.

        Shards are locked one at a time, so request handlers only ever wait
        on the shard currently being scanned.

        Returns:
            int: Number of windows removed
        """
        if now is None:
            now = self._clock()
        removed = 0
        for lock, windows in self._shards:
            with lock:
                stale = [key for key, window in windows.items() if now >= window.reset_at]
                for key in stale:
                    del windows[key]
            removed += len(stale)
        if removed:
            logger.debug(f"Quota reaper removed {removed} elapsed window(s)")
        return removed

    def __len__(self) -> int:
        total = 0
        for lock, windows in self._shards:
            with lock:
                total += len(windows)
        return total


def resolve_client_id(request) -> str:
    """
    Derive the quota key for a request.

    Order: first ``X-Forwarded-For`` entry, ``X-Real-IP``, the connection
    peer address. Clients with none of these share the ``"unknown"`` bucket.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host

    return UNKNOWN_CLIENT
