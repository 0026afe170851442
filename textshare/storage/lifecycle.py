"""
Expiry policy.

Translates a requested lifetime (or its absence) into a concrete
``expires_at`` for a new resource. Every computed expiry is clamped so that
``expires_at <= created_at + MAX_RETENTION``; only kinds that structurally
support it may ask for "never".

Accepted request forms:
- None: the kind's default retention
- timedelta: used as-is, then clamped
- "90m", "1h", "24h", "7d", "2w": duration strings, then clamped
- "never": no expiry for kinds that allow it, the maximum for the rest
- datetime: an absolute instant, converted to a duration from ``now``
"""
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Union

from textshare.core.config import settings
from textshare.core.errors import InvalidExpiry
from textshare.models.registry import ResourceKind

logger = logging.getLogger(__name__)

NEVER = "never"

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([mhdw])\s*$", re.IGNORECASE)
_UNIT_SECONDS = {
    "m": 60,
    "h": 60 * 60,
    "d": 24 * 60 * 60,
    "w": 7 * 24 * 60 * 60,
}
_MAX_SECONDS = timedelta.max.days * 24 * 60 * 60

ExpiryRequest = Union[None, str, timedelta, datetime]


@dataclass(frozen=True)
class RetentionPolicy:
    """
    Retention configuration for one resource kind.

    ``default_days`` of None means the kind does not expire unless asked.
    """
    kind: ResourceKind
    default_days: Optional[int]
    allows_never: bool = False
    description: str = ""


def default_policies(config=settings) -> Dict[ResourceKind, RetentionPolicy]:
    return {
        ResourceKind.PASTE: RetentionPolicy(
            kind=ResourceKind.PASTE,
            default_days=config.DEFAULT_PASTE_EXPIRY_DAYS,
            description="Pastes expire after a week unless asked otherwise",
        ),
        ResourceKind.FILE: RetentionPolicy(
            kind=ResourceKind.FILE,
            default_days=config.DEFAULT_FILE_EXPIRY_DAYS,
            description="Files expire after a week unless asked otherwise",
        ),
        ResourceKind.URL: RetentionPolicy(
            kind=ResourceKind.URL,
            default_days=config.DEFAULT_URL_EXPIRY_DAYS,
            allows_never=True,
            description="Short URLs default to 30 days and may never expire",
        ),
        ResourceKind.QR: RetentionPolicy(
            kind=ResourceKind.QR,
            default_days=config.DEFAULT_QR_EXPIRY_DAYS,
            description="QR records live for the maximum retention window",
        ),
        ResourceKind.LINK_PAGE: RetentionPolicy(
            kind=ResourceKind.LINK_PAGE,
            default_days=None,
            allows_never=True,
            description="Link pages have no expiry; idle pages are removed by a retention rule",
        ),
    }


def parse_duration(value: str) -> timedelta:
    """
    Parse a duration string such as "90m", "24h", "7d" or "2w".

    Raises:
        InvalidExpiry: If the string is malformed or not positive
    """
    match = _DURATION_RE.match(value or "")
    if not match:
        raise InvalidExpiry(f"Invalid expiry '{value}'. Use e.g. 1h, 24h, 7d, 30d or 'never'")
    amount = int(match.group(1))
    if amount <= 0:
        raise InvalidExpiry("Expiry must be a positive duration")
    # Saturate at the largest representable timedelta; callers clamp further
    seconds = min(amount * _UNIT_SECONDS[match.group(2).lower()], _MAX_SECONDS)
    return timedelta(seconds=seconds)


class ExpiryPolicy:
    """Resolve requested lifetimes into clamped expiry timestamps."""

    def __init__(
        self,
        policies: Optional[Dict[ResourceKind, RetentionPolicy]] = None,
        max_retention: timedelta = timedelta(days=settings.MAX_RETENTION_DAYS),
    ):
        self.policies = policies or default_policies()
        self.max_retention = max_retention

    @classmethod
    def from_settings(cls, config=settings) -> "ExpiryPolicy":
        return cls(default_policies(config), timedelta(days=config.MAX_RETENTION_DAYS))

    def resolve(
        self,
        kind,
        requested: ExpiryRequest = None,
        now: Optional[datetime] = None,
    ) -> Optional[datetime]:
        """
        Compute ``expires_at`` for a resource created at ``now``.

        Args:
            kind: Resource kind being created
            requested: Requested lifetime (see module docstring)
            now: Creation instant; the same value must be stored as ``created_at``

        Returns:
            Optional[datetime]: The expiry instant, or None for "never"

        Raises:
            InvalidExpiry: If the request is unparseable or not in the future
        """
        policy = self.policies[ResourceKind(kind)]
        if now is None:
            now = datetime.now(timezone.utc)

        if requested is None or (isinstance(requested, str) and not requested.strip()):
            if policy.default_days is None:
                return None
            return now + self._clamp(timedelta(days=policy.default_days))

        if isinstance(requested, str) and requested.strip().lower() == NEVER:
            if policy.allows_never:
                return None
            return now + self.max_retention

        if isinstance(requested, datetime):
            if requested.tzinfo is None:
                requested = requested.replace(tzinfo=timezone.utc)
            duration = requested - now
        elif isinstance(requested, timedelta):
            duration = requested
        elif isinstance(requested, str):
            duration = parse_duration(requested)
        else:
            raise InvalidExpiry(f"Unsupported expiry value: {requested!r}")

        if duration <= timedelta(0):
            raise InvalidExpiry("Expiry must be in the future")

        clamped = self._clamp(duration)
        if clamped != duration:
            logger.debug(f"Requested expiry for {policy.kind.value} clamped to {self.max_retention}")
        return now + clamped

    def _clamp(self, duration: timedelta) -> timedelta:
        return min(duration, self.max_retention)
