"""
Slug Allocator

Hands out short public identifiers for new resources.

Custom slugs are validated against a restricted alphabet and checked once;
they are never altered. Random slugs are drawn from lowercase letters and
digits and re-drawn on collision a bounded number of times.

The existence check is an optimistic pre-check only: the unique constraint
on the slug column is what finally rejects a duplicate, and the content
service reacts to that signal.
"""
import logging
import re
import secrets
from random import Random
from typing import Optional

from textshare.core.config import settings
from textshare.core.errors import AllocationExhausted, InvalidSlug, SlugTaken
from textshare.db.repository import ResourceRepository
from textshare.metrics import record_slug_allocation, record_slug_failure
from textshare.models.registry import spec_for

logger = logging.getLogger(__name__)


class SlugAllocator:
    """
    Allocate collision-checked slugs per resource kind.

    Features:
    - Cryptographically random candidates (``secrets.SystemRandom``)
    - Per-kind default length (6, or 8 for QR and link pages)
    - Bounded regeneration on collision
    - Strict validation of caller-chosen slugs
    """

    def __init__(
        self,
        repository: ResourceRepository,
        rng: Optional[Random] = None,
        alphabet: str = settings.SLUG_ALPHABET,
        max_attempts: int = settings.SLUG_MAX_ATTEMPTS,
        custom_pattern: str = settings.SLUG_CUSTOM_PATTERN,
    ):
        """
        Args:
            repository: Repository used for existence checks
            rng: Random source; tests inject a seeded ``random.Random``
            alphabet: Characters random slugs are drawn from
            max_attempts: Random candidates tried before giving up
            custom_pattern: Regex a caller-chosen slug must match
        """
        self.repository = repository
        self.rng = rng or secrets.SystemRandom()
        self.alphabet = alphabet
        self.max_attempts = max_attempts
        self._custom_re = re.compile(custom_pattern)

    def generate(self, length: int) -> str:
        return "".join(self.rng.choice(self.alphabet) for _ in range(length))

    def validate_custom(self, candidate: str) -> str:
        if not isinstance(candidate, str) or not self._custom_re.match(candidate):
            raise InvalidSlug(
                "Custom slug must be 3-32 characters of letters, digits, '-' or '_'"
            )
        return candidate

    def allocate(
        self,
        kind,
        desired_length: Optional[int] = None,
        custom_candidate: Optional[str] = None,
    ) -> str:
        """
        Obtain a slug that is free for ``kind`` at the time of the check.

        Args:
            kind: Resource kind the slug is for
            desired_length: Length of a random slug; defaults to the kind's length
            custom_candidate: Caller-chosen slug, used verbatim if free

        Returns:
            str: The allocated slug

        Raises:
            InvalidSlug: The custom candidate is malformed
            SlugTaken: The custom candidate is already in use
            AllocationExhausted: Every random candidate collided
        """
        spec = spec_for(kind)

        if custom_candidate is not None:
            slug = self.validate_custom(custom_candidate)
            if self.repository.exists_by_slug(spec.kind, slug):
                record_slug_failure(spec.kind.value, "taken")
                raise SlugTaken(f"Slug '{slug}' is already taken")
            return slug

        length = desired_length or spec.slug_length
        for attempt in range(1, self.max_attempts + 1):
            slug = self.generate(length)
            if not self.repository.exists_by_slug(spec.kind, slug):
                record_slug_allocation(spec.kind.value, attempt)
                return slug
            logger.debug(f"Slug collision for {spec.kind.value} on attempt {attempt}")

        record_slug_failure(spec.kind.value, "exhausted")
        logger.warning(
            f"Slug allocation exhausted for {spec.kind.value} after {self.max_attempts} attempts"
        )
        raise AllocationExhausted("Could not allocate a unique slug, please retry")
