"""
Unit tests for slug allocation.
Tests textshare/services/slug_allocator.py
"""
import random
from unittest.mock import MagicMock

import pytest

from textshare.core.errors import AllocationExhausted, InvalidSlug, SlugTaken
from textshare.models import ResourceKind
from textshare.services.slug_allocator import SlugAllocator


@pytest.fixture
def repository():
    repo = MagicMock()
    repo.exists_by_slug.return_value = False
    return repo


@pytest.fixture
def allocator(repository):
    return SlugAllocator(repository, rng=random.Random(42))


@pytest.mark.unit
class TestRandomSlugs:

    def test_default_length_per_kind(self, allocator):
        assert len(allocator.allocate(ResourceKind.PASTE)) == 6
        assert len(allocator.allocate(ResourceKind.FILE)) == 6
        assert len(allocator.allocate(ResourceKind.URL)) == 6
        assert len(allocator.allocate(ResourceKind.QR)) == 8
        assert len(allocator.allocate(ResourceKind.LINK_PAGE)) == 8

    def test_desired_length(self, allocator):
        assert len(allocator.allocate(ResourceKind.PASTE, desired_length=12)) == 12

    def test_alphabet_is_lowercase_alphanumeric(self, allocator):
        for _ in range(50):
            slug = allocator.allocate(ResourceKind.PASTE)
            assert slug.isalnum()
            assert slug == slug.lower()

    def test_seeded_rng_is_reproducible(self, repository):
        first = SlugAllocator(repository, rng=random.Random(7)).allocate("paste")
        second = SlugAllocator(repository, rng=random.Random(7)).allocate("paste")
        assert first == second

    def test_regenerates_on_collision(self, allocator, repository):
        repository.exists_by_slug.side_effect = [True, True, False]

        slug = allocator.allocate(ResourceKind.PASTE)

        assert repository.exists_by_slug.call_count == 3
        assert repository.exists_by_slug.call_args[0] == (ResourceKind.PASTE, slug)

    def test_exhausted_after_max_attempts(self, repository):
        repository.exists_by_slug.return_value = True
        allocator = SlugAllocator(repository, rng=random.Random(1), max_attempts=4)

        with pytest.raises(AllocationExhausted) as exc_info:
            allocator.allocate(ResourceKind.URL)

        assert exc_info.value.status_code == 503
        assert repository.exists_by_slug.call_count == 4

    def test_default_rng_is_system_random(self, repository):
        import secrets
        assert isinstance(SlugAllocator(repository).rng, secrets.SystemRandom)


@pytest.mark.unit
class TestCustomSlugs:

    def test_custom_slug_used_verbatim(self, allocator):
        assert allocator.allocate(ResourceKind.PASTE, custom_candidate="My-Notes_1") == "My-Notes_1"

    def test_custom_slug_taken(self, allocator, repository):
        repository.exists_by_slug.return_value = True

        with pytest.raises(SlugTaken) as exc_info:
            allocator.allocate(ResourceKind.PASTE, custom_candidate="taken")

        assert exc_info.value.status_code == 409

    def test_custom_slug_checked_once(self, allocator, repository):
        repository.exists_by_slug.return_value = True

        with pytest.raises(SlugTaken):
            allocator.allocate(ResourceKind.URL, custom_candidate="promo")

        repository.exists_by_slug.assert_called_once_with(ResourceKind.URL, "promo")

    @pytest.mark.parametrize("candidate", [
        "ab",
        "x" * 33,
        "has space",
        "slash/slug",
        "dots.not.ok",
        "emoji🙂",
        "",
    ])
    def test_invalid_custom_slugs(self, allocator, candidate):
        with pytest.raises(InvalidSlug) as exc_info:
            allocator.allocate(ResourceKind.PASTE, custom_candidate=candidate)

        assert exc_info.value.status_code == 400

    def test_invalid_slug_never_hits_repository(self, allocator, repository):
        with pytest.raises(InvalidSlug):
            allocator.allocate(ResourceKind.PASTE, custom_candidate="a b")

        repository.exists_by_slug.assert_not_called()
