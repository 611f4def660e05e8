"""Tests for slug sequence assignment."""

import asyncio

import pytest

from friendly_slugs.core.config import SluggableOptions
from friendly_slugs.core.errors import (
    BlankSlugError,
    ConflictError,
    ReservedSlugError,
    SequenceAssignmentError,
)
from friendly_slugs.models import Slug
from friendly_slugs.services.sequencing import SequenceAssigner
from friendly_slugs.services.storage import SlugRepository

OPTIONS = SluggableOptions()


class _StaleReadRepository(SlugRepository):
    """Reports an outdated max sequence, as a concurrent writer would cause."""

    def __init__(self, engine, stale_reads: int) -> None:
        super().__init__(engine)
        self.stale_reads = stale_reads
        self.inserts = 0

    async def max_sequence(self, name, scope, sluggable_type):
        if self.stale_reads:
            self.stale_reads -= 1
            return 0
        return await super().max_sequence(name, scope, sluggable_type)

    async def insert(self, slug):
        self.inserts += 1
        return await super().insert(slug)


class _AlwaysConflictingRepository(SlugRepository):
    async def insert(self, slug):
        raise ConflictError(slug.name, None, slug.sluggable_type, slug.sequence)


@pytest.fixture
def assigner(repository) -> SequenceAssigner:
    return SequenceAssigner(repository, max_attempts=5, max_wait=0)


class TestCandidateName:
    """Tests for slug name validation."""

    def test_normalizes_source_text(self):
        assert SequenceAssigner.candidate_name("Test post", OPTIONS) == "test-post"

    @pytest.mark.parametrize("raw", ["", "   ", None, "-.-"])
    def test_blank_names_fail(self, raw):
        """Test text that normalizes to nothing is rejected."""
        with pytest.raises(BlankSlugError):
            SequenceAssigner.candidate_name(raw, OPTIONS)

    def test_reserved_names_fail(self):
        """Test reserved words are rejected after normalization."""
        with pytest.raises(ReservedSlugError) as exc_info:
            SequenceAssigner.candidate_name("New", OPTIONS)
        assert exc_info.value.name == "new"
        assert exc_info.value.record_message("name") == 'Name can not be "New"'

    def test_custom_reserved_words(self):
        options = SluggableOptions(reserved=["admin"])
        assert SequenceAssigner.candidate_name("new", options) == "new"
        with pytest.raises(ReservedSlugError):
            SequenceAssigner.candidate_name("Admin", options)


class TestNewSlugNeeded:
    """Tests for the new-slug decision."""

    def test_no_current_slug(self):
        assert SequenceAssigner.new_slug_needed(None, "test-post", None)

    def test_same_name_and_scope(self):
        current = Slug(name="test-post", sluggable_type="Post", sluggable_id=1)
        assert not SequenceAssigner.new_slug_needed(current, "test-post", None)

    def test_changed_name(self):
        current = Slug(name="test-post", sluggable_type="Post", sluggable_id=1)
        assert SequenceAssigner.new_slug_needed(current, "changed-title", None)

    def test_changed_scope(self):
        current = Slug(name="test-post", scope="es", sluggable_type="Post", sluggable_id=1)
        assert SequenceAssigner.new_slug_needed(current, "test-post", "fr")


class TestAssign:
    """Tests for SequenceAssigner.assign."""

    async def test_first_slug_gets_sequence_one(self, assigner):
        slug = await assigner.assign("Post", 1, "Test post", OPTIONS)
        assert (slug.name, slug.sequence) == ("test-post", 1)
        assert slug.friendly_id == "test-post"

    async def test_duplicate_names_get_increasing_sequences(self, assigner):
        """Test N owners with one name get sequences 1..N."""
        slugs = [await assigner.assign("Post", owner, "Test post", OPTIONS) for owner in (1, 2, 3)]
        assert [s.sequence for s in slugs] == [1, 2, 3]
        assert slugs[1].friendly_id == "test-post--2"

    async def test_unchanged_text_keeps_slug(self, assigner, repository):
        """Test re-assigning the same text is a no-op."""
        first = await assigner.assign("Post", 1, "Test post", OPTIONS)
        again = await assigner.assign("Post", 1, "Test  Post!", OPTIONS)

        assert again.id == first.id
        assert len(await repository.history_for_owner(1, "Post")) == 1

    async def test_changed_text_adds_slug(self, assigner, repository):
        await assigner.assign("Post", 1, "Test post", OPTIONS)
        changed = await assigner.assign("Post", 1, "Changed title", OPTIONS)

        assert changed.name == "changed-title"
        assert len(await repository.history_for_owner(1, "Post")) == 2

    async def test_reverting_reuses_old_slug(self, assigner, repository):
        """Test an old friendly id comes back without a new sequence."""
        await assigner.assign("Post", 1, "Test post", OPTIONS)
        await assigner.assign("Post", 2, "Test post", OPTIONS)
        await assigner.assign("Post", 2, "A changed title", OPTIONS)

        reverted = await assigner.assign("Post", 2, "Test post", OPTIONS)

        assert reverted.friendly_id == "test-post--2"
        assert await repository.max_sequence("test-post", None, "Post") == 2
        assert len(await repository.history_for_owner(2, "Post")) == 2
        current = await repository.latest_for_owner(2, "Post")
        assert current is not None
        assert current.id == reverted.id

    async def test_other_owners_history_is_not_reused(self, assigner):
        """Test only the owner's own slugs are recycled."""
        await assigner.assign("Post", 1, "Test post", OPTIONS)
        await assigner.assign("Post", 1, "Renamed", OPTIONS)

        slug = await assigner.assign("Post", 2, "Test post", OPTIONS)
        assert slug.sequence == 2

    async def test_scopes_are_independent(self, assigner):
        """Test the same name starts at sequence 1 in every scope."""
        es = await assigner.assign("Resident", 1, "Joe", OPTIONS, scope="es")
        fr = await assigner.assign("Resident", 2, "Joe", OPTIONS, scope="fr")
        es_again = await assigner.assign("Resident", 3, "Joe", OPTIONS, scope="es")

        assert (es.sequence, fr.sequence, es_again.sequence) == (1, 1, 2)
        assert fr.scope_value == "fr"

    async def test_types_are_independent(self, assigner):
        post = await assigner.assign("Post", 1, "Test post", OPTIONS)
        district = await assigner.assign("District", 1, "Test post", OPTIONS)
        assert post.friendly_id == district.friendly_id == "test-post"

    async def test_blank_text_fails(self, assigner):
        with pytest.raises(BlankSlugError):
            await assigner.assign("Post", 1, "", OPTIONS)

    async def test_conflict_is_retried(self, database):
        """Test a lost race is retried with a fresh sequence."""
        first = SequenceAssigner(SlugRepository(database.engine), max_wait=0)
        await first.assign("Post", 1, "Test post", OPTIONS)

        repository = _StaleReadRepository(database.engine, stale_reads=1)
        slug = await SequenceAssigner(repository, max_wait=0).assign(
            "Post", 2, "Test post", OPTIONS
        )

        assert slug.sequence == 2
        assert repository.inserts == 2

    async def test_exhausted_retries_fail(self, database):
        """Test a name that keeps conflicting gives up after max_attempts."""
        assigner = SequenceAssigner(
            _AlwaysConflictingRepository(database.engine), max_attempts=3, max_wait=0
        )

        with pytest.raises(SequenceAssignmentError) as exc_info:
            await assigner.assign("Post", 1, "Test post", OPTIONS)

        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.__cause__.last_attempt.exception(), ConflictError)

    async def test_concurrent_writers_get_distinct_sequences(self, database):
        """Test racing owners end up with sequences 1..N and no repeats."""
        assigner = SequenceAssigner(SlugRepository(database.engine), max_attempts=10, max_wait=0.05)

        slugs = await asyncio.gather(
            *(assigner.assign("Post", owner, "Race", OPTIONS) for owner in range(1, 6))
        )

        assert sorted(s.sequence for s in slugs) == [1, 2, 3, 4, 5]

    def test_max_attempts_must_be_positive(self, repository):
        with pytest.raises(ValueError, match="at least 1"):
            SequenceAssigner(repository, max_attempts=0)
