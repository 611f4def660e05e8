"""Tests for the slug store."""

import pytest

from friendly_slugs.core.errors import ConflictError
from friendly_slugs.models import Slug


def _slug(name="test-post", sequence=1, scope="", sluggable_type="Post", sluggable_id=1):
    return Slug(
        name=name,
        sequence=sequence,
        scope=scope,
        sluggable_type=sluggable_type,
        sluggable_id=sluggable_id,
    )


class TestInsertAndFind:
    """Tests for inserting and looking up slugs."""

    async def test_insert_assigns_id(self, repository):
        slug = await repository.insert(_slug())
        assert slug.id is not None
        assert slug.friendly_id == "test-post"

    async def test_find_exact(self, repository):
        """Test an exact identity lookup."""
        await repository.insert(_slug())
        await repository.insert(_slug(sequence=2, sluggable_id=2))

        found = await repository.find_exact("test-post", None, "Post", 2)
        assert found is not None
        assert found.sluggable_id == 2
        assert found.friendly_id == "test-post--2"

    async def test_find_exact_miss(self, repository):
        """Test misses on name, type, scope and sequence."""
        await repository.insert(_slug())

        assert await repository.find_exact("other", None, "Post", 1) is None
        assert await repository.find_exact("test-post", None, "District", 1) is None
        assert await repository.find_exact("test-post", "es", "Post", 1) is None
        assert await repository.find_exact("test-post", None, "Post", 2) is None

    async def test_find_by_name_scope(self, repository):
        """Test all sequences of a name are returned in order."""
        await repository.insert(_slug(sequence=2, sluggable_id=2))
        await repository.insert(_slug(sequence=1, sluggable_id=1))
        await repository.insert(_slug(scope="es", sluggable_id=3))

        slugs = await repository.find_by_name_scope("test-post", None, "Post")
        assert [s.sequence for s in slugs] == [1, 2]

    async def test_duplicate_identity_conflicts(self, repository):
        """Test the unique identity guard."""
        await repository.insert(_slug(sluggable_id=1))

        with pytest.raises(ConflictError) as exc_info:
            await repository.insert(_slug(sluggable_id=2))

        assert exc_info.value.name == "test-post"
        assert exc_info.value.sequence == 1
        assert exc_info.value.scope is None

    async def test_same_name_in_other_scope_or_type(self, repository):
        """Test scopes and types are separate namespaces."""
        await repository.insert(_slug())
        await repository.insert(_slug(scope="es", sluggable_id=2))
        await repository.insert(_slug(sluggable_type="District", sluggable_id=1))

        assert await repository.max_sequence("test-post", "es", "Post") == 1
        assert await repository.max_sequence("test-post", None, "District") == 1


class TestSequences:
    """Tests for max_sequence."""

    async def test_unused_name(self, repository):
        assert await repository.max_sequence("nothing", None, "Post") == 0

    async def test_highest_sequence(self, repository):
        await repository.insert(_slug(sequence=1, sluggable_id=1))
        await repository.insert(_slug(sequence=3, sluggable_id=3))

        assert await repository.max_sequence("test-post", None, "Post") == 3


class TestOwnerHistory:
    """Tests for per-owner queries."""

    async def test_latest_for_owner(self, repository):
        """Test the most recently created slug is current."""
        await repository.insert(_slug(name="first"))
        await repository.insert(_slug(name="second"))

        latest = await repository.latest_for_owner(1, "Post")
        assert latest is not None
        assert latest.name == "second"

    async def test_latest_for_owner_without_slugs(self, repository):
        assert await repository.latest_for_owner(99, "Post") is None

    async def test_latest_for_owners(self, repository):
        await repository.insert(_slug(name="a", sluggable_id=1))
        await repository.insert(_slug(name="b", sluggable_id=1))
        await repository.insert(_slug(name="c", sluggable_id=2))

        latest = await repository.latest_for_owners([1, 2, 3], "Post")
        assert {owner: slug.name for owner, slug in latest.items()} == {1: "b", 2: "c"}

    async def test_history_for_owner(self, repository):
        await repository.insert(_slug(name="a"))
        await repository.insert(_slug(name="b"))
        await repository.insert(_slug(name="c", sluggable_id=2))

        history = await repository.history_for_owner(1, "Post")
        assert [s.name for s in history] == ["a", "b"]

    async def test_reactivate_keeps_identity(self, repository):
        """Test an old slug becomes current again without a new sequence."""
        old = await repository.insert(_slug(name="a", sequence=2))
        await repository.insert(_slug(name="b"))

        renewed = await repository.reactivate(old)

        assert (renewed.name, renewed.sequence) == ("a", 2)
        latest = await repository.latest_for_owner(1, "Post")
        assert latest is not None
        assert latest.id == renewed.id
        assert [s.name for s in await repository.history_for_owner(1, "Post")] == ["b", "a"]

    async def test_delete_for_owner(self, repository):
        """Test owner deletion removes only that owner's slugs."""
        await repository.insert(_slug(name="a"))
        await repository.insert(_slug(name="b"))
        await repository.insert(_slug(name="c", sluggable_id=2))

        assert await repository.delete_for_owner(1, "Post") == 2
        assert await repository.history_for_owner(1, "Post") == []
        assert len(await repository.history_for_owner(2, "Post")) == 1
