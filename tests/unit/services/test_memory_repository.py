"""
Tests for the in-memory document repository.
"""

import pytest

from lms.models.core import ActorRef
from lms.models.entities import Admin, Publication, Translator, Writer
from lms.services.errors import DuplicateKeyError
from lms.services.query import Expand, Match, Projection, QueryFilter, SortKey
from lms.services.repositories import InMemoryRepository


@pytest.fixture
def repo() -> InMemoryRepository:
    return InMemoryRepository(Translator, "translators", unique_fields=("name",))


async def seed(repo, *names):
    return [await repo.create(Translator(name=name)) for name in names]


class TestCrud:
    @pytest.mark.asyncio
    async def test_create_assigns_id(self, repo):
        created = await repo.create(Translator(name="Rahul"))

        assert created.id
        assert (await repo.get_by_id(created.id)).name == "Rahul"

    @pytest.mark.asyncio
    async def test_unique_fields_are_enforced(self, repo):
        await repo.create(Translator(name="Rahul"))

        with pytest.raises(DuplicateKeyError) as exc:
            await repo.create(Translator(name="Rahul"))
        assert exc.value.field == "name"

    @pytest.mark.asyncio
    async def test_update_merges_and_checks_uniqueness(self, repo):
        a, b = await seed(repo, "Alpha", "Beta")

        updated = await repo.update_by_id(a.id, {"summary": "short"})
        assert updated.summary == "short"
        assert updated.name == "Alpha"

        with pytest.raises(DuplicateKeyError):
            await repo.update_by_id(a.id, {"name": "Beta"})
        assert await repo.update_by_id("missing", {"summary": "x"}) is None

    @pytest.mark.asyncio
    async def test_delete(self, repo):
        a, b, c = await seed(repo, "A1", "B1", "C1")

        assert (await repo.delete_by_id(a.id)).name == "A1"
        assert await repo.delete_by_id(a.id) is None
        assert await repo.delete_many([b.id, "missing", b.id]) == 1
        assert await repo.count() == 1


class TestFind:
    @pytest.mark.asyncio
    async def test_contains_is_case_insensitive(self, repo):
        await seed(repo, "FOO bar", "xfooy", "nothing")
        found = await repo.find(QueryFilter().where("name", "foo", Match.CONTAINS))

        assert sorted(t.name for t in found) == ["FOO bar", "xfooy"]

    @pytest.mark.asyncio
    async def test_equality_uses_text_form(self):
        repo = InMemoryRepository(Publication, "publications")
        await repo.create(Publication(name="Open", is_active=True))
        await repo.create(Publication(name="Closed", is_active=False))

        found = await repo.find(QueryFilter.equals(is_active="true"))
        assert [p.name for p in found] == ["Open"]

    @pytest.mark.asyncio
    async def test_sort_and_paging(self, repo):
        await seed(repo, "Cc", "Aa", "Bb", "Dd")
        sort = (SortKey("name"),)

        first = await repo.find(sort=sort, offset=0, limit=3)
        second = await repo.find(sort=sort, offset=3, limit=3)
        descending = await repo.find(sort=(SortKey("name", True),), limit=1)

        assert [t.name for t in first] == ["Aa", "Bb", "Cc"]
        assert [t.name for t in second] == ["Dd"]
        assert descending[0].name == "Dd"

    @pytest.mark.asyncio
    async def test_numbers_sort_by_value(self):
        repo = InMemoryRepository(Writer, "writers")
        for name, count in (("Nine", 9), ("Ten", 10), ("Two", 2)):
            await repo.create(Writer(name=name, books_count=count))

        descending = await repo.find(sort=(SortKey("books_count", True),))
        ascending = await repo.find(sort=(SortKey("books_count"),))

        assert [w.books_count for w in descending] == [10, 9, 2]
        assert [w.books_count for w in ascending] == [2, 9, 10]

    @pytest.mark.asyncio
    async def test_missing_values_sort_last(self, repo):
        await repo.create(Translator(name="Rated", review=3))
        await repo.create(Translator(name="Unrated"))

        ascending = await repo.find(sort=(SortKey("review"),))
        descending = await repo.find(sort=(SortKey("review", True),))

        assert [t.name for t in ascending] == ["Rated", "Unrated"]
        assert [t.name for t in descending] == ["Unrated", "Rated"]

    @pytest.mark.asyncio
    async def test_numeric_equality(self, repo):
        await repo.create(Translator(name="Rahul", review=5))

        assert await repo.exists(QueryFilter.equals(review="5"))
        assert await repo.exists(QueryFilter.equals(review=5))
        assert not await repo.exists(QueryFilter.equals(review="4"))

    @pytest.mark.asyncio
    async def test_project_one_and_exists(self, repo):
        (a,) = await seed(repo, "Solo")

        projected = await repo.project_one(QueryFilter.equals(id=a.id), Projection.of(["name"]))
        assert projected == {"name": "Solo"}
        assert await repo.exists(QueryFilter.equals(name="Solo"))
        assert not await repo.exists(QueryFilter.equals(name="solo"))

    @pytest.mark.asyncio
    async def test_get_by_ids_skips_missing(self, repo):
        a, b = await seed(repo, "One", "Two")
        found = await repo.get_by_ids([a.id, "missing", b.id])
        assert {t.id for t in found} == {a.id, b.id}


class TestExpand:
    @pytest.mark.asyncio
    async def test_actors_become_refs(self, repo):
        admins = InMemoryRepository(Admin, "admins")
        admin = await admins.create(Admin(name="Ada", email="ada@example.org"))
        repo.actor_source = admins

        created = await repo.create(Translator(name="Rahul", created_by=admin.id, updated_by="ghost"))
        [expanded] = await repo.expand([created], Expand.ACTORS)

        assert expanded.created_by == ActorRef(id=admin.id, name="Ada", email="ada@example.org")
        assert expanded.updated_by == ActorRef(id="ghost")

    @pytest.mark.asyncio
    async def test_expand_none_is_identity(self, repo):
        created = await repo.create(Translator(name="Rahul", created_by="a1"))
        [same] = await repo.expand([created], Expand.NONE)
        assert same.created_by == "a1"

    @pytest.mark.asyncio
    async def test_expanded_records_store_plain_ids(self, repo):
        record = Translator(name="Rahul", created_by=ActorRef(id="a1", name="Ada"))
        created = await repo.create(record)
        assert created.created_by == "a1"
