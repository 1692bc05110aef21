"""
Tests for the generic resource service.

Runs against the in-memory container with a stub blob store.
"""

import math

import pytest

from lms.models.core import ErrorKind
from lms.models.entities import ActionType, Translator, Writer
from lms.services.query import QueryFilter, QueryRequest


async def seed_translators(container, names, image=False):
    repo = container.repositories["translators"]
    records = []
    for i, name in enumerate(names):
        data = {"name": name}
        if image:
            data["image"] = {"file_id": f"translators/{i}.png"}
        records.append(await repo.create(Translator.model_validate(data)))
    return records


async def audit_entries(container):
    return await container.repositories["activity_logs"].find()


class TestGetList:
    """Listing with pagination, filters and the empty result."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [1, 3, 4, 10])
    async def test_pagination_invariant(self, container, limit):
        await seed_translators(container, [f"Translator {i}" for i in range(7)])
        service = container.service("translators")

        envelope = await service.get_list(None, QueryRequest(limit=limit, page=2))
        page = envelope.data

        assert len(page.items) <= limit
        assert page.total_items == 7
        assert page.total_pages == math.ceil(7 / limit)
        assert page.current_page == 2
        assert page.page_size == limit

    @pytest.mark.asyncio
    async def test_text_filter_is_case_insensitive_substring(self, container):
        await seed_translators(container, ["FOO bar", "xfooy", "other"])
        service = container.service("translators")

        envelope = await service.get_list(None, QueryRequest.model_validate({"name": "foo"}))

        assert envelope.success
        assert envelope.message == "2 translators fetched successfully."
        assert sorted(t.name for t in envelope.data.items) == ["FOO bar", "xfooy"]

    @pytest.mark.asyncio
    async def test_non_text_filter_is_exact(self, container):
        [record] = await seed_translators(container, ["Dated"])
        created_at = record.model_dump(mode="json")["created_at"]
        service = container.service("translators")

        exact = await service.get_list(None, QueryRequest.model_validate({"createdAt": created_at}))
        partial = await service.get_list(
            None, QueryRequest.model_validate({"createdAt": created_at[:10]})
        )

        assert exact.data.total_items == 1
        assert partial.data.total_items == 0

    @pytest.mark.asyncio
    async def test_numeric_sort_orders_by_value(self, container):
        repo = container.repositories["writers"]
        for name, count in (("Nine", 9), ("Ten", 10), ("Two", 2)):
            await repo.create(Writer(name=name, books_count=count))
        service = container.service("writers")

        envelope = await service.get_list(None, QueryRequest(sort="-booksCount"))

        assert [w.books_count for w in envelope.data.items] == [10, 9, 2]

    @pytest.mark.asyncio
    async def test_numeric_filter_matches_stored_float(self, container):
        repo = container.repositories["translators"]
        await repo.create(Translator(name="Rahul", review=5))
        await repo.create(Translator(name="Mira", review=4.5))
        service = container.service("translators")

        envelope = await service.get_list(None, QueryRequest.model_validate({"review": "5"}))

        assert envelope.data.total_items == 1
        assert envelope.data.items[0].name == "Rahul"

    @pytest.mark.asyncio
    async def test_empty_result_is_not_an_error(self, container):
        service = container.service("translators")

        envelope = await service.get_list(None, QueryRequest.model_validate({"name": "nobody"}))

        assert envelope.success is False
        assert envelope.status == 200
        assert envelope.message == "No translators found."
        assert envelope.data.items == []
        assert envelope.data.total_pages == 0

    @pytest.mark.asyncio
    async def test_admin_only_resources_require_admin(self, container, member, admin):
        service = container.service("users")

        assert (await service.get_list(None, QueryRequest())).status == 401
        assert (await service.get_list(member, QueryRequest())).status == 403
        assert (await service.get_list(admin, QueryRequest())).status == 200

    @pytest.mark.asyncio
    async def test_actors_are_expanded(self, container, admin):
        admins = container.repositories["admins"]
        stored = await admins.create(
            admins.model_class(id=admin.id, name="Ada Admin", email="ada@example.org")
        )
        service = container.service("pronouns")
        await service.create(admin, {"name": "she/her"})

        envelope = await service.get_list(None, QueryRequest())

        assert envelope.data.items[0].created_by.name == stored.name


class TestGetById:
    @pytest.mark.asyncio
    async def test_found_and_not_found(self, container):
        [record] = await seed_translators(container, ["Rahul"])
        service = container.service("translators")

        found = await service.get_by_id(None, record.id)
        missing = await service.get_by_id(None, "missing")

        assert found.success and found.data.name == "Rahul"
        assert found.message == "Translator fetched successfully."
        assert missing.success is False
        assert missing.status == 404
        assert missing.error is ErrorKind.NOT_FOUND
        assert missing.message == "Translator not found."

    @pytest.mark.asyncio
    async def test_repository_errors_become_internal_envelopes(self, container, monkeypatch):
        service = container.service("translators")

        async def broken(*args, **kwargs):
            raise RuntimeError("connection reset")

        monkeypatch.setattr(service.repository, "find_documents", broken)
        envelope = await service.get_by_id(None, "x")

        assert envelope.status == 500
        assert envelope.error is ErrorKind.INTERNAL
        assert "connection reset" not in envelope.message


class TestDeleteById:
    @pytest.mark.asyncio
    async def test_delete_removes_blob_record_and_audits(self, container, admin, blob_store):
        [record] = await seed_translators(container, ["Rahul"], image=True)
        service = container.service("translators")

        envelope = await service.delete_by_id(admin, record.id)

        assert envelope.success
        assert envelope.message == "Translator deleted successfully."
        assert blob_store.deleted == ["translators/0.png"]
        assert await service.repository.get_by_id(record.id) is None

        [entry] = await audit_entries(container)
        assert entry.action is ActionType.DELETE
        assert entry.actor == admin.id
        assert entry.affected_ids == [record.id]

    @pytest.mark.asyncio
    async def test_blob_failure_does_not_block_deletion(self, container, admin, blob_store):
        blob_store.fail_deletes = True
        [record] = await seed_translators(container, ["Rahul"], image=True)
        service = container.service("translators")

        envelope = await service.delete_by_id(admin, record.id)

        assert envelope.success
        assert blob_store.delete_attempts == ["translators/0.png"]
        assert await service.repository.get_by_id(record.id) is None

    @pytest.mark.asyncio
    async def test_missing_record(self, container, admin):
        envelope = await container.service("translators").delete_by_id(admin, "missing")

        assert envelope.status == 404
        assert envelope.success is False
        assert await audit_entries(container) == []

    @pytest.mark.asyncio
    async def test_requires_admin(self, container, member):
        [record] = await seed_translators(container, ["Rahul"])
        service = container.service("translators")

        assert (await service.delete_by_id(None, record.id)).status == 401
        assert (await service.delete_by_id(member, record.id)).status == 403
        assert await service.repository.get_by_id(record.id) is not None


class TestDeleteByList:
    @pytest.mark.asyncio
    async def test_accounting(self, container, admin):
        a, b = await seed_translators(container, ["Ann", "Bob"])
        service = container.service("translators")

        envelope = await service.delete_by_list(admin, [a.id, b.id, "missing"])

        assert envelope.success
        assert envelope.status == 200
        assert envelope.data.model_dump() == {"deleted": 2, "not_found": 1, "failed": 0}
        assert envelope.message == "Deleted 2: Not found 1, Failed 0"

        [entry] = await audit_entries(container)
        assert entry.action is ActionType.DELETE
        assert entry.affected_ids == [a.id, b.id]

    @pytest.mark.asyncio
    async def test_nothing_deleted_is_unsuccessful_but_ok(self, container, admin):
        envelope = await container.service("translators").delete_by_list(admin, ["x", "y"])

        assert envelope.success is False
        assert envelope.status == 200
        assert envelope.data.not_found == 2
        assert len(await audit_entries(container)) == 1

    @pytest.mark.asyncio
    async def test_duplicate_ids_count_once(self, container, admin):
        [a] = await seed_translators(container, ["Ann"])

        envelope = await container.service("translators").delete_by_list(admin, [a.id, a.id])

        assert envelope.data.model_dump() == {"deleted": 1, "not_found": 0, "failed": 0}

    @pytest.mark.asyncio
    async def test_blob_failures_do_not_block(self, container, admin, blob_store):
        blob_store.fail_deletes = True
        records = await seed_translators(container, ["Ann", "Bob"], image=True)
        service = container.service("translators")

        envelope = await service.delete_by_list(admin, [r.id for r in records])

        assert envelope.data.deleted == 2
        assert blob_store.delete_attempts == ["translators/0.png", "translators/1.png"]
        assert await service.repository.count() == 0

    @pytest.mark.asyncio
    async def test_failed_counts_rows_the_store_did_not_delete(self, container, admin, monkeypatch):
        a, b = await seed_translators(container, ["Ann", "Bob"])
        service = container.service("translators")

        async def partial(ids):
            return 1

        monkeypatch.setattr(service.repository, "delete_many", partial)
        envelope = await service.delete_by_list(admin, [a.id, b.id])

        assert envelope.data.model_dump() == {"deleted": 1, "not_found": 0, "failed": 1}

    @pytest.mark.asyncio
    async def test_empty_id_list(self, container, admin):
        envelope = await container.service("translators").delete_by_list(admin, [" ", ""])
        assert envelope.status == 400


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_stamps_and_audits(self, container, admin):
        service = container.service("pronouns")

        envelope = await service.create(admin, {"name": "they/them", "created_by": "forged"})

        assert envelope.status == 201
        assert envelope.message == "Pronouns created successfully."
        assert envelope.data.created_by == admin.id
        assert envelope.data.updated_by == admin.id

        [entry] = await audit_entries(container)
        assert entry.action is ActionType.CREATE
        assert entry.affected_ids == [envelope.data.id]

    @pytest.mark.asyncio
    async def test_duplicate_name_conflicts(self, container, admin):
        service = container.service("pronouns")
        await service.create(admin, {"name": "she/her"})

        envelope = await service.create(admin, {"name": "she/her"})

        assert envelope.status == 400
        assert envelope.error is ErrorKind.CONFLICT
        assert envelope.message == 'Pronouns name "she/her" already exists.'
        assert len(await audit_entries(container)) == 1

    @pytest.mark.asyncio
    async def test_validation_errors(self, container, admin):
        envelope = await container.service("translators").create(admin, {"review": 9})

        assert envelope.status == 400
        assert envelope.error is ErrorKind.VALIDATION
        assert "name" in envelope.message

    @pytest.mark.asyncio
    async def test_image_upload(self, container, admin, png, blob_store):
        envelope = await container.service("translators").create(admin, {"name": "Rahul"}, png)

        assert envelope.status == 201
        assert envelope.data.image.file_id == blob_store.uploaded[0]
        assert blob_store.uploaded[0].startswith("translators/")

    @pytest.mark.asyncio
    async def test_rejected_image(self, container, admin, png, blob_store):
        gif = png.model_copy(update={"mime_type": "image/gif", "original_name": "a.gif"})

        envelope = await container.service("translators").create(admin, {"name": "Rahul"}, gif)

        assert envelope.status == 400
        assert envelope.message.startswith("Invalid file type.")
        assert blob_store.uploaded == []

    @pytest.mark.asyncio
    async def test_resources_without_images_reject_uploads(self, container, admin, png):
        envelope = await container.service("pronouns").create(admin, {"name": "x/y"}, png)
        assert envelope.status == 400

    @pytest.mark.asyncio
    async def test_activity_logs_are_read_only(self, container, admin):
        service = container.service("activity_logs")

        created = await service.create(admin, {"action": "create", "description": "forged"})
        deleted = await service.delete_by_list(admin, ["a"])

        assert created.status == 405
        assert deleted.status == 405
        assert await audit_entries(container) == []


class TestUpdate:
    @pytest.mark.asyncio
    async def test_update(self, container, admin):
        service = container.service("subjects")
        created = (await service.create(admin, {"name": "Poetry"})).data

        envelope = await service.update_by_id(admin, created.id, {"name": "Poems"})

        assert envelope.success
        assert envelope.data.name == "Poems"
        assert envelope.data.created_at == created.created_at
        entries = await audit_entries(container)
        assert [e.action for e in entries].count(ActionType.UPDATE) == 1

    @pytest.mark.asyncio
    async def test_empty_update(self, container, admin):
        service = container.service("subjects")
        created = (await service.create(admin, {"name": "Poetry"})).data

        envelope = await service.update_by_id(admin, created.id, {"id": "other"})

        assert envelope.status == 400
        assert envelope.message == "Please provide update data."

    @pytest.mark.asyncio
    async def test_update_missing(self, container, admin):
        envelope = await container.service("subjects").update_by_id(admin, "nope", {"name": "X"})
        assert envelope.status == 404

    @pytest.mark.asyncio
    async def test_conflict_excludes_self(self, container, admin):
        service = container.service("subjects")
        first = (await service.create(admin, {"name": "Poetry"})).data
        await service.create(admin, {"name": "Drama"})

        same = await service.update_by_id(admin, first.id, {"name": "Poetry"})
        clash = await service.update_by_id(admin, first.id, {"name": "Drama"})

        assert same.success
        assert clash.error is ErrorKind.CONFLICT

    @pytest.mark.asyncio
    async def test_invalid_update_is_rejected(self, container, admin):
        service = container.service("translators")
        created = (await service.create(admin, {"name": "Rahul"})).data

        envelope = await service.update_by_id(admin, created.id, {"review": 11})

        assert envelope.status == 400
        assert (await service.repository.get_by_id(created.id)).review is None

    @pytest.mark.asyncio
    async def test_replacing_image_discards_old_blob(self, container, admin, png, blob_store):
        service = container.service("translators")
        created = (await service.create(admin, {"name": "Rahul"}, png)).data

        envelope = await service.update_by_id(admin, created.id, {}, png)

        assert envelope.success
        assert envelope.data.image.file_id == blob_store.uploaded[1]
        assert blob_store.deleted == [blob_store.uploaded[0]]


class TestSelfService:
    @pytest.mark.asyncio
    async def test_get_and_update_own_record(self, container, member):
        users = container.repositories["users"]
        await users.create(users.model_class(id=member.id, name="Mina", username="mina"))
        service = container.service("users")

        own = await service.get_by_requester(member)
        updated = await service.update_by_requester(member, {"bio": "Reader", "is_active": False})

        assert own.data.username == "mina"
        assert updated.success
        assert updated.data.bio == "Reader"
        assert updated.data.is_active is True

    @pytest.mark.asyncio
    async def test_anonymous_self_requests(self, container):
        service = container.service("users")

        assert (await service.get_by_requester(None)).status == 401
        assert (await service.update_by_requester(None, {"bio": "x"})).status == 401


@pytest.mark.asyncio
async def test_audit_entries_are_append_only(container, admin):
    service = container.service("faqs")
    created = (await service.create(admin, {"question": "How do I borrow?", "answer": "Ask."})).data
    await service.update_by_id(admin, created.id, {"answer": "Ask at the desk."})
    await service.delete_by_id(admin, created.id)

    entries = await audit_entries(container)
    actions = sorted(e.action.value for e in entries)

    assert actions == ["create", "delete", "update"]
    assert all(e.affected_ids == [created.id] for e in entries)
    repo = container.repositories["activity_logs"]
    assert await repo.count(QueryFilter.equals(actor=admin.id)) == 3
