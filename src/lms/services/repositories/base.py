"""Generic repository for document persistence.

One repository class per storage backend that works with any Pydantic model
type. Repositories are constructed once at startup and injected into the
services that use them.

Usage:
    from lms.models.entities import Pronoun
    from lms.services.repositories import InMemoryRepository

    repo = InMemoryRepository(Pronoun, "pronouns", unique_fields=("name",))
    pronoun = await repo.create(Pronoun(name="they/them"))
    page = await repo.find(QueryFilter.equals(name="they/them"), limit=10)

Documents are stored in JSON mode (model_dump(mode="json")) so every backend
compares and orders field values by the same text form.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Iterable, Type, TypeVar
from uuid import uuid4

from loguru import logger
from pydantic import BaseModel

from ...models.core import ActorRef
from ..query import Expand, Projection, QueryFilter, SortKey

T = TypeVar("T", bound=BaseModel)

ACTOR_FIELDS = ("created_by", "updated_by")


def new_id() -> str:
    return uuid4().hex


class Repository(ABC, Generic[T]):
    """Abstract document repository for one collection."""

    def __init__(
        self,
        model_class: Type[T],
        collection: str,
        unique_fields: Iterable[str] = (),
        actor_source: "Repository | None" = None,
    ):
        """
        Initialize repository.

        Args:
            model_class: Pydantic model class (e.g., Pronoun, User)
            collection: Collection (table) name
            unique_fields: Fields whose values must be unique across the collection
            actor_source: Repository used to resolve created_by/updated_by on expand
        """
        self.model_class = model_class
        self.collection = collection
        self.unique_fields = tuple(unique_fields)
        self.actor_source = actor_source

    # Storage primitives implemented per backend

    @abstractmethod
    async def find_documents(
        self,
        filter: QueryFilter,
        sort: tuple[SortKey, ...] = (),
        offset: int = 0,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Raw stored documents matching filter."""

    @abstractmethod
    async def count(self, filter: QueryFilter | None = None) -> int:
        """Count documents matching filter."""

    @abstractmethod
    async def insert_document(self, document: dict[str, Any]) -> dict[str, Any]:
        """Insert a new document (raises DuplicateKeyError on unique violations)."""

    @abstractmethod
    async def update_document(
        self, record_id: str, changes: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Shallow-merge changes into a document; None when it does not exist."""

    @abstractmethod
    async def delete_documents(self, ids: list[str]) -> list[dict[str, Any]]:
        """Delete documents by id and return the ones actually deleted."""

    # Model-level API

    def to_model(self, document: dict[str, Any]) -> T:
        return self.model_class.model_validate(document)

    def to_document(self, record: T) -> dict[str, Any]:
        document = record.model_dump(mode="json")
        # Expanded actor references are stored as plain ids
        for name in ACTOR_FIELDS:
            value = document.get(name)
            if isinstance(value, dict):
                document[name] = value.get("id")
        return document

    async def get_by_id(self, record_id: str) -> T | None:
        """
        Get a single record by ID.

        Returns:
            Model instance or None if not found
        """
        documents = await self.find_documents(QueryFilter.equals(id=str(record_id)), limit=1)
        return self.to_model(documents[0]) if documents else None

    async def get_by_ids(self, ids: Iterable[str]) -> list[T]:
        """Records for the given ids (missing ids are skipped)."""
        ids = [str(i) for i in ids]
        if not ids:
            return []
        documents = await self.find_documents(QueryFilter.by_ids(ids))
        return [self.to_model(d) for d in documents]

    async def find(
        self,
        filter: QueryFilter | None = None,
        sort: tuple[SortKey, ...] = (),
        offset: int = 0,
        limit: int | None = None,
    ) -> list[T]:
        """
        Find records matching filter.

        Args:
            filter: Conditions AND-ed together (None matches everything)
            sort: Sort keys, applied in order
            offset: Offset for pagination
            limit: Optional limit on number of records

        Returns:
            List of model instances
        """
        documents = await self.find_documents(
            filter or QueryFilter(), sort=sort, offset=offset, limit=limit
        )
        return [self.to_model(d) for d in documents]

    async def find_one(self, filter: QueryFilter) -> T | None:
        results = await self.find(filter, limit=1)
        return results[0] if results else None

    async def exists(self, filter: QueryFilter) -> bool:
        return bool(await self.find_documents(filter, limit=1))

    async def project_one(
        self, filter: QueryFilter, projection: Projection
    ) -> dict[str, Any] | None:
        """First matching document reduced to the projection's fields."""
        documents = await self.find_documents(filter, limit=1)
        return projection.apply(documents[0]) if documents else None

    async def create(self, record: T) -> T:
        """Insert record, assigning an id when it has none."""
        if getattr(record, "id", None) is None and "id" in self.model_class.model_fields:
            record = record.model_copy(update={"id": new_id()})
        document = await self.insert_document(self.to_document(record))
        return self.to_model(document)

    async def update_by_id(self, record_id: str, changes: dict[str, Any]) -> T | None:
        """Apply changes to an existing record; None when it does not exist."""
        changes = {k: v for k, v in changes.items() if k != "id"}
        document = await self.update_document(str(record_id), changes)
        return self.to_model(document) if document else None

    async def delete_by_id(self, record_id: str) -> T | None:
        """Delete one record and return it; None when it did not exist."""
        deleted = await self.delete_documents([str(record_id)])
        return self.to_model(deleted[0]) if deleted else None

    async def delete_many(self, ids: Iterable[str]) -> int:
        """Delete records by id and return how many were removed."""
        ids = [str(i) for i in ids]
        if not ids:
            return 0
        return len(await self.delete_documents(ids))

    async def expand(self, records: list[T], expand: Expand = Expand.NONE) -> list[T]:
        """
        Materialize reference fields.

        Expand.ACTORS replaces created_by/updated_by ids with ActorRef values
        looked up in the actor source repository. Unknown actors keep their id.
        """
        if expand is Expand.NONE or not records or self.actor_source is None:
            return records

        actor_ids = {
            value
            for record in records
            for value in (getattr(record, name, None) for name in ACTOR_FIELDS)
            if isinstance(value, str)
        }
        if not actor_ids:
            return records

        actors = await self.actor_source.find_documents(QueryFilter.by_ids(actor_ids))
        refs = {
            doc["id"]: ActorRef(id=doc["id"], name=doc.get("name"), email=doc.get("email"))
            for doc in actors
        }
        logger.debug(f"Expanded {len(refs)} actors for {self.collection}")

        expanded = []
        for record in records:
            update = {}
            for name in ACTOR_FIELDS:
                value = getattr(record, name, None)
                if isinstance(value, str):
                    update[name] = refs.get(value, ActorRef(id=value))
            expanded.append(record.model_copy(update=update) if update else record)
        return expanded
