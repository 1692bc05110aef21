"""Postgres document repository.

Stores each collection in a (id TEXT, data JSONB) table. SQL comes from
sql_builder; this module only executes it and translates driver errors.
"""

import json
from typing import Any

import asyncpg
from loguru import logger

from ..errors import DuplicateKeyError, RepositoryError
from ..query import QueryFilter, SortKey
from ..repositories.base import Repository
from .service import PostgresService
from .sql_builder import (
    build_count,
    build_delete,
    build_insert,
    build_select,
    build_update,
)


def load_document(value: Any) -> dict[str, Any]:
    # asyncpg returns JSONB columns as strings unless a codec is registered
    return json.loads(value) if isinstance(value, (str, bytes)) else dict(value)


class PostgresRepository(Repository):
    """Repository backed by a PostgresService pool."""

    def __init__(self, *args, db: PostgresService, **kwargs):
        super().__init__(*args, **kwargs)
        self.db = db

    def _duplicate(self, error: asyncpg.UniqueViolationError, document: dict[str, Any]):
        constraint = getattr(error, "constraint_name", "") or ""
        for name in self.unique_fields:
            if constraint.endswith("_" + name.replace(".", "_")):
                return DuplicateKeyError(name, document.get(name))
        return DuplicateKeyError("id", document.get("id"))

    async def find_documents(
        self,
        filter: QueryFilter,
        sort: tuple[SortKey, ...] = (),
        offset: int = 0,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        sql, params = build_select(self.collection, filter, sort, offset, limit)
        rows = await self.db.fetch(sql, params)
        return [load_document(row["data"]) for row in rows]

    async def count(self, filter: QueryFilter | None = None) -> int:
        sql, params = build_count(self.collection, filter)
        return int(await self.db.fetchval(sql, params) or 0)

    async def insert_document(self, document: dict[str, Any]) -> dict[str, Any]:
        sql, params = build_insert(self.collection, document)
        try:
            rows = await self.db.fetch(sql, params)
        except asyncpg.UniqueViolationError as e:
            raise self._duplicate(e, document) from e
        if not rows:
            raise RepositoryError(f"Insert into {self.collection} returned no row")
        return load_document(rows[0]["data"])

    async def update_document(
        self, record_id: str, changes: dict[str, Any]
    ) -> dict[str, Any] | None:
        sql, params = build_update(self.collection, record_id, changes)
        try:
            rows = await self.db.fetch(sql, params)
        except asyncpg.UniqueViolationError as e:
            raise self._duplicate(e, changes) from e
        return load_document(rows[0]["data"]) if rows else None

    async def delete_documents(self, ids: list[str]) -> list[dict[str, Any]]:
        sql, params = build_delete(self.collection, ids)
        rows = await self.db.fetch(sql, params)
        logger.debug(f"Deleted {len(rows)}/{len(ids)} rows from {self.collection}")
        return [load_document(row["data"]) for row in rows]
