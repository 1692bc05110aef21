"""In-memory document repository.

Dict-backed store used for local development and tests. Behaves like the
Postgres repository: documents are JSON-mode dicts, unique fields are
enforced on write, and values compare the way JSONB compares them:
- equality on the text form, plus numeric equality for stored numbers
  ("5" matches 5.0)
- ordering by type first (string < number < boolean < array/object), then
  by value, so numbers sort numerically
"""

import copy
from typing import Any

from ..errors import DuplicateKeyError
from ..query import Condition, Match, QueryFilter, SortKey, as_number, as_text
from .base import Repository


def get_path(document: dict[str, Any], path: str) -> Any:
    """Value at a dotted path, None when any segment is missing."""
    value: Any = document
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def matches(document: dict[str, Any], condition: Condition) -> bool:
    stored = get_path(document, condition.field)
    actual = as_text(stored)

    if condition.match is Match.CONTAINS:
        return actual is not None and str(condition.value).lower() in actual.lower()
    if condition.match is Match.IN:
        return actual in {as_text(v) for v in condition.value}
    if actual is None:
        return False
    if actual == as_text(condition.value):
        return True
    if is_number(stored):
        wanted = as_number(condition.value)
        return wanted is not None and as_number(stored) == wanted
    return False


def sort_value(value: Any) -> tuple:
    """Sort key mirroring JSONB ordering; missing values compare greatest."""
    if value is None:
        return (1, 0, 0)
    if isinstance(value, str):
        return (0, 0, value)
    if isinstance(value, bool):
        return (0, 2, value)
    if is_number(value):
        return (0, 1, as_number(value))
    return (0, 3, as_text(value))


def sort_documents(
    documents: list[dict[str, Any]], keys: tuple[SortKey, ...]
) -> list[dict[str, Any]]:
    """Multi-key sort; missing values last ascending, first descending."""
    ordered = sorted(documents, key=lambda d: str(d.get("id")))
    for key in reversed(keys):
        ordered.sort(
            key=lambda d, f=key.field: sort_value(get_path(d, f)), reverse=key.descending
        )
    return ordered


class InMemoryRepository(Repository):
    """Repository over a process-local dict of documents."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._documents: dict[str, dict[str, Any]] = {}

    def _check_unique(self, document: dict[str, Any], exclude_id: str | None = None):
        for name in self.unique_fields:
            value = as_text(get_path(document, name))
            if value is None:
                continue
            for other_id, other in self._documents.items():
                if other_id != exclude_id and as_text(get_path(other, name)) == value:
                    raise DuplicateKeyError(name, get_path(document, name))

    async def find_documents(
        self,
        filter: QueryFilter,
        sort: tuple[SortKey, ...] = (),
        offset: int = 0,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        found = [
            d
            for d in self._documents.values()
            if all(matches(d, c) for c in filter.conditions)
        ]
        found = sort_documents(found, sort)
        end = None if limit is None else offset + limit
        return [copy.deepcopy(d) for d in found[offset:end]]

    async def count(self, filter: QueryFilter | None = None) -> int:
        conditions = filter.conditions if filter else ()
        return sum(
            1 for d in self._documents.values() if all(matches(d, c) for c in conditions)
        )

    async def insert_document(self, document: dict[str, Any]) -> dict[str, Any]:
        record_id = str(document["id"])
        if record_id in self._documents:
            raise DuplicateKeyError("id", record_id)
        self._check_unique(document)
        self._documents[record_id] = copy.deepcopy(document)
        return copy.deepcopy(document)

    async def update_document(
        self, record_id: str, changes: dict[str, Any]
    ) -> dict[str, Any] | None:
        current = self._documents.get(record_id)
        if current is None:
            return None
        merged = {**current, **copy.deepcopy(changes)}
        self._check_unique(merged, exclude_id=record_id)
        self._documents[record_id] = merged
        return copy.deepcopy(merged)

    async def delete_documents(self, ids: list[str]) -> list[dict[str, Any]]:
        return [self._documents.pop(i) for i in dict.fromkeys(ids) if i in self._documents]
