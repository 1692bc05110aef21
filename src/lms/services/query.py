"""
Resource Query Builder.

Turns a loosely-typed parameter bag (query string) into a validated,
paginated, filtered query:

    GET /api/v1/translators?page=2&limit=5&sort=-review,name&name=rah&isActive=true

    build_query(params, {"active": "is_active"})
    -> BuiltQuery(
        filter=QueryFilter(name CONTAINS "rah", is_active EQUALS "true"),
        page=2, limit=5, sort="-review,name",
    )

Rules:
- page, limit, sort and requester are reserved; every other key is a filter
- filter and sort keys go through the resource's field mapping (BASE_FIELD_MAPPING
  merged with resource-specific entries), unmapped keys are used as-is
- name, created_by and updated_by match as case-insensitive substrings,
  every other field matches by exact equality on its text form (numbers
  also by value, so "5" finds a stored 5.0)
- malformed keys and non-scalar values are ignored (no-op, never an error)

Bounds (page >= 1, 1 <= limit <= 100) are enforced by QueryRequest before the
builder runs; build_query itself is a pure transform.
"""

import json
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Iterable, Mapping

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from ..settings import settings

TEXT_FIELDS = frozenset({"name", "created_by", "updated_by"})

RESERVED_PARAMS = frozenset({"page", "limit", "sort", "requester"})

# Legacy camelCase query keys
BASE_FIELD_MAPPING: dict[str, str] = {
    "createdBy": "created_by",
    "updatedBy": "updated_by",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "isActive": "is_active",
}

FIELD_PATH = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")

SCALAR_TYPES = (str, int, float, bool)


def as_text(value: Any) -> str | None:
    """
    Text form used for equality and ordering.

    Mirrors how a JSON document store renders a field as text, so the
    in-memory and Postgres repositories agree (True -> "true").
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def as_number(value: Any) -> Decimal | None:
    """
    Numeric form of a value, None when it is not a finite number.

    Query strings arrive as text, so "5" compares equal to a stored 5.0.
    Booleans are not numbers here.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = Decimal(str(value))
    elif isinstance(value, str):
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None
    return number if number.is_finite() else None


def is_field_path(name: str) -> bool:
    return bool(FIELD_PATH.match(name))


class Match(str, Enum):
    """How a condition compares a document field to its value."""

    EQUALS = "equals"
    CONTAINS = "contains"
    IN = "in"


@dataclass(frozen=True)
class Condition:
    field: str
    value: Any
    match: Match = Match.EQUALS


@dataclass(frozen=True)
class QueryFilter:
    """Conjunction of conditions (empty filter matches everything)."""

    conditions: tuple[Condition, ...] = ()

    @classmethod
    def equals(cls, **fields: Any) -> "QueryFilter":
        return cls(tuple(Condition(name, value) for name, value in fields.items()))

    @classmethod
    def by_ids(cls, ids: Iterable[str]) -> "QueryFilter":
        return cls((Condition("id", tuple(str(i) for i in ids), Match.IN),))

    def where(self, name: str, value: Any, match: Match = Match.EQUALS) -> "QueryFilter":
        """New filter with one more condition."""
        return QueryFilter(self.conditions + (Condition(name, value, match),))

    def __bool__(self) -> bool:
        return bool(self.conditions)


@dataclass(frozen=True)
class SortKey:
    field: str
    descending: bool = False


def parse_sort(
    sort: str | None,
    default: str | None = None,
    mapping: Mapping[str, str] | None = None,
) -> tuple[SortKey, ...]:
    """
    Parse a sort expression ("-created_at", "name -review", "-review,name").

    Query keys go through the same field mapping as filters ("-booksCount"
    sorts on books_count).

    Falls back to the default expression when the input is empty or
    contains an invalid field name.
    """
    default = default or settings.query.default_sort
    tokens = [t for t in re.split(r"[\s,]+", (sort or "").strip()) if t]
    keys = []
    for token in tokens:
        descending = token.startswith("-")
        name = token.lstrip("-+")
        name = (mapping or BASE_FIELD_MAPPING).get(name, name)
        if not is_field_path(name):
            logger.debug(f"Ignoring invalid sort expression: {sort!r}")
            keys = []
            break
        keys.append(SortKey(name, descending))

    if keys:
        return tuple(keys)
    if sort == default:
        return (SortKey("created_at", True),)
    return parse_sort(default, default, mapping)


def format_sort(keys: Iterable[SortKey]) -> str:
    return ",".join(f"-{k.field}" if k.descending else k.field for k in keys)


class Expand(str, Enum):
    """Reference fields the repository materializes on read."""

    NONE = "none"
    ACTORS = "actors"  # created_by / updated_by -> ActorRef


@dataclass(frozen=True)
class Projection:
    """
    Field allow-list applied to a stored document.

    include=None means every field. "id" is excluded unless it is
    explicitly allow-listed or the wildcard "*" is given.
    """

    include: frozenset[str] | None = None
    exclude: frozenset[str] = field(default_factory=lambda: frozenset({"id"}))

    @classmethod
    def of(cls, fields: Iterable[str]) -> "Projection":
        fields = frozenset(fields)
        if "*" in fields:
            return cls(include=None, exclude=frozenset())
        return cls(include=fields, exclude=frozenset() if "id" in fields else frozenset({"id"}))

    @property
    def is_empty(self) -> bool:
        return self.include is not None and not self.include

    def apply(self, document: Mapping[str, Any]) -> dict[str, Any]:
        return {
            key: value
            for key, value in document.items()
            if (self.include is None or key in self.include) and key not in self.exclude
        }


class QueryRequest(BaseModel):
    """
    Validated list parameters.

    Anything that is not page/limit/sort is kept as an extra and treated as
    a filter by build_query.
    """

    model_config = ConfigDict(extra="allow")

    page: int = Field(default_factory=lambda: settings.query.default_page, ge=1)
    limit: int = Field(
        default_factory=lambda: settings.query.default_limit,
        ge=1,
        le=settings.query.max_limit,
    )
    sort: str = Field(default_factory=lambda: settings.query.default_sort, min_length=1)

    @property
    def filters(self) -> dict[str, Any]:
        return dict(self.model_extra or {})

    def to_params(self) -> dict[str, Any]:
        return {"page": self.page, "limit": self.limit, "sort": self.sort, **self.filters}


@dataclass(frozen=True)
class BuiltQuery:
    filter: QueryFilter
    page: int
    limit: int
    sort: str
    sort_keys: tuple[SortKey, ...]

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def build_query(
    params: Mapping[str, Any],
    field_mapping: Mapping[str, str] | None = None,
) -> BuiltQuery:
    """
    Build a paginated filter from raw list parameters.

    Args:
        params: page/limit/sort plus free-form filters (already validated)
        field_mapping: resource-specific query key -> stored field remapping

    Returns:
        BuiltQuery with the filter, page, limit and parsed sort
    """
    mapping = {**BASE_FIELD_MAPPING, **(field_mapping or {})}

    page = params.get("page") or settings.query.default_page
    limit = params.get("limit") or settings.query.default_limit
    sort = params.get("sort") or settings.query.default_sort

    conditions = []
    for key, value in params.items():
        if key in RESERVED_PARAMS or value is None:
            continue
        target = mapping.get(key, key)
        if not is_field_path(target):
            logger.debug(f"Ignoring malformed filter key: {key!r}")
            continue
        if not isinstance(value, SCALAR_TYPES):
            logger.debug(f"Ignoring non-scalar filter value for {key!r}")
            continue
        if target in TEXT_FIELDS:
            conditions.append(Condition(target, str(value), Match.CONTAINS))
        else:
            conditions.append(Condition(target, value, Match.EQUALS))

    sort_keys = parse_sort(str(sort), mapping=mapping)
    return BuiltQuery(
        filter=QueryFilter(tuple(conditions)),
        page=int(page),
        limit=int(limit),
        sort=format_sort(sort_keys),
        sort_keys=sort_keys,
    )
