"""SQL builders for the Postgres document store.

Every collection is one table:

    CREATE TABLE pronouns (id TEXT PRIMARY KEY, data JSONB NOT NULL)

Filters read field values as text (data->>'name', data #>> '{a,b}'), the same
text form the in-memory repository compares with; numeric query values also
match stored numbers through JSONB equality. Sorting uses the JSONB values
themselves (data->'name'), so numbers order numerically. Identifiers are
validated and inlined; values are always bound parameters.

All builders return (sql, params) and never touch a connection.
"""

import json
import re
from typing import Any

from ..query import Match, QueryFilter, SortKey, as_number, as_text, is_field_path

TABLE_NAME = re.compile(r"^[a-z_][a-z0-9_]*$")


def check_table(table_name: str) -> str:
    if not TABLE_NAME.match(table_name):
        raise ValueError(f"Invalid table name: {table_name!r}")
    return table_name


def _parts(name: str) -> list[str]:
    if not is_field_path(name):
        raise ValueError(f"Invalid field name: {name!r}")
    return name.split(".")


def field_expr(name: str) -> str:
    """Text expression for a (possibly dotted) field."""
    if name == "id":
        return "id"
    parts = _parts(name)
    if len(parts) == 1:
        return f"data->>'{name}'"
    return f"data #>> '{{{','.join(parts)}}}'"


def json_expr(name: str) -> str:
    """JSONB expression for a (possibly dotted) field; id stays text."""
    if name == "id":
        return "id"
    parts = _parts(name)
    if len(parts) == 1:
        return f"data->'{name}'"
    return f"data #> '{{{','.join(parts)}}}'"


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so the value matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_where(filter: QueryFilter | None, start: int = 1) -> tuple[str, list[Any]]:
    """
    WHERE clause for a filter.

    Args:
        filter: Conditions AND-ed together
        start: Number of the first positional parameter

    Returns:
        Tuple of (clause or "", params)
    """
    if not filter:
        return "", []

    clauses = []
    params: list[Any] = []
    for condition in filter.conditions:
        expr = field_expr(condition.field)
        n = start + len(params)
        if condition.match is Match.CONTAINS:
            clauses.append(f"{expr} ILIKE ${n}")
            params.append(f"%{escape_like(str(condition.value))}%")
        elif condition.match is Match.IN:
            clauses.append(f"{expr} = ANY(${n}::text[])")
            params.append([as_text(v) for v in condition.value])
        else:
            number = as_number(condition.value) if condition.field != "id" else None
            if number is None:
                clauses.append(f"{expr} = ${n}")
                params.append(as_text(condition.value))
            else:
                # "5" also matches a stored 5.0
                clauses.append(
                    f"({expr} = ${n} OR {json_expr(condition.field)} = to_jsonb(${n + 1}::numeric))"
                )
                params.extend([as_text(condition.value), number])

    return "WHERE " + " AND ".join(clauses), params


def sort_expr(name: str) -> str:
    return "id" if name == "id" else f"NULLIF({json_expr(name)}, 'null'::jsonb)"


def build_order_by(sort: tuple[SortKey, ...]) -> str:
    """
    ORDER BY on JSONB values (type-aware: numbers sort numerically).

    JSON nulls are treated as missing so they sort last ascending, first
    descending, like absent fields.
    """
    keys = []
    for k in sort:
        expr = sort_expr(k.field)
        keys.append(f"{expr} {'DESC' if k.descending else 'ASC'}")
    keys.append("id ASC")
    return "ORDER BY " + ", ".join(keys)


def build_select(
    table_name: str,
    filter: QueryFilter | None,
    sort: tuple[SortKey, ...] = (),
    offset: int = 0,
    limit: int | None = None,
) -> tuple[str, list[Any]]:
    """
    Build SELECT for a page of documents.

    Example:
        build_select("pronouns", QueryFilter.equals(name="she/her"), limit=10)
        -> ("SELECT data FROM pronouns WHERE data->>'name' = $1
             ORDER BY id ASC OFFSET $2 LIMIT $3", ["she/her", 0, 10])
    """
    where, params = build_where(filter)
    parts = [f"SELECT data FROM {check_table(table_name)}"]
    if where:
        parts.append(where)
    parts.append(build_order_by(sort))
    params.append(offset)
    parts.append(f"OFFSET ${len(params)}")
    if limit is not None:
        params.append(limit)
        parts.append(f"LIMIT ${len(params)}")
    return " ".join(parts), params


def build_count(table_name: str, filter: QueryFilter | None) -> tuple[str, list[Any]]:
    where, params = build_where(filter)
    sql = f"SELECT COUNT(*) FROM {check_table(table_name)}"
    return (f"{sql} {where}" if where else sql), params


def build_insert(table_name: str, document: dict[str, Any]) -> tuple[str, list[Any]]:
    sql = (
        f"INSERT INTO {check_table(table_name)} (id, data) "
        "VALUES ($1, $2::jsonb) RETURNING data"
    )
    return sql, [str(document["id"]), json.dumps(document)]


def build_update(
    table_name: str, record_id: str, changes: dict[str, Any]
) -> tuple[str, list[Any]]:
    """Shallow JSONB merge of changes into one document."""
    sql = (
        f"UPDATE {check_table(table_name)} SET data = data || $2::jsonb "
        "WHERE id = $1 RETURNING data"
    )
    return sql, [record_id, json.dumps(changes)]


def build_delete(table_name: str, ids: list[str]) -> tuple[str, list[Any]]:
    sql = f"DELETE FROM {check_table(table_name)} WHERE id = ANY($1::text[]) RETURNING data"
    return sql, [list(ids)]


def build_create_table(table_name: str, unique_fields: tuple[str, ...] = ()) -> list[str]:
    """DDL for a collection table and its unique expression indexes."""
    table = check_table(table_name)
    statements = [
        f"CREATE TABLE IF NOT EXISTS {table} (id TEXT PRIMARY KEY, data JSONB NOT NULL)",
        f"CREATE INDEX IF NOT EXISTS idx_{table}_created_at "
        f"ON {table} (({sort_expr('created_at')}))",
    ]
    for name in unique_fields:
        index = f"uq_{table}_{name.replace('.', '_')}"
        statements.append(
            f"CREATE UNIQUE INDEX IF NOT EXISTS {index} ON {table} (({field_expr(name)}))"
        )
    return statements
