"""
Tests for the Postgres SQL builders (no database needed).
"""

import json
from decimal import Decimal

import pytest

from lms.services.postgres.sql_builder import (
    build_count,
    build_create_table,
    build_delete,
    build_insert,
    build_order_by,
    build_select,
    build_update,
    build_where,
    escape_like,
    field_expr,
    json_expr,
)
from lms.services.query import Match, QueryFilter, SortKey


class TestExpressions:
    def test_field_expressions(self):
        assert field_expr("id") == "id"
        assert field_expr("name") == "data->>'name'"
        assert field_expr("privacy_settings.profile_visibility") == (
            "data #>> '{privacy_settings,profile_visibility}'"
        )
        assert json_expr("books_count") == "data->'books_count'"
        assert json_expr("privacy_settings.profile_visibility") == (
            "data #> '{privacy_settings,profile_visibility}'"
        )

    @pytest.mark.parametrize("bad", ["name'; drop table x; --", "a b", "1abc", ""])
    def test_invalid_fields_are_rejected(self, bad):
        with pytest.raises(ValueError):
            field_expr(bad)

    def test_escape_like(self):
        assert escape_like("50%_off\\") == "50\\%\\_off\\\\"


class TestWhere:
    def test_conditions(self):
        filter = (
            QueryFilter()
            .where("name", "Foo", Match.CONTAINS)
            .where("is_active", True)
            .where("id", ("a", "b"), Match.IN)
        )
        sql, params = build_where(filter)

        assert sql == (
            "WHERE data->>'name' ILIKE $1 AND data->>'is_active' = $2 AND id = ANY($3::text[])"
        )
        assert params == ["%Foo%", "true", ["a", "b"]]

    def test_empty_filter(self):
        assert build_where(QueryFilter()) == ("", [])

    def test_numeric_values_also_match_stored_numbers(self):
        sql, params = build_where(QueryFilter.equals(review="5"))

        assert sql == (
            "WHERE (data->>'review' = $1 OR data->'review' = to_jsonb($2::numeric))"
        )
        assert params == ["5", Decimal("5")]

    def test_ids_never_compare_numerically(self):
        assert build_where(QueryFilter.equals(id="42")) == ("WHERE id = $1", ["42"])


class TestOrderBy:
    def test_orders_by_jsonb_values(self):
        assert build_order_by((SortKey("books_count", True), SortKey("name"))) == (
            "ORDER BY NULLIF(data->'books_count', 'null'::jsonb) DESC, "
            "NULLIF(data->'name', 'null'::jsonb) ASC, id ASC"
        )

    def test_id_sorts_as_text(self):
        assert build_order_by((SortKey("id"),)) == "ORDER BY id ASC, id ASC"


class TestStatements:
    def test_select_with_paging(self):
        sql, params = build_select(
            "pronouns",
            QueryFilter.equals(name="she/her"),
            sort=(SortKey("created_at", True),),
            offset=20,
            limit=10,
        )
        assert sql == (
            "SELECT data FROM pronouns WHERE data->>'name' = $1 "
            "ORDER BY NULLIF(data->'created_at', 'null'::jsonb) DESC, id ASC OFFSET $2 LIMIT $3"
        )
        assert params == ["she/her", 20, 10]

    def test_count(self):
        assert build_count("faqs", None) == ("SELECT COUNT(*) FROM faqs", [])

    def test_insert_update_delete(self):
        sql, params = build_insert("faqs", {"id": "f1", "question": "Why?"})
        assert sql.startswith("INSERT INTO faqs (id, data)")
        assert params[0] == "f1"
        assert json.loads(params[1])["question"] == "Why?"

        sql, params = build_update("faqs", "f1", {"answer": "Because"})
        assert "data = data || $2::jsonb" in sql
        assert params == ["f1", json.dumps({"answer": "Because"})]

        sql, params = build_delete("faqs", ["f1", "f2"])
        assert sql == "DELETE FROM faqs WHERE id = ANY($1::text[]) RETURNING data"
        assert params == [["f1", "f2"]]

    def test_create_table_with_unique_index(self):
        statements = build_create_table("users", ("username",))
        assert statements[0].startswith("CREATE TABLE IF NOT EXISTS users")
        assert statements[-1] == (
            "CREATE UNIQUE INDEX IF NOT EXISTS uq_users_username ON users ((data->>'username'))"
        )

    def test_invalid_table_name(self):
        with pytest.raises(ValueError):
            build_count("users; drop", None)
