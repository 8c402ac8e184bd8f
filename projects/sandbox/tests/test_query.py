"""Tests for statement text builders."""

import pytest

from sandbox import query


def test_select() -> None:
    """Test a SELECT with conditions and a limit."""
    sql = (
        query.select("name")
        .from_("sqlite_schema")
        .where("type='table'", "name != ?")
        .limit(1)
    )
    assert str(sql) == "SELECT name FROM sqlite_schema WHERE type='table' AND name != ? LIMIT 1"


def test_select_all() -> None:
    """Test no columns selects everything."""
    assert str(query.select().from_('"users"')) == 'SELECT * FROM "users"'


def test_select_requires_table() -> None:
    """Test rendering without a FROM clause fails."""
    with pytest.raises(ValueError, match="FROM clause"):
        str(query.select("1"))


def test_insert() -> None:
    """Test identifiers are quoted and values are placeholders."""
    assert query.insert("users", ["name", 'odd"col']) == (
        'INSERT INTO "users" ("name", "odd""col") VALUES (?, ?)'
    )
    assert query.insert("users", []) == 'INSERT INTO "users" DEFAULT VALUES'


def test_update_and_delete() -> None:
    """Test single row statements keyed on one column."""
    assert query.update("users", ["name", "email"], "id") == (
        'UPDATE "users" SET "name" = ?, "email" = ? WHERE "id" = ?'
    )
    assert query.delete("users", "id") == 'DELETE FROM "users" WHERE "id" = ?'
