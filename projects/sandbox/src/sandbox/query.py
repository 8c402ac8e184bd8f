"""Statement builders for runtime-discovered tables.

Identifiers are quoted here but must already be validated against the
sandbox; values never appear in the text and are bound as parameters.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ddl import quote_identifier

if TYPE_CHECKING:
    from collections.abc import Iterable


def select(*columns: str) -> Query:
    """Start a SELECT query with the given columns."""
    return Query(columns or ("*",))


def insert(table: str, columns: Iterable[str]) -> str:
    """Generate a parameterized INSERT, or a DEFAULT VALUES insert."""
    names = [quote_identifier(column) for column in columns]
    if not names:
        return f"INSERT INTO {quote_identifier(table)} DEFAULT VALUES"
    placeholders = ", ".join("?" for _ in names)
    return (
        f"INSERT INTO {quote_identifier(table)} ({', '.join(names)}) "
        f"VALUES ({placeholders})"
    )


def update(table: str, columns: Iterable[str], key: str) -> str:
    """Generate a parameterized UPDATE of one row by primary key."""
    assignments = ", ".join(f"{quote_identifier(column)} = ?" for column in columns)
    return (
        f"UPDATE {quote_identifier(table)} SET {assignments} "  # noqa: S608
        f"WHERE {quote_identifier(key)} = ?"
    )


def delete(table: str, key: str) -> str:
    """Generate a parameterized DELETE of one row by primary key."""
    return f"DELETE FROM {quote_identifier(table)} WHERE {quote_identifier(key)} = ?"  # noqa: S608


class Query:
    """A fluent SELECT over one table or table-valued function."""

    def __init__(self, columns: tuple[str, ...]) -> None:
        """Initialize with column expressions."""
        self._columns = columns
        self._table: str | None = None
        self._where: list[str] = []
        self._limit: int | None = None

    def from_(self, table: str) -> Query:
        """Set the FROM clause."""
        self._table = table
        return self

    def where(self, *conditions: str) -> Query:
        """Add a WHERE condition."""
        self._where.extend(conditions)
        return self

    def limit(self, count: int) -> Query:
        """Return at most count rows."""
        self._limit = count
        return self

    def __str__(self) -> str:
        """Render the statement text."""
        if self._table is None:
            msg = "SELECT needs a FROM clause"
            raise ValueError(msg)

        clauses = [f"SELECT {', '.join(self._columns)}", f"FROM {self._table}"]
        if self._where:
            clauses.append(f"WHERE {' AND '.join(self._where)}")
        if self._limit is not None:
            clauses.append(f"LIMIT {self._limit:d}")
        return " ".join(clauses)
