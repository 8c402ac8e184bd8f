"""Sandbox connections and live schema inspection using sqlite3."""

from __future__ import annotations

from contextlib import contextmanager
from functools import cached_property
from sqlite3 import Connection, Cursor, Row, connect
from typing import TYPE_CHECKING, TypedDict

from ddl import quote_identifier
from sandbox.errors import UnknownColumnError, UnknownTableError
from sandbox.query import select

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping
    from pathlib import Path

    from sandbox.values import Value


class ColumnInfo(TypedDict):
    """A column of a live sandbox table, as reported by pragma_table_info."""

    cid: int
    name: str
    type: str
    notnull: int
    dflt_value: str | None
    pk: int


@contextmanager
def open_sandbox(location: Path, *, create: bool = False) -> Iterator[Connection]:
    """Open a sandbox for one unit of work with foreign keys enforced.

    Commits when the block succeeds, rolls back when it raises, and always
    closes the connection. Without create, a missing file is an error rather
    than silently created.
    """
    mode = "rwc" if create else "rw"
    connection = connect(f"{location.resolve().as_uri()}?mode={mode}", uri=True)
    try:
        connection.row_factory = Row
        connection.execute("PRAGMA foreign_keys = ON")
        yield connection
        connection.commit()
    except BaseException:
        connection.rollback()
        raise
    finally:
        connection.close()


class SandboxDatabase:
    """Inspects a sandbox database, hiding its metadata table."""

    def __init__(self, connection: Connection, metadata_table: str) -> None:
        """Initialize inspector with a connection and the metadata table name."""
        self._connection = connection
        self._table_cache: dict[str, SandboxTable] = {}
        self.metadata_table = metadata_table

    def execute(self, query: object, parameters: Iterable[Value] = ()) -> Cursor:
        """Proxies a query to the underlying connection."""
        return self._connection.execute(str(query), tuple(parameters))

    @cached_property
    def tables(self) -> frozenset[str]:
        """Return all user table names, excluding system and metadata tables."""
        cursor = self.execute(
            select("name")
            .from_("sqlite_schema")
            .where("type='table'")
            .where("name NOT LIKE 'sqlite_%'")
            .where("name != ?"),
            (self.metadata_table,),
        )
        return frozenset(row["name"] for row in cursor)

    @cached_property
    def _table_names(self) -> dict[str, str]:
        """Map case-folded table names to their declared spelling."""
        return {name.casefold(): name for name in self.tables}

    def table(self, table_name: str) -> SandboxTable:
        """Return the live table with the given name, matched like SQLite does.

        Names are compared case-insensitively.
        """
        name = self._table_names.get(table_name.casefold())
        if name is None:
            raise UnknownTableError(table_name)
        if name not in self._table_cache:
            self._table_cache[name] = SandboxTable(self, name)
        return self._table_cache[name]

    def write_fingerprint(self, digest: str) -> None:
        """Create the metadata table holding the schema fingerprint."""
        name = quote_identifier(self.metadata_table)
        self.execute(f"CREATE TABLE {name} (hash TEXT)")
        self.execute(f"INSERT INTO {name} (hash) VALUES (?)", (digest,))  # noqa: S608

    def stored_fingerprint(self) -> str | None:
        """Return the fingerprint stored when the sandbox was built."""
        name = quote_identifier(self.metadata_table)
        row = self.execute(select("hash").from_(name).limit(1)).fetchone()
        return row["hash"] if row else None


class SandboxTable:
    """A live table whose columns are discovered at runtime."""

    def __init__(self, database: SandboxDatabase, table_name: str) -> None:
        """Initialize table with its database and name."""
        self._database = database
        self.name = table_name

    @cached_property
    def columns(self) -> tuple[ColumnInfo, ...]:
        """Return column metadata for this table."""
        cursor = self._database.execute(
            select("cid", "name", "type", "notnull", "dflt_value", "pk")
            .from_("pragma_table_info(?)"),
            (self.name,),
        )
        return tuple(
            ColumnInfo(
                cid=row["cid"],
                name=row["name"],
                type=row["type"],
                notnull=row["notnull"],
                dflt_value=row["dflt_value"],
                pk=row["pk"],
            )
            for row in cursor
        )

    @cached_property
    def types(self) -> dict[str, str]:
        """Return declared type by column name."""
        return {column["name"]: column["type"] for column in self.columns}

    @cached_property
    def primary_keys(self) -> tuple[str, ...]:
        """Return primary key column names for this table."""
        return tuple(column["name"] for column in self.columns if column["pk"])

    @cached_property
    def _column_names(self) -> dict[str, str]:
        """Map case-folded column names to their declared spelling."""
        return {column["name"].casefold(): column["name"] for column in self.columns}

    def column_name(self, column_name: str) -> str:
        """Return the declared spelling of a column, rejecting unknown names."""
        name = self._column_names.get(column_name.casefold())
        if name is None:
            raise UnknownColumnError(self.name, column_name)
        return name

    def resolve(self, fields: Mapping[str, object]) -> dict[str, object]:
        """Key the fields by declared column names, keeping their order."""
        return {self.column_name(name): value for name, value in fields.items()}

    @property
    def rows(self) -> Cursor:
        """Return all rows from this table."""
        return self._database.execute(select().from_(quote_identifier(self.name)))
