"""Generic CRUD against sandbox tables discovered at runtime."""

from __future__ import annotations

from contextlib import contextmanager
from logging import getLogger
from sqlite3 import Error as SQLiteError
from typing import TYPE_CHECKING

from sandbox import query
from sandbox.config import DEFAULT_CONFIG, SandboxConfig
from sandbox.errors import ExecutionError, SandboxNotInitializedError
from sandbox.inspection import ColumnInfo, SandboxDatabase, open_sandbox
from sandbox.values import Row, Value, cast_fields, value_caster

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

logger = getLogger(__name__)


class CrudGateway:
    """Reads and writes rows of any table in a diagram's sandbox.

    Table and column names are checked against the live sandbox before they
    are quoted into a statement. Values are always bound as parameters.
    """

    def __init__(self, config: SandboxConfig = DEFAULT_CONFIG) -> None:
        """Initialize the gateway with sandbox settings."""
        self.config = config

    @contextmanager
    def _database(self, diagram_id: str) -> Iterator[SandboxDatabase]:
        """Open the diagram's sandbox for one unit of work."""
        location = self.config.sandbox_path(diagram_id)
        if not location.exists():
            raise SandboxNotInitializedError(diagram_id)

        try:
            with open_sandbox(location) as connection:
                yield SandboxDatabase(connection, self.config.metadata_table)
        except (SQLiteError, TypeError, OverflowError) as err:
            logger.debug("Statement failed in sandbox %s: %s", diagram_id, err)
            raise ExecutionError(str(err)) from err

    def rows(self, diagram_id: str, table_name: str) -> list[Row]:
        """Return every row of a table."""
        with self._database(diagram_id) as database:
            return [dict(row) for row in database.table(table_name).rows]

    def describe(self, diagram_id: str, table_name: str) -> list[ColumnInfo]:
        """Return the live column metadata of a table."""
        with self._database(diagram_id) as database:
            return list(database.table(table_name).columns)

    def insert(
        self,
        diagram_id: str,
        table_name: str,
        fields: Mapping[str, object],
    ) -> int:
        """Insert a row and return its row id.

        An empty mapping inserts a row made only of column defaults.
        """
        with self._database(diagram_id) as database:
            table = database.table(table_name)
            row = cast_fields(table.resolve(fields), table.types)
            cursor = database.execute(query.insert(table.name, row), row.values())
            return cursor.lastrowid or 0

    def update(  # noqa: PLR0913
        self,
        diagram_id: str,
        table_name: str,
        pk_column: str,
        pk_value: object,
        fields: Mapping[str, object],
    ) -> int:
        """Update one row by primary key and return the number of changed rows."""
        if not fields:
            msg = f"No fields given to update in {table_name}"
            raise ExecutionError(msg)

        with self._database(diagram_id) as database:
            table = database.table(table_name)
            row = cast_fields(table.resolve(fields), table.types)
            key_column = table.column_name(pk_column)
            key = self._key(pk_value, table.types[key_column])
            cursor = database.execute(
                query.update(table.name, row, key_column),
                (*row.values(), key),
            )
            return cursor.rowcount

    def delete(
        self,
        diagram_id: str,
        table_name: str,
        pk_column: str,
        pk_value: object,
    ) -> int:
        """Delete one row by primary key and return the number of deleted rows."""
        with self._database(diagram_id) as database:
            table = database.table(table_name)
            key_column = table.column_name(pk_column)
            key = self._key(pk_value, table.types[key_column])
            cursor = database.execute(query.delete(table.name, key_column), (key,))
            return cursor.rowcount

    @staticmethod
    def _key(pk_value: object, declared_type: str) -> Value:
        """Cast a primary key value like any other field of its column."""
        return value_caster(declared_type)(pk_value)
