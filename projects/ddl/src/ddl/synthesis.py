"""CREATE TABLE synthesis for the SQLite sandbox."""

from collections.abc import Iterable, Iterator
from logging import getLogger
from typing import Literal

from ddl.dialect import quote_identifier
from ddl.lowering import lower_default, quote_literal
from ddl.ordering import order_tables
from ddl.type_registry import DEFAULT_REGISTRY, TypeRegistry, lower_type
from diagram.types import (
    ColumnSchema,
    EnumSchema,
    RelationSchema,
    Snapshot,
    TableSchema,
)

logger = getLogger(__name__)

# Lenient drops references that do not resolve, strict raises
type Resolution = Literal["lenient", "strict"]


class UnresolvedReferenceError(ValueError):
    """A relation or enum reference does not resolve within the snapshot."""


def _unresolved(message: str, resolution: Resolution) -> None:
    """Apply the resolution policy to a reference that did not resolve."""
    if resolution == "strict":
        raise UnresolvedReferenceError(message)
    logger.debug("Skipping %s", message)


def enum_check(
    column: ColumnSchema,
    enums_by_id: dict[str, EnumSchema],
    resolution: Resolution = "lenient",
) -> str | None:
    """Render a CHECK constraint restricting a column to its enum's values."""
    if not (enum_id := column["enum_id"]):
        return None
    enum = enums_by_id.get(enum_id)
    if enum is None:
        _unresolved(f"enum {enum_id} of column {column['name']}", resolution)
        return None
    if not enum["values"]:
        return None
    values = ", ".join(quote_literal(value) for value in enum["values"])
    return f"CHECK ({quote_identifier(column['name'])} IN ({values}))"


def column_definition(
    column: ColumnSchema,
    enums_by_id: dict[str, EnumSchema] | None = None,
    *,
    registry: TypeRegistry = DEFAULT_REGISTRY,
    resolution: Resolution = "lenient",
) -> str:
    """Render a single column definition line."""
    parts = [quote_identifier(column["name"]), lower_type(column["type"], registry)]
    if column["is_pk"]:
        parts.append("PRIMARY KEY")
    if not column["is_nullable"]:
        parts.append("NOT NULL")
    if column["default_value"]:
        default = lower_default(column["type"], column["default_value"], registry)
        parts.append(f"DEFAULT {default}")
    if check := enum_check(column, enums_by_id or {}, resolution):
        parts.append(check)
    return " ".join(parts)


def foreign_key_clauses(
    table: TableSchema,
    relations: Iterable[RelationSchema],
    tables_by_id: dict[str, TableSchema],
    columns_by_id: dict[str, ColumnSchema],
    resolution: Resolution = "lenient",
) -> Iterator[str]:
    """Render FOREIGN KEY clauses for relations leaving the table."""
    for relation in relations:
        if relation["from_table_id"] != table["id"]:
            continue

        source = columns_by_id.get(relation["from_column_id"])
        target_table = tables_by_id.get(relation["to_table_id"])
        target = columns_by_id.get(relation["to_column_id"])

        if source is None or target_table is None or target is None:
            _unresolved(f"relation {relation['id']} of table {table['name']}", resolution)
            continue

        yield (
            f"FOREIGN KEY ({quote_identifier(source['name'])}) "
            f"REFERENCES {quote_identifier(target_table['name'])}"
            f"({quote_identifier(target['name'])})"
        )


def create_table_sql(  # noqa: PLR0913
    table: TableSchema,
    columns: Iterable[ColumnSchema],
    relations: Iterable[RelationSchema],
    all_tables: Iterable[TableSchema],
    all_columns: Iterable[ColumnSchema],
    *,
    enums: Iterable[EnumSchema] = (),
    registry: TypeRegistry = DEFAULT_REGISTRY,
    resolution: Resolution = "lenient",
) -> str:
    """Generate the CREATE TABLE statement for one table.

    Columns are rendered in the given order, followed by one FOREIGN KEY
    clause per relation whose source is this table. Tables are not ordered
    here; callers run the dependency sorter first.
    """
    enums_by_id = {enum["id"]: enum for enum in enums}
    lines = [
        column_definition(
            column,
            enums_by_id,
            registry=registry,
            resolution=resolution,
        )
        for column in columns
    ]
    lines.extend(
        foreign_key_clauses(
            table,
            relations,
            {t["id"]: t for t in all_tables},
            {c["id"]: c for c in all_columns},
            resolution,
        ),
    )
    body = ",\n  ".join(lines)
    return f"CREATE TABLE {quote_identifier(table['name'])} (\n  {body}\n);"


def schema_statements(
    snapshot: Snapshot,
    *,
    registry: TypeRegistry = DEFAULT_REGISTRY,
    resolution: Resolution = "lenient",
) -> list[str]:
    """Generate CREATE TABLE statements for a snapshot in dependency order."""
    return [
        create_table_sql(
            table,
            [col for col in snapshot.columns if col["table_id"] == table["id"]],
            snapshot.relations,
            snapshot.tables,
            snapshot.columns,
            enums=snapshot.enums,
            registry=registry,
            resolution=resolution,
        )
        for table in order_tables(snapshot.tables, snapshot.relations)
    ]
