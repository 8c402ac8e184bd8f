"""Deterministic fingerprint of a logical schema for staleness detection."""

from collections.abc import Iterable
from hashlib import sha256
from json import dumps
from typing import Any

from diagram.types import (
    ColumnSchema,
    EnumSchema,
    RelationSchema,
    Snapshot,
    TableSchema,
)

COLUMN_FIELDS = (
    "id",
    "table_id",
    "name",
    "type",
    "is_pk",
    "is_nullable",
    "default_value",
    "enum_id",
)
RELATION_FIELDS = ("from_table_id", "from_column_id", "to_table_id", "to_column_id")


def _project(entity: Any, fields: Iterable[str]) -> dict[str, Any]:  # noqa: ANN401
    """Keep only the given fields of an entity."""
    return {field: entity[field] for field in fields}


def canonical_schema(
    tables: Iterable[TableSchema],
    columns: Iterable[ColumnSchema],
    relations: Iterable[RelationSchema],
    enums: Iterable[EnumSchema] = (),
) -> str:
    """Serialize the fingerprint-relevant projection of a schema.

    Every list is sorted so that entity order in the input does not matter.
    """
    projection = {
        "tables": sorted(
            (_project(table, ("id", "name")) for table in tables),
            key=lambda table: table["id"],
        ),
        "columns": sorted(
            (_project(column, COLUMN_FIELDS) for column in columns),
            key=lambda column: column["id"],
        ),
        "relations": sorted(
            (_project(relation, RELATION_FIELDS) for relation in relations),
            key=lambda relation: tuple(relation[field] for field in RELATION_FIELDS),
        ),
        "enums": sorted(
            (_project(enum, ("id", "name", "values")) for enum in enums),
            key=lambda enum: enum["id"],
        ),
    }
    return dumps(projection, sort_keys=True, separators=(",", ":"))


def fingerprint(
    tables: Iterable[TableSchema],
    columns: Iterable[ColumnSchema],
    relations: Iterable[RelationSchema],
    enums: Iterable[EnumSchema] = (),
) -> str:
    """Reduce a schema to a fixed-width hex digest."""
    text = canonical_schema(tables, columns, relations, enums)
    return sha256(text.encode()).hexdigest()


def snapshot_fingerprint(snapshot: Snapshot) -> str:
    """Fingerprint the schema held by a snapshot."""
    return fingerprint(
        snapshot.tables,
        snapshot.columns,
        snapshot.relations,
        snapshot.enums,
    )
