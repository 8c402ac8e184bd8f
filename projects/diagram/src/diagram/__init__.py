"""Logical schema of diagrams and read access to the designer's store."""

from diagram.store import (
    DiagramStore,
    SchemaSource,
    create_store_schema,
    read_only_store,
)
from diagram.types import (
    ColumnSchema,
    DiagramSchema,
    EnumSchema,
    RelationSchema,
    Snapshot,
    TableSchema,
)

__all__ = [
    "ColumnSchema",
    "DiagramSchema",
    "DiagramStore",
    "EnumSchema",
    "RelationSchema",
    "SchemaSource",
    "Snapshot",
    "TableSchema",
    "create_store_schema",
    "read_only_store",
]
