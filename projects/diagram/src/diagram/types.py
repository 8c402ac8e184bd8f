"""TypedDict schemas for the logical schema of a diagram."""

from typing import NamedTuple, TypedDict


class DiagramSchema(TypedDict):
    """Schema for a diagram."""

    id: str
    name: str
    database_type: str  # Declared export dialect, "generic" when unset


class TableSchema(TypedDict):
    """Schema for a logical table."""

    id: str
    diagram_id: str
    name: str  # Display name, also the physical relation name


class ColumnSchema(TypedDict):
    """Schema for a logical column."""

    id: str
    table_id: str
    name: str
    type: str  # Free-form logical type, e.g. "VARCHAR" or "UUID"
    is_pk: bool
    is_nullable: bool
    default_value: str | None
    enum_id: str | None


class RelationSchema(TypedDict):
    """Foreign key as source/target column identities."""

    id: str
    diagram_id: str
    from_table_id: str
    from_column_id: str
    to_table_id: str
    to_column_id: str


class EnumSchema(TypedDict):
    """Schema for an enum with its ordered values."""

    id: str
    diagram_id: str
    name: str
    values: list[str]


class Snapshot(NamedTuple):
    """Read-only view of one diagram's logical schema."""

    diagram: DiagramSchema
    tables: list[TableSchema]
    columns: list[ColumnSchema]  # Only columns owned by the tables above
    relations: list[RelationSchema]
    enums: list[EnumSchema]
