"""Read access to the designer's logical schema store."""

from collections import defaultdict
from pathlib import Path
from typing import Protocol

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Engine,
    Float,
    ForeignKey,
    MetaData,
    String,
    Table,
    create_engine,
    select,
)

from diagram.types import (
    ColumnSchema,
    DiagramSchema,
    EnumSchema,
    RelationSchema,
    Snapshot,
    TableSchema,
)

metadata = MetaData()

diagrams = Table(
    "diagrams",
    metadata,
    Column("id", String, primary_key=True),
    Column("name", String, nullable=False),
    Column("database_type", String),
    Column("created_at", DateTime),
)

tables = Table(
    "tables",
    metadata,
    Column("id", String, primary_key=True),
    Column("diagram_id", ForeignKey("diagrams.id", ondelete="CASCADE"), nullable=False),
    Column("name", String, nullable=False),
    Column("x", Float, nullable=False, default=0),
    Column("y", Float, nullable=False, default=0),
    Column("color", String),
)

enums = Table(
    "enums",
    metadata,
    Column("id", String, primary_key=True),
    Column("diagram_id", ForeignKey("diagrams.id", ondelete="CASCADE"), nullable=False),
    Column("name", String, nullable=False),
    Column("x", Float, nullable=False, default=0),
    Column("y", Float, nullable=False, default=0),
    Column("color", String, nullable=False, default="#10b981"),
)

enum_values = Table(
    "enum_values",
    metadata,
    Column("id", String, primary_key=True),
    Column("enum_id", ForeignKey("enums.id", ondelete="CASCADE"), nullable=False),
    Column("value", String, nullable=False),
)

columns = Table(
    "columns",
    metadata,
    Column("id", String, primary_key=True),
    Column("table_id", ForeignKey("tables.id", ondelete="CASCADE"), nullable=False),
    Column("name", String, nullable=False),
    Column("type", String, nullable=False),
    Column("is_pk", Boolean, nullable=False, default=False),
    Column("is_nullable", Boolean, nullable=False, default=True),
    Column("default_value", String),
    Column("enum_id", ForeignKey("enums.id")),
)

relations = Table(
    "relations",
    metadata,
    Column("id", String, primary_key=True),
    Column("diagram_id", ForeignKey("diagrams.id", ondelete="CASCADE"), nullable=False),
    Column("from_table_id", ForeignKey("tables.id", ondelete="CASCADE"), nullable=False),
    Column("from_column_id", ForeignKey("columns.id", ondelete="CASCADE"), nullable=False),
    Column("to_table_id", ForeignKey("tables.id", ondelete="CASCADE"), nullable=False),
    Column("to_column_id", ForeignKey("columns.id", ondelete="CASCADE"), nullable=False),
)


class SchemaSource(Protocol):
    """Anything that can produce a snapshot of a diagram's logical schema."""

    def snapshot(self, diagram_id: str) -> Snapshot | None:
        """Return the diagram's snapshot, or None when it does not exist."""
        ...


def read_only_store(store_location: Path) -> Engine:
    """Create a read-only SQLAlchemy engine for a SQLite logical store."""
    connection_string = f"sqlite:///file:{store_location}?mode=ro&uri=true"
    return create_engine(connection_string)


def create_store_schema(engine: Engine) -> None:
    """Create the logical store tables, used for development databases."""
    metadata.create_all(engine)


class DiagramStore:
    """Reads diagrams, tables, columns, relations and enums from the store."""

    def __init__(self, engine: Engine) -> None:
        """Initialize the store reader with an engine."""
        self._engine = engine

    def diagram(self, diagram_id: str) -> DiagramSchema | None:
        """Return the diagram with the given identity."""
        query = select(diagrams.c.id, diagrams.c.name, diagrams.c.database_type).where(
            diagrams.c.id == diagram_id,
        )
        with self._engine.connect() as connection:
            row = connection.execute(query).first()
        if row is None:
            return None
        return {
            "id": row.id,
            "name": row.name,
            "database_type": row.database_type or "generic",
        }

    def tables(self, diagram_id: str) -> list[TableSchema]:
        """Return the tables of a diagram in store order."""
        query = select(tables.c.id, tables.c.diagram_id, tables.c.name).where(
            tables.c.diagram_id == diagram_id,
        )
        with self._engine.connect() as connection:
            return [
                {"id": row.id, "diagram_id": row.diagram_id, "name": row.name}
                for row in connection.execute(query)
            ]

    def columns(self) -> list[ColumnSchema]:
        """Return every column in the store, regardless of diagram."""
        query = select(
            columns.c.id,
            columns.c.table_id,
            columns.c.name,
            columns.c.type,
            columns.c.is_pk,
            columns.c.is_nullable,
            columns.c.default_value,
            columns.c.enum_id,
        )
        with self._engine.connect() as connection:
            return [
                {
                    "id": row.id,
                    "table_id": row.table_id,
                    "name": row.name,
                    "type": row.type,
                    "is_pk": bool(row.is_pk),
                    "is_nullable": bool(row.is_nullable),
                    "default_value": row.default_value,
                    "enum_id": row.enum_id,
                }
                for row in connection.execute(query)
            ]

    def relations(self, diagram_id: str) -> list[RelationSchema]:
        """Return the relations of a diagram in store order."""
        query = select(
            relations.c.id,
            relations.c.diagram_id,
            relations.c.from_table_id,
            relations.c.from_column_id,
            relations.c.to_table_id,
            relations.c.to_column_id,
        ).where(relations.c.diagram_id == diagram_id)
        with self._engine.connect() as connection:
            return [
                {
                    "id": row.id,
                    "diagram_id": row.diagram_id,
                    "from_table_id": row.from_table_id,
                    "from_column_id": row.from_column_id,
                    "to_table_id": row.to_table_id,
                    "to_column_id": row.to_column_id,
                }
                for row in connection.execute(query)
            ]

    def enums(self, diagram_id: str) -> list[EnumSchema]:
        """Return the enums of a diagram with their values in store order."""
        enum_query = select(enums.c.id, enums.c.diagram_id, enums.c.name).where(
            enums.c.diagram_id == diagram_id,
        )
        value_query = (
            select(enum_values.c.enum_id, enum_values.c.value)
            .join(enums, enums.c.id == enum_values.c.enum_id)
            .where(enums.c.diagram_id == diagram_id)
        )
        with self._engine.connect() as connection:
            values_by_enum: defaultdict[str, list[str]] = defaultdict(list)
            for row in connection.execute(value_query):
                values_by_enum[row.enum_id].append(row.value)
            return [
                {
                    "id": row.id,
                    "diagram_id": row.diagram_id,
                    "name": row.name,
                    "values": values_by_enum[row.id],
                }
                for row in connection.execute(enum_query)
            ]

    def snapshot(self, diagram_id: str) -> Snapshot | None:
        """Assemble a snapshot of one diagram, filtering columns by table."""
        diagram = self.diagram(diagram_id)
        if diagram is None:
            return None

        diagram_tables = self.tables(diagram_id)
        table_ids = {table["id"] for table in diagram_tables}

        return Snapshot(
            diagram=diagram,
            tables=diagram_tables,
            columns=[col for col in self.columns() if col["table_id"] in table_ids],
            relations=self.relations(diagram_id),
            enums=self.enums(diagram_id),
        )
