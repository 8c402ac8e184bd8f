"""Flat SQL export of a diagram in its declared dialect."""

import re
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from ddl import quote_char, quote_identifier
from diagram.types import ColumnSchema, DiagramSchema, Snapshot

TEMPLATE_DIR = Path(__file__).parent / "templates"

# SQL is not markup, so nothing is escaped
_JINJA_ENV = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=False,  # noqa: S701
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)


def column_line(column: ColumnSchema, quote: str) -> str:
    """Render a column with its logical type as written by the user."""
    line = f"{quote_identifier(column['name'], quote)} {column['type']}"
    if column["is_pk"]:
        line += " PRIMARY KEY"
    if not column["is_nullable"]:
        line += " NOT NULL"
    return line


def foreign_key_statements(snapshot: Snapshot, quote: str) -> Iterator[str]:
    """Render one ALTER TABLE statement per resolvable relation."""
    tables_by_id = {table["id"]: table for table in snapshot.tables}
    columns_by_id = {column["id"]: column for column in snapshot.columns}

    for relation in snapshot.relations:
        source_table = tables_by_id.get(relation["from_table_id"])
        source = columns_by_id.get(relation["from_column_id"])
        target_table = tables_by_id.get(relation["to_table_id"])
        target = columns_by_id.get(relation["to_column_id"])
        if not (source_table and source and target_table and target):
            continue

        constraint = f"fk_{source_table['name']}_{source['name']}"
        yield (
            f"ALTER TABLE {quote_identifier(source_table['name'], quote)} "
            f"ADD CONSTRAINT {quote_identifier(constraint, quote)} "
            f"FOREIGN KEY ({quote_identifier(source['name'], quote)}) "
            f"REFERENCES {quote_identifier(target_table['name'], quote)}"
            f"({quote_identifier(target['name'], quote)});"
        )


def diagram_to_sql(snapshot: Snapshot, exported_at: datetime | None = None) -> str:
    """Create SQL text with one CREATE TABLE per table, then the foreign keys.

    Tables keep their diagram order and are not dependency sorted; foreign
    keys are added afterwards so the script runs in any order.
    """
    database_type = snapshot.diagram["database_type"]
    quote = quote_char(database_type)

    tables = [
        {
            "name": quote_identifier(table["name"], quote),
            "columns": [
                column_line(column, quote)
                for column in snapshot.columns
                if column["table_id"] == table["id"]
            ],
        }
        for table in snapshot.tables
    ]

    template = _JINJA_ENV.get_template("export.sql.j2")
    return template.render(
        diagram_name=snapshot.diagram["name"],
        database_type=database_type,
        exported_at=(exported_at or datetime.now(UTC)).isoformat(),
        tables=tables,
        foreign_keys=list(foreign_key_statements(snapshot, quote)),
    )


def export_filename(diagram: DiagramSchema) -> str:
    """Return the download file name for a diagram's SQL export."""
    stem = re.sub(r"\s+", "_", diagram["name"])
    return f"{stem}.sql"
