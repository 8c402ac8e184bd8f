"""Command line interface for Sandbox Toolkit."""

import logging
import sys
from collections.abc import Iterable, Mapping
from json import JSONDecodeError, dumps, loads
from pathlib import Path
from sys import stdout
from typing import Annotated, Any, Literal

from cyclopts import App, Parameter
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from diagram import DiagramStore, read_only_store
from export import diagram_to_sql, export_filename
from sandbox import (
    DEFAULT_CONFIG,
    CrudGateway,
    SandboxConfig,
    SandboxError,
    SandboxManager,
    load_config,
)

app = App(help="Sandbox Toolkit CLI tool")


type Format = Literal["table", "json"]


console = Console()
err_console = Console(stderr=True)

# Constants
SQLITE_EXTENSIONS = {".sqlite", ".db", ".sqlite3"}


def print_error(message: str) -> None:
    """Print error message to stderr."""
    err_console.print(f"[bold red]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print success message to stderr."""
    err_console.print(f"[bold green]✓[/] {message}")


def print_info(message: str) -> None:
    """Print info message to stderr."""
    err_console.print(f"[bold blue]i[/] {message}")


def validate_database_location(database_location: Path) -> None:
    """Validate the logical store exists and looks like a SQLite file."""
    if not database_location.exists():
        print_error(f"Database file does not exist: {database_location}")
        sys.exit(1)
    if database_location.suffix.lower() not in SQLITE_EXTENSIONS:
        print_error(
            f"Database file has invalid extension: {', '.join(SQLITE_EXTENSIONS)}",
        )
        sys.exit(1)


def sandbox_config(config: Path | None) -> SandboxConfig:
    """Load sandbox settings, exiting on a malformed file."""
    if config is None:
        return DEFAULT_CONFIG
    try:
        return load_config(config)
    except (OSError, ValueError) as e:
        print_error(f"Invalid configuration {config}: {e}")
        sys.exit(1)


def open_store(store: Path) -> DiagramStore:
    """Open the logical store read-only."""
    validate_database_location(store)
    return DiagramStore(read_only_store(store))


def parse_fields(data: str) -> dict[str, Any]:
    """Parse a JSON object of field values."""
    try:
        fields = loads(data)
    except JSONDecodeError as e:
        print_error(f"Fields are not valid JSON: {e}")
        sys.exit(1)
    if not isinstance(fields, dict):
        print_error("Fields must be a JSON object")
        sys.exit(1)
    return fields


def parse_value(raw: str) -> Any:  # noqa: ANN401
    """Parse a primary key value as JSON, falling back to the raw text."""
    try:
        return loads(raw)
    except JSONDecodeError:
        return raw


def format_rows(title: str, rows: Iterable[Mapping[str, Any]]) -> None:
    """Format rows as a rich table."""
    rows = list(rows)
    if not rows:
        console.print(f"{title}: no rows.")
        return

    table = Table(title=title)
    for column in rows[0]:
        table.add_column(column, style="bold cyan" if column == "name" else None)
    for row in rows:
        table.add_row(
            *("NULL" if value is None else str(value) for value in row.values()),
        )
    console.print(table)


def output(title: str, rows: Iterable[Mapping[str, Any]], fmt: Format) -> None:
    """Write rows to stdout in the requested format."""
    if fmt == "json":
        stdout.write(dumps(list(rows)))
    elif fmt == "table":
        format_rows(title, rows)


@app.command
def status(
    store: Path,
    diagram_id: str,
    *,
    config: Path | None = None,
    fmt: Format = "table",
) -> None:
    """Show whether the sandbox exists and matches its diagram."""
    manager = SandboxManager(open_store(store), sandbox_config(config))
    try:
        sandbox_status = manager.status(diagram_id)
    except ValueError as e:
        print_error(str(e))
        sys.exit(1)

    if fmt == "json":
        stdout.write(dumps(sandbox_status._asdict()))
        return

    table = Table(show_header=False)
    table.add_column("Key", style="bold blue")
    table.add_column("Value")
    for key, value in sandbox_status._asdict().items():
        table.add_row(key, str(value))
    console.print(table)


@app.command
def rebuild(store: Path, diagram_id: str, *, config: Path | None = None) -> None:
    """Drop and rebuild the sandbox from the logical schema."""
    manager = SandboxManager(open_store(store), sandbox_config(config))
    print_info(f"Sandbox: {manager.config.sandbox_path(diagram_id)}")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=err_console,
    ) as progress:
        progress.add_task("Rebuilding sandbox...", total=None)
        try:
            result = manager.rebuild(diagram_id)
        except (SandboxError, ValueError, SQLAlchemyError) as e:
            print_error(f"Rebuild failed: {e}")
            sys.exit(1)

    print_info(f"Schema hash: {result.fingerprint}")
    print_success(f"Created {len(result.tables)} tables: {', '.join(result.tables)}")


@app.command
def teardown(store: Path, diagram_id: str, *, config: Path | None = None) -> None:
    """Delete the sandbox of a diagram."""
    manager = SandboxManager(open_store(store), sandbox_config(config))
    try:
        manager.teardown(diagram_id)
    except (ValueError, OSError) as e:
        print_error(str(e))
        sys.exit(1)
    print_success(f"Sandbox removed for diagram {diagram_id}")


@app.command
def rows(
    diagram_id: str,
    table: str,
    *,
    config: Path | None = None,
    fmt: Format = "table",
) -> None:
    """List every row of a sandbox table."""
    gateway = CrudGateway(sandbox_config(config))
    try:
        data = gateway.rows(diagram_id, table)
    except (SandboxError, ValueError) as e:
        print_error(str(e))
        sys.exit(1)
    output(table, data, fmt)


@app.command
def describe(
    diagram_id: str,
    table: str,
    *,
    config: Path | None = None,
    fmt: Format = "table",
) -> None:
    """Show the live columns of a sandbox table."""
    gateway = CrudGateway(sandbox_config(config))
    try:
        columns = gateway.describe(diagram_id, table)
    except (SandboxError, ValueError) as e:
        print_error(str(e))
        sys.exit(1)
    output(table, columns, fmt)


@app.command
def insert(
    diagram_id: str,
    table: str,
    data: str = "{}",
    *,
    config: Path | None = None,
) -> None:
    """Insert a row given as a JSON object; omitted columns take defaults."""
    gateway = CrudGateway(sandbox_config(config))
    try:
        row_id = gateway.insert(diagram_id, table, parse_fields(data))
    except (SandboxError, ValueError) as e:
        print_error(f"Insert failed: {e}")
        sys.exit(1)
    print_success(f"Inserted row {row_id} into {table}")


@app.command
def update(  # noqa: PLR0913
    diagram_id: str,
    table: str,
    pk_column: str,
    pk_value: str,
    data: str,
    *,
    config: Path | None = None,
) -> None:
    """Update the row with the given primary key from a JSON object."""
    gateway = CrudGateway(sandbox_config(config))
    try:
        changes = gateway.update(
            diagram_id,
            table,
            pk_column,
            parse_value(pk_value),
            parse_fields(data),
        )
    except (SandboxError, ValueError) as e:
        print_error(f"Update failed: {e}")
        sys.exit(1)
    print_success(f"Updated {changes} row(s) in {table}")


@app.command
def delete(
    diagram_id: str,
    table: str,
    pk_column: str,
    pk_value: str,
    *,
    config: Path | None = None,
) -> None:
    """Delete the row with the given primary key."""
    gateway = CrudGateway(sandbox_config(config))
    try:
        changes = gateway.delete(diagram_id, table, pk_column, parse_value(pk_value))
    except (SandboxError, ValueError) as e:
        print_error(f"Delete failed: {e}")
        sys.exit(1)
    print_success(f"Deleted {changes} row(s) from {table}")


@app.command
def export(store: Path, diagram_id: str, *, output_dir: Path | None = None) -> None:
    """Export a diagram as SQL in its declared dialect."""
    diagram_store = open_store(store)
    snapshot = diagram_store.snapshot(diagram_id)
    if snapshot is None:
        print_error(f"Diagram not found: {diagram_id}")
        sys.exit(1)

    sql = diagram_to_sql(snapshot)
    if output_dir is None:
        stdout.write(sql)
        return

    location = output_dir / export_filename(snapshot.diagram)
    try:
        location.write_text(sql)
    except (PermissionError, OSError) as e:
        print_error(f"Failed to write output file: {e}")
        sys.exit(1)
    print_success(f"SQL written to {location}")


@app.meta.default
def launcher(
    *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
    verbose: bool = False,
) -> None:
    """Configure logging on stderr, then run the requested command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )
    app(tokens)


def main() -> None:
    """Entry point for the CLI."""
    app.meta()


if __name__ == "__main__":
    main()
