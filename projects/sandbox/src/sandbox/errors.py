"""Errors raised by sandbox operations."""


class SandboxError(Exception):
    """Base class for sandbox failures."""


class DiagramNotFoundError(SandboxError):
    """The diagram does not exist in the logical store."""

    def __init__(self, diagram_id: str) -> None:
        """Initialize with the missing diagram id."""
        super().__init__(f"Diagram not found: {diagram_id}")
        self.diagram_id = diagram_id


class SandboxNotInitializedError(SandboxError):
    """The operation needs a sandbox but none has been built."""

    def __init__(self, diagram_id: str) -> None:
        """Initialize with the diagram id lacking a sandbox."""
        super().__init__(f"Sandbox not initialized for diagram: {diagram_id}")
        self.diagram_id = diagram_id


class ExecutionError(SandboxError):
    """SQLite rejected a statement; the message is the engine's."""


class UnknownTableError(ExecutionError):
    """The table does not exist in the sandbox."""

    def __init__(self, table_name: str) -> None:
        """Initialize with the unknown table name."""
        super().__init__(f"no such table: {table_name}")
        self.table_name = table_name


class UnknownColumnError(ExecutionError):
    """The column does not exist in the sandbox table."""

    def __init__(self, table_name: str, column_name: str) -> None:
        """Initialize with the table and the unknown column name."""
        super().__init__(f"table {table_name} has no column named {column_name}")
        self.table_name = table_name
        self.column_name = column_name
