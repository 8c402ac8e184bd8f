"""JSON-ready results for the sandbox operations served over HTTP."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any, NotRequired, TypedDict

from sqlalchemy.exc import SQLAlchemyError

from sandbox.config import DEFAULT_CONFIG, SandboxConfig
from sandbox.errors import SandboxError
from sandbox.gateway import CrudGateway
from sandbox.lifecycle import SandboxManager

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from diagram import SchemaSource

logger = getLogger(__name__)


class StatusResult(TypedDict):
    """Sandbox status as returned to clients."""

    exists: bool
    is_stale: bool
    table_count: int
    schema_hash: NotRequired[str]


class CrudResult(TypedDict):
    """Outcome of a sandbox operation as returned to clients."""

    success: bool
    data: NotRequired[Any]
    error: NotRequired[str]


def _result(operation: Callable[[], Any]) -> CrudResult:
    """Run an operation, turning its failure into an error result."""
    try:
        data = operation()
    except (SandboxError, ValueError, SQLAlchemyError) as err:
        logger.info("Sandbox operation failed: %s", err)
        return {"success": False, "error": str(err)}
    if data is None:
        return {"success": True}
    return {"success": True, "data": data}


class SandboxService:
    """Front for the sandbox manager and gateway that never raises."""

    def __init__(self, store: SchemaSource, config: SandboxConfig = DEFAULT_CONFIG) -> None:
        """Initialize the service with a logical schema source and settings."""
        self.manager = SandboxManager(store, config)
        self.gateway = CrudGateway(config)

    def status(self, diagram_id: str) -> StatusResult:
        """Report the sandbox status of a diagram."""
        try:
            status = self.manager.status(diagram_id)
        except ValueError as err:
            logger.info("Sandbox status unavailable: %s", err)
            return {"exists": False, "is_stale": False, "table_count": 0}
        result: StatusResult = {
            "exists": status.exists,
            "is_stale": status.stale,
            "table_count": status.table_count,
        }
        if status.fingerprint is not None:
            result["schema_hash"] = status.fingerprint
        return result

    def rebuild(self, diagram_id: str) -> CrudResult:
        """Initialize or reset the sandbox of a diagram."""

        def rebuild() -> dict[str, Any]:
            outcome = self.manager.rebuild(diagram_id)
            return {"schema_hash": outcome.fingerprint, "tables": outcome.tables}

        return _result(rebuild)

    def teardown(self, diagram_id: str) -> CrudResult:
        """Delete the sandbox of a diagram."""
        return _result(lambda: self.manager.teardown(diagram_id))

    def rows(self, diagram_id: str, table_name: str) -> CrudResult:
        """Get all rows from a table."""
        return _result(lambda: self.gateway.rows(diagram_id, table_name))

    def describe(self, diagram_id: str, table_name: str) -> CrudResult:
        """Get the columns of a table."""
        return _result(lambda: self.gateway.describe(diagram_id, table_name))

    def insert(
        self,
        diagram_id: str,
        table_name: str,
        fields: Mapping[str, object],
    ) -> CrudResult:
        """Insert a new row."""
        return _result(
            lambda: {
                "last_insert_rowid": self.gateway.insert(diagram_id, table_name, fields),
            },
        )

    def update(  # noqa: PLR0913
        self,
        diagram_id: str,
        table_name: str,
        pk_column: str,
        pk_value: object,
        fields: Mapping[str, object],
    ) -> CrudResult:
        """Update an existing row by primary key."""
        return _result(
            lambda: {
                "changes": self.gateway.update(
                    diagram_id,
                    table_name,
                    pk_column,
                    pk_value,
                    fields,
                ),
            },
        )

    def delete(
        self,
        diagram_id: str,
        table_name: str,
        pk_column: str,
        pk_value: object,
    ) -> CrudResult:
        """Delete a row by primary key."""
        return _result(
            lambda: {
                "changes": self.gateway.delete(diagram_id, table_name, pk_column, pk_value),
            },
        )
