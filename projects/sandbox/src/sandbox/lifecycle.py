"""Lifecycle of the per-diagram sandbox databases."""

from __future__ import annotations

import os
from logging import getLogger
from pathlib import Path
from sqlite3 import Error as SQLiteError
from tempfile import mkstemp
from threading import Lock
from typing import TYPE_CHECKING, NamedTuple
from weakref import WeakValueDictionary

from sqlalchemy.exc import SQLAlchemyError

from ddl import order_tables, schema_statements, snapshot_fingerprint
from sandbox.config import DEFAULT_CONFIG, SandboxConfig
from sandbox.errors import DiagramNotFoundError, ExecutionError
from sandbox.inspection import SandboxDatabase, open_sandbox

if TYPE_CHECKING:
    from diagram import SchemaSource

logger = getLogger(__name__)


class SandboxStatus(NamedTuple):
    """Status of a diagram's sandbox."""

    exists: bool
    stale: bool
    table_count: int
    fingerprint: str | None = None


class RebuildResult(NamedTuple):
    """Outcome of a successful rebuild."""

    fingerprint: str
    tables: list[str]  # In creation order


ABSENT = SandboxStatus(exists=False, stale=False, table_count=0)
UNREADABLE = SandboxStatus(exists=True, stale=True, table_count=0)


class SandboxManager:
    """Builds, inspects and removes one sandbox database per diagram.

    Rebuild and teardown of the same diagram are serialized within this
    process. CRUD against a diagram that is being rebuilt is the caller's
    responsibility to avoid.
    """

    def __init__(self, store: SchemaSource, config: SandboxConfig = DEFAULT_CONFIG) -> None:
        """Initialize the manager with a logical schema source and settings."""
        self._store = store
        self.config = config
        self._guard = Lock()
        # Entries vanish once no rebuild or teardown holds them
        self._locks: WeakValueDictionary[str, Lock] = WeakValueDictionary()

    def _lock(self, diagram_id: str) -> Lock:
        """Return the lock serializing rebuilds of one diagram."""
        with self._guard:
            lock = self._locks.get(diagram_id)
            if lock is None:
                lock = self._locks[diagram_id] = Lock()
            return lock

    def path(self, diagram_id: str) -> Path:
        """Return the sandbox file location for a diagram."""
        return self.config.sandbox_path(diagram_id)

    def _current_fingerprint(self, diagram_id: str) -> str | None:
        """Fingerprint the diagram's current logical schema."""
        snapshot = self._store.snapshot(diagram_id)
        return snapshot_fingerprint(snapshot) if snapshot else None

    def status(self, diagram_id: str) -> SandboxStatus:
        """Report whether the sandbox exists and still matches its diagram.

        Failures while reading the sandbox or the store report it as stale.
        """
        location = self.path(diagram_id)
        if not location.exists():
            return ABSENT

        try:
            with open_sandbox(location) as connection:
                database = SandboxDatabase(connection, self.config.metadata_table)
                table_count = len(database.tables)
                stored = database.stored_fingerprint()
            current = self._current_fingerprint(diagram_id)
        except (SQLiteError, SQLAlchemyError, OSError):
            logger.warning("Unreadable sandbox for diagram %s", diagram_id, exc_info=True)
            return UNREADABLE

        return SandboxStatus(
            exists=True,
            stale=stored is None or stored != current,
            table_count=table_count,
            fingerprint=stored,
        )

    def rebuild(self, diagram_id: str) -> RebuildResult:
        """Drop the diagram's sandbox and build it again from the logical schema.

        The new database is built in a temporary file and renamed into place.
        On failure nothing is left behind and ExecutionError is raised.
        """
        snapshot = self._store.snapshot(diagram_id)
        if snapshot is None:
            raise DiagramNotFoundError(diagram_id)

        location = self.path(diagram_id)
        digest = snapshot_fingerprint(snapshot)
        statements = schema_statements(snapshot, resolution=self.config.resolution)
        tables = [
            table["name"] for table in order_tables(snapshot.tables, snapshot.relations)
        ]

        with self._lock(diagram_id):
            location.parent.mkdir(parents=True, exist_ok=True)
            self._remove(location)

            descriptor, staging_name = mkstemp(
                prefix=f"{location.name}.",
                suffix=".tmp",
                dir=location.parent,
            )
            os.close(descriptor)
            staging = Path(staging_name)

            try:
                with open_sandbox(staging, create=True) as connection:
                    database = SandboxDatabase(connection, self.config.metadata_table)
                    database.write_fingerprint(digest)
                    for statement in statements:
                        database.execute(statement)
            except SQLiteError as err:
                staging.unlink(missing_ok=True)
                logger.error("Rebuild of sandbox for diagram %s failed: %s", diagram_id, err)
                raise ExecutionError(str(err)) from err
            except BaseException:
                staging.unlink(missing_ok=True)
                raise

            staging.replace(location)

        logger.info(
            "Rebuilt sandbox for diagram %s with %d tables",
            diagram_id,
            len(tables),
        )
        return RebuildResult(fingerprint=digest, tables=tables)

    def teardown(self, diagram_id: str) -> None:
        """Delete the diagram's sandbox; does nothing when there is none."""
        location = self.path(diagram_id)
        with self._lock(diagram_id):
            if self._remove(location):
                logger.info("Removed sandbox for diagram %s", diagram_id)

    @staticmethod
    def _remove(location: Path) -> bool:
        """Delete a sandbox file and its leftover journal."""
        existed = location.exists()
        location.unlink(missing_ok=True)
        location.with_name(f"{location.name}-journal").unlink(missing_ok=True)
        return existed
