"""Tests for building, inspecting and removing sandboxes."""

from pathlib import Path
from sqlite3 import connect

import pytest
from sqlalchemy import Engine, delete, update

from ddl import UnresolvedReferenceError, snapshot_fingerprint
from diagram import DiagramStore
from diagram.store import columns, diagrams
from sandbox import (
    CrudGateway,
    DiagramNotFoundError,
    ExecutionError,
    SandboxConfig,
    SandboxManager,
    SandboxStatus,
)
from sandbox.lifecycle import ABSENT, UNREADABLE


def test_status_before_rebuild(manager: SandboxManager) -> None:
    """Test a diagram without a sandbox reports absent."""
    assert manager.status("blog") == ABSENT
    assert manager.status("blog") == SandboxStatus(exists=False, stale=False, table_count=0)


def test_rebuild_creates_tables(manager: SandboxManager, store: DiagramStore) -> None:
    """Test rebuild creates every table in dependency order."""
    result = manager.rebuild("blog")

    snapshot = store.snapshot("blog")
    assert snapshot is not None
    assert result.tables == ["users", "posts"]
    assert result.fingerprint == snapshot_fingerprint(snapshot)
    assert manager.path("blog").exists()


def test_rebuild_writes_metadata_table(manager: SandboxManager) -> None:
    """Test the fingerprint is stored in its own table."""
    result = manager.rebuild("blog")

    conn = connect(manager.path("blog"))
    names = {row[0] for row in conn.execute("SELECT name FROM sqlite_schema WHERE type='table'")}
    stored = conn.execute("SELECT hash FROM _schema_hash").fetchall()
    conn.close()

    assert names == {"users", "posts", "_schema_hash"}
    assert stored == [(result.fingerprint,)]


def test_fresh_after_rebuild(manager: SandboxManager) -> None:
    """Test status after rebuild is fresh and excludes the metadata table."""
    result = manager.rebuild("blog")
    status = manager.status("blog")

    assert status.exists
    assert not status.stale
    assert status.table_count == 2  # noqa: PLR2004
    assert status.fingerprint == result.fingerprint


def test_rebuild_twice_stays_fresh(manager: SandboxManager) -> None:
    """Test rebuilding an unchanged schema yields the same fresh state."""
    first = manager.rebuild("blog")
    assert not manager.status("blog").stale

    second = manager.rebuild("blog")
    assert not manager.status("blog").stale
    assert first == second


def test_rebuild_discards_rows(manager: SandboxManager, gateway: CrudGateway) -> None:
    """Test rebuild is destructive."""
    manager.rebuild("blog")
    gateway.insert("blog", "users", {"name": "Ada"})

    manager.rebuild("blog")
    assert gateway.rows("blog", "users") == []


def test_stale_after_schema_change(manager: SandboxManager, engine: Engine) -> None:
    """Test a changed column type marks the sandbox stale."""
    manager.rebuild("blog")
    with engine.begin() as conn:
        conn.execute(update(columns).where(columns.c.id == "c_uemail").values(type="TEXT"))

    status = manager.status("blog")
    assert status.exists
    assert status.stale
    assert status.table_count == 2  # noqa: PLR2004

    manager.rebuild("blog")
    assert not manager.status("blog").stale


def test_stale_when_diagram_removed(manager: SandboxManager, engine: Engine) -> None:
    """Test a sandbox whose diagram is gone is stale."""
    manager.rebuild("shop")
    with engine.begin() as conn:
        conn.execute(delete(diagrams).where(diagrams.c.id == "shop"))

    assert manager.status("shop").stale


def test_unreadable_sandbox_is_stale(manager: SandboxManager) -> None:
    """Test a file that is not a database reports stale instead of raising."""
    location = manager.path("blog")
    location.parent.mkdir(parents=True)
    location.write_bytes(b"not a database" * 100)

    assert manager.status("blog") == UNREADABLE


def test_rebuild_unknown_diagram(manager: SandboxManager) -> None:
    """Test rebuild of a missing diagram fails without creating a file."""
    with pytest.raises(DiagramNotFoundError, match="Diagram not found: nope"):
        manager.rebuild("nope")
    assert not manager.path("nope").exists()


def test_failed_rebuild_leaves_nothing(manager: SandboxManager, config: SandboxConfig) -> None:
    """Test a failing statement aborts the rebuild and removes the partial file."""
    with pytest.raises(ExecutionError):
        manager.rebuild("broken")

    assert not manager.path("broken").exists()
    assert list(config.directory.iterdir()) == []


def test_failed_rebuild_removes_previous_sandbox(
    manager: SandboxManager,
    engine: Engine,
) -> None:
    """Test rebuild deletes the old sandbox even when the new one fails."""
    manager.rebuild("blog")
    with engine.begin() as conn:
        conn.execute(delete(columns).where(columns.c.table_id == "t_posts"))

    with pytest.raises(ExecutionError):
        manager.rebuild("blog")
    assert manager.status("blog") == ABSENT


def test_dangling_relation_lenient(manager: SandboxManager) -> None:
    """Test unresolved relations are skipped by default."""
    result = manager.rebuild("loose")
    assert result.tables == ["notes"]


def test_dangling_relation_strict(store: DiagramStore, config: SandboxConfig) -> None:
    """Test unresolved relations fail a strict rebuild before touching files."""
    manager = SandboxManager(store, SandboxConfig(directory=config.directory, resolution="strict"))
    with pytest.raises(UnresolvedReferenceError):
        manager.rebuild("loose")
    assert not manager.path("loose").exists()


def test_teardown_is_idempotent(manager: SandboxManager) -> None:
    """Test teardown removes the sandbox and tolerates repetition."""
    manager.rebuild("blog")
    manager.teardown("blog")
    assert manager.status("blog") == ABSENT

    manager.teardown("blog")
    manager.teardown("never-built")


def test_teardown_leaves_other_diagrams(manager: SandboxManager) -> None:
    """Test sandboxes are independent files."""
    manager.rebuild("blog")
    manager.rebuild("shop")
    manager.teardown("blog")

    assert not manager.path("blog").exists()
    assert manager.path("shop").exists()


def test_invalid_diagram_id(manager: SandboxManager) -> None:
    """Test ids that could escape the sandbox directory are rejected."""
    for diagram_id in ("../escape", "a/b", ""):
        with pytest.raises(ValueError, match="Invalid diagram id"):
            manager.status(diagram_id)


def test_sandbox_path(manager: SandboxManager, tmp_path: Path) -> None:
    """Test the file location follows the configured naming."""
    assert manager.path("blog") == tmp_path / "sandboxes" / "sandbox-blog.db"


def test_locks_released(manager: SandboxManager) -> None:
    """Test per-diagram locks do not accumulate."""
    manager.rebuild("blog")
    manager.teardown("blog")
    manager.teardown("never-built")

    assert len(manager._locks) == 0  # noqa: SLF001
