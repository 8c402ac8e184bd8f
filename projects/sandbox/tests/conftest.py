"""Shared fixtures: a logical store with a few diagrams and sandbox settings."""

from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy import Engine, create_engine, insert

from diagram import DiagramStore, create_store_schema
from diagram.store import columns, diagrams, relations, tables
from sandbox import CrudGateway, SandboxConfig, SandboxManager, SandboxService

DIAGRAMS = [
    {"id": "blog", "name": "Blog", "database_type": "sqlite"},
    {"id": "shop", "name": "Shop", "database_type": "mysql"},
    {"id": "broken", "name": "Broken", "database_type": None},
    {"id": "loose", "name": "Loose", "database_type": None},
]

TABLES = [
    {"id": "t_users", "diagram_id": "blog", "name": "users"},
    {"id": "t_posts", "diagram_id": "blog", "name": "posts"},
    {"id": "t_items", "diagram_id": "shop", "name": "items"},
    # A table without columns cannot be created
    {"id": "t_ghost", "diagram_id": "broken", "name": "ghost"},
    {"id": "t_notes", "diagram_id": "loose", "name": "notes"},
]

COLUMNS: list[dict[str, Any]] = [
    {"id": "c_uid", "table_id": "t_users", "name": "id", "type": "INT", "is_pk": True},
    {"id": "c_uname", "table_id": "t_users", "name": "name", "type": "VARCHAR", "is_nullable": False},
    {"id": "c_uemail", "table_id": "t_users", "name": "email", "type": "VARCHAR"},
    {"id": "c_uactive", "table_id": "t_users", "name": "active", "type": "BOOLEAN", "default_value": "true"},
    {"id": "c_pid", "table_id": "t_posts", "name": "id", "type": "INT", "is_pk": True},
    {"id": "c_puser", "table_id": "t_posts", "name": "user_id", "type": "INT", "is_nullable": False},
    {"id": "c_ptitle", "table_id": "t_posts", "name": "title", "type": "TEXT", "is_nullable": False},
    {"id": "c_pcreated", "table_id": "t_posts", "name": "created_at", "type": "DATETIME", "default_value": "now()"},
    {"id": "c_isku", "table_id": "t_items", "name": "sku", "type": "TEXT", "is_pk": True},
    {"id": "c_iprice", "table_id": "t_items", "name": "price", "type": "FLOAT", "default_value": "0"},
    {"id": "c_nid", "table_id": "t_notes", "name": "id", "type": "INT", "is_pk": True},
]

RELATIONS = [
    {
        "id": "r_author",
        "diagram_id": "blog",
        "from_table_id": "t_posts",
        "from_column_id": "c_puser",
        "to_table_id": "t_users",
        "to_column_id": "c_uid",
    },
    # Points at a column that no longer exists
    {
        "id": "r_dangling",
        "diagram_id": "loose",
        "from_table_id": "t_notes",
        "from_column_id": "c_nid",
        "to_table_id": "t_notes",
        "to_column_id": "c_gone",
    },
]


@pytest.fixture(name="engine")
def create_store_engine(tmp_path: Path) -> Iterator[Engine]:
    """Create a writable logical store seeded with the test diagrams."""
    engine = create_engine(f"sqlite:///{tmp_path / 'store.db'}")
    create_store_schema(engine)

    with engine.begin() as conn:
        conn.execute(insert(diagrams), DIAGRAMS)
        conn.execute(insert(tables), TABLES)
        for column in COLUMNS:
            conn.execute(insert(columns).values(**column))
        conn.execute(insert(relations), RELATIONS)

    yield engine
    engine.dispose()


@pytest.fixture(name="store")
def create_store(engine: Engine) -> DiagramStore:
    """Read diagrams from the seeded store."""
    return DiagramStore(engine)


@pytest.fixture(name="config")
def create_config(tmp_path: Path) -> SandboxConfig:
    """Keep sandboxes in a temporary directory."""
    return SandboxConfig(directory=tmp_path / "sandboxes")


@pytest.fixture(name="manager")
def create_manager(store: DiagramStore, config: SandboxConfig) -> SandboxManager:
    """Create a sandbox manager over the seeded store."""
    return SandboxManager(store, config)


@pytest.fixture(name="gateway")
def create_gateway(config: SandboxConfig) -> CrudGateway:
    """Create a CRUD gateway sharing the manager's settings."""
    return CrudGateway(config)


@pytest.fixture(name="service")
def create_service(store: DiagramStore, config: SandboxConfig) -> SandboxService:
    """Create the result facade over the seeded store."""
    return SandboxService(store, config)
