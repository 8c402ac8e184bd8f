"""Disposable SQLite sandboxes materializing a diagram's logical schema."""

from sandbox.config import DEFAULT_CONFIG, SandboxConfig, load_config
from sandbox.errors import (
    DiagramNotFoundError,
    ExecutionError,
    SandboxError,
    SandboxNotInitializedError,
    UnknownColumnError,
    UnknownTableError,
)
from sandbox.gateway import CrudGateway
from sandbox.lifecycle import RebuildResult, SandboxManager, SandboxStatus
from sandbox.service import CrudResult, SandboxService, StatusResult

__all__ = [
    "DEFAULT_CONFIG",
    "CrudGateway",
    "CrudResult",
    "DiagramNotFoundError",
    "ExecutionError",
    "RebuildResult",
    "SandboxConfig",
    "SandboxError",
    "SandboxManager",
    "SandboxNotInitializedError",
    "SandboxService",
    "SandboxStatus",
    "StatusResult",
    "UnknownColumnError",
    "UnknownTableError",
    "load_config",
]
