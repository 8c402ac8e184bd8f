"""Type registry for lowering logical column types to SQLite storage types.

Logical types are free-form strings typed by the user ("VARCHAR(255)", "uuid",
"BIGINT"). Each family is registered once as a rule with a priority; the first
matching rule by priority wins and unmatched types fall back to TEXT.
"""

from collections.abc import Callable
from typing import Literal

type StorageType = Literal["INTEGER", "TEXT", "REAL"]
type Matcher = Callable[[str], bool]

FALLBACK: StorageType = "TEXT"


class TypeRegistry:
    """Priority-based registry of logical type rules."""

    def __init__(self, fallback: StorageType = FALLBACK) -> None:
        """Initialize an empty registry with the storage type for unmatched names."""
        # Stored as (priority, matcher, storage type), evaluated highest first
        self._rules: list[tuple[int, Matcher, StorageType]] = []
        self.fallback = fallback

    def contains(
        self,
        fragments: tuple[str, ...],
        storage_type: StorageType,
        priority: int = 50,
    ) -> None:
        """Register rule for types containing any of the fragments.

        Args:
            fragments: Substrings to look for (case-insensitive)
            storage_type: Storage type to apply
            priority: Rule priority (higher = evaluated first), defaults to 50

        """
        upper = tuple(fragment.upper() for fragment in fragments)
        self.register(
            lambda type_name: any(fragment in type_name.upper() for fragment in upper),
            storage_type,
            priority,
        )

    def register(
        self,
        matcher: Matcher,
        storage_type: StorageType,
        priority: int = 25,
    ) -> None:
        """Register rule with custom matcher function.

        Args:
            matcher: Function that takes the logical type name and returns bool
            storage_type: Storage type to apply
            priority: Rule priority (higher = evaluated first), defaults to 25

        """
        self._rules.append((priority, matcher, storage_type))
        # Stable sort keeps registration order between equal priorities
        self._rules.sort(key=lambda rule: rule[0], reverse=True)

    def storage_type(self, type_name: str) -> StorageType:
        """Get storage type for a logical type - first match by priority wins."""
        for _priority, matcher, storage_type in self._rules:
            if matcher(type_name):
                return storage_type
        return self.fallback


def create_default_registry() -> TypeRegistry:
    """Create a registry with the default SQLite lowering rules.

    Families are checked in this order, so "POINT" is an integer (it contains
    "INT") and "DATETIME" is text.

    Returns:
        Configured TypeRegistry with default rules

    """
    registry = TypeRegistry()

    registry.contains(("INT",), "INTEGER", priority=50)
    registry.contains(("CHAR", "TEXT", "UUID", "VARCHAR"), "TEXT", priority=40)
    # Booleans are stored as 0/1
    registry.contains(("BOOL",), "INTEGER", priority=30)
    registry.contains(("DATE", "TIME"), "TEXT", priority=20)
    registry.contains(("FLOAT", "REAL", "DECIMAL", "DOUBLE"), "REAL", priority=10)

    return registry


DEFAULT_REGISTRY = create_default_registry()


def lower_type(type_name: str, registry: TypeRegistry = DEFAULT_REGISTRY) -> StorageType:
    """Lower a logical column type to its SQLite storage type."""
    return registry.storage_type(type_name)
