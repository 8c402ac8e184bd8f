"""Lowering, ordering, synthesis and fingerprinting of logical schemas."""

from ddl.dialect import quote_char, quote_identifier
from ddl.fingerprint import fingerprint, snapshot_fingerprint
from ddl.lowering import lower_default
from ddl.ordering import order_tables
from ddl.synthesis import (
    Resolution,
    UnresolvedReferenceError,
    create_table_sql,
    schema_statements,
)
from ddl.type_registry import TypeRegistry, create_default_registry, lower_type

__all__ = [
    "Resolution",
    "TypeRegistry",
    "UnresolvedReferenceError",
    "create_default_registry",
    "create_table_sql",
    "fingerprint",
    "lower_default",
    "lower_type",
    "order_tables",
    "quote_char",
    "quote_identifier",
    "schema_statements",
    "snapshot_fingerprint",
]
