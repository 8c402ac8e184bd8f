"""Lowering of logical default-value expressions to SQLite fragments."""

from ddl.type_registry import DEFAULT_REGISTRY, TypeRegistry, lower_type

# Version 4 shaped UUID built from randomblob at insert time
UUID_DEFAULT = (
    "(lower(hex(randomblob(4))) || '-' || lower(hex(randomblob(2))) || '-4' || "
    "substr(lower(hex(randomblob(2))),2,3) || '-' || "
    "substr('89ab',abs(random()) % 4 + 1, 1) || "
    "substr(lower(hex(randomblob(2))),2,3) || '-' || lower(hex(randomblob(6))))"
)
NOW_DEFAULT = "(datetime('now'))"

BOOLEAN_LITERALS = {"true": "1", "false": "0"}


def is_quoted(value: str) -> bool:
    """Check if a value is already wrapped in single or double quotes."""
    return len(value) >= 2 and value[0] == value[-1] and value[0] in "'\""  # noqa: PLR2004


def quote_literal(value: str) -> str:
    """Quote a string literal, doubling embedded single quotes."""
    escaped = value.replace("'", "''")
    return f"'{escaped}'"


def lower_default(
    type_name: str,
    raw_default: str,
    registry: TypeRegistry = DEFAULT_REGISTRY,
) -> str:
    """Lower a raw default value to the SQL fragment following DEFAULT.

    Examples:
        uuid() -> random UUID expression
        now() -> (datetime('now'))
        "true" on BOOLEAN -> 1
        "O'Brien" on VARCHAR -> 'O''Brien'

    Malformed numbers on numeric columns are passed through as written.
    """
    if raw_default == "uuid()":
        return UUID_DEFAULT
    if raw_default == "now()":
        return NOW_DEFAULT
    if raw_default.upper() == "NULL":
        return "NULL"

    match lower_type(type_name, registry):
        case "INTEGER":
            return BOOLEAN_LITERALS.get(raw_default, raw_default)
        case "REAL":
            return raw_default
        case _:
            return raw_default if is_quoted(raw_default) else quote_literal(raw_default)
