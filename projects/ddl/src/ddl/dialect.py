"""Identifier quoting conventions of the supported dialects."""

from typing import Literal

type DatabaseType = Literal["generic", "mysql", "postgres", "sqlite", "mariadb"]

BACKTICK_DIALECTS = frozenset({"mysql", "mariadb"})


def quote_char(database_type: str | None) -> str:
    """Return the identifier quote character of a declared database type."""
    return "`" if database_type in BACKTICK_DIALECTS else '"'


def quote_identifier(name: str, quote: str = '"') -> str:
    """Wrap an identifier in the quote character, doubling embedded quotes."""
    escaped = name.replace(quote, quote * 2)
    return f"{quote}{escaped}{quote}"
