"""Value casting for rows whose shape is only known at runtime.

Rows are ordered mappings from column name to a scalar value. Incoming values
are cast towards the declared affinity of their sandbox column before binding.
Text is only cast when it is a plain decimal literal that SQLite itself would
read as a number; anything else is bound as written.
"""

import re
from collections.abc import Callable, Mapping
from math import isfinite

type Value = int | float | str | None
type Row = dict[str, Value]
type Caster = Callable[[object], Value]

INTEGER_LITERAL = re.compile(r"[+-]?[0-9]+")
REAL_LITERAL = re.compile(r"[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?")

# SQLite integers are signed 64-bit
INTEGER_MIN = -(2**63)
INTEGER_MAX = 2**63 - 1


def cast_scalar(raw_value: object) -> Value:
    """Accept only values SQLite can bind, storing booleans as 0/1."""
    if isinstance(raw_value, bool):
        return int(raw_value)
    if raw_value is None or isinstance(raw_value, int | float | str):
        return raw_value
    msg = f"Unsupported value type {type(raw_value).__name__}: {raw_value!r}"
    raise TypeError(msg)


def cast_integer(raw_value: object) -> Value:
    """Cast value to integer when it is an integer in disguise.

    Integers outside the 64-bit range stay as given and fail at binding.
    """
    value = cast_scalar(raw_value)
    if isinstance(value, str):
        text = value.strip()
        if not INTEGER_LITERAL.fullmatch(text):
            return value
        number = int(text)
        return number if INTEGER_MIN <= number <= INTEGER_MAX else value
    if isinstance(value, float) and value.is_integer():
        number = int(value)
        return number if INTEGER_MIN <= number <= INTEGER_MAX else value
    return value


def cast_real(raw_value: object) -> Value:
    """Cast value to float when it is a finite decimal literal."""
    value = cast_scalar(raw_value)
    if isinstance(value, str):
        text = value.strip()
        if not REAL_LITERAL.fullmatch(text):
            return value
        number = float(text)
        return number if isfinite(number) else value
    if isinstance(value, int):
        return float(value) if INTEGER_MIN <= value <= INTEGER_MAX else value
    return value


def value_caster(declared_type: str) -> Caster:
    """Get casting function for a declared SQLite column type.

    Args:
        declared_type: Column type as reported by pragma_table_info

    Returns:
        Casting function that takes raw_value and returns casted value

    """
    match declared_type.upper():
        case "INTEGER":
            return cast_integer
        case "REAL":
            return cast_real
        case _:
            return cast_scalar


def cast_fields(fields: Mapping[str, object], types: Mapping[str, str]) -> Row:
    """Cast every field with the caster of its column, keeping field order."""
    return {
        name: value_caster(types.get(name, ""))(raw_value)
        for name, raw_value in fields.items()
    }
