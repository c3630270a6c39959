"""
Typed attribute value → JSON document conversion.

``convert`` is total: every ``TypedValue`` that could be constructed has a
JSON rendering, so there is no failure path here.
"""

import base64
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from replicator.schemas.records import TypedValue

# Range of the search engine's ``long`` type
_LONG_MIN = -(2**63)
_LONG_MAX = 2**63 - 1
# Both bounds have 19 digits, so their adjusted exponent is 18
_MAX_ADJUSTED_EXPONENT = 18


def convert_number(text: str) -> int | float | str:
    """
    Render decimal text as a JSON number when that loses nothing.

    Integers inside the ``long`` range become ``int``; other values become
    ``float`` only when the float parses back to the same decimal value.
    Anything else stays as the original text.
    """
    number = Decimal(text)
    if number.is_zero():
        return 0
    # Past 19 integer digits the value is outside the long range and has no
    # exact float fraction; int() on a huge exponent would build every digit
    if number.adjusted() > _MAX_ADJUSTED_EXPONENT:
        return text
    if number == number.to_integral_value():
        as_int = int(number)
        if _LONG_MIN <= as_int <= _LONG_MAX:
            return as_int
        return text

    as_float = float(number)
    if Decimal(repr(as_float)) == number:
        return as_float
    return text


def convert_binary(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def convert(value: TypedValue) -> Any:
    """Convert a typed value into a JSON-compatible Python value, recursively."""
    kind = value.kind
    if kind == "S":
        return value.S
    if kind == "N":
        return convert_number(value.N)
    if kind == "B":
        return convert_binary(value.B)
    if kind == "BOOL":
        return value.BOOL
    if kind == "NULL":
        return None
    if kind == "L":
        return [convert(item) for item in value.L]
    if kind == "M":
        return convert_map(value.M)
    # Sets keep their iteration order; no sort is implied
    if kind == "SS":
        return list(value.SS)
    if kind == "NS":
        return [convert_number(item) for item in value.NS]
    if kind == "BS":
        return [convert_binary(item) for item in value.BS]
    raise AssertionError(f"unhandled type tag: {kind}")


def convert_map(attributes: Mapping[str, TypedValue]) -> dict[str, Any]:
    """Convert an attribute map into a JSON object, keeping key order."""
    return {name: convert(attr) for name, attr in attributes.items()}
