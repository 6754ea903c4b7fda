from __future__ import annotations

import json
import math
import re
from typing import Any


class _Undefined:
    """Marker for a path that did not resolve, distinct from JSON null."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return 'UNDEFINED'

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


UNDEFINED = _Undefined()

# Leading float literal as accepted by a lenient "parseFloat": sign, digits,
# optional fraction and exponent, or Infinity. Trailing garbage is ignored.
_LEADING_FLOAT = re.compile(r'^\s*([+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))')
_NUMERIC_STRING = re.compile(
    r'^[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)$'
    r'|^0[xX][0-9a-fA-F]+$|^0[bB][01]+$|^0[oO][0-7]+$'
)


def json_type(value: Any) -> str:
    """Return the JSON type tag of a parsed value.

    bool is checked before int since it is a subclass of it.
    """
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, (int, float)):
        return 'number'
    if isinstance(value, str):
        return 'string'
    if isinstance(value, (list, tuple)):
        return 'array'
    if isinstance(value, dict):
        return 'object'
    raise TypeError(f'Not a JSON value: {type(value).__name__}')


def is_container(value: Any) -> bool:
    return isinstance(value, (dict, list, tuple))


def to_json_text(value: Any) -> str:
    """Compact JSON, keeping non-ASCII characters readable."""
    try:
        return json.dumps(value, ensure_ascii=False, separators=(',', ':'))
    except (TypeError, ValueError):
        return str(value)


def format_number(value: float) -> str:
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return 'NaN'
    if math.isinf(value):
        return 'Infinity' if value > 0 else '-Infinity'
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def to_display_text(value: Any) -> str:
    """String form of a scalar the way a JSON consumer prints it."""
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (int, float)):
        return format_number(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return ','.join('' if v is None else to_display_text(v) for v in value)
    if isinstance(value, dict):
        return '[object Object]'
    return str(value)


def format_cell(value: Any) -> str:
    """Format a resolved value for a table cell."""
    if value is UNDEFINED:
        return '-'
    if value is None:
        return 'null'
    if isinstance(value, (dict, list, tuple)):
        return to_json_text(value)
    return to_display_text(value)


def to_number(value: Any) -> float:
    """Coerce a value to a number; anything unparsable becomes 0.

    Real numbers pass through unchanged. Everything else is parsed from
    its string form, reading the longest leading float literal.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if isinstance(value, float) and math.isnan(value):
            return 0
        return value
    if value is None or value is UNDEFINED or isinstance(value, bool):
        return 0
    match = _LEADING_FLOAT.match(to_display_text(value))
    if not match:
        return 0
    literal = match.group(1)
    if literal.lstrip('+-') == 'Infinity':
        return -math.inf if literal.startswith('-') else math.inf
    return float(literal)


def is_numeric(value: Any) -> bool:
    """Whether a value should be displayed as a number.

    Finite real numbers and non-blank numeric-looking strings qualify.
    """
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return math.isfinite(value)
    if isinstance(value, str):
        text = value.strip()
        return bool(text) and bool(_NUMERIC_STRING.match(text))
    return False
