from __future__ import annotations

from typing import Any, List, Optional, Sequence

from .accessors import is_array_field
from .models import SelectedField
from .paths import FieldPath, has_index, parse_path, prefix_before_index, starts_with


def locate_record_array(document: Any, fields: Sequence[SelectedField]) -> Optional[FieldPath]:
    """Find the array whose elements are the rows of a table or chart.

    Users usually select leaf fields inside a nested array ('data[0].price')
    rather than the array itself, so the array path is recovered from them:

    1. an array document is its own record array (empty path);
    2. else the first selected field that resolves to an array;
    3. else the part before the first index of the first field that has
       one, if that resolves to an array;
    4. else None.
    """
    if isinstance(document, (list, tuple)):
        return ()

    for f in fields:
        path = parse_path(f.path)
        if path and is_array_field(document, path):
            return path

    indexed = next((f for f in fields if f.path and has_index(f.path)), None)
    if indexed is not None:
        base = prefix_before_index(indexed.path)
        if base and is_array_field(document, base):
            return base

    return None


def nested_fields(fields: Sequence[SelectedField], array_path: FieldPath) -> List[SelectedField]:
    """Selected fields that sit strictly inside the record array."""
    out: List[SelectedField] = []
    for f in fields:
        path = parse_path(f.path)
        if len(path) > len(array_path) and starts_with(path, array_path):
            out.append(f)
    return out
