from __future__ import annotations

from typing import Any

from .paths import Index, Key, PathLike, parse_path
from .values import UNDEFINED


def resolve(document: Any, path: PathLike) -> Any:
    """Retrieve the value at `path` inside a parsed JSON document.

    Returns UNDEFINED when the path cannot be followed (missing key, index
    out of range, descending into a scalar or a null). A JSON null at the
    end of the path comes back as None. An empty path is the document.
    """
    current = document
    for seg in parse_path(path):
        if current is None or current is UNDEFINED:
            return UNDEFINED

        if isinstance(seg, Key):
            if not isinstance(current, dict):
                return UNDEFINED
            current = current.get(seg.name, UNDEFINED)
        elif isinstance(seg, Index):
            if not isinstance(current, (list, tuple)):
                return UNDEFINED
            if not 0 <= seg.position < len(current):
                return UNDEFINED
            current = current[seg.position]
        else:
            raise TypeError(f'Unknown path segment: {seg!r}')

    return current


def is_array_field(document: Any, path: PathLike) -> bool:
    return isinstance(resolve(document, path), (list, tuple))
