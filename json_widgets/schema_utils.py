from __future__ import annotations

import logging
from typing import Any, FrozenSet, List, Tuple

from .models import FieldDescriptor
from .paths import FieldPath, Index, Key, format_path
from .values import UNDEFINED, is_container, json_type

logger = logging.getLogger(__name__)

MAX_DEPTH = 64


def flatten(document: Any, max_depth: int = MAX_DEPTH) -> List[FieldDescriptor]:
    """Discover every addressable field in a JSON document.

    Objects are transparent: only their members are reported. Arrays are
    reported once (sampled by their first element) and, when that element
    is an object or array, its fields are reported under '<path>[0]'.
    Scalars and nulls are reported with their own type. The root itself is
    never reported. Output order follows a depth-first walk of the
    document in key order.
    """
    if document is None or document is UNDEFINED:
        return []

    fields: List[FieldDescriptor] = []
    # (value, path, ancestor container ids); popped in pre-order.
    stack: List[Tuple[Any, FieldPath, FrozenSet[int]]] = [(document, (), frozenset())]

    while stack:
        value, path, ancestors = stack.pop()
        is_root = not path

        if is_container(value):
            if id(value) in ancestors:
                raise ValueError(f"Self-referencing container at '{format_path(path)}'")
            if len(path) > max_depth:
                logger.warning(f"Not descending below '{format_path(path)}': nesting exceeds {max_depth} levels")
                if isinstance(value, (list, tuple)):
                    fields.append(FieldDescriptor(format_path(path), 'array', value[0] if value else None))
                continue
            ancestors = ancestors | {id(value)}

        if isinstance(value, dict):
            # An empty key has no path form, so nothing below it is addressable.
            if '' in value:
                logger.debug(f"Skipping empty key under '{format_path(path)}'")
            children = [(v, path + (Key(str(k)),), ancestors) for k, v in value.items() if str(k)]
            stack.extend(reversed(children))
        elif isinstance(value, (list, tuple)):
            if not is_root:
                fields.append(FieldDescriptor(format_path(path), 'array', value[0] if value else None))
            if value and is_container(value[0]):
                stack.append((value[0], path + (Index(0),), ancestors))
        elif not is_root:
            fields.append(FieldDescriptor(format_path(path), json_type(value), value))

    return fields


def find_array_paths(document: Any) -> List[str]:
    """Paths that point to an array; '' stands for an array root."""
    paths = [f.path for f in flatten(document) if f.type == 'array']
    if isinstance(document, (list, tuple)):
        paths.insert(0, '')
    return paths
