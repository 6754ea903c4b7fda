from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, List, Literal, Optional, Sequence, Tuple

from .accessors import resolve
from .models import SelectedField, TableProjection
from .paths import Key, format_path, label_from_path, relative_path, strip_leading_array_index
from .records import locate_record_array, nested_fields
from .values import format_cell

MAX_TABLE_ROWS = 1000

SortDirection = Literal['asc', 'desc']

_DIGITS = re.compile(r'(\d+)')


def _rows_from_array(items: Sequence[Any], fields: Sequence[SelectedField], limit: int) -> List[List[str]]:
    paths = [strip_leading_array_index(f.path) for f in fields]
    return [
        [format_cell(resolve(item, path)) for path in paths]
        for item in items[:limit]
    ]


def _nested_header(f: SelectedField, array_path) -> str:
    if f.label:
        return f.label
    rel = format_path(relative_path(f.path, array_path))
    return rel or label_from_path(f.path) or f.path


def shape_table(document: Any, fields: Sequence[SelectedField], limit: int = MAX_TABLE_ROWS) -> TableProjection:
    """Shape a document into headers and string rows.

    Arrays become one row per element (at most `limit`); a single selected
    object becomes Key/Value rows; anything else is listed as one
    Field/Value row per selected field.
    """
    if document is None:
        return TableProjection()

    if isinstance(document, (list, tuple)):
        headers = [f.display_label for f in fields]
        return TableProjection(headers, _rows_from_array(document, fields, limit))

    array_path = locate_record_array(document, fields)
    items = resolve(document, array_path) if array_path is not None else None
    if isinstance(items, (list, tuple)) and items:
        inside = nested_fields(fields, array_path)
        if inside:
            headers = [_nested_header(f, array_path) for f in inside]
            paths = [relative_path(f.path, array_path) for f in inside]
        elif isinstance(items[0], dict):
            headers = [str(k) for k in items[0].keys()]
            paths = [(Key(h),) for h in headers]
        else:
            headers = ['Value']
            paths = [()]
        rows = [
            [format_cell(resolve(item, path)) for path in paths]
            for item in items[:limit]
        ]
        return TableProjection(headers, rows)

    if len(fields) == 1:
        value = resolve(document, fields[0].path)
        if isinstance(value, dict) and value:
            rows = [[str(k), format_cell(v)] for k, v in value.items()]
            return TableProjection(['Key', 'Value'], rows)

    rows = [[f.display_label, format_cell(resolve(document, f.path))] for f in fields]
    return TableProjection(['Field', 'Value'], rows)


def filter_rows(rows: Sequence[List[str]], query: str) -> List[List[str]]:
    """Keep rows where any cell contains `query`, ignoring case."""
    if not query:
        return list(rows)
    needle = query.casefold()
    return [row for row in rows if any(needle in cell.casefold() for cell in row)]


def natural_key(text: str) -> Tuple[Tuple[int, int, str], ...]:
    """Sort key comparing digit runs by value: 'item2' < 'item10'.

    Punctuation and symbols sort before digits, and digits before
    letters, so '-0.2' < '1.5' < 'null' and '$5' < '2'.
    """
    parts = []
    for chunk in _DIGITS.split(text):
        if not chunk:
            continue
        if chunk.isdecimal():
            parts.append((1, int(chunk), ''))
            continue
        for ch in chunk.casefold():
            parts.append((2 if ch.isalnum() else 0, 0, ch))
    return tuple(parts)


def sort_rows(
    rows: Sequence[List[str]],
    headers: Sequence[str],
    sort_key: Optional[str],
    direction: SortDirection = 'asc',
) -> List[List[str]]:
    if not sort_key or sort_key not in headers:
        return list(rows)
    idx = list(headers).index(sort_key)

    def key(row: List[str]):
        return natural_key(row[idx] if idx < len(row) else '')

    return sorted(rows, key=key, reverse=direction == 'desc')


@dataclass
class TableSortState:
    """Sort column and direction; clicking the same header flips direction."""

    key: Optional[str] = None
    direction: SortDirection = 'asc'

    def toggle(self, header: str) -> 'TableSortState':
        if self.key == header and self.direction == 'asc':
            self.direction = 'desc'
        else:
            self.direction = 'asc'
        self.key = header
        return self

    def apply(self, projection: TableProjection, query: str = '') -> List[List[str]]:
        rows = filter_rows(projection.rows, query)
        return sort_rows(rows, projection.headers, self.key, self.direction)
