from __future__ import annotations

import math
from typing import Any, Dict, List, Optional, Sequence

from .accessors import resolve
from .models import BarEntry, ChartKind, ChartProjection, SelectedField
from .paths import format_path, relative_path, strip_leading_array_index
from .records import locate_record_array, nested_fields
from .values import is_numeric, to_number

MAX_CHART_POINTS = 100
LINE_THRESHOLD = 5
LOG_SCALE_RATIO = 100


def _kind_for(points: Sequence[Any]) -> ChartKind:
    return 'line' if len(points) > LINE_THRESHOLD else 'bar'


def _series_of(points: Sequence[Dict[str, Any]]) -> List[str]:
    if not points:
        return []
    return [k for k, v in points[0].items() if k != 'index' and isinstance(v, (int, float))]


def _series_key(f: SelectedField, path) -> str:
    return f.label or format_path(path) or f.path or 'value'


def _element_entries(item: Any) -> Dict[str, Any]:
    """Numeric-looking entries of a record without selected fields."""
    if isinstance(item, dict):
        entries = {}
        for k, v in item.items():
            if v is None or isinstance(v, bool):
                continue
            n = to_number(v)
            if not math.isnan(n):
                entries[str(k)] = n
        return entries
    if item is not None and not isinstance(item, (bool, list, tuple)):
        return {'value': to_number(item)}
    return {}


def bar_entries(document: Any, fields: Sequence[SelectedField]) -> List[BarEntry]:
    """One bar per selected field, for documents without a record array."""
    entries = []
    for f in fields:
        raw = resolve(document, f.path)
        numeric = is_numeric(raw)
        entries.append(BarEntry(
            name=f.display_label,
            value=to_number(raw) if numeric else 0,
            is_numeric=numeric,
            original_value=raw,
        ))
    return entries


def shape_chart(document: Any, fields: Sequence[SelectedField], limit: int = MAX_CHART_POINTS) -> ChartProjection:
    """Shape a document into chart points and series names.

    Record arrays give one point per element (at most `limit`) keyed by
    series name plus 'index', drawn as a line chart past five points.
    Without an array every selected field becomes one bar.
    """
    if document is None:
        return ChartProjection()

    if isinstance(document, (list, tuple)):
        keyed = [(_series_key(f, strip_leading_array_index(f.path)), strip_leading_array_index(f.path)) for f in fields]
        points = []
        for index, item in enumerate(document[:limit]):
            point: Dict[str, Any] = {'index': index}
            for key, path in keyed:
                point[key] = to_number(resolve(item, path))
            points.append(point)
        return ChartProjection(points, _series_of(points), _kind_for(points))

    array_path = locate_record_array(document, fields)
    items = resolve(document, array_path) if array_path is not None else None
    if isinstance(items, (list, tuple)) and items:
        inside = nested_fields(fields, array_path)
        keyed = [
            (_series_key(f, relative_path(f.path, array_path)), relative_path(f.path, array_path))
            for f in inside
        ]
        points = []
        for index, item in enumerate(items[:limit]):
            point = {'index': index}
            if keyed:
                for key, path in keyed:
                    point[key] = to_number(resolve(item, path))
            else:
                point.update(_element_entries(item))
            points.append(point)
        return ChartProjection(points, _series_of(points), _kind_for(points))

    return ChartProjection(bar_entries(document, fields), ['value'], 'bar')


def is_empty(projection: ChartProjection) -> bool:
    return not projection.points or not projection.series


def focus_series(projection: ChartProjection, name: Optional[str]) -> ChartProjection:
    """Isolate one bar (or one line series); None shows everything."""
    if not name:
        return projection
    points = projection.points
    if points and isinstance(points[0], BarEntry):
        return ChartProjection([p for p in points if p.name == name], projection.series, projection.kind)
    if name not in projection.series:
        return projection
    focused = [{'index': p.get('index'), name: p.get(name)} for p in points]
    return ChartProjection(focused, [name], projection.kind)


def log_scale_available(projection: ChartProjection) -> bool:
    """Whether positive bar values differ by more than LOG_SCALE_RATIO."""
    if projection.kind != 'bar':
        return False
    values = [
        p.value for p in projection.points
        if isinstance(p, BarEntry) and p.is_numeric and p.value > 0
    ]
    if len(values) < 2:
        return False
    return max(values) / min(values) > LOG_SCALE_RATIO
