from __future__ import annotations

import re
from typing import Any, List, Sequence

from .accessors import resolve
from .models import CardEntry, SelectedField
from .values import UNDEFINED, format_number, to_display_text, to_json_text

_EXPONENT = re.compile(r'e([+-])0*(\d)')


def format_card_value(value: Any) -> str:
    """Large and tiny numbers in exponent form, others with separators."""
    if value is None or value is UNDEFINED:
        return '-'
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if value != value or value in (float('inf'), float('-inf')):
            return format_number(value)
        if value > 1000 or value < 0.01:
            return _EXPONENT.sub(r'e\1\2', f'{value:.2e}')
        if isinstance(value, int):
            return f'{value:,}'
        return f'{value:,.3f}'.rstrip('0').rstrip('.')
    if isinstance(value, (dict, list, tuple)):
        return to_json_text(value)
    return to_display_text(value)


def shape_card(document: Any, fields: Sequence[SelectedField]) -> List[CardEntry]:
    """One labelled value per selected field; the 'data' member when none."""
    fields = fields or [SelectedField(path='data', label='Value')]
    entries = []
    for f in fields:
        value = resolve(document, f.path) if f.path else document
        entries.append(CardEntry(f.display_label, value, format_card_value(value)))
    return entries
