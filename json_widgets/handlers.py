from __future__ import annotations

import logging
import math
import os
import tempfile
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import gradio as gr
import pandas as pd
from pydantic import ValidationError

from .api_client import ApiClient
from .cards import shape_card
from .charts import focus_series, is_empty, log_scale_available, shape_chart
from .io_utils import read_json_content, read_text_content
from .models import BarEntry, ChartProjection, SelectedField, WidgetConfig, WidgetState
from .paths import label_from_path
from .refresh import WidgetRefresher
from .schema_utils import flatten
from .store import DashboardStore
from .tables import TableSortState, shape_table

logger = logging.getLogger(__name__)

MAPPING_HEADERS = ['Input Path', 'Label']


@dataclass
class DashboardContext:
    store: DashboardStore
    client: ApiClient
    refresher: WidgetRefresher
    storage_path: Optional[str] = None

    def persist(self) -> None:
        if not self.storage_path:
            return
        try:
            self.store.save(self.storage_path)
        except OSError as e:
            logger.error(f'Could not save dashboard to {self.storage_path}: {e}')


def widget_choices(ctx: DashboardContext) -> List[Tuple[str, str]]:
    return [(w.config.name, w.config.id) for w in ctx.store.widgets]


def _field_choices(fields) -> List[Tuple[str, str]]:
    return [(f'{f.path} ({f.type})', f.path) for f in fields]


# --- Widget setup ---

def test_connection_handler(ctx: DashboardContext, url: str):
    result = ctx.client.test_url(url)
    if not result.success:
        return [], gr.update(choices=[], value=[]), f'Connection failed: {result.error}'
    fields = [f.to_dict() for f in result.fields]
    return fields, gr.update(choices=_field_choices(result.fields), value=[]), f'Connected. Found {len(fields)} fields.'


def load_sample_handler(file_obj):
    """Discover fields from a local JSON sample instead of a live URL."""
    try:
        data = read_json_content(file_obj)
    except (ValueError, OSError) as e:
        return [], gr.update(choices=[], value=[]), f'Error parsing JSON: {e}'
    fields = flatten(data)
    return [f.to_dict() for f in fields], gr.update(choices=_field_choices(fields), value=[]), f'Successfully loaded. Found {len(fields)} fields.'


def update_field_mapping(selected_paths):
    if not selected_paths:
        return []
    return [[p, label_from_path(p)] for p in selected_paths]


def _mapping_rows(mapping_df) -> List[List[str]]:
    if mapping_df is None:
        return []
    try:
        return [[str(path), '' if pd.isna(label) else str(label)] for path, label in zip(mapping_df[MAPPING_HEADERS[0]], mapping_df[MAPPING_HEADERS[1]])]
    except (KeyError, TypeError):
        return [[str(row[0]), str(row[1] or '')] for row in mapping_df if row and row[0]]


def add_widget_handler(ctx: DashboardContext, name, url, refresh_interval, display_mode, mapping_df):
    fields = [SelectedField(path=path, label=label) for path, label in _mapping_rows(mapping_df) if path]
    try:
        config = WidgetConfig(
            name=(name or '').strip() or 'Untitled widget',
            api_url=url or '',
            refresh_interval=int(refresh_interval or 0),
            display_mode=display_mode or 'card',
            selected_fields=fields,
        )
    except ValidationError as e:
        errors = '; '.join(f"{'.'.join(str(x) for x in err['loc'])}: {err['msg']}" for err in e.errors())
        return f'Invalid widget: {errors}', gr.update()

    widget = ctx.store.add_widget(config)
    ctx.refresher.refresh(widget.config.id)
    ctx.persist()
    return f"Added widget '{widget.config.name}'.", gr.update(choices=widget_choices(ctx), value=widget.config.id)


# --- Rendering ---

def card_markdown(widget: WidgetState) -> str:
    entries = shape_card(widget.data, widget.config.selected_fields)
    return '\n\n'.join(f'**{e.label}**  \n{e.text}' for e in entries)


def table_frame(widget: WidgetState, sort_state: Optional[TableSortState] = None, search: str = '') -> pd.DataFrame:
    fields = widget.config.selected_fields or [SelectedField(path='data', label='Data')]
    projection = shape_table(widget.data, fields)
    rows = (sort_state or TableSortState()).apply(projection, search or '')
    return pd.DataFrame(rows, columns=projection.headers)


def chart_frame(projection: ChartProjection, log_scale: bool = False) -> pd.DataFrame:
    """Long-format frame (x, series, value) for Gradio plots."""
    records: List[Dict[str, Any]] = []
    for point in projection.points:
        if isinstance(point, BarEntry):
            records.append({'x': point.name, 'series': point.name, 'value': point.value})
            continue
        for series in projection.series:
            records.append({'x': point.get('index'), 'series': series, 'value': point.get(series)})
    frame = pd.DataFrame(records, columns=['x', 'series', 'value'])
    if log_scale and log_scale_available(projection):
        frame = frame[frame['value'] > 0].copy()
        frame['value'] = frame['value'].map(math.log10)
    return frame


def _render_outputs(info, card=None, table=None, line=None, bar=None, sort_choices=None, focus=None, log_toggle=None):
    hidden = gr.update(visible=False)
    return (
        info,
        card or hidden,
        table or hidden,
        line or hidden,
        bar or hidden,
        sort_choices or gr.update(choices=[]),
        focus or gr.update(choices=[], value=None, visible=False),
        log_toggle or gr.update(visible=False),
    )


def render_widget_handler(ctx: DashboardContext, widget_id, search='', sort_state=None, focus=None, log_scale=False):
    """Outputs: info, card, table, line plot, bar plot, sort column, focus, log toggle."""
    widget = ctx.store.get_widget(widget_id) if widget_id else None
    if widget is None:
        return _render_outputs('No widget selected.')

    config = widget.config
    info = f'### {config.name}\nRefresh every {config.refresh_interval}s'
    if widget.last_updated:
        info += f' · Last updated: {widget.last_updated}'
    if widget.error:
        return _render_outputs(f'{info}\n\n**Error:** {widget.error}')
    if widget.data is None:
        return _render_outputs(f'{info}\n\nLoading...')

    if config.display_mode == 'table':
        frame = table_frame(widget, sort_state, search)
        if frame.empty and not search:
            return _render_outputs(f'{info}\n\nNo data to display')
        return _render_outputs(
            f"{info}\n\n{len(frame)} {'item' if len(frame) == 1 else 'items'}",
            table=gr.update(value=frame, visible=True),
            sort_choices=gr.update(choices=list(dict.fromkeys(frame.columns))),
        )

    if config.display_mode == 'chart':
        projection = shape_chart(widget.data, config.selected_fields)
        if is_empty(projection):
            return _render_outputs(f'{info}\n\nNo data to chart')
        if isinstance(projection.points[0], BarEntry):
            names = [p.name for p in projection.points if p.is_numeric]
        else:
            names = projection.series
        focus = focus if focus in names else None
        frame = chart_frame(focus_series(projection, focus), log_scale and not focus)
        plot = gr.update(value=frame, x='x', y='value', color='series', visible=True)
        focus_update = gr.update(choices=names, value=focus, visible=True)
        log_toggle = gr.update(visible=log_scale_available(projection) and not focus)
        if projection.kind == 'line':
            return _render_outputs(info, line=plot, focus=focus_update, log_toggle=log_toggle)
        return _render_outputs(info, bar=plot, focus=focus_update, log_toggle=log_toggle)

    return _render_outputs(info, card=gr.update(value=card_markdown(widget), visible=True))


def sort_table_handler(sort_state, header):
    state = sort_state or TableSortState()
    if header:
        state.toggle(header)
    return state


def set_mode_handler(ctx: DashboardContext, widget_id, mode):
    if not widget_id or mode is None:
        return
    widget = ctx.store.get_widget(widget_id)
    if widget is None or widget.config.display_mode == mode:
        return
    ctx.store.update_widget(widget_id, display_mode=mode)
    ctx.persist()


def refresh_handler(ctx: DashboardContext, widget_id):
    if widget_id:
        ctx.refresher.refresh(widget_id, force=True)


def tick_handler(ctx: DashboardContext):
    ctx.refresher.refresh_due()


def remove_widget_handler(ctx: DashboardContext, widget_id):
    if widget_id and ctx.store.remove_widget(widget_id):
        ctx.persist()
    choices = widget_choices(ctx)
    return gr.update(choices=choices, value=choices[0][1] if choices else None)


def select_widget_handler(ctx: DashboardContext, widget_id):
    widget = ctx.store.get_widget(widget_id) if widget_id else None
    return gr.update(value=widget.config.display_mode if widget else None), TableSortState(), None


# --- Configuration ---

def export_config_handler(ctx: DashboardContext, file_name: str = ''):
    file_name = (file_name or '').strip() or 'dashboard-config'
    if not file_name.lower().endswith('.json'):
        file_name += '.json'
    path = os.path.join(tempfile.gettempdir(), file_name)
    try:
        with open(path, 'w', encoding='utf-8') as f:
            f.write(ctx.store.export_config())
    except OSError as e:
        return None, f'Error during export: {e}'
    return path, f'Exported {len(ctx.store.widgets)} widgets.'


def import_config_handler(ctx: DashboardContext, file_obj):
    try:
        text = read_text_content(file_obj)
    except (ValueError, OSError) as e:
        return f'Import failed: {e}', gr.update(), gr.update()
    if not ctx.store.import_config(text):
        return 'Import failed: not a valid dashboard configuration.', gr.update(), gr.update()
    ctx.persist()
    choices = widget_choices(ctx)
    status = f'Imported {len(choices)} widgets.'
    return status, gr.update(choices=choices, value=choices[0][1] if choices else None), gr.update(value=ctx.store.theme)


def set_theme_handler(ctx: DashboardContext, theme):
    try:
        ctx.store.set_theme(theme)
    except ValueError as e:
        return str(e)
    ctx.persist()
    return f'Theme set to {theme}.'
