"""Dashboard state: configured widgets, their latest data, and the theme."""
from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from .errors import ConfigurationError
from .models import DashboardExport, Theme, WidgetConfig, WidgetState, new_widget_id

logger = logging.getLogger(__name__)

THEMES = ('light', 'dark')
DEFAULT_THEME: Theme = 'dark'


class DashboardStore:
    """
    In-memory dashboard state with JSON export/import.

    Only widget configuration and the theme survive export or save; fetched
    data, loading flags and errors are runtime state.
    """

    def __init__(self, widgets: Optional[List[WidgetConfig]] = None, theme: Theme = DEFAULT_THEME):
        self._lock = threading.RLock()
        self._widgets: List[WidgetState] = [
            WidgetState(config=config, is_loading=True) for config in widgets or []
        ]
        self.theme: Theme = theme

    @property
    def widgets(self) -> List[WidgetState]:
        with self._lock:
            return list(self._widgets)

    def get_widget(self, widget_id: str) -> Optional[WidgetState]:
        with self._lock:
            return next((w for w in self._widgets if w.config.id == widget_id), None)

    def add_widget(self, config: Union[WidgetConfig, Dict[str, Any]]) -> WidgetState:
        """Add a widget under a freshly generated id."""
        if isinstance(config, dict):
            config = WidgetConfig.model_validate(config)
        config = config.model_copy(update={'id': new_widget_id()})
        widget = WidgetState(config=config, is_loading=True)
        with self._lock:
            self._widgets.append(widget)
        logger.info(f"Added widget '{config.name}' ({config.id})")
        return widget

    def remove_widget(self, widget_id: str) -> bool:
        with self._lock:
            before = len(self._widgets)
            self._widgets = [w for w in self._widgets if w.config.id != widget_id]
            removed = len(self._widgets) != before
        if removed:
            logger.info(f'Removed widget {widget_id}')
        return removed

    def update_widget(self, widget_id: str, **changes: Any) -> WidgetState:
        """
        Change configuration fields of a widget.

        Raises:
            KeyError: If no widget has this id
            ValidationError: If the resulting configuration is invalid
        """
        with self._lock:
            widget = self._require(widget_id)
            merged = widget.config.model_dump()
            merged.update(changes)
            merged['id'] = widget_id
            widget.config = WidgetConfig.model_validate(merged)
            return widget

    def set_widget_data(self, widget_id: str, data: Any, error: Optional[str] = None) -> None:
        with self._lock:
            widget = self.get_widget(widget_id)
            if widget is None:
                return
            widget.data = data
            widget.error = error
            widget.last_updated = datetime.now().strftime('%H:%M:%S')
            widget.is_loading = False

    def set_widget_loading(self, widget_id: str, is_loading: bool) -> None:
        with self._lock:
            widget = self.get_widget(widget_id)
            if widget is not None:
                widget.is_loading = is_loading

    def reorder_widgets(self, start_index: int, end_index: int) -> None:
        with self._lock:
            widget = self._widgets.pop(start_index)
            self._widgets.insert(end_index, widget)

    def set_theme(self, theme: str) -> None:
        if theme not in THEMES:
            raise ValueError(f'Unknown theme: {theme!r}')
        self.theme = theme

    def toggle_theme(self) -> Theme:
        self.theme = 'light' if self.theme == 'dark' else 'dark'
        return self.theme

    def export_config(self) -> str:
        """Serialize widget configuration and theme as indented JSON."""
        with self._lock:
            payload = {
                'widgets': [w.config.model_dump(by_alias=True) for w in self._widgets],
                'theme': self.theme,
                'exportedAt': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            }
        return json.dumps(payload, indent=2, ensure_ascii=False)

    def import_config(self, text: str) -> bool:
        """
        Replace widgets and theme with an exported configuration.

        Every imported widget gets a new id. Missing fields fall back to
        an empty widget list and the dark theme. Returns False, leaving
        the current state untouched, when the document is not valid.
        """
        try:
            export = parse_export(text)
        except ConfigurationError as e:
            logger.warning(f'Configuration import failed: {e}')
            return False

        widgets = [
            WidgetState(config=c.model_copy(update={'id': new_widget_id()}), is_loading=True)
            for c in export.widgets
        ]
        with self._lock:
            self._widgets = widgets
            self.theme = export.theme
        logger.info(f'Imported {len(widgets)} widgets')
        return True

    def save(self, path: Union[str, Path]) -> Path:
        """Persist configuration (not fetched data) to a JSON file."""
        target = Path(path).expanduser()
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = target.with_suffix(target.suffix + '.tmp')
        tmp.write_text(self.export_config(), encoding='utf-8')
        tmp.replace(target)
        logger.debug(f'Saved dashboard to {target}')
        return target

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'DashboardStore':
        """
        Load a saved dashboard; a missing file gives an empty dashboard.

        Raises:
            ConfigurationError: If the file exists but is not a valid export
        """
        source = Path(path).expanduser()
        if not source.exists():
            logger.info(f'No saved dashboard at {source}, starting empty')
            return cls()
        try:
            text = source.read_text(encoding='utf-8')
        except OSError as e:
            raise ConfigurationError(f'Cannot read dashboard file {source}: {e}') from e
        export = parse_export(text)
        logger.info(f'Loaded {len(export.widgets)} widgets from {source}')
        return cls(widgets=list(export.widgets), theme=export.theme)

    def _require(self, widget_id: str) -> WidgetState:
        widget = self.get_widget(widget_id)
        if widget is None:
            raise KeyError(widget_id)
        return widget


def parse_export(text: Union[str, bytes]) -> DashboardExport:
    """
    Validate an exported dashboard document.

    Raises:
        ConfigurationError: If the JSON is malformed or a widget is invalid
    """
    try:
        parsed = json.loads(text)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f'Invalid JSON: {e}') from e

    if not isinstance(parsed, dict):
        raise ConfigurationError('Configuration must be a JSON object')

    theme = parsed.get('theme') or DEFAULT_THEME
    if theme not in THEMES:
        logger.warning(f'Unknown theme {theme!r}, using {DEFAULT_THEME}')
        theme = DEFAULT_THEME

    exported_at = parsed.get('exportedAt')
    try:
        return DashboardExport.model_validate({
            'widgets': parsed.get('widgets') or [],
            'theme': theme,
            'exportedAt': exported_at if isinstance(exported_at, str) else None,
        })
    except ValidationError as e:
        raise ConfigurationError(f'Invalid widget configuration: {e}') from e
