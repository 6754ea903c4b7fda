"""Data model for widgets and the projections rendered from them.

Configuration that is persisted or imported (widgets, selected fields,
exports) is validated with pydantic; the shaped output of the mapping core
is plain dataclasses.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .paths import label_from_path

DisplayMode = Literal['card', 'table', 'chart']
Theme = Literal['light', 'dark']
ChartKind = Literal['line', 'bar']

MIN_REFRESH_INTERVAL = 5
MAX_REFRESH_INTERVAL = 3600
DEFAULT_REFRESH_INTERVAL = 60


def new_widget_id() -> str:
    return uuid.uuid4().hex


class _CamelModel(BaseModel):
    """Accepts and emits the camelCase keys of exported dashboards."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SelectedField(_CamelModel):
    """A field picked from the discovered schema, with its display label."""

    path: str
    label: str = ''

    @classmethod
    def from_path(cls, path: str, label: Optional[str] = None) -> 'SelectedField':
        return cls(path=path, label=label if label is not None else label_from_path(path))

    @property
    def display_label(self) -> str:
        return self.label or self.path


class WidgetConfig(_CamelModel):
    id: str = Field(default_factory=new_widget_id)
    name: str = 'Untitled widget'
    api_url: str = Field(min_length=1)
    refresh_interval: int = Field(
        default=DEFAULT_REFRESH_INTERVAL,
        ge=MIN_REFRESH_INTERVAL,
        le=MAX_REFRESH_INTERVAL,
        description='Seconds between refreshes',
    )
    display_mode: DisplayMode = 'card'
    selected_fields: List[SelectedField] = Field(default_factory=list)

    @field_validator('api_url')
    @classmethod
    def _strip_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError('api_url must not be blank')
        return value


class WidgetState(BaseModel):
    """Runtime state of one widget on the dashboard."""

    config: WidgetConfig
    data: Any = None
    last_updated: str = ''
    is_loading: bool = False
    error: Optional[str] = None


class DashboardExport(BaseModel):
    widgets: List[WidgetConfig] = Field(default_factory=list)
    theme: Theme = 'dark'
    exported_at: Optional[str] = Field(default=None, alias='exportedAt')

    model_config = ConfigDict(populate_by_name=True)


@dataclass(frozen=True)
class FieldDescriptor:
    """An addressable field discovered in a document."""

    path: str
    type: str
    sample_value: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {'path': self.path, 'type': self.type, 'sampleValue': self.sample_value}


@dataclass
class ApiTestResult:
    success: bool
    fields: List[FieldDescriptor] = field(default_factory=list)
    error: Optional[str] = None


@dataclass(frozen=True)
class CardEntry:
    label: str
    value: Any
    text: str


@dataclass
class TableProjection:
    headers: List[str] = field(default_factory=list)
    rows: List[List[str]] = field(default_factory=list)


@dataclass(frozen=True)
class BarEntry:
    name: str
    value: float
    is_numeric: bool
    original_value: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'value': self.value,
            'isNumeric': self.is_numeric,
            'originalValue': self.original_value,
        }


@dataclass
class ChartProjection:
    """Points are dicts with an 'index' key (array charts) or BarEntry items."""

    points: List[Any] = field(default_factory=list)
    series: List[str] = field(default_factory=list)
    kind: ChartKind = 'bar'
