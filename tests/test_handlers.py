"""
Tests for the Gradio event handlers and the frames they render.
"""

import io
import json

import pandas as pd
import pytest

from json_widgets.handlers import (
    MAPPING_HEADERS,
    DashboardContext,
    add_widget_handler,
    chart_frame,
    export_config_handler,
    import_config_handler,
    load_sample_handler,
    render_widget_handler,
    sort_table_handler,
    table_frame,
    test_connection_handler as connection_handler,
    update_field_mapping,
)
from json_widgets.models import BarEntry, ChartProjection, SelectedField, WidgetState
from json_widgets.refresh import WidgetRefresher
from json_widgets.tables import TableSortState


@pytest.fixture
def ctx(store, api_client, clock, tmp_path):
    refresher = WidgetRefresher(store, api_client, clock=clock)
    return DashboardContext(store, api_client, refresher, str(tmp_path / "dashboard.json"))


def add_loaded_widget(ctx, widget_config, data, **changes):
    widget = ctx.store.add_widget(widget_config.model_copy(update=changes))
    ctx.store.set_widget_data(widget.config.id, data)
    return widget.config.id


class TestSetupHandlers:
    """Test field discovery and widget creation."""

    def test_field_mapping_labels(self):
        assert update_field_mapping(["data[0].price", "name"]) == [["data[0].price", "price"], ["name", "name"]]
        assert update_field_mapping(None) == []

    def test_connection_success(self, ctx):
        fields, selector, status = connection_handler(ctx, "https://api.test/quote")
        assert [f["path"] for f in fields] == ["name", "price"]
        assert fields[1]["sampleValue"] == 50000
        assert selector["choices"] == [("name (string)", "name"), ("price (number)", "price")]
        assert status == "Connected. Found 2 fields."

    def test_connection_failure(self, ctx):
        fields, _, status = connection_handler(ctx, "https://api.test/down")
        assert fields == []
        assert status.startswith("Connection failed:")

    def test_load_sample(self):
        sample = io.BytesIO(json.dumps({"items": [{"id": 1}]}).encode())
        fields, _, status = load_sample_handler(sample)
        assert [f["path"] for f in fields] == ["items", "items[0].id"]
        assert "Found 2 fields" in status

    def test_load_sample_invalid(self):
        fields, _, status = load_sample_handler(io.StringIO("{nope"))
        assert fields == []
        assert status.startswith("Error parsing JSON")

    def test_add_widget(self, ctx, request_log, tmp_path):
        mapping = pd.DataFrame([["price", "Price"]], columns=MAPPING_HEADERS)
        status, selector = add_widget_handler(ctx, "Quote", "https://api.test/quote", 30, "card", mapping)
        (widget,) = ctx.store.widgets
        assert status == "Added widget 'Quote'."
        assert selector["value"] == widget.config.id
        assert widget.config.selected_fields == [SelectedField(path="price", label="Price")]
        assert widget.data == {"name": "BTC", "price": 50000}
        assert request_log == ["https://api.test/quote"]
        assert (tmp_path / "dashboard.json").exists()

    def test_add_widget_invalid(self, ctx):
        status, _ = add_widget_handler(ctx, "Bad", "", 30, "card", None)
        assert status.startswith("Invalid widget:")
        assert ctx.store.widgets == []


class TestFrames:
    """Test table and chart frame construction."""

    def test_table_frame_sorted_and_filtered(self, widget_config, nested_document):
        widget = WidgetState(
            config=widget_config.model_copy(update={
                "selected_fields": [SelectedField(path="data[0].symbol", label="Symbol")],
            }),
            data=nested_document,
        )
        state = TableSortState().toggle("Symbol").toggle("Symbol")
        frame = table_frame(widget, state, "")
        assert list(frame.columns) == ["Symbol"]
        assert frame["Symbol"].tolist() == ["CCC", "BBB", "AAA"]
        assert table_frame(widget, state, "bb")["Symbol"].tolist() == ["BBB"]

    def test_chart_frame_bars(self):
        projection = ChartProjection([BarEntry("Price", 5, True, 5), BarEntry("Vol", 2, True, 2)], ["value"], "bar")
        frame = chart_frame(projection)
        assert frame.to_dict("records") == [
            {"x": "Price", "series": "Price", "value": 5},
            {"x": "Vol", "series": "Vol", "value": 2},
        ]

    def test_chart_frame_lines(self):
        projection = ChartProjection([{"index": 0, "a": 1, "b": 2}, {"index": 1, "a": 3, "b": 4}], ["a", "b"], "line")
        frame = chart_frame(projection)
        assert frame["series"].tolist() == ["a", "b", "a", "b"]
        assert frame["value"].tolist() == [1, 2, 3, 4]

    def test_chart_frame_log_scale(self):
        projection = ChartProjection([BarEntry("a", 1, True, 1), BarEntry("b", 1000, True, 1000)], ["value"], "bar")
        assert chart_frame(projection, log_scale=True)["value"].tolist() == [0.0, 3.0]


class TestRender:
    """Test render_widget_handler() output selection."""

    def test_no_widget(self, ctx):
        outputs = render_widget_handler(ctx, None)
        assert len(outputs) == 8
        assert outputs[0] == "No widget selected."
        assert all(update["visible"] is False for update in outputs[1:5])

    def test_card(self, ctx, widget_config):
        widget_id = add_loaded_widget(ctx, widget_config, {"price": 500})
        info, card, table, *_ = render_widget_handler(ctx, widget_id)
        assert info.startswith("### Bitcoin")
        assert card["visible"] is True
        assert card["value"] == "**Price**  \n500"
        assert table["visible"] is False

    def test_table(self, ctx, widget_config):
        widget_id = add_loaded_widget(ctx, widget_config, [{"price": 1}, {"price": 2}], display_mode="table")
        info, _, table, _, _, sort_choices, _, _ = render_widget_handler(ctx, widget_id)
        assert info.endswith("2 items")
        assert table["visible"] is True
        assert table["value"]["Price"].tolist() == ["1", "2"]
        assert sort_choices["choices"] == ["Price"]

    def test_line_chart(self, ctx, widget_config):
        data = [{"price": i} for i in range(6)]
        widget_id = add_loaded_widget(ctx, widget_config, data, display_mode="chart")
        _, _, _, line, bar, _, focus, _ = render_widget_handler(ctx, widget_id)
        assert line["visible"] is True
        assert bar["visible"] is False
        assert focus["choices"] == ["Price"]

    def test_bar_chart_with_log_toggle(self, ctx, widget_config):
        widget_id = add_loaded_widget(
            ctx,
            widget_config,
            {"price": 50000, "fee": 1},
            display_mode="chart",
            selected_fields=[SelectedField(path="price", label="Price"), SelectedField(path="fee", label="Fee")],
        )
        _, _, _, _, bar, _, _, log_toggle = render_widget_handler(ctx, widget_id)
        assert bar["visible"] is True
        assert log_toggle["visible"] is True

    def test_error(self, ctx, widget_config):
        widget_id = ctx.store.add_widget(widget_config).config.id
        ctx.store.set_widget_data(widget_id, None, "API request failed: 500")
        info, *_ = render_widget_handler(ctx, widget_id)
        assert "**Error:** API request failed: 500" in info

    def test_sort_handler_toggles(self):
        state = sort_table_handler(None, "Price")
        assert (state.key, state.direction) == ("Price", "asc")
        assert sort_table_handler(state, "Price").direction == "desc"


class TestConfigHandlers:
    """Test export and import through files."""

    def test_export_then_import(self, ctx, widget_config):
        ctx.store.add_widget(widget_config)
        path, status = export_config_handler(ctx, "my-dashboard")
        assert path.endswith("my-dashboard.json")
        assert status == "Exported 1 widgets."

        ctx.store.remove_widget(ctx.store.widgets[0].config.id)
        status, selector, theme = import_config_handler(ctx, path)
        assert status == "Imported 1 widgets."
        assert selector["value"] == ctx.store.widgets[0].config.id
        assert theme["value"] == "dark"

    def test_import_invalid(self, ctx, widget_config):
        ctx.store.add_widget(widget_config)
        status, _, _ = import_config_handler(ctx, io.StringIO("not json"))
        assert status.startswith("Import failed")
        assert len(ctx.store.widgets) == 1

    def test_import_without_file(self, ctx):
        status, _, _ = import_config_handler(ctx, None)
        assert status == "Import failed: No file uploaded."
