import logging
from functools import partial

import gradio as gr

from json_widgets.api_client import ApiClient
from json_widgets.handlers import (
    DashboardContext,
    MAPPING_HEADERS,
    add_widget_handler,
    export_config_handler,
    import_config_handler,
    load_sample_handler,
    refresh_handler,
    remove_widget_handler,
    render_widget_handler,
    select_widget_handler,
    set_mode_handler,
    set_theme_handler,
    sort_table_handler,
    test_connection_handler,
    tick_handler,
    update_field_mapping,
    widget_choices,
)
from json_widgets.models import DEFAULT_REFRESH_INTERVAL, MAX_REFRESH_INTERVAL, MIN_REFRESH_INTERVAL
from json_widgets.refresh import WidgetRefresher
from json_widgets.settings import get_settings
from json_widgets.store import DashboardStore
from json_widgets.tables import TableSortState

settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

store = DashboardStore.load(settings.storage_path)
client = ApiClient(timeout=settings.request_timeout)
ctx = DashboardContext(store, client, WidgetRefresher(store, client), settings.storage_path)

# --- UI Definition ---
with gr.Blocks(title="JSON API Widgets") as demo:
    gr.Markdown("# JSON API Widgets")
    gr.Markdown("Poll any JSON API, pick the fields you care about, and show them as a card, table or chart.")

    # State
    sort_state = gr.State(value=TableSortState())

    with gr.Tab("Dashboard"):
        with gr.Row():
            initial = widget_choices(ctx)
            widget_selector = gr.Dropdown(
                label="Widget",
                choices=initial,
                value=initial[0][1] if initial else None,
                interactive=True,
            )
            mode_selector = gr.Radio(choices=["card", "table", "chart"], label="Display Mode", interactive=True)
            refresh_btn = gr.Button("Refresh")
            remove_btn = gr.Button("Remove", variant="stop")

        widget_info = gr.Markdown()
        card_view = gr.Markdown(visible=False)

        with gr.Row():
            search_box = gr.Textbox(label="Search", placeholder="Search...")
            sort_column = gr.Dropdown(label="Sort by", choices=[], interactive=True)
            sort_btn = gr.Button("Sort (click again to reverse)")
        table_view = gr.Dataframe(visible=False, interactive=False, wrap=True)

        with gr.Row():
            focus_selector = gr.Dropdown(label="Show only", choices=[], visible=False, interactive=True)
            log_toggle = gr.Checkbox(label="Log scale", value=False, visible=False)
        line_view = gr.LinePlot(visible=False)
        bar_view = gr.BarPlot(visible=False)

        timer = gr.Timer(value=5)

    with gr.Tab("Add Widget"):
        with gr.Row():
            with gr.Column(scale=1):
                gr.Markdown("### 1. Connect")
                url_input = gr.Textbox(label="API URL", placeholder="https://api.example.com/prices")
                test_btn = gr.Button("Test Connection")
                sample_file = gr.File(label="...or discover fields from a JSON sample", file_types=[".json"])
                connection_status = gr.Textbox(label="Status", interactive=False)

                gr.Markdown("### 2. Select Fields")
                field_selector = gr.CheckboxGroup(label="Available fields", choices=[])
                discovered_fields = gr.JSON(label="Discovered fields (with sample values)")

            with gr.Column(scale=1):
                gr.Markdown("### 3. Configure")
                widget_name = gr.Textbox(label="Widget Name", placeholder="My widget")
                refresh_interval = gr.Slider(
                    label="Refresh interval (seconds)",
                    minimum=MIN_REFRESH_INTERVAL,
                    maximum=MAX_REFRESH_INTERVAL,
                    value=DEFAULT_REFRESH_INTERVAL,
                    step=1,
                )
                display_mode = gr.Radio(choices=["card", "table", "chart"], value="card", label="Display Mode")
                gr.Markdown("Rename field labels if needed.")
                mapping_table = gr.Dataframe(
                    headers=MAPPING_HEADERS,
                    datatype=["str", "str"],
                    col_count=(2, "fixed"),
                    interactive=True,
                    label="Field Labels",
                )
                add_btn = gr.Button("Add Widget", variant="primary")
                add_status = gr.Textbox(label="Result", interactive=False)

    with gr.Tab("Settings"):
        theme_selector = gr.Radio(choices=["dark", "light"], value=store.theme, label="Theme")
        theme_status = gr.Textbox(label="Theme Status", interactive=False)
        gr.Markdown("### Export / Import")
        export_name = gr.Textbox(label="Export Filename (optional)", placeholder="dashboard-config")
        export_btn = gr.Button("Export Configuration")
        export_file = gr.File(label="Download Configuration")
        import_file = gr.File(label="Import Configuration", file_types=[".json"])
        config_status = gr.Textbox(label="Configuration Status", interactive=False)

    render_inputs = [widget_selector, search_box, sort_state, focus_selector, log_toggle]
    render_outputs = [widget_info, card_view, table_view, line_view, bar_view, sort_column, focus_selector, log_toggle]
    render = partial(render_widget_handler, ctx)

    # Dashboard events
    widget_selector.change(
        fn=partial(select_widget_handler, ctx),
        inputs=[widget_selector],
        outputs=[mode_selector, sort_state, focus_selector],
    ).then(fn=render, inputs=render_inputs, outputs=render_outputs)

    mode_selector.input(
        fn=partial(set_mode_handler, ctx),
        inputs=[widget_selector, mode_selector],
        outputs=None,
    ).then(fn=render, inputs=render_inputs, outputs=render_outputs)

    refresh_btn.click(
        fn=partial(refresh_handler, ctx),
        inputs=[widget_selector],
        outputs=None,
    ).then(fn=render, inputs=render_inputs, outputs=render_outputs)

    remove_btn.click(
        fn=partial(remove_widget_handler, ctx),
        inputs=[widget_selector],
        outputs=[widget_selector],
    )

    search_box.change(fn=render, inputs=render_inputs, outputs=render_outputs)
    focus_selector.input(fn=render, inputs=render_inputs, outputs=render_outputs)
    log_toggle.input(fn=render, inputs=render_inputs, outputs=render_outputs)

    sort_btn.click(
        fn=sort_table_handler,
        inputs=[sort_state, sort_column],
        outputs=[sort_state],
    ).then(fn=render, inputs=render_inputs, outputs=render_outputs)

    timer.tick(fn=partial(tick_handler, ctx), inputs=None, outputs=None).then(
        fn=render, inputs=render_inputs, outputs=render_outputs
    )

    # Add widget events
    test_btn.click(
        fn=partial(test_connection_handler, ctx),
        inputs=[url_input],
        outputs=[discovered_fields, field_selector, connection_status],
    )

    sample_file.upload(
        fn=load_sample_handler,
        inputs=[sample_file],
        outputs=[discovered_fields, field_selector, connection_status],
    )

    field_selector.change(
        fn=update_field_mapping,
        inputs=[field_selector],
        outputs=[mapping_table],
    )

    add_btn.click(
        fn=partial(add_widget_handler, ctx),
        inputs=[widget_name, url_input, refresh_interval, display_mode, mapping_table],
        outputs=[add_status, widget_selector],
    )

    # Settings events
    theme_selector.input(
        fn=partial(set_theme_handler, ctx),
        inputs=[theme_selector],
        outputs=[theme_status],
    )

    export_btn.click(
        fn=partial(export_config_handler, ctx),
        inputs=[export_name],
        outputs=[export_file, config_status],
    )

    import_file.upload(
        fn=partial(import_config_handler, ctx),
        inputs=[import_file],
        outputs=[config_status, widget_selector, theme_selector],
    )

    demo.load(
        fn=partial(select_widget_handler, ctx),
        inputs=[widget_selector],
        outputs=[mode_selector, sort_state, focus_selector],
    ).then(fn=render, inputs=render_inputs, outputs=render_outputs)

if __name__ == "__main__":
    demo.launch()
