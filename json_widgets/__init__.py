"""Core logic for JSON API Widgets.

The Gradio UI lives in `app.py`. This package contains:
- pure functions that resolve paths in JSON documents, discover their
  fields and shape them into cards, tables and charts
- the collaborators around them: an HTTP client with a response cache,
  the dashboard store and the refresh scheduler
"""
from .accessors import resolve
from .cards import shape_card
from .charts import shape_chart
from .schema_utils import flatten
from .tables import shape_table

__all__ = ['flatten', 'resolve', 'shape_card', 'shape_chart', 'shape_table']
