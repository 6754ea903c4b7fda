"""Interval-driven refreshing of widget data.

Each widget is fetched when its own refresh interval has elapsed; the
result (or the error message) is recorded in the dashboard store.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Dict, List, Optional

from .api_client import ApiClient
from .errors import FetchError
from .store import DashboardStore

logger = logging.getLogger(__name__)


class WidgetRefresher:
    """
    Fetches data for dashboard widgets on their configured intervals.

    Args:
        store: Dashboard whose widgets are refreshed
        client: API client used for fetching
        clock: Time source in seconds (injectable for tests)
    """

    def __init__(
        self,
        store: DashboardStore,
        client: ApiClient,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.client = client
        self._clock = clock
        self._last_refresh: Dict[str, float] = {}
        self._lock = threading.Lock()

    def is_due(self, widget_id: str, now: Optional[float] = None) -> bool:
        """Check whether a widget's refresh interval has elapsed."""
        widget = self.store.get_widget(widget_id)
        if widget is None:
            return False
        now = self._clock() if now is None else now
        with self._lock:
            last = self._last_refresh.get(widget_id)
        if last is None:
            return True
        return now - last >= widget.config.refresh_interval

    def refresh(self, widget_id: str, force: bool = False, now: Optional[float] = None) -> bool:
        """
        Fetch one widget's document and record it in the store.

        The widget's refresh interval doubles as the cache TTL, so a forced
        refresh bypasses the cache entirely.

        Returns:
            True if data was fetched, False on error or unknown widget
        """
        widget = self.store.get_widget(widget_id)
        if widget is None:
            logger.warning(f'Refresh requested for unknown widget {widget_id}')
            return False

        config = widget.config
        with self._lock:
            self._last_refresh[widget_id] = self._clock() if now is None else now
        self.store.set_widget_loading(widget_id, True)

        try:
            data = self.client.fetch(config.api_url, use_cache=not force, ttl=config.refresh_interval)
        except (FetchError, ValueError) as e:
            logger.error(f"Error fetching data for widget '{config.name}': {e}")
            self.store.set_widget_data(widget_id, None, str(e))
            return False
        except Exception as e:
            logger.error(f"Unexpected error fetching widget '{config.name}': {e}", exc_info=True)
            self.store.set_widget_data(widget_id, None, 'Failed to fetch')
            return False

        self.store.set_widget_data(widget_id, data, None)
        logger.debug(f"Refreshed widget '{config.name}'")
        return True

    def refresh_due(self, now: Optional[float] = None) -> List[str]:
        """Refresh every widget whose interval has elapsed; return their ids."""
        now = self._clock() if now is None else now
        refreshed = []
        for widget in self.store.widgets:
            widget_id = widget.config.id
            if self.is_due(widget_id, now):
                self.refresh(widget_id, now=now)
                refreshed.append(widget_id)
        self._forget_removed()
        return refreshed

    def _forget_removed(self) -> None:
        live = {w.config.id for w in self.store.widgets}
        with self._lock:
            for widget_id in list(self._last_refresh):
                if widget_id not in live:
                    del self._last_refresh[widget_id]
