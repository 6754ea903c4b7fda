"""
Pytest configuration and fixtures
"""

import json

import httpx
import pytest

from json_widgets.api_client import ApiClient, ResponseCache
from json_widgets.models import SelectedField, WidgetConfig
from json_widgets.store import DashboardStore


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def fields(*specs):
    """Build SelectedFields from 'path' or ('path', 'label') specs."""
    out = []
    for spec in specs:
        if isinstance(spec, tuple):
            out.append(SelectedField(path=spec[0], label=spec[1]))
        else:
            out.append(SelectedField(path=spec, label=""))
    return out


@pytest.fixture
def ticker_document():
    """Flat quote document without arrays"""
    return {"name": "BTC", "price": 50000, "volume": "12.5", "active": True, "note": None}


@pytest.fixture
def nested_document():
    """Document with a record array nested under 'data'"""
    return {
        "status": "ok",
        "meta": {"count": 3, "source": {"name": "exchange"}},
        "data": [
            {"symbol": "AAA", "price": 10.5, "change": "-0.2"},
            {"symbol": "BBB", "price": 2, "change": "1.5"},
            {"symbol": "CCC", "price": 300, "change": None},
        ],
    }


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def responses():
    """URL -> (status, body) table served by the mock transport"""
    return {
        "https://api.test/quote": (200, {"name": "BTC", "price": 50000}),
        "https://api.test/list": (200, [{"a": 1}, {"a": 2}]),
        "https://api.test/missing": (404, {"error": "not found"}),
        "https://api.test/html": (200, "<html>oops</html>"),
    }


@pytest.fixture
def request_log():
    return []


@pytest.fixture
def http_client(responses, request_log):
    """httpx client answering from the `responses` table"""

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        request_log.append(url)
        if url == "https://api.test/down":
            raise httpx.ConnectError("connection refused", request=request)
        if url not in responses:
            return httpx.Response(404, text="not found")
        status, body = responses[url]
        if isinstance(body, str):
            return httpx.Response(status, text=body, headers={"Content-Type": "text/html"})
        return httpx.Response(status, content=json.dumps(body).encode(), headers={"Content-Type": "application/json"})

    client = httpx.Client(transport=httpx.MockTransport(handler))
    yield client
    client.close()


@pytest.fixture
def api_client(http_client, clock):
    return ApiClient(client=http_client, cache=ResponseCache(max_entries=8, clock=clock), timeout=1.0)


@pytest.fixture
def widget_config():
    return WidgetConfig(
        name="Bitcoin",
        api_url="https://api.test/quote",
        refresh_interval=30,
        display_mode="card",
        selected_fields=[SelectedField(path="price", label="Price")],
    )


@pytest.fixture
def store():
    return DashboardStore()
