"""HTTP fetching for widgets, with a small TTL cache keyed by URL."""
from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Optional, Tuple

import httpx

from .errors import FetchError, HttpStatusError, MalformedResponseError, NetworkError
from .models import ApiTestResult
from .schema_utils import flatten
from .settings import get_settings
from .values import UNDEFINED

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 60.0


class ResponseCache:
    """
    Parsed responses keyed by URL.

    Entries are valid for the TTL given at lookup time, so widgets polling
    the same URL at different intervals can share one entry. At most
    `max_entries` URLs are kept; the oldest insertion is evicted first.
    """

    def __init__(self, max_entries: int = 128, clock: Callable[[], float] = time.monotonic):
        self.max_entries = max(1, int(max_entries))
        self._clock = clock
        self._entries: 'OrderedDict[str, Tuple[float, Any]]' = OrderedDict()
        self._lock = threading.Lock()

    def get(self, url: str, ttl: float = DEFAULT_CACHE_TTL) -> Any:
        """Return the cached document, or UNDEFINED when missing or stale."""
        with self._lock:
            entry = self._entries.get(url)
            if entry is None:
                return UNDEFINED
            stored_at, data = entry
            if self._clock() - stored_at >= ttl:
                del self._entries[url]
                return UNDEFINED
            return data

    def set(self, url: str, data: Any) -> None:
        with self._lock:
            self._entries.pop(url, None)
            self._entries[url] = (self._clock(), data)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f'Evicted cached response for {evicted}')

    def clear(self, url: Optional[str] = None) -> None:
        with self._lock:
            if url is None:
                self._entries.clear()
            else:
                self._entries.pop(url, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class ApiClient:
    """
    Fetches JSON documents for widgets.

    Args:
        client: httpx client to use (one is created when omitted)
        cache: response cache (a fresh ResponseCache when omitted)
        timeout: request timeout in seconds
    """

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        cache: Optional[ResponseCache] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.cache = cache if cache is not None else ResponseCache(settings.cache_size)
        self._client = client or httpx.Client(
            timeout=self.timeout,
            follow_redirects=True,
            headers={'Accept': 'application/json'},
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> 'ApiClient':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def fetch(self, url: str, use_cache: bool = True, ttl: Optional[float] = None) -> Any:
        """
        Fetch and parse the JSON document at `url`.

        Raises:
            ValueError: If url is empty
            NetworkError: If no response was received
            HttpStatusError: If the status is not 2xx
            MalformedResponseError: If the body is not JSON
        """
        url = (url or '').strip()
        if not url:
            raise ValueError('Missing URL')

        ttl = DEFAULT_CACHE_TTL if ttl is None else ttl
        if use_cache:
            cached = self.cache.get(url, ttl)
            if cached is not UNDEFINED:
                logger.debug(f'Cache hit for {url}')
                return cached

        try:
            response = self._client.get(url, headers={'Accept': 'application/json'}, timeout=self.timeout)
        except httpx.HTTPError as e:
            raise NetworkError(f'Request to {url} failed: {e}') from e

        if not response.is_success:
            raise HttpStatusError(response.status_code, response.reason_phrase)

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError(f'Response from {url} is not valid JSON: {e}') from e

        if use_cache:
            self.cache.set(url, data)
        return data

    def test_url(self, url: str) -> ApiTestResult:
        """Fetch `url` bypassing the cache and list the fields it offers."""
        try:
            data = self.fetch(url, use_cache=False)
        except (FetchError, ValueError) as e:
            logger.info(f'Connection test for {url!r} failed: {e}')
            return ApiTestResult(success=False, error=str(e))

        fields = flatten(data)
        logger.info(f'Connection test for {url} found {len(fields)} fields')
        return ApiTestResult(success=True, fields=fields)
