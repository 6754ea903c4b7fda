"""Exceptions raised by the widget fetch and configuration layers.

The mapping core itself never raises for JSON input; these cover the
collaborators around it.
"""
from __future__ import annotations

from typing import Optional


class WidgetsError(Exception):
    """Base exception for all json_widgets errors."""

    pass


class FetchError(WidgetsError):
    """Raised when a widget's API response cannot be obtained."""

    pass


class NetworkError(FetchError):
    """Raised when the request never produced a response (DNS, timeout, refused)."""

    pass


class HttpStatusError(FetchError):
    """Raised when the API answers with a non-success status."""

    def __init__(self, status_code: int, reason: Optional[str] = None):
        self.status_code = status_code
        self.reason = reason or ''
        message = f'API request failed: {status_code}'
        if self.reason:
            message = f'{message} {self.reason}'
        super().__init__(message)


class MalformedResponseError(FetchError):
    """Raised when the response body is not valid JSON."""

    pass


class ConfigurationError(WidgetsError):
    """Raised when a dashboard configuration cannot be loaded."""

    pass
