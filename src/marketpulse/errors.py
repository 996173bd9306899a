"""Error taxonomy for fetching and normalizing upstream data."""

from __future__ import annotations


class MetricsError(Exception):
    """Base for all marketpulse errors."""


class FetchError(MetricsError):
    """Transport-level failure of a single upstream request."""

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url

    @property
    def retryable(self) -> bool:
        return True


class NetworkError(FetchError):
    """Connection refused, DNS failure, reset, ..."""

    def __init__(self, cause: Exception, url: str | None = None) -> None:
        super().__init__(f"Network error: {cause}", url)
        self.cause = cause


class FetchTimeoutError(FetchError, TimeoutError):
    """Request did not complete before its deadline."""

    def __init__(self, timeout_ms: int, url: str | None = None) -> None:
        super().__init__("Request timeout", url)
        self.timeout_ms = timeout_ms


class HttpError(FetchError):
    """Upstream answered with a non-2xx status."""

    def __init__(self, status: int, status_text: str = "", url: str | None = None) -> None:
        super().__init__(f"HTTP {status}: {status_text}".rstrip(": "), url)
        self.status = status
        self.status_text = status_text

    @property
    def retryable(self) -> bool:
        return self.status == 429 or 500 <= self.status < 600


class DataShapeError(MetricsError):
    """Expected field absent or unparseable in an otherwise successful response."""


class ConfigError(MetricsError):
    """Required configuration (an API key) is missing."""


class DomainExhaustedError(MetricsError):
    """Every selected item in a domain failed; nothing to report."""
