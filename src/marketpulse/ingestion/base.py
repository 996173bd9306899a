"""Abstract source adapter for pluggable upstream APIs, plus the shared change helpers."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Any, Mapping, Sequence, TypeVar

import httpx

from marketpulse.ingestion.http import DEFAULT_TIMEOUT_MS, timed_fetch
from marketpulse.ingestion.rate_limit import NO_RETRY, RetryPolicy
from marketpulse.models import Domain, MetricRecord, Settings

R = TypeVar("R", bound=MetricRecord)


def calculate_change(current: float, previous: float | None) -> float:
    """Percent change vs previous. 0 when previous is absent or zero."""
    if previous is None or previous == 0:
        return 0.0
    return (current - previous) / abs(previous) * 100


def find_previous(records: Sequence[R], record_id: str) -> R | None:
    """Linear scan; lists hold tens of items."""
    for record in records:
        if record.id == record_id:
            return record
    return None


def previous_value(records: Sequence[MetricRecord], record_id: str) -> float | None:
    prev = find_previous(records, record_id)
    return prev.value if prev is not None else None


def now_ms() -> int:
    return int(time.time() * 1000)


class SourceAdapter(ABC):
    """One upstream API -> list of uniform metric records for one domain.

    Per-item failures are logged and skipped. Raise only when the domain as a whole
    has nothing to report (missing key, every item failed).
    """

    domain: Domain

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        base_url: str,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        retry: RetryPolicy = NO_RETRY,
    ) -> None:
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.timeout_ms = timeout_ms
        self.retry = retry

    async def _get(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        return await timed_fetch(
            self.client,
            self.base_url + path,
            params=params,
            timeout_ms=self.timeout_ms,
            retry=self.retry,
        )

    @abstractmethod
    async def fetch_metrics(
        self,
        settings: Settings,
        previous: Sequence[MetricRecord],
    ) -> list[MetricRecord]:
        """Return this domain's records for the current cycle."""
        ...
