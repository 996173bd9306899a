"""Timed JSON GET with uniform error translation and optional retry."""

from __future__ import annotations

import asyncio
from typing import Any, Mapping

import httpx
import structlog

from marketpulse.errors import DataShapeError, FetchError, FetchTimeoutError, HttpError, NetworkError
from marketpulse.ingestion.rate_limit import NO_RETRY, RetryPolicy

log = structlog.get_logger(__name__)

DEFAULT_TIMEOUT_MS = 10_000


def make_client(transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    """Shared client for one cycle. Deadlines are enforced per request by timed_fetch."""
    return httpx.AsyncClient(
        timeout=None,
        follow_redirects=True,
        transport=transport,
        headers={"Accept": "application/json"},
    )


async def _fetch_once(
    client: httpx.AsyncClient,
    url: str,
    params: Mapping[str, Any] | None,
    timeout_ms: int,
) -> Any:
    try:
        # wait_for cancels the request (and its body read) when the deadline passes
        resp = await asyncio.wait_for(client.get(url, params=params), timeout=timeout_ms / 1000)
    except TimeoutError:
        raise FetchTimeoutError(timeout_ms, url) from None
    except httpx.TimeoutException:
        raise FetchTimeoutError(timeout_ms, url) from None
    except httpx.HTTPError as e:
        raise NetworkError(e, url) from e
    if not resp.is_success:
        raise HttpError(resp.status_code, resp.reason_phrase, url)
    try:
        return resp.json()
    except ValueError as e:
        raise DataShapeError(f"Invalid JSON from {url}") from e


async def timed_fetch(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: Mapping[str, Any] | None = None,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    retry: RetryPolicy = NO_RETRY,
) -> Any:
    """
    GET url and return the parsed JSON body. No schema validation.
    Raises HttpError (non-2xx), FetchTimeoutError (deadline), NetworkError (transport)
    or DataShapeError (body is not JSON). Retryable failures are retried per `retry`.
    """
    retries = 0
    while True:
        try:
            return await _fetch_once(client, url, params, timeout_ms)
        except FetchError as e:
            if not e.retryable or retries >= retry.max_retries:
                raise
            delay = retry.delay(retries)
            log.warning("fetch_retry", url=url, error=str(e), attempt=retries + 1, delay=delay)
            retries += 1
            await asyncio.sleep(delay)
