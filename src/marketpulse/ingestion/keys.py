"""Probe provider API keys with one cheap request each."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from marketpulse.errors import DataShapeError, FetchError, HttpError
from marketpulse.ingestion.finnhub import FINNHUB_API_BASE
from marketpulse.ingestion.fred import FRED_API_BASE
from marketpulse.ingestion.http import timed_fetch
from marketpulse.models import ApiKeys


@dataclass
class KeyCheck:
    valid: bool
    message: str


async def _probe(client: httpx.AsyncClient, url: str, params: dict[str, str], invalid_status: int) -> KeyCheck:
    try:
        await timed_fetch(client, url, params=params)
    except HttpError as e:
        if e.status == invalid_status:
            return KeyCheck(False, "Invalid API key")
        return KeyCheck(False, f"Error: {e.status}")
    except FetchError as e:
        return KeyCheck(False, str(e))
    except DataShapeError:
        # 2xx with a non-JSON body still proves the key was accepted
        pass
    return KeyCheck(True, "Valid API key")


async def validate_api_keys(
    client: httpx.AsyncClient,
    keys: ApiKeys,
    *,
    finnhub_base: str = FINNHUB_API_BASE,
    fred_base: str = FRED_API_BASE,
) -> dict[str, KeyCheck]:
    """Per-provider result: Finnhub answers 401 and FRED 400 for a bad key."""
    results = {}
    if keys.finnhub:
        results["finnhub"] = await _probe(
            client,
            finnhub_base.rstrip("/") + "/quote",
            {"symbol": "AAPL", "token": keys.finnhub},
            invalid_status=401,
        )
    else:
        results["finnhub"] = KeyCheck(False, "API key not provided")
    if keys.fred:
        results["fred"] = await _probe(
            client,
            fred_base.rstrip("/") + "/series",
            {"series_id": "GDP", "api_key": keys.fred, "file_type": "json"},
            invalid_status=400,
        )
    else:
        results["fred"] = KeyCheck(False, "API key not provided")
    return results
