"""FRED (Federal Reserve Economic Data) adapter - latest observation per series."""

from __future__ import annotations

import asyncio
import re
from typing import Any, Sequence

import httpx
import structlog

from marketpulse.errors import ConfigError, DataShapeError, DomainExhaustedError
from marketpulse.ingestion.base import SourceAdapter, calculate_change, now_ms
from marketpulse.models import Domain, EconomicSeries, MacroSeriesMetric, MetricRecord, Settings

log = structlog.get_logger(__name__)

FRED_API_BASE = "https://api.stlouisfed.org/fred"

# Units that already express a change; a percent change of these is meaningless
_CHANGE_UNIT_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (r"growth rate", r"percent change", r"rate of change", r"annual rate", r"percentage points")
]
_FOR_GEOGRAPHY = re.compile(r"\bfor\s+([A-Z][a-zA-Z\s]+?)(?:\s*$|,|\()")
_IN_GEOGRAPHY = re.compile(r"\bin\s+([A-Z][a-zA-Z\s]+?)(?:\s*$|,|\()")
_ALL_ITEMS_SUFFIX = re.compile(r"\s+All\s+Items$", re.IGNORECASE)


def is_change_units(units: str | None) -> bool:
    """True when the series is itself a rate/change quantity."""
    if not units:
        return False
    return any(p.search(units) for p in _CHANGE_UNIT_PATTERNS)


def extract_geography(title: str | None) -> str | None:
    """Best-effort 'for X' / 'in X' place name from a series title. None on no match."""
    if not title:
        return None
    for pattern in (_FOR_GEOGRAPHY, _IN_GEOGRAPHY):
        m = pattern.search(title)
        if m and m.group(1).strip():
            geography = _ALL_ITEMS_SUFFIX.sub("", m.group(1).strip()).strip()
            return geography or None
    return None


def _observation_value(obs: Any) -> float | None:
    """FRED reports missing values as '.'."""
    if not isinstance(obs, dict):
        return None
    try:
        return float(obs.get("value"))
    except (TypeError, ValueError):
        return None


class FredAdapter(SourceAdapter):
    """Macro-series domain. Requires a FRED API key."""

    domain = Domain.MACRO_SERIES

    def __init__(self, client: httpx.AsyncClient, *, base_url: str = FRED_API_BASE, **kwargs: Any) -> None:
        super().__init__(client, base_url=base_url, **kwargs)

    async def _series_info_or_none(self, series_id: str, api_key: str) -> dict[str, Any] | None:
        try:
            data = await self._get(
                "/series", {"series_id": series_id, "api_key": api_key, "file_type": "json"}
            )
        except Exception as e:
            log.debug("series_info_unavailable", series_id=series_id, error=str(e))
            return None
        seriess = data.get("seriess") if isinstance(data, dict) else None
        if isinstance(seriess, list) and seriess and isinstance(seriess[0], dict):
            return seriess[0]
        return None

    async def fetch_series(self, series: EconomicSeries, api_key: str) -> MacroSeriesMetric:
        info, observations_data = await asyncio.gather(
            self._series_info_or_none(series.id, api_key),
            self._get(
                "/series/observations",
                {
                    "series_id": series.id,
                    "api_key": api_key,
                    "file_type": "json",
                    "limit": 2,
                    "sort_order": "desc",
                },
            ),
        )
        observations = observations_data.get("observations") if isinstance(observations_data, dict) else None
        if not observations:
            raise DataShapeError("No observations available")
        latest = observations[0]
        current = _observation_value(latest)
        if current is None:
            raise DataShapeError(f"Unparseable observation value: {latest.get('value')!r}")
        prior = _observation_value(observations[1]) if len(observations) > 1 else None

        info = info or {}
        units = info.get("units")
        change = 0.0
        if not is_change_units(units) and prior:
            change = calculate_change(current, prior)

        title = info.get("title")
        return MacroSeriesMetric(
            id=series.id,
            name=series.name or title or series.id,
            units=units,
            frequency=info.get("frequency_short"),
            geography=extract_geography(title),
            value=current,
            change=change,
            date=latest.get("date"),
            timestamp=now_ms(),
        )

    async def fetch_metrics(
        self,
        settings: Settings,
        previous: Sequence[MetricRecord],
    ) -> list[MetricRecord]:
        api_key = settings.api_keys.fred
        if not api_key:
            raise ConfigError("FRED API key not configured")
        series_list = settings.selected_metrics.economic_series
        if not series_list:
            return []

        metrics: list[MetricRecord] = []
        for series in series_list:
            try:
                metric = await self.fetch_series(series, api_key)
            except Exception as e:
                log.warning("skip_series", series_id=series.id, error=str(e))
                continue
            metrics.append(metric)

        if not metrics:
            raise DomainExhaustedError("No economic data retrieved")
        return metrics
