"""Finnhub adapter - equity quotes with company profile enrichment."""

from __future__ import annotations

import asyncio
from typing import Any, Sequence

import httpx
import structlog

from marketpulse.errors import ConfigError, DataShapeError, DomainExhaustedError
from marketpulse.ingestion.base import SourceAdapter, now_ms
from marketpulse.models import Domain, EquityMetric, MetricRecord, Settings

log = structlog.get_logger(__name__)

FINNHUB_API_BASE = "https://finnhub.io/api/v1"

# Index/ETF tickers whose upstream profile name is missing or unhelpful
STOCK_NAME_OVERRIDES: dict[str, str] = {
    "SPY": "S&P 500 ETF",
    "QQQ": "Nasdaq 100 ETF",
    "DIA": "Dow Jones ETF",
    "IWM": "Russell 2000 ETF",
    "EEM": "Emerging Markets ETF",
    "EFA": "EAFE ETF",
    "GLD": "Gold ETF",
    "SLV": "Silver ETF",
    "TLT": "20+ Year Treasury ETF",
    "VTI": "Total Stock Market ETF",
    "VOO": "S&P 500 ETF",
    "^VIX": "CBOE Volatility Index",
    "^FTSE": "FTSE 100 (UK)",
    "^FCHI": "CAC 40 (France)",
}


def resolve_display_name(
    symbol: str, profile: dict[str, Any] | None
) -> tuple[str, str | None, str | None]:
    """(name, industry, country). Override table > profile name > symbol."""
    if symbol in STOCK_NAME_OVERRIDES:
        return STOCK_NAME_OVERRIDES[symbol], None, None
    if profile and profile.get("name"):
        return profile["name"], profile.get("finnhubIndustry") or None, profile.get("country") or None
    return symbol, None, None


class FinnhubAdapter(SourceAdapter):
    """Equity domain. Requires a Finnhub API key."""

    domain = Domain.EQUITY

    def __init__(self, client: httpx.AsyncClient, *, base_url: str = FINNHUB_API_BASE, **kwargs: Any) -> None:
        super().__init__(client, base_url=base_url, **kwargs)

    async def _profile_or_none(self, symbol: str, api_key: str) -> dict[str, Any] | None:
        try:
            profile = await self._get("/stock/profile2", {"symbol": symbol, "token": api_key})
        except Exception as e:
            log.debug("profile_unavailable", symbol=symbol, error=str(e))
            return None
        return profile if isinstance(profile, dict) else None

    async def fetch_symbol(self, symbol: str, api_key: str) -> EquityMetric:
        quote, profile = await asyncio.gather(
            self._get("/quote", {"symbol": symbol, "token": api_key}),
            self._profile_or_none(symbol, api_key),
        )
        if not isinstance(quote, dict) or not quote.get("c"):
            raise DataShapeError("Invalid quote data")
        name, industry, country = resolve_display_name(symbol, profile)
        return EquityMetric(
            id=symbol,
            name=name,
            industry=industry,
            country=country,
            value=float(quote["c"]),
            # upstream daily percent change already has the right baseline
            change=float(quote.get("dp") or 0),
            timestamp=now_ms(),
        )

    async def fetch_metrics(
        self,
        settings: Settings,
        previous: Sequence[MetricRecord],
    ) -> list[MetricRecord]:
        api_key = settings.api_keys.finnhub
        if not api_key:
            raise ConfigError("Finnhub API key not configured")
        symbols = settings.selected_metrics.stock_symbols
        if not symbols:
            return []

        metrics: list[MetricRecord] = []
        for symbol in symbols:
            try:
                metric = await self.fetch_symbol(symbol, api_key)
            except Exception as e:
                log.warning("skip_symbol", symbol=symbol, error=str(e))
                continue
            log.debug("stock_quote", symbol=symbol, name=metric.name, price=metric.value)
            metrics.append(metric)

        if not metrics:
            raise DomainExhaustedError("No stock data retrieved")
        return metrics
