"""Polymarket Gamma API adapter - event probabilities by slug or top active events."""

from __future__ import annotations

from typing import Any, Sequence

import httpx
import structlog

from marketpulse.errors import DomainExhaustedError, MetricsError
from marketpulse.ingestion.base import SourceAdapter, calculate_change, now_ms, previous_value
from marketpulse.ingestion.polymarket.normalize import NoMatch, find_top_market, match_event
from marketpulse.models import Domain, MetricRecord, PredictionMarketMetric, Settings

log = structlog.get_logger(__name__)

GAMMA_API_BASE = "https://gamma-api.polymarket.com"


def parse_event(
    event: dict[str, Any],
    previous: Sequence[MetricRecord],
    slug: str | None = None,
) -> PredictionMarketMetric | None:
    """Convert a Gamma event to a metric. None when the event carries no markets."""
    markets = [m for m in event.get("markets") or [] if isinstance(m, dict)]
    if not markets:
        return None
    top = find_top_market(markets)
    slug = slug or event.get("slug")
    market_id = str(top.market.get("conditionId") or top.market.get("id") or slug or "")
    if not market_id:
        return None
    return PredictionMarketMetric(
        id=market_id,
        title=event.get("title") or top.market.get("question") or "Unknown Market",
        slug=slug,
        value=top.probability,
        top_outcome=top.top_outcome,
        change=calculate_change(top.probability, previous_value(previous, market_id)),
        timestamp=now_ms(),
    )


class PolymarketAdapter(SourceAdapter):
    """Prediction-market domain. No API key required."""

    domain = Domain.PREDICTION_MARKET

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        base_url: str = GAMMA_API_BASE,
        top_markets_limit: int = 5,
        **kwargs: Any,
    ) -> None:
        super().__init__(client, base_url=base_url, **kwargs)
        self.top_markets_limit = top_markets_limit

    async def fetch_metrics(
        self,
        settings: Settings,
        previous: Sequence[MetricRecord],
    ) -> list[MetricRecord]:
        slugs = settings.selected_metrics.polymarket_ids
        if not slugs:
            return await self.fetch_top_markets(previous)

        metrics: list[MetricRecord] = []
        for slug in slugs:
            try:
                payload = await self._get("/events", {"slug": slug})
                match = match_event(payload, slug)
                if isinstance(match, NoMatch):
                    log.warning("no_market_data", slug=slug, reason=match.reason)
                    continue
                metric = parse_event(match.event, previous, slug=slug)
            except Exception as e:
                log.warning("skip_market", slug=slug, error=str(e))
                continue
            if metric is None:
                log.warning("no_market_data", slug=slug, reason="event has no markets")
                continue
            log.debug("market_probability", slug=slug, probability=metric.value, top_outcome=metric.top_outcome)
            metrics.append(metric)

        if not metrics:
            log.warning("no_polymarket_metrics", hint="Leave the slug list empty for the top active markets.")
        return metrics

    async def fetch_top_markets(self, previous: Sequence[MetricRecord]) -> list[MetricRecord]:
        """Top N currently active events from the generic listing endpoint."""
        try:
            data = await self._get("/events", {"limit": self.top_markets_limit, "active": "true"})
        except MetricsError as e:
            raise DomainExhaustedError(f"Polymarket API error: {e}") from e
        if isinstance(data, list):
            events = data
        elif isinstance(data, dict):
            events = data.get("events") or data.get("data") or []
        else:
            events = []

        metrics: list[MetricRecord] = []
        for event in events[: self.top_markets_limit]:
            if not isinstance(event, dict):
                continue
            try:
                metric = parse_event(event, previous)
            except Exception as e:
                log.warning("skip_event", slug=event.get("slug"), error=str(e))
                continue
            if metric is not None:
                metrics.append(metric)
        return metrics
