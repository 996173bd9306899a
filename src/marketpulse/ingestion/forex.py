"""Exchange-rate adapter - currency pairs, one request per base currency."""

from __future__ import annotations

from typing import Any, Sequence

import httpx
import structlog

from marketpulse.errors import DataShapeError, DomainExhaustedError
from marketpulse.ingestion.base import SourceAdapter, calculate_change, now_ms, previous_value
from marketpulse.models import CurrencyPairMetric, Domain, ForexPair, MetricRecord, Settings

log = structlog.get_logger(__name__)

EXCHANGE_RATE_API_BASE = "https://api.exchangerate-api.com/v4"


def group_by_base(pairs: Sequence[ForexPair]) -> dict[str, list[str]]:
    """Targets per base currency, in first-seen order. Repeated pairs are kept."""
    grouped: dict[str, list[str]] = {}
    for pair in pairs:
        grouped.setdefault(pair.base or "USD", []).append(pair.target)
    return grouped


def _rate(rates: dict[str, Any], target: str) -> float | None:
    try:
        value = float(rates[target])
    except (KeyError, TypeError, ValueError):
        return None
    return value or None


class ForexAdapter(SourceAdapter):
    """Currency-pair domain. No API key required."""

    domain = Domain.CURRENCY_PAIR

    def __init__(
        self, client: httpx.AsyncClient, *, base_url: str = EXCHANGE_RATE_API_BASE, **kwargs: Any
    ) -> None:
        super().__init__(client, base_url=base_url, **kwargs)

    async def fetch_base(
        self,
        base: str,
        targets: list[str],
        previous: Sequence[MetricRecord],
    ) -> list[CurrencyPairMetric]:
        data = await self._get(f"/latest/{base}", {"symbols": ",".join(targets)})
        rates = data.get("rates") if isinstance(data, dict) else None
        if not isinstance(rates, dict):
            raise DataShapeError("Invalid forex data")
        out = []
        for target in targets:
            rate = _rate(rates, target)
            if rate is None:
                log.warning("rate_unavailable", pair=f"{base}/{target}")
                continue
            pair_id = f"{base}/{target}"
            out.append(
                CurrencyPairMetric(
                    id=pair_id,
                    base=base,
                    target=target,
                    value=rate,
                    change=calculate_change(rate, previous_value(previous, pair_id)),
                    timestamp=now_ms(),
                )
            )
        return out

    async def fetch_metrics(
        self,
        settings: Settings,
        previous: Sequence[MetricRecord],
    ) -> list[MetricRecord]:
        pairs = settings.selected_metrics.forex_pairs
        if not pairs:
            return []

        metrics: list[MetricRecord] = []
        for base, targets in group_by_base(pairs).items():
            try:
                metrics.extend(await self.fetch_base(base, targets, previous))
            except Exception as e:
                log.warning("skip_base_currency", base=base, error=str(e))

        if not metrics:
            raise DomainExhaustedError("No forex data retrieved")
        return metrics
