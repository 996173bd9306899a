"""Metric records, snapshot and error state - canonical entities."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class Domain(str, Enum):
    """Metric category. Values double as storage keys."""

    PREDICTION_MARKET = "polymarket"
    EQUITY = "stocks"
    CURRENCY_PAIR = "forex"
    MACRO_SERIES = "economic"


SYSTEM_ERROR_KEY = "system"


class MetricRecord(BaseModel):
    """Common skeleton shared by every domain's record."""

    id: str
    value: float
    change: float = 0.0  # percent vs previous cycle
    timestamp: int  # ms epoch at fetch time


class PredictionMarketMetric(MetricRecord):
    """Leading probability of one Polymarket event."""

    value: float = Field(..., ge=0, le=1, description="Probability in [0, 1]")
    title: str = ""
    slug: str | None = None
    top_outcome: str | None = None  # multi-choice events only


class EquityMetric(MetricRecord):
    """Last price of one ticker; id is the symbol."""

    name: str = ""
    industry: str | None = None
    country: str | None = None


class CurrencyPairMetric(MetricRecord):
    """Exchange rate; id is "BASE/TARGET"."""

    base: str
    target: str


class MacroSeriesMetric(MetricRecord):
    """Latest observation of a FRED series; id is the series id."""

    name: str = ""
    units: str | None = None
    frequency: str | None = None
    geography: str | None = None
    date: str | None = None


class Snapshot(BaseModel):
    """Most recent metric list per domain. Replaced wholesale every cycle."""

    polymarket: list[PredictionMarketMetric] = Field(default_factory=list)
    stocks: list[EquityMetric] = Field(default_factory=list)
    forex: list[CurrencyPairMetric] = Field(default_factory=list)
    economic: list[MacroSeriesMetric] = Field(default_factory=list)
    last_update: int | None = None  # ms epoch of last completed write

    def records(self, domain: Domain) -> list[MetricRecord]:
        return getattr(self, domain.value)


class ErrorState(BaseModel):
    """Last error message per domain, None when the domain is healthy."""

    polymarket: str | None = None
    stocks: str | None = None
    forex: str | None = None
    economic: str | None = None
    system: str | None = None

    def get(self, key: Domain | str) -> str | None:
        return getattr(self, key.value if isinstance(key, Domain) else key)

    def has_errors(self) -> bool:
        return any(v is not None for v in self.model_dump().values())
