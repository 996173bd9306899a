"""User settings record and the text parsers used by the settings surface."""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

MIN_UPDATE_FREQUENCY = 1
MAX_UPDATE_FREQUENCY = 60
DEFAULT_UPDATE_FREQUENCY = 5


class ApiKeys(BaseModel):
    """Opaque provider keys. Empty string disables the provider's domain."""

    finnhub: str = ""
    fred: str = ""


class ForexPair(BaseModel):
    base: str = "USD"
    target: str

    @property
    def pair_id(self) -> str:
        return f"{self.base}/{self.target}"


class EconomicSeries(BaseModel):
    id: str
    name: str | None = None  # overrides the upstream title when set


def _default_economic_series() -> list[EconomicSeries]:
    return [
        EconomicSeries(id="GDP", name="US GDP Growth"),
        EconomicSeries(id="UNRATE", name="Unemployment Rate"),
        EconomicSeries(id="CPIAUCSL", name="Consumer Price Index"),
    ]


def _default_forex_pairs() -> list[ForexPair]:
    return [
        ForexPair(base="USD", target="EUR"),
        ForexPair(base="USD", target="JPY"),
        ForexPair(base="USD", target="GBP"),
    ]


class SelectedMetrics(BaseModel):
    polymarket_ids: list[str] = Field(default_factory=list)  # empty -> top active markets
    stock_symbols: list[str] = Field(default_factory=lambda: ["AAPL", "GOOGL", "MSFT"])
    economic_series: list[EconomicSeries] = Field(default_factory=_default_economic_series)
    forex_pairs: list[ForexPair] = Field(default_factory=_default_forex_pairs)

    @field_validator("economic_series", mode="before")
    @classmethod
    def _series_from_strings(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [{"id": v} if isinstance(v, str) else v for v in value]
        return value


class Settings(BaseModel):
    """User-editable settings, stored whole in the key-value store."""

    update_frequency: int = Field(
        DEFAULT_UPDATE_FREQUENCY,
        ge=MIN_UPDATE_FREQUENCY,
        le=MAX_UPDATE_FREQUENCY,
        description="Minutes between scheduled cycles",
    )
    api_keys: ApiKeys = Field(default_factory=ApiKeys)
    selected_metrics: SelectedMetrics = Field(default_factory=SelectedMetrics)


def default_settings() -> Settings:
    return Settings()


def parse_polymarket_ids(text: str) -> list[str]:
    """One slug per line. Full event URLs are reduced to their last path segment."""
    slugs = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        if line.startswith(("http://", "https://")):
            parts = [p for p in urlparse(line).path.split("/") if p]
            line = parts[-1] if parts else line
        slugs.append(line)
    return slugs


def parse_stock_symbols(text: str) -> list[str]:
    """Comma-separated symbols, upper-cased."""
    return [s.strip().upper() for s in text.split(",") if s.strip()]


def parse_forex_pairs(text: str) -> list[ForexPair]:
    """One pair per line as BASE/TARGET or BASE TARGET. Malformed lines are dropped."""
    pairs = []
    for line in text.splitlines():
        line = line.strip().upper()
        if not line:
            continue
        parts = [p for p in re.split(r"[/\s]+", line) if p]
        if len(parts) >= 2:
            pairs.append(ForexPair(base=parts[0], target=parts[1]))
    return pairs


def parse_economic_series(text: str) -> list[EconomicSeries]:
    """One series id per line, upper-cased. Names come from the upstream title."""
    return [EconomicSeries(id=line.strip().upper()) for line in text.splitlines() if line.strip()]
