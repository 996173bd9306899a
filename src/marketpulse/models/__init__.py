"""Canonical schema (Pydantic) - metric records, snapshot, error state, settings."""

from marketpulse.models.metrics import (
    SYSTEM_ERROR_KEY,
    CurrencyPairMetric,
    Domain,
    EquityMetric,
    ErrorState,
    MacroSeriesMetric,
    MetricRecord,
    PredictionMarketMetric,
    Snapshot,
)
from marketpulse.models.settings import ApiKeys, EconomicSeries, ForexPair, SelectedMetrics, Settings

__all__ = [
    "Domain",
    "SYSTEM_ERROR_KEY",
    "MetricRecord",
    "PredictionMarketMetric",
    "EquityMetric",
    "CurrencyPairMetric",
    "MacroSeriesMetric",
    "Snapshot",
    "ErrorState",
    "Settings",
    "ApiKeys",
    "SelectedMetrics",
    "ForexPair",
    "EconomicSeries",
]
