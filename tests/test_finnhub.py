"""Finnhub adapter: quotes, profile names and the override table."""

import httpx
import pytest

from marketpulse.errors import ConfigError, DomainExhaustedError
from marketpulse.ingestion.finnhub import FinnhubAdapter, resolve_display_name
from marketpulse.models import ApiKeys, SelectedMetrics, Settings

QUOTES = {
    "SPY": {"c": 512.3, "dp": 0.8},
    "AAPL": {"c": 190.5, "dp": -1.25},
    "MSFT": {"c": 410.0, "dp": 0.1},
    "BAD": {"c": 0},
}
PROFILES = {
    "SPY": {"name": "SPDR S&P 500 ETF Trust"},
    "AAPL": {"name": "Apple Inc", "finnhubIndustry": "Technology", "country": "US"},
}


def _settings(*symbols, key="secret"):
    return Settings(
        api_keys=ApiKeys(finnhub=key),
        selected_metrics=SelectedMetrics(stock_symbols=list(symbols)),
    )


def handler(request):
    assert request.url.params["token"] == "secret"
    symbol = request.url.params["symbol"]
    if request.url.path.endswith("/quote"):
        return httpx.Response(200, json=QUOTES.get(symbol, {}))
    if symbol in PROFILES:
        return httpx.Response(200, json=PROFILES[symbol])
    return httpx.Response(403)


def test_override_table_wins_over_profile():
    assert resolve_display_name("SPY", {"name": "SPDR S&P 500 ETF Trust"}) == ("S&P 500 ETF", None, None)


def test_profile_name_then_symbol():
    assert resolve_display_name("AAPL", PROFILES["AAPL"]) == ("Apple Inc", "Technology", "US")
    assert resolve_display_name("XYZ", None) == ("XYZ", None, None)


def test_adapter_builds_equity_records(run_adapter):
    metrics = run_adapter(FinnhubAdapter, handler, _settings("SPY", "AAPL"))
    spy, aapl = metrics
    assert spy.id == "SPY"
    assert spy.name == "S&P 500 ETF"
    assert spy.value == 512.3
    assert spy.change == 0.8
    assert aapl.name == "Apple Inc"
    assert aapl.industry == "Technology"
    assert aapl.change == -1.25


def test_missing_profile_falls_back_to_symbol(run_adapter):
    (msft,) = run_adapter(FinnhubAdapter, handler, _settings("MSFT"))
    assert msft.name == "MSFT"


def test_zero_quote_is_skipped(run_adapter):
    metrics = run_adapter(FinnhubAdapter, handler, _settings("BAD", "AAPL"))
    assert [m.id for m in metrics] == ["AAPL"]


def test_all_symbols_failing_is_domain_error(run_adapter):
    with pytest.raises(DomainExhaustedError, match="No stock data retrieved"):
        run_adapter(FinnhubAdapter, handler, _settings("BAD"))


def test_missing_key_is_config_error(run_adapter):
    with pytest.raises(ConfigError, match="Finnhub API key not configured"):
        run_adapter(FinnhubAdapter, handler, _settings("AAPL", key=""))


def test_no_symbols_is_empty(run_adapter):
    assert run_adapter(FinnhubAdapter, handler, _settings()) == []
