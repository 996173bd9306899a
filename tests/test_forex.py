"""Forex adapter: one request per base currency."""

import httpx
import pytest

from marketpulse.errors import DomainExhaustedError
from marketpulse.ingestion.forex import ForexAdapter, group_by_base
from marketpulse.models import CurrencyPairMetric, ForexPair, SelectedMetrics, Settings

RATES = {
    "USD": {"EUR": 0.92, "GBP": 0.79, "JPY": 151.2},
    "EUR": {"CHF": 0.95},
}


def _settings(*pairs):
    return Settings(
        selected_metrics=SelectedMetrics(
            forex_pairs=[ForexPair(base=b, target=t) for b, t in (p.split("/") for p in pairs)]
        )
    )


def test_group_by_base_preserves_order_and_repeats():
    pairs = [
        ForexPair(target="EUR"),
        ForexPair(base="EUR", target="CHF"),
        ForexPair(target="EUR"),
        ForexPair(target="JPY"),
    ]
    assert group_by_base(pairs) == {"USD": ["EUR", "EUR", "JPY"], "EUR": ["CHF"]}


def test_one_request_per_base(run_adapter):
    requests = []

    def handler(request):
        requests.append(request)
        base = request.url.path.rsplit("/", 1)[-1]
        return httpx.Response(200, json={"base": base, "rates": RATES[base]})

    metrics = run_adapter(ForexAdapter, handler, _settings("USD/EUR", "USD/JPY", "EUR/CHF"))
    assert [r.url.path for r in requests] == ["/v4/latest/USD", "/v4/latest/EUR"]
    assert requests[0].url.params["symbols"] == "EUR,JPY"
    assert [m.id for m in metrics] == ["USD/EUR", "USD/JPY", "EUR/CHF"]
    assert metrics[1].base == "USD"
    assert metrics[1].target == "JPY"
    assert metrics[1].value == 151.2


def test_missing_target_keeps_the_rest(run_adapter):
    def handler(request):
        return httpx.Response(200, json={"rates": {"EUR": 0.92, "GBP": 0.79}})

    metrics = run_adapter(ForexAdapter, handler, _settings("USD/EUR", "USD/JPY", "USD/GBP"))
    assert [m.id for m in metrics] == ["USD/EUR", "USD/GBP"]


def test_change_against_previous_rate(run_adapter):
    previous = [CurrencyPairMetric(id="USD/EUR", base="USD", target="EUR", value=0.8, timestamp=1)]

    def handler(request):
        return httpx.Response(200, json={"rates": {"EUR": 0.88}})

    (metric,) = run_adapter(ForexAdapter, handler, _settings("USD/EUR"), previous)
    assert metric.change == pytest.approx(10.0)


def test_failed_base_is_skipped(run_adapter):
    def handler(request):
        if request.url.path.endswith("/EUR"):
            return httpx.Response(200, json={"error": "unsupported"})
        return httpx.Response(200, json={"rates": RATES["USD"]})

    metrics = run_adapter(ForexAdapter, handler, _settings("EUR/CHF", "USD/GBP"))
    assert [m.id for m in metrics] == ["USD/GBP"]


def test_nothing_retrieved_is_domain_error(run_adapter):
    with pytest.raises(DomainExhaustedError, match="No forex data retrieved"):
        run_adapter(ForexAdapter, lambda request: httpx.Response(500), _settings("USD/EUR"))


def test_no_pairs_is_empty(run_adapter):
    assert run_adapter(ForexAdapter, lambda request: httpx.Response(500), _settings()) == []


def test_repeated_pair_is_reported_twice(run_adapter):
    def handler(request):
        return httpx.Response(200, json={"rates": {"EUR": 0.92}})

    metrics = run_adapter(ForexAdapter, handler, _settings("USD/EUR", "USD/EUR"))
    assert [m.id for m in metrics] == ["USD/EUR", "USD/EUR"]
