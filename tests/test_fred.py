"""FRED adapter: observations, change rules and title parsing."""

import httpx
import pytest

from marketpulse.errors import ConfigError, DomainExhaustedError
from marketpulse.ingestion.fred import FredAdapter, extract_geography, is_change_units
from marketpulse.models import ApiKeys, EconomicSeries, SelectedMetrics, Settings


def _settings(*series, key="fred-key"):
    return Settings(
        api_keys=ApiKeys(fred=key),
        selected_metrics=SelectedMetrics(economic_series=list(series)),
    )


def fred_handler(info, observations):
    def handler(request):
        assert request.url.params["api_key"] == "fred-key"
        if request.url.path.endswith("/observations"):
            return httpx.Response(200, json={"observations": observations})
        if info is None:
            return httpx.Response(500)
        return httpx.Response(200, json={"seriess": [info]})

    return handler


def test_is_change_units():
    assert is_change_units("Percent Change from Year Ago")
    assert is_change_units("Growth rate previous period")
    assert is_change_units("Percentage Points")
    assert not is_change_units("Index 2015=100")
    assert not is_change_units("Percent")
    assert not is_change_units(None)


@pytest.mark.parametrize(
    "title,expected",
    [
        ("Unemployment Rate for California", "California"),
        ("Real GDP in Texas (DISCONTINUED)", "Texas"),
        ("Consumer Price Index for Japan All Items", "Japan"),
        ("Gross Domestic Product", None),
        (None, None),
    ],
)
def test_extract_geography(title, expected):
    assert extract_geography(title) == expected


def test_index_series_change_from_prior_observation(run_adapter):
    info = {"title": "Consumer Price Index for Japan", "units": "Index 2015=100", "frequency_short": "M"}
    observations = [{"date": "2026-08-01", "value": "110"}, {"date": "2026-07-01", "value": "100"}]
    (metric,) = run_adapter(FredAdapter, fred_handler(info, observations), _settings(EconomicSeries(id="JPNCPI")))
    assert metric.value == 110.0
    assert metric.change == pytest.approx(10.0)
    assert metric.name == "Consumer Price Index for Japan"
    assert metric.geography == "Japan"
    assert metric.frequency == "M"
    assert metric.units == "Index 2015=100"
    assert metric.date == "2026-08-01"


def test_change_units_report_zero_change(run_adapter):
    info = {"title": "Real GDP", "units": "Percent Change from Year Ago", "frequency_short": "Q"}
    observations = [{"date": "2026-07-01", "value": "3.2"}, {"date": "2026-04-01", "value": "2.1"}]
    (metric,) = run_adapter(FredAdapter, fred_handler(info, observations), _settings(EconomicSeries(id="GDP")))
    assert metric.value == 3.2
    assert metric.change == 0


def test_custom_name_and_missing_metadata(run_adapter):
    observations = [{"date": "2026-09-01", "value": "4.1"}]
    series = [EconomicSeries(id="UNRATE", name="Unemployment Rate"), EconomicSeries(id="PAYEMS")]
    metrics = run_adapter(FredAdapter, fred_handler(None, observations), _settings(*series))
    assert [m.name for m in metrics] == ["Unemployment Rate", "PAYEMS"]
    assert metrics[0].units is None
    assert metrics[0].change == 0


def test_missing_value_marker_skips_series(run_adapter):
    observations = [{"date": "2026-09-01", "value": "."}]
    with pytest.raises(DomainExhaustedError, match="No economic data retrieved"):
        run_adapter(FredAdapter, fred_handler({}, observations), _settings(EconomicSeries(id="GDP")))


def test_missing_key_is_config_error(run_adapter):
    with pytest.raises(ConfigError, match="FRED API key not configured"):
        run_adapter(FredAdapter, fred_handler({}, []), _settings(EconomicSeries(id="GDP"), key=""))
