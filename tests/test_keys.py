"""API key probes."""

import asyncio

import httpx

from marketpulse.ingestion.http import make_client
from marketpulse.ingestion.keys import validate_api_keys
from marketpulse.models import ApiKeys


def validate(keys, handler):
    async def _go():
        async with make_client(httpx.MockTransport(handler)) as client:
            return await validate_api_keys(client, keys)

    return asyncio.run(_go())


def test_invalid_finnhub_and_valid_fred():
    def handler(request):
        if request.url.host == "finnhub.io":
            return httpx.Response(401)
        return httpx.Response(200, json={"seriess": []})

    results = validate(ApiKeys(finnhub="bad", fred="good"), handler)
    assert not results["finnhub"].valid
    assert results["finnhub"].message == "Invalid API key"
    assert results["fred"].valid


def test_fred_rejects_key_with_400():
    results = validate(ApiKeys(fred="bad"), lambda request: httpx.Response(400))
    assert results["fred"].message == "Invalid API key"
    assert results["finnhub"].message == "API key not provided"


def test_other_status_is_reported():
    results = validate(ApiKeys(finnhub="k"), lambda request: httpx.Response(503))
    assert not results["finnhub"].valid
    assert results["finnhub"].message == "Error: 503"
