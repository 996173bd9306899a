"""Settings subcommand: show, set, validate-keys."""

from __future__ import annotations

import asyncio
import json

import typer
from pydantic import ValidationError

from marketpulse.formatting import mask_key
from marketpulse.ingestion.http import make_client
from marketpulse.ingestion.keys import validate_api_keys
from marketpulse.models import Settings
from marketpulse.models.settings import (
    parse_economic_series,
    parse_forex_pairs,
    parse_polymarket_ids,
    parse_stock_symbols,
)
from marketpulse.scheduler import SchedulingDriver
from marketpulse.storage.metrics import get_settings, save_settings

app = typer.Typer(help="Show and edit fetch settings")


def apply_changes(
    current: Settings,
    *,
    frequency: int | None = None,
    finnhub_key: str | None = None,
    fred_key: str | None = None,
    polymarket: list[str] | None = None,
    stocks: str | None = None,
    forex: list[str] | None = None,
    series: list[str] | None = None,
) -> Settings:
    """Return a validated copy of `current` with the given fields replaced."""
    data = current.model_dump()
    if frequency is not None:
        data["update_frequency"] = frequency
    if finnhub_key is not None:
        data["api_keys"]["finnhub"] = finnhub_key.strip()
    if fred_key is not None:
        data["api_keys"]["fred"] = fred_key.strip()
    selected = data["selected_metrics"]
    if polymarket is not None:
        selected["polymarket_ids"] = parse_polymarket_ids("\n".join(polymarket))
    if stocks is not None:
        selected["stock_symbols"] = parse_stock_symbols(stocks)
    if forex is not None:
        selected["forex_pairs"] = [p.model_dump() for p in parse_forex_pairs("\n".join(forex))]
    if series is not None:
        selected["economic_series"] = [s.model_dump() for s in parse_economic_series("\n".join(series))]
    return Settings.model_validate(data)


@app.command("show")
def show(
    ctx: typer.Context,
    reveal_keys: bool = typer.Option(False, "--reveal-keys", help="Print API keys unmasked"),
) -> None:
    """Print current settings as JSON."""
    settings = asyncio.run(get_settings(ctx.obj["store"]))
    data = settings.model_dump()
    if not reveal_keys:
        data["api_keys"] = {k: mask_key(v) for k, v in data["api_keys"].items()}
    typer.echo(json.dumps(data, indent=2))


@app.command("set")
def set_settings(
    ctx: typer.Context,
    frequency: int | None = typer.Option(None, "--frequency", "-f", help="Update frequency in minutes (1-60)"),
    finnhub_key: str | None = typer.Option(None, "--finnhub-key", help="Finnhub API key"),
    fred_key: str | None = typer.Option(None, "--fred-key", help="FRED API key"),
    polymarket: list[str] | None = typer.Option(
        None, "--polymarket", help="Polymarket event slug or URL (repeatable)"
    ),
    stocks: str | None = typer.Option(None, "--stocks", help="Comma-separated stock symbols"),
    forex: list[str] | None = typer.Option(None, "--forex", help="Currency pair, e.g. USD/EUR (repeatable)"),
    series: list[str] | None = typer.Option(None, "--series", help="FRED series id (repeatable)"),
    refresh: bool = typer.Option(True, "--refresh/--no-refresh", help="Run a fetch cycle after saving"),
) -> None:
    """Update settings. Only the given options change."""
    store = ctx.obj["store"]

    current = asyncio.run(get_settings(store))
    try:
        updated = apply_changes(
            current,
            frequency=frequency,
            finnhub_key=finnhub_key,
            fred_key=fred_key,
            polymarket=polymarket or None,
            stocks=stocks,
            forex=forex or None,
            series=series or None,
        )
    except ValidationError as e:
        typer.echo(f"Invalid settings: {e.errors()[0]['msg']}")
        raise typer.Exit(1)

    if not refresh:
        asyncio.run(save_settings(store, updated))
        typer.echo("Settings saved.")
        return

    async def _apply():
        driver = SchedulingDriver(store, ctx.obj["config"])
        try:
            return await driver.on_settings_changed(updated)
        finally:
            await driver.shutdown()

    result = asyncio.run(_apply())
    typer.echo("Settings saved.")
    if not result.success:
        typer.echo(f"Fetch failed: {result.error}")
        raise typer.Exit(1)


@app.command("validate-keys")
def validate_keys(ctx: typer.Context) -> None:
    """Check the stored API keys against Finnhub and FRED."""
    store = ctx.obj["store"]
    config = ctx.obj["config"]

    async def _check():
        settings = await get_settings(store)
        async with make_client() as client:
            return await validate_api_keys(
                client,
                settings.api_keys,
                finnhub_base=config.finnhub_base,
                fred_base=config.fred_base,
            )

    results = asyncio.run(_check())
    for provider, check in results.items():
        typer.echo(f"{provider}: {check.message}")
    if not all(c.valid for c in results.values()):
        raise typer.Exit(1)
