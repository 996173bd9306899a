"""Metrics commands: fetch, show, serve, reset."""

from __future__ import annotations

import asyncio
import signal
import sys

import typer

from marketpulse import formatting as fmt
from marketpulse.models import (
    CurrencyPairMetric,
    Domain,
    EquityMetric,
    ErrorState,
    MacroSeriesMetric,
    MetricRecord,
    PredictionMarketMetric,
    Snapshot,
)
from marketpulse.scheduler import SchedulingDriver, run_forever
from marketpulse.storage.metrics import clear_all_storage, get_errors, get_metrics, initialize_storage

SECTION_TITLES = {
    Domain.PREDICTION_MARKET: "Prediction markets",
    Domain.EQUITY: "Stocks",
    Domain.CURRENCY_PAIR: "Forex",
    Domain.MACRO_SERIES: "Economic indicators",
}


def render_record(record: MetricRecord) -> str:
    change = fmt.format_percentage(record.change)
    if isinstance(record, PredictionMarketMetric):
        title = fmt.truncate_text(record.title, 60)
        outcome = f" ({record.top_outcome})" if record.top_outcome else ""
        return f"  {title}{outcome}  {fmt.format_probability(record.value)}  {change}"
    if isinstance(record, EquityMetric):
        return f"  {record.id:<8} {fmt.truncate_text(record.name, 40)}  {fmt.format_currency(record.value)}  {change}"
    if isinstance(record, CurrencyPairMetric):
        return f"  {record.id:<8} {record.value:.4f}  {change}"
    if isinstance(record, MacroSeriesMetric):
        subtitle = " - ".join(
            p for p in (record.geography, fmt.expand_frequency(record.frequency), record.date) if p
        )
        units = fmt.abbreviate_units(record.units)
        value = f"{record.value:.2f} {units}" if units else f"{record.value:.2f}"
        line = f"  {record.name}  {value}  {fmt.format_change(record.change, record.frequency)}"
        return f"{line}\n    {subtitle}" if subtitle else line
    return f"  {record.id}  {record.value}  {change}"


def render_snapshot(snapshot: Snapshot, errors: ErrorState) -> list[str]:
    """Text sections per domain. A failed domain shows its error, an empty healthy one 'No data'."""
    lines = [f"Last update: {fmt.format_timestamp(snapshot.last_update)}"]
    if errors.system:
        lines.append(f"Error: {errors.system}")
    for domain, title in SECTION_TITLES.items():
        lines.append("")
        lines.append(title)
        error = errors.get(domain)
        records = snapshot.records(domain)
        if error:
            lines.append(f"  Error: {error}")
        elif not records:
            lines.append("  No data")
        for record in records:
            lines.append(render_record(record))
    return lines


def fetch(ctx: typer.Context) -> None:
    """Run one fetch cycle now and report per-domain errors."""
    store = ctx.obj["store"]
    driver = SchedulingDriver(store, ctx.obj["config"])

    async def _run():
        await initialize_storage(store)
        result = await driver.on_manual_trigger()
        return result, await get_errors(store)

    result, errors = asyncio.run(_run())
    if not result.success:
        typer.echo(f"Fetch failed: {result.error}")
        raise typer.Exit(1)
    failed = {k: v for k, v in errors.model_dump().items() if v}
    for domain, message in failed.items():
        typer.echo(f"{domain}: {message}")
    typer.echo("Fetch completed." if not failed else f"Fetch completed with {len(failed)} failed domain(s).")


def show(ctx: typer.Context) -> None:
    """Print the stored snapshot and error banners."""
    store = ctx.obj["store"]

    async def _load():
        return await get_metrics(store), await get_errors(store)

    snapshot, errors = asyncio.run(_load())
    for line in render_snapshot(snapshot, errors):
        typer.echo(line)


def serve(ctx: typer.Context) -> None:
    """Run the periodic scheduler in the foreground (Ctrl+C to stop)."""
    driver = SchedulingDriver(ctx.obj["store"], ctx.obj["config"])
    stop_event = asyncio.Event()

    def shutdown() -> None:
        stop_event.set()

    loop = asyncio.new_event_loop()
    if sys.platform != "win32":
        loop.add_signal_handler(signal.SIGINT, shutdown)
        loop.add_signal_handler(signal.SIGTERM, shutdown)
    try:
        typer.echo("Scheduler running (Ctrl+C to stop)...")
        loop.run_until_complete(run_forever(driver, stop_event))
    except KeyboardInterrupt:
        pass
    finally:
        loop.close()
    typer.echo("Stopped.")


def reset(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Clear all stored settings, metrics and errors."""
    if not yes:
        typer.confirm("Delete all stored settings and metrics?", abort=True)
    asyncio.run(clear_all_storage(ctx.obj["store"]))
    typer.echo("Storage cleared.")
