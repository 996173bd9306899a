"""Root CLI app - entry point and command registration."""

from pathlib import Path

import typer

from marketpulse.config import get_config
from marketpulse.config.settings import configure_logging
from marketpulse.storage import DuckDBStore

app = typer.Typer(
    name="marketpulse",
    help="marketpulse - prediction markets, equities, FX and macro series in one snapshot.",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    config_dir: Path | None = typer.Option(
        None, "--config-dir", "-C", help="Config directory (default: ./config or package config)"
    ),
    profile: str | None = typer.Option(
        None, "--profile", "-p", help="Config profile (e.g. dev) to overlay on default.toml"
    ),
) -> None:
    """Configure logging and store options in context."""
    config = get_config(profile, config_dir)
    configure_logging(config)
    ctx.obj = {
        "config": config,
        "store": DuckDBStore(config.db_path),
        "config_dir": config_dir,
        "profile": profile,
    }


# Subcommands registered from other modules
from marketpulse.cli import api_cmd, metrics, settings_cmd  # noqa: E402

app.command("fetch")(metrics.fetch)
app.command("show")(metrics.show)
app.command("serve")(metrics.serve)
app.command("reset")(metrics.reset)
app.add_typer(settings_cmd.app, name="settings")
app.add_typer(api_cmd.app, name="api")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
