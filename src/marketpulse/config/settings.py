"""TOML config loading, profiles and logging setup."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

# Default config search path (project root or cwd)
_CONFIG_DIR = Path(__file__).resolve().parent.parent.parent.parent / "config"
_CWD_CONFIG = Path.cwd() / "config"


def _load_toml(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base. Override values take precedence."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _find_config_dir(config_dir: Path | None = None) -> Path:
    if config_dir is not None:
        return config_dir
    if _CWD_CONFIG.exists():
        return _CWD_CONFIG
    return _CONFIG_DIR


def load_config(profile: str | None = None, config_dir: Path | None = None) -> dict[str, Any]:
    """Load merged config from default.toml and optional profile overlay."""
    directory = _find_config_dir(config_dir)
    default_path = directory / "default.toml"
    if not default_path.exists():
        return {}
    base = _load_toml(default_path)
    if profile:
        profile_path = directory / f"{profile}.toml"
        if profile_path.exists():
            overlay = _load_toml(profile_path)
            base = _deep_merge(base, overlay)
    return base


def get_config(profile: str | None = None, config_dir: Path | None = None) -> AppConfig:
    """Return AppConfig instance from merged config."""
    raw = load_config(profile, config_dir)
    return AppConfig.from_dict(raw)


class AppConfig:
    """Process-level configuration from TOML (paths, timeouts, endpoints, logging).

    User-editable settings (API keys, selections, update frequency) are not here; they
    live in the key-value store, see ``marketpulse.models.settings``.
    """

    def __init__(
        self,
        *,
        ingestion: dict[str, Any] | None = None,
        storage: dict[str, Any] | None = None,
        apis: dict[str, Any] | None = None,
        logging: dict[str, Any] | None = None,
    ):
        self.ingestion = ingestion or {}
        self.storage = storage or {}
        self.apis = apis or {}
        self.logging = logging or {}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> AppConfig:
        return cls(
            ingestion=raw.get("ingestion"),
            storage=raw.get("storage"),
            apis=raw.get("apis"),
            logging=raw.get("logging"),
        )

    # Convenience accessors with defaults
    @property
    def db_path(self) -> str:
        return self.storage.get("db_path", "data/marketpulse.duckdb")

    @property
    def request_timeout_ms(self) -> int:
        return int(self.ingestion.get("request_timeout_ms", 10_000))

    @property
    def max_retries(self) -> int:
        return int(self.ingestion.get("max_retries", 0))

    @property
    def retry_base_delay_sec(self) -> float:
        return float(self.ingestion.get("retry_base_delay_sec", 1.0))

    @property
    def backoff_multiplier(self) -> float:
        return float(self.ingestion.get("backoff_multiplier", 2.0))

    @property
    def top_markets_limit(self) -> int:
        return int(self.ingestion.get("top_markets_limit", 5))

    @property
    def polymarket_base(self) -> str:
        return self.apis.get("polymarket_base", "https://gamma-api.polymarket.com")

    @property
    def finnhub_base(self) -> str:
        return self.apis.get("finnhub_base", "https://finnhub.io/api/v1")

    @property
    def fred_base(self) -> str:
        return self.apis.get("fred_base", "https://api.stlouisfed.org/fred")

    @property
    def exchange_rate_base(self) -> str:
        return self.apis.get("exchange_rate_base", "https://api.exchangerate-api.com/v4")

    @property
    def logging_level(self) -> str:
        return self.logging.get("level", "INFO").upper()

    @property
    def logging_format(self) -> str:
        return self.logging.get("format", "console")

    @property
    def logging_level_num(self) -> int:
        return getattr(logging, self.logging_level, logging.INFO)


def configure_logging(config: AppConfig) -> None:
    """Configure structlog with config. Call once at application entry."""
    import structlog

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if config.logging_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(config.logging_level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
