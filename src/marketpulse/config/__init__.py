"""Configuration loading."""

from marketpulse.config.settings import AppConfig, configure_logging, get_config, load_config

__all__ = ["AppConfig", "configure_logging", "get_config", "load_config"]
