"""Display formatting for metric values. Pure functions, used by the CLI and API."""

from __future__ import annotations

import math
import re
import time
from datetime import datetime

FREQUENCY_NAMES = {
    "D": "Daily",
    "W": "Weekly",
    "BW": "Biweekly",
    "M": "Monthly",
    "Q": "Quarterly",
    "SA": "Semiannual",
    "A": "Annual",
}

# Period-over-period label appended to a macro series' change
FREQUENCY_CHANGE_LABELS = {"Q": "QoQ", "M": "MoM", "W": "WoW", "D": "DoD", "A": "YoY"}

# Order matters: more specific patterns first
_UNIT_ABBREVIATIONS = [
    (r"Billions of Dollars", "Bn USD"),
    (r"Millions of Dollars", "M USD"),
    (r"Thousands of Dollars", "K USD"),
    (r"Percent Change at Seasonally Adjusted Annual Rate", "% SAAR"),
    (r"Seasonally Adjusted Annual Rate", "SAAR"),
    (r"Percent Change at Annual Rate", "% ann. rate"),
    (r"Percent Change from Preceding Period", "% chg"),
    (r"Annualized Rate", "ann. rate"),
    (r"Annual Rate", "ann. rate"),
    (r"Growth rate previous period", "% chg"),
    (r"Percent Change from Year Ago", "% YoY"),
    (r"Percent Change", "% chg"),
    (r"Index \d+-?\d*=\d+", "Index"),
    (r"Percent$", "%"),
]


def _missing(value: float | None) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def format_currency(value: float | None) -> str:
    """$1,234.56"""
    if _missing(value):
        return "$0.00"
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_percentage(value: float | None) -> str:
    """+2.34% / -1.23%"""
    if _missing(value):
        return "0.00%"
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.2f}%"


def format_probability(value: float | None) -> str:
    """0.654 -> 65.4%. Values above 1 are taken as already in percent."""
    if _missing(value):
        return "0.0%"
    pct = value if value > 1 else value * 100
    return f"{pct:.1f}%"


def format_large_number(value: float | None) -> str:
    if _missing(value):
        return "0"
    sign = "-" if value < 0 else ""
    v = abs(value)
    for threshold, suffix in ((1e9, "B"), (1e6, "M"), (1e3, "K")):
        if v >= threshold:
            return f"{sign}{v / threshold:.2f}{suffix}"
    return f"{sign}{v:.2f}"


def format_timestamp(timestamp_ms: int | None, now_ms: int | None = None) -> str:
    """Relative age, e.g. '2 minutes ago'."""
    if not timestamp_ms:
        return "Never"
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    seconds = (now_ms - timestamp_ms) // 1000
    minutes, hours, days = seconds // 60, seconds // 3600, seconds // 86400
    if seconds < 60:
        return "Just now"
    if minutes < 60:
        return f"{minutes} minute{'' if minutes == 1 else 's'} ago"
    if hours < 24:
        return f"{hours} hour{'' if hours == 1 else 's'} ago"
    return f"{days} day{'' if days == 1 else 's'} ago"


def format_date(date_string: str | None) -> str:
    """'2026-01-15' -> 'Jan 15, 2026'. Unparseable input is returned unchanged."""
    if not date_string:
        return "Unknown"
    try:
        d = datetime.fromisoformat(date_string)
    except ValueError:
        return date_string
    return f"{d:%b} {d.day}, {d.year}"


def change_class(value: float | None) -> str:
    if not value:
        return "neutral"
    return "positive" if value > 0 else "negative"


def truncate_text(text: str | None, max_length: int = 50) -> str | None:
    if not text or len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


def abbreviate_units(units: str | None) -> str | None:
    """Shorten common FRED unit strings ('Percent Change from Year Ago' -> '% YoY')."""
    if not units:
        return units
    for pattern, replacement in _UNIT_ABBREVIATIONS:
        units = re.sub(pattern, replacement, units, count=1, flags=re.IGNORECASE)
    return units


def expand_frequency(code: str | None) -> str | None:
    if not code:
        return code
    return FREQUENCY_NAMES.get(code, code)


def format_change(value: float | None, frequency: str | None = None) -> str:
    """Signed percent, with a QoQ/MoM style suffix when the frequency is known."""
    text = format_percentage(value)
    label = FREQUENCY_CHANGE_LABELS.get(frequency or "")
    return f"{text} {label}" if label else text


def mask_key(key: str | None) -> str:
    """Keep the first four characters of an API key."""
    if not key:
        return ""
    return key[:4] + "*" * max(len(key) - 4, 0)
