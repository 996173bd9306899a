"""marketpulse - periodic multi-source market metrics."""

__version__ = "0.1.0"
