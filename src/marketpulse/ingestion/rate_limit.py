"""Fixed retry/backoff knob for REST requests. Backoff on 429, 5xx, timeouts."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RetryPolicy:
    """Retries after the first attempt, exponential delay between them."""

    max_retries: int = 0
    base_delay_sec: float = 1.0
    multiplier: float = 2.0

    def delay(self, retries: int) -> float:
        """Return delay in seconds before retry number `retries` (0-based)."""
        return backoff_delay(retries, self.base_delay_sec, self.multiplier)


NO_RETRY = RetryPolicy()


def backoff_delay(retries: int = 0, base_delay: float = 1.0, multiplier: float = 2.0) -> float:
    """Return delay in seconds for the next retry. Exponential backoff."""
    return base_delay * (multiplier**retries)
