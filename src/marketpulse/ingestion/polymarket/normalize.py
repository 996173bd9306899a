"""Gamma API event payloads -> matched event and leading market."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any

NEUTRAL_PROBABILITY = 0.5


@dataclass(frozen=True)
class MatchedEvent:
    """The single event a slug query resolved to."""

    event: dict[str, Any]


@dataclass(frozen=True)
class NoMatch:
    reason: str


EventMatch = MatchedEvent | NoMatch


def match_event(payload: Any, slug: str) -> EventMatch:
    """Normalize a /events?slug= response: bare list, {"data": [...]} envelope, or the event itself."""
    if isinstance(payload, list):
        if payload and isinstance(payload[0], dict):
            return MatchedEvent(payload[0])
        return NoMatch("empty result")
    if isinstance(payload, dict):
        data = payload.get("data")
        if isinstance(data, list):
            if data and isinstance(data[0], dict):
                return MatchedEvent(data[0])
            return NoMatch("empty data envelope")
        if payload.get("slug") == slug:
            return MatchedEvent(payload)
    return NoMatch("unrecognized response shape")


def _probability(value: Any) -> float | None:
    try:
        p = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(p) or not 0 <= p <= 1:
        return None
    return p


def _from_price_list(raw: Any) -> float | None:
    """outcomePrices: JSON-encoded string array (Gamma) or an actual list."""
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            return None
    if isinstance(raw, list) and raw:
        return _probability(raw[0])
    return None


def _from_object_list(raw: Any) -> float | None:
    """outcomes / outcomeTokens: list of objects carrying a price."""
    if isinstance(raw, list) and raw and isinstance(raw[0], dict):
        return _probability(raw[0].get("price"))
    return None


def leading_probability(market: dict[str, Any]) -> float | None:
    """First outcome's price, trying outcomePrices, outcomes, outcomeTokens in order."""
    for field, parse in (
        ("outcomePrices", _from_price_list),
        ("outcomes", _from_object_list),
        ("outcomeTokens", _from_object_list),
    ):
        if market.get(field):
            p = parse(market[field])
            if p is not None:
                return p
    return None


@dataclass(frozen=True)
class TopMarket:
    market: dict[str, Any]
    probability: float
    top_outcome: str | None
    is_multi_choice: bool


def find_top_market(markets: list[dict[str, Any]]) -> TopMarket:
    """
    Pick the representative market of an event.
    Binary (one market): that market, no top_outcome. Multi-choice: the market with the
    highest leading probability, labelled by groupItemTitle or question.
    """
    is_multi_choice = len(markets) > 1
    best_market = markets[0]
    best_probability = 0.0
    top_outcome: str | None = None
    for market in markets:
        p = leading_probability(market) or 0.0
        if p > best_probability:
            best_probability = p
            best_market = market
            top_outcome = market.get("groupItemTitle") or market.get("question") or None
    if not is_multi_choice:
        top_outcome = None
    return TopMarket(
        market=best_market,
        probability=best_probability or NEUTRAL_PROBABILITY,
        top_outcome=top_outcome,
        is_multi_choice=is_multi_choice,
    )
