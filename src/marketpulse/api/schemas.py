"""Pydantic schemas for API request/response consistency and OpenAPI docs."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from marketpulse.models import ErrorState, Snapshot


# --- Health ---
class HealthResponse(BaseModel):
    status: str = "ok"


# --- Error (consistent shape for 4xx/5xx) ---
class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Human-readable message")
    code: str | None = Field(None, description="Machine-readable code, e.g. unknown_domain")


# --- Metrics ---
class MetricsResponse(BaseModel):
    metrics: Snapshot
    errors: ErrorState


class DomainMetricsResponse(BaseModel):
    domain: str
    records: list[dict[str, Any]]
    error: str | None = Field(None, description="Set when this domain failed in the last cycle")
    last_update: int | None = None


# --- Triggers ---
class TriggerResponse(BaseModel):
    success: bool
    error: str | None = None
