"""Cycle orchestrator - run all adapters concurrently and persist snapshot + errors."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

import httpx
import structlog

from marketpulse.config import AppConfig
from marketpulse.ingestion.base import SourceAdapter
from marketpulse.ingestion.finnhub import FinnhubAdapter
from marketpulse.ingestion.forex import ForexAdapter
from marketpulse.ingestion.fred import FredAdapter
from marketpulse.ingestion.http import make_client
from marketpulse.ingestion.polymarket.gamma import PolymarketAdapter
from marketpulse.ingestion.rate_limit import RetryPolicy
from marketpulse.models import SYSTEM_ERROR_KEY, Domain, ErrorState, Snapshot
from marketpulse.storage.kv import KeyValueStore
from marketpulse.storage.metrics import clear_errors, get_metrics, get_settings, save_error, save_metrics

log = structlog.get_logger(__name__)


class CycleStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FATALLY_FAILED = "fatally_failed"


@dataclass
class CycleResult:
    status: CycleStatus
    snapshot: Snapshot | None = None
    errors: ErrorState = field(default_factory=ErrorState)

    @property
    def ok(self) -> bool:
        return self.status is CycleStatus.COMPLETED

    @property
    def system_error(self) -> str | None:
        return self.errors.system


def build_adapters(client: httpx.AsyncClient, config: AppConfig) -> list[SourceAdapter]:
    """The four domain adapters wired to one client and the configured endpoints."""
    common = {
        "timeout_ms": config.request_timeout_ms,
        "retry": RetryPolicy(
            max_retries=config.max_retries,
            base_delay_sec=config.retry_base_delay_sec,
            multiplier=config.backoff_multiplier,
        ),
    }
    return [
        PolymarketAdapter(
            client,
            base_url=config.polymarket_base,
            top_markets_limit=config.top_markets_limit,
            **common,
        ),
        FinnhubAdapter(client, base_url=config.finnhub_base, **common),
        ForexAdapter(client, base_url=config.exchange_rate_base, **common),
        FredAdapter(client, base_url=config.fred_base, **common),
    ]


class CycleOrchestrator:
    """
    One ingestion cycle: clear errors, read settings and the previous snapshot, run every
    adapter concurrently, then write the new snapshot and per-domain errors.

    A failing domain contributes an empty list and an error entry; it never affects the
    other domains. Failures outside the adapters are recorded under the "system" key and
    never raised. No lock is held: overlapping cycles race and the last write wins.
    """

    def __init__(
        self,
        store: KeyValueStore,
        config: AppConfig | None = None,
        *,
        adapters: Sequence[SourceAdapter] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.store = store
        self.config = config or AppConfig()
        self.adapters = adapters
        self.transport = transport
        self.status = CycleStatus.IDLE

    async def run(self) -> CycleResult:
        self.status = CycleStatus.RUNNING
        log.info("cycle_started")
        try:
            async with make_client(self.transport) as client:
                adapters = self.adapters if self.adapters is not None else build_adapters(client, self.config)
                result = await self._run_adapters(adapters)
        except Exception as e:
            log.exception("cycle_failed", error=str(e))
            message = str(e) or type(e).__name__
            await self._record_system_error(message)
            self.status = CycleStatus.FATALLY_FAILED
            return CycleResult(CycleStatus.FATALLY_FAILED, errors=ErrorState(system=message))
        self.status = CycleStatus.COMPLETED
        log.info(
            "cycle_completed",
            counts={d.value: len(result.snapshot.records(d)) for d in Domain} if result.snapshot else {},
            failed=[k for k, v in result.errors.model_dump().items() if v],
        )
        return result

    async def _run_adapters(self, adapters: Sequence[SourceAdapter]) -> CycleResult:
        await clear_errors(self.store)
        settings = await get_settings(self.store)
        previous = await get_metrics(self.store)

        outcomes = await asyncio.gather(
            *(a.fetch_metrics(settings, previous.records(a.domain)) for a in adapters),
            return_exceptions=True,
        )

        lists: dict[str, list] = {d.value: [] for d in Domain}
        errors = ErrorState()
        for adapter, outcome in zip(adapters, outcomes):
            domain = adapter.domain.value
            if isinstance(outcome, Exception):
                log.error("domain_failed", domain=domain, error=str(outcome), error_type=type(outcome).__name__)
                setattr(errors, domain, str(outcome) or type(outcome).__name__)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                lists[domain] = list(outcome)

        snapshot = Snapshot(**lists)
        snapshot.last_update = await save_metrics(self.store, snapshot, errors)
        return CycleResult(CycleStatus.COMPLETED, snapshot=snapshot, errors=errors)

    async def _record_system_error(self, message: str) -> None:
        try:
            await save_error(self.store, SYSTEM_ERROR_KEY, message)
        except Exception as e:
            log.error("system_error_not_recorded", error=str(e))


async def run_cycle(
    store: KeyValueStore,
    config: AppConfig | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> CycleResult:
    """Convenience: build an orchestrator and run one cycle."""
    return await CycleOrchestrator(store, config, transport=transport).run()
