"""Scheduling driver - recurring timer, manual trigger and settings-driven rescheduling."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Protocol

import structlog

from marketpulse.config import AppConfig
from marketpulse.ingestion.manager import CycleOrchestrator, CycleResult
from marketpulse.models import Settings
from marketpulse.storage.kv import KeyValueStore
from marketpulse.storage.metrics import (
    get_metrics,
    get_settings,
    has_settings,
    initialize_storage,
    save_settings,
)

log = structlog.get_logger(__name__)


class Cycle(Protocol):
    async def run(self) -> CycleResult: ...


@dataclass
class TriggerResult:
    """Reply to an external caller that asked for a cycle."""

    success: bool
    error: str | None = None


class SchedulingDriver:
    """
    Owns when a cycle runs. Entry points are called by the host process:
    on_install, activate (every start), on_schedule, on_manual_trigger,
    on_settings_changed, shutdown.

    Holds only the timer task in memory; everything else is re-read from the store on
    each call, so the driver can be torn down and recreated between triggers.
    """

    def __init__(
        self,
        store: KeyValueStore,
        config: AppConfig | None = None,
        orchestrator_factory: Callable[[], Cycle] | None = None,
    ) -> None:
        self.store = store
        self.config = config or AppConfig()
        self._factory = orchestrator_factory or (lambda: CycleOrchestrator(self.store, self.config))
        self._stop: asyncio.Event | None = None
        self._timer_tasks: set[asyncio.Task[None]] = set()
        self.interval_minutes: int | None = None

    @property
    def scheduled(self) -> bool:
        return self._stop is not None and not self._stop.is_set()

    async def run_cycle(self) -> CycleResult:
        return await self._factory().run()

    async def on_install(self) -> CycleResult:
        """First activation ever: default settings, schedule, fetch immediately."""
        await initialize_storage(self.store)
        settings = await get_settings(self.store)
        self.schedule(settings.update_frequency)
        log.info("installed", update_frequency=settings.update_frequency)
        return await self.run_cycle()

    async def activate(self) -> CycleResult | None:
        """Process start. Reschedule from stored settings; fetch now if data is stale."""
        if not await has_settings(self.store):
            return await self.on_install()
        settings = await get_settings(self.store)
        self.schedule(settings.update_frequency)
        snapshot = await get_metrics(self.store)
        age_ms = None if snapshot.last_update is None else int(time.time() * 1000) - snapshot.last_update
        if age_ms is None or age_ms >= settings.update_frequency * 60_000:
            log.info("snapshot_stale", age_ms=age_ms)
            return await self.run_cycle()
        return None

    async def on_schedule(self) -> CycleResult:
        log.info("scheduled_cycle")
        result = await self.run_cycle()
        # Settings may have been rewritten by another process (CLI) since scheduling
        settings = await get_settings(self.store)
        if self.scheduled and settings.update_frequency != self.interval_minutes:
            self.schedule(settings.update_frequency)
            log.info("update_frequency_changed", minutes=settings.update_frequency)
        return result

    async def on_manual_trigger(self) -> TriggerResult:
        try:
            result = await self.run_cycle()
        except Exception as e:
            log.error("manual_cycle_failed", error=str(e))
            return TriggerResult(success=False, error=str(e))
        if not result.ok:
            return TriggerResult(success=False, error=result.system_error)
        return TriggerResult(success=True)

    async def on_settings_changed(self, new_settings: Settings) -> TriggerResult:
        """Persist, move a running timer to the new interval, then fetch immediately.

        Never starts a timer: a process that is not scheduling (API without the
        scheduler, one-shot CLI) leaves that to the process that is.
        """
        await save_settings(self.store, new_settings)
        if self.scheduled and self.interval_minutes != new_settings.update_frequency:
            self.schedule(new_settings.update_frequency)
            log.info("update_frequency_changed", minutes=new_settings.update_frequency)
        return await self.on_manual_trigger()

    def schedule(self, minutes: int) -> None:
        """Cancel any recurring trigger and create one every `minutes`. Needs a running loop."""
        self.cancel()
        stop = asyncio.Event()
        task = asyncio.create_task(self._timer(minutes * 60.0, stop))
        self._timer_tasks.add(task)
        task.add_done_callback(self._timer_tasks.discard)
        self._stop = stop
        self.interval_minutes = minutes

    def cancel(self) -> None:
        """Stop the recurring trigger. A cycle already in flight runs to completion."""
        if self._stop is not None:
            self._stop.set()
        self._stop = None
        self.interval_minutes = None

    async def shutdown(self) -> None:
        """Stop the timer and wait for a scheduled cycle that is still running."""
        self.cancel()
        tasks = list(self._timer_tasks)
        if tasks:
            await asyncio.gather(*tasks)

    async def _timer(self, interval_sec: float, stop: asyncio.Event) -> None:
        while True:
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval_sec)
                return
            except TimeoutError:
                pass
            try:
                await self.on_schedule()
            except Exception as e:
                log.exception("scheduled_cycle_failed", error=str(e))


async def run_forever(driver: SchedulingDriver, stop_event: asyncio.Event) -> None:
    """Activate the driver and keep it scheduled until stop_event is set."""
    await driver.activate()
    try:
        await stop_event.wait()
    finally:
        await driver.shutdown()
