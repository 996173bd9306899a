"""FastAPI backend for dashboards: read snapshot, errors and settings; trigger cycles."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from marketpulse.api.schemas import (
    DomainMetricsResponse,
    ErrorResponse,
    HealthResponse,
    MetricsResponse,
    TriggerResponse,
)
from marketpulse.config import AppConfig, get_config
from marketpulse.formatting import mask_key
from marketpulse.models import ApiKeys, Domain, Settings
from marketpulse.scheduler import SchedulingDriver
from marketpulse.storage import DuckDBStore, KeyValueStore
from marketpulse.storage.metrics import get_errors, get_metrics, get_settings

# Set by run_api() so the uvicorn factory can build the app with the same options.
_run_with_scheduler = False
_config_profile: str | None = None


def _error_json(code: str, message: str, status_code: int = 404) -> JSONResponse:
    """Return consistent error JSON: { detail, code }."""
    return JSONResponse(
        status_code=status_code,
        content={"detail": message, "code": code},
    )


def _driver(request: Request) -> SchedulingDriver:
    return request.app.state.driver


def _keep_masked_keys(new_settings: Settings, stored: Settings) -> Settings:
    """A key sent back in the masked form GET /settings returns means "unchanged"."""
    keys = new_settings.api_keys.model_dump()
    for provider, stored_key in stored.api_keys.model_dump().items():
        if stored_key and keys[provider] == mask_key(stored_key):
            keys[provider] = stored_key
    return new_settings.model_copy(update={"api_keys": ApiKeys(**keys)})


def create_app(
    store: KeyValueStore | None = None,
    config: AppConfig | None = None,
    *,
    with_scheduler: bool | None = None,
) -> FastAPI:
    """Build the API around a store. With the scheduler, cycles also run on a timer in-process."""
    config = config or get_config(_config_profile)
    store = store if store is not None else DuckDBStore(config.db_path)
    with_scheduler = _run_with_scheduler if with_scheduler is None else with_scheduler
    driver = SchedulingDriver(store, config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if with_scheduler:
            await app.state.driver.activate()
        yield
        await app.state.driver.shutdown()

    app = FastAPI(title="marketpulse API", version="0.1.0", lifespan=lifespan)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
    app.state.store = store
    app.state.driver = driver

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/metrics", response_model=MetricsResponse)
    async def metrics() -> MetricsResponse:
        return MetricsResponse(metrics=await get_metrics(store), errors=await get_errors(store))

    @app.get(
        "/metrics/{domain}",
        response_model=DomainMetricsResponse,
        responses={404: {"description": "Unknown domain", "model": ErrorResponse}},
    )
    async def domain_metrics(domain: str):
        """One domain's records and its error banner, if any."""
        try:
            d = Domain(domain)
        except ValueError:
            return _error_json("unknown_domain", f"Unknown domain: {domain}")
        snapshot = await get_metrics(store)
        errors = await get_errors(store)
        return DomainMetricsResponse(
            domain=d.value,
            records=[r.model_dump() for r in snapshot.records(d)],
            error=errors.get(d),
            last_update=snapshot.last_update,
        )

    @app.get("/errors")
    async def errors() -> dict[str, str | None]:
        return (await get_errors(store)).model_dump()

    @app.get("/settings")
    async def settings_get() -> dict:
        """Current settings with API keys masked."""
        data = (await get_settings(store)).model_dump()
        data["api_keys"] = {k: mask_key(v) for k, v in data["api_keys"].items()}
        return data

    @app.put("/settings", response_model=TriggerResponse)
    async def settings_put(new_settings: Settings, request: Request) -> TriggerResponse:
        """Replace settings wholesale (422 on invalid frequency) and fetch now. Masked keys are kept."""
        new_settings = _keep_masked_keys(new_settings, await get_settings(store))
        result = await _driver(request).on_settings_changed(new_settings)
        return TriggerResponse(success=result.success, error=result.error)

    @app.post("/refresh", response_model=TriggerResponse)
    async def refresh(request: Request) -> TriggerResponse:
        """Run one cycle now."""
        result = await _driver(request).on_manual_trigger()
        return TriggerResponse(success=result.success, error=result.error)

    return app


def run_api(
    host: str = "127.0.0.1",
    port: int = 8000,
    with_scheduler: bool = False,
    profile: str | None = None,
) -> None:
    global _run_with_scheduler, _config_profile
    _run_with_scheduler = with_scheduler
    _config_profile = profile
    import uvicorn

    uvicorn.run("marketpulse.api.main:create_app", host=host, port=port, reload=False, factory=True)
