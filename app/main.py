# app/main.py
import asyncio
import time
from contextlib import asynccontextmanager, suppress

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import TypeAdapter, ValidationError

from .ai.client import build_findings_source
from .db import FlowStore
from .engine.hybrid import HybridAnalyzer
from .errors import RateLimitExceeded, denial_response, install_error_handlers
from .governance import Governance, get_client_id
from .logging_config import log_event, log_failure
from .routes import flows, metrics, ops, principles
from .settings import Settings, get_settings

_FROM_SETTINGS = object()
_QUERY_BOOL = TypeAdapter(bool)


async def _eviction_loop(app: FastAPI, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        try:
            await asyncio.to_thread(app.state.governance.evict_expired)
        except Exception as e:
            log_failure("EVICT_FAILED", {"error": repr(e)})


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.state.settings
    log_event("STARTUP", "Rate limiting enabled", {
        "general": f"{settings.RATE_LIMIT_MAX_REQUESTS}/{settings.RATE_LIMIT_WINDOW_SECONDS}s per client",
        "ai": f"{settings.AI_RATE_LIMIT_MAX_REQUESTS}/{settings.AI_RATE_LIMIT_WINDOW_SECONDS}s per client",
        "daily_ai_limit": settings.DAILY_AI_LIMIT,
    })
    task = asyncio.create_task(_eviction_loop(app, settings.EVICTION_INTERVAL_SECONDS))
    try:
        yield
    finally:
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
        app.state.analyzer.shutdown()


def _wants_ai(request: Request) -> bool:
    # same coercion the routes apply to `ai: bool = Query(False)`
    raw = request.query_params.get("ai")
    if raw is None:
        return False
    try:
        return _QUERY_BOOL.validate_python(raw)
    except ValidationError:
        return False


def create_app(
    settings: Settings | None = None,
    ai_source=_FROM_SETTINGS,
    governance: Governance | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    if ai_source is _FROM_SETTINGS:
        ai_source = build_findings_source(settings)

    app = FastAPI(title="Flow Risk API", version=settings.APP_VERSION, lifespan=lifespan)

    app.state.settings = settings
    app.state.flows = FlowStore()
    app.state.governance = governance or Governance.from_settings(settings)
    app.state.analyzer = HybridAnalyzer(ai_source, timeout_seconds=settings.AI_TIMEOUT_SECONDS)

    install_error_handlers(app)

    @app.middleware("http")
    async def govern_requests(request: Request, call_next):
        gov: Governance = request.app.state.governance
        client_id = get_client_id(request)
        started = time.perf_counter()

        log = gov.analytics.log_request(
            client_id,
            request.url.path,
            request.method,
            use_ai=_wants_ai(request),
            user_agent=request.headers.get("user-agent"),
        )

        def elapsed_ms() -> float:
            return round((time.perf_counter() - started) * 1000, 2)

        try:
            try:
                gov.general.enforce(client_id)
            except RateLimitExceeded as exc:
                response = denial_response(exc)
            else:
                response = await call_next(request)
        except Exception:
            gov.analytics.log_response(log, 500, elapsed_ms())
            raise

        gov.analytics.log_response(log, response.status_code, elapsed_ms())
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(ops.router)
    app.include_router(principles.router)
    app.include_router(flows.router)
    app.include_router(metrics.router)

    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
