"""Rona API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map RonaError → structured JSON responses
    - Startup order: logging, database, migrations, expiry sweep
    - Shutdown order: sweep stopped (in-flight unit rolled back), then engine disposed

Design Decisions:
    - Lifespan over @app.on_event: cleaner cleanup
    - The sweep lives on app.state so tests and probes can reach it
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rona.api.error_handlers import register_error_handlers
from rona.api.routes import health, quicktests
from rona.config import get_settings
from rona.infrastructure.database import close_db, init_db
from rona.infrastructure.observability import setup_logging
from rona.services.expiry_sweep import ExpirySweep
from rona.services.quicktest_service import QuickTestService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        busy_timeout_seconds=settings.database_busy_timeout_seconds,
    )
    await manager.migrate()

    sweep = ExpirySweep(
        QuickTestService(manager),
        validity=settings.quicktest_validity,
        interval=settings.expiry_sweep_interval,
    )
    if settings.expiry_sweep_enabled:
        sweep.start()
    app.state.expiry_sweep = sweep
    logger.info("Rona API started")
    try:
        yield
    finally:
        logger.info("Rona API shutting down")
        await sweep.stop()
        await close_db()


app = FastAPI(
    title="Rona API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(quicktests.router)

register_error_handlers(app)


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "rona.main:app", host=settings.host, port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    run()
