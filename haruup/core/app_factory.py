"""Application factory for the FastAPI app.

Centralizes app construction (metadata, lifespan, middleware, handlers,
routers) so tests can build isolated instances.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from haruup.adapters.llm.factory import close_llm_client
from haruup.api.routes import (
    character_router,
    health_router,
    mission_router,
    ranking_router,
    rate_limit_router,
)
from haruup.core.config import settings
from haruup.core.exception_handlers import setup_exception_handlers
from haruup.core.logging import configure_logging
from haruup.core.middleware import request_id_middleware
from haruup.core.rate_limit import close_rate_limiter
from haruup.models import AsyncSessionLocal, init_db
from haruup.services.scheduler_service import SchedulerService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create tables and start the ranking scheduler for the app's lifetime.

    On shutdown the scheduler stops first, then the shared Redis and LLM
    clients are closed.
    """
    if settings.db.create_tables:
        await init_db()

    scheduler: SchedulerService | None = None
    if settings.ranking.batch_enabled:
        scheduler = SchedulerService(AsyncSessionLocal)
        scheduler.start()
    else:
        logger.info("scheduler.disabled")

    app.state.scheduler = scheduler
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.stop()
        await close_rate_limiter()
        await close_llm_client()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="HaruUp Progression API",
        description=(
            "Character growth, mission completion streaks and the popular "
            "missions chart for HaruUp members. Requires X-API-Key and "
            "X-Member-Id headers and applies per-member daily rate limits."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(character_router, prefix="/v1")
    app.include_router(mission_router, prefix="/v1")
    app.include_router(ranking_router, prefix="/v1")
    app.include_router(rate_limit_router, prefix="/v1")
    app.include_router(health_router)

    return app
