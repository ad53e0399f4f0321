from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from incident_detector.config import get_settings
from incident_detector.core.pipeline import IncidentPipeline, build_pipeline_from_env
from incident_detector.infra.logging_config import LoggingConfig, get_logger
from incident_detector.routers import monitoring, slack_events

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if app.state.pipeline is None and not app.state.testing:
        app.state.pipeline = build_pipeline_from_env()
        logger.info("Detection pipeline ready")
    yield
    if app.state.pipeline is not None:
        await app.state.pipeline.scheduler.shutdown(
            timeout=app.state.pipeline.settings.shutdown_grace_seconds
        )


def create_app(
    testing: bool = False, pipeline: Optional[IncidentPipeline] = None
) -> FastAPI:
    settings = get_settings()
    if not testing:
        LoggingConfig()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.testing = testing
    app.state.pipeline = pipeline

    app.include_router(slack_events.router)
    app.include_router(monitoring.router)
    return app
