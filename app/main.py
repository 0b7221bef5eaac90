from __future__ import annotations

import logging

from fastapi import FastAPI

from app.api.v1.router import api_router
from app.core.config import get_settings


logger = logging.getLogger(__name__)

settings = get_settings()


def create_app() -> FastAPI:
    """Construct the FastAPI application and configure routes."""

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Errand Route Scheduler", version="0.1.0")
    app.include_router(api_router, prefix="/api/v1")

    @app.on_event("startup")
    def on_startup() -> None:
        logger.info(
            "Starting with timeline policy %s and %s travel oracle",
            settings.timeline_policy,
            settings.travel_oracle,
        )

    return app


app = create_app()
