"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from trail_directory.config import CORS_ORIGIN, ENVIRONMENT
from trail_directory.errors import AppError
from trail_directory.routers import (
    auth, competitions, editions, event_managers, events, favorites, home, landings, organizers,
    participants, podiums, ratings, reviews, service_categories, services_router, user_competitions,
    users,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    try:
        from trail_directory.scheduler import scheduler
        scheduler.start()
        logger.info("Scheduler started: token purge and edition sweeps")
    except Exception as e:
        logger.warning("Scheduler failed to start: %s", e)

    yield

    try:
        from trail_directory.scheduler import scheduler
        if scheduler.running:
            scheduler.shutdown(wait=False)
    except Exception as e:
        logger.warning("Scheduler failed to stop: %s", e)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def create_app() -> FastAPI:
    app = FastAPI(
        title="Trail Directory API",
        description=(
            "Trail-running event directory: events, competitions, yearly editions, "
            "organizers, services, reviews and athlete tracking."
        ),
        version="2.0.0",
        docs_url="/api/v2/docs",
        redoc_url="/api/v2/redoc",
        openapi_url="/api/v2/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGIN,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(AppError, app_error_handler)

    @app.get("/health", include_in_schema=False)
    async def health():
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": ENVIRONMENT,
        }

    # event_managers before events: /events/managed must not match /events/{event_id}
    for r in [auth, users, event_managers, events, competitions, editions, podiums, ratings,
              organizers, services_router, service_categories, landings, reviews, participants,
              favorites, home]:
        app.include_router(r.router)

    # Athlete tracking keeps its v1 paths alongside v2
    for prefix in ("/api/v1", "/api/v2"):
        app.include_router(user_competitions.router, prefix=prefix)
        app.include_router(user_competitions.me_router, prefix=prefix)

    return app
