# fitsched/main.py
from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from . import __version__
from .core.config import is_running_tests, settings
from .core.exceptions import RepositoryException
from .database import init_db
from .routes import (
    clients as clients_routes,
    health as health_routes,
    recommendations as recommendations_routes,
    schedules as schedules_routes,
    trainings as trainings_routes,
    windows as windows_routes,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info("fitsched API starting up...")
    logger.info(f"Environment: {settings.environment}")
    if is_running_tests():
        logger.info("Running under pytest (test mode active)")
    elif settings.is_sqlite:
        init_db()

    yield

    logger.info("fitsched API shutting down...")


def create_app() -> FastAPI:
    app = FastAPI(
        title="fitsched",
        description="Gym scheduling: trainings, participant availability and recommendations",
        version=__version__,
        lifespan=app_lifespan,
    )

    @app.exception_handler(RepositoryException)
    async def repository_exception_handler(request: Request, exc: RepositoryException) -> JSONResponse:
        logger.error(f"Unhandled repository error on {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"detail": "Internal storage error"})

    api = APIRouter(prefix="/api")
    api.include_router(health_routes.router)
    api.include_router(trainings_routes.router, prefix="/trainings")
    api.include_router(windows_routes.router, prefix="/windows")
    api.include_router(schedules_routes.router, prefix="/schedules")
    api.include_router(recommendations_routes.router, prefix="/recommendations")
    api.include_router(clients_routes.router, prefix="/clients")

    app.include_router(api)
    app.include_router(health_routes.metrics_router)
    return app


app = create_app()
