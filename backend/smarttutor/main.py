# backend/smarttutor/main.py
"""
SmartTutor booking API.

Run with:
    uvicorn smarttutor.main:app --reload
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute

from . import __version__
from .core.config import settings
from .core.constants import BRAND_NAME
from .database import engine
from .routes.v1 import (
    bookings as bookings_v1,
    health as health_v1,
    services as services_v1,
    tutors as tutors_v1,
)

logging.basicConfig(
    level=settings.log_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info(
        f"Starting {BRAND_NAME} API {__version__} (environment={settings.environment})"
    )
    if settings.is_production and settings.is_sqlite:
        logger.warning("Running production against SQLite; concurrent booking throughput will suffer")
    yield
    logger.info(f"Shutting down {BRAND_NAME} API")
    engine.dispose()


def _unique_operation_id(route: APIRoute) -> str:
    methods = "_".join(sorted(m.lower() for m in route.methods or []))
    path = route.path_format.replace("/", "_").replace("{", "").replace("}", "").strip("_")
    name = (route.name or "operation").lower().replace(" ", "_")
    return f"{methods}__{path}__{name}".strip("_")


def create_app() -> FastAPI:
    app = FastAPI(
        title=f"{BRAND_NAME} API",
        description="Tutoring session reservations",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=app_lifespan,
        generate_unique_id_function=_unique_operation_id,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["GET", "HEAD", "OPTIONS", "POST", "PUT"],
        allow_headers=["*"],
    )

    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(bookings_v1.router, prefix="/bookings")
    api_v1.include_router(services_v1.router, prefix="/services")
    api_v1.include_router(tutors_v1.router, prefix="/tutors")
    app.include_router(api_v1)

    # Health and metrics stay unversioned
    app.include_router(health_v1.router)
    return app


app = create_app()
