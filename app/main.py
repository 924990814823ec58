"""Field Dispatch Engine — FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.adapters.persistence.database import engine
from app.config import settings
from app.domain.errors import DispatchError
from app.infrastructure.api.routes_analytics import router as analytics_router
from app.infrastructure.api.routes_batch import router as batch_router
from app.infrastructure.api.routes_dispatch import router as dispatch_router
from app.infrastructure.api.routes_geocoding import router as geocoding_router
from app.infrastructure.api.routes_health import router as health_router
from app.infrastructure.api.routes_jobs import router as jobs_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s | %(message)s",
    )
    try:
        async with engine.begin():
            pass  # Connection pool warmed up
        logger.info("Database connection established")
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Database not available on startup: %s", e)
    yield
    await engine.dispose()


async def dispatch_error_handler(request: Request, exc: DispatchError) -> JSONResponse:
    logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


def create_app() -> FastAPI:
    app = FastAPI(
        title="Field Dispatch Engine",
        description="Technician eligibility, scoring, ranking and race-free job assignment",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(DispatchError, dispatch_error_handler)

    # Register routers
    app.include_router(health_router, prefix="/api")
    app.include_router(jobs_router, prefix="/api")
    app.include_router(dispatch_router, prefix="/api")
    app.include_router(batch_router, prefix="/api")
    app.include_router(analytics_router, prefix="/api")
    app.include_router(geocoding_router, prefix="/api")

    return app


app = create_app()
