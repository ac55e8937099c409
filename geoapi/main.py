"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from geoapi.api.v2 import router as api_v2_router
from geoapi.config import Settings, get_settings
from geoapi.errors import BackendFault, EntityNotFound, InvalidGeometry, MissingParameters
from geoapi.services.repository import create_repository
from geoapi.services.repository_base import GeoRepository

logger = logging.getLogger(__name__)


def _error_handler(status_code: int):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})
    return handler


def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[GeoRepository] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to use; the cached environment settings by default
        repository: Repository to serve from; built from settings on startup
            when omitted. A repository passed in is not closed on shutdown.
    """
    settings = settings or get_settings()

    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events."""
        # Startup
        logger.info(f"Starting {settings.APP_NAME}...")
        owned = repository is None
        app.state.repository = create_repository(settings) if owned else repository
        yield
        # Shutdown
        logger.info(f"Shutting down {settings.APP_NAME}...")
        if owned:
            await app.state.repository.close()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Reference data for countries, cities, regions, accommodations and airports",
        version="2.0.0",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(EntityNotFound, _error_handler(status.HTTP_404_NOT_FOUND))
    app.add_exception_handler(MissingParameters, _error_handler(status.HTTP_400_BAD_REQUEST))
    app.add_exception_handler(InvalidGeometry, _error_handler(status.HTTP_400_BAD_REQUEST))
    app.add_exception_handler(
        BackendFault, _error_handler(status.HTTP_500_INTERNAL_SERVER_ERROR)
    )

    # Include API routers
    app.include_router(api_v2_router, prefix=settings.API_PREFIX)

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        alive = await request.app.state.repository.ping()
        return {
            "status": "healthy" if alive else "degraded",
            "app": settings.APP_NAME,
            "database": "alive" if alive else "dead",
        }

    return app


app = create_app()
