"""Repository backend selection."""
import logging
from typing import Optional

from geoapi.config import Settings, get_settings
from geoapi.services.repository_base import GeoRepository

logger = logging.getLogger(__name__)


def create_repository(settings: Optional[Settings] = None) -> GeoRepository:
    """Build the repository configured by STORAGE_BACKEND.

    The caller owns the returned instance and must close() it on shutdown.
    """
    settings = settings or get_settings()

    if settings.STORAGE_BACKEND == "memory":
        from geoapi.services.repository_memory import MemoryGeoRepository

        logger.info("Using in-memory repository")
        return MemoryGeoRepository(cap_segments=settings.NEARBY_CAP_SEGMENTS)

    from geoapi.database import create_engine, create_session_factory
    from geoapi.services.repository_postgis import PostgisGeoRepository

    engine = create_engine(settings)
    logger.info("Using PostGIS repository")
    return PostgisGeoRepository(
        create_session_factory(engine),
        engine=engine,
        cap_segments=settings.NEARBY_CAP_SEGMENTS,
    )
