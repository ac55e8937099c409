"""Accommodation ingestion endpoint."""
from fastapi import APIRouter, Depends, status

from geoapi.api.deps import get_repository
from geoapi.schemas.accommodation import AccommodationCreate, AccommodationInsertResult
from geoapi.services.accommodations import insert_accommodation
from geoapi.services.repository_base import GeoRepository

router = APIRouter(prefix="/accommodations", tags=["Accommodations"])


@router.post(
    "",
    response_model=AccommodationInsertResult,
    status_code=status.HTTP_201_CREATED,
)
async def create_accommodation(
    data: AccommodationCreate,
    repo: GeoRepository = Depends(get_repository),
):
    """
    Ingest an accommodation.

    The accommodation is added to the descendants of every intersected city,
    multi-city vicinity and neighborhood, then stored as a geo region. The
    response lists every intersected region with the outcome of that update.
    """
    return await insert_accommodation(repo, data)
