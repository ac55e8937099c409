"""Entity lookup by IATA code."""
from fastapi import APIRouter, Depends, Query

from geoapi.api.deps import get_repository
from geoapi.schemas.entity import Entity
from geoapi.services.entities import resolve_by_iata_code
from geoapi.services.repository_base import GeoRepository

router = APIRouter(prefix="/entities", tags=["Entities"])


@router.get("", response_model=list[Entity])
async def get_entities(
    iata_code: str = Query("", description="IATA code or comma-separated codes"),
    language: str = Query("", description="Language of the returned names"),
    repo: GeoRepository = Depends(get_repository),
):
    """Cities and airports carrying an IATA code."""
    return await resolve_by_iata_code(repo, iata_code, language)
