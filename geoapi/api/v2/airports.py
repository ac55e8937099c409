"""Airport API endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from geoapi.api.deps import get_repository, split_list
from geoapi.schemas.airport import Airport, AirportQuery
from geoapi.services.repository_base import GeoRepository
from geoapi.utils.audit import log_audit_event

router = APIRouter(prefix="/airports", tags=["Airports"])


@router.get("/{iata_code}", response_model=Airport)
async def get_airport(
    iata_code: str,
    repo: GeoRepository = Depends(get_repository),
):
    """Get an airport by IATA code."""
    return await repo.get_airport_by_iata(iata_code)


@router.get("", response_model=list[Airport])
async def list_airports(
    iata_codes: Optional[str] = Query(None, description="Comma-separated IATA codes"),
    country_code: Optional[str] = Query(None),
    repo: GeoRepository = Depends(get_repository),
):
    """List airports, optionally filtered by IATA codes and country."""
    query = AirportQuery(iata_codes=split_list(iata_codes), country_code=country_code)
    return await repo.find_airports(query)


@router.post("", response_model=Airport, status_code=status.HTTP_201_CREATED)
async def create_airport(
    data: Airport,
    repo: GeoRepository = Depends(get_repository),
):
    """Create an airport."""
    airport = await repo.save_airport(data)

    log_audit_event(
        "airport_created",
        record_type="airport",
        external_id=airport.iata_code,
        details={"airport_id": airport.id, "country_code": airport.country_code},
    )

    return airport


@router.put("", response_model=Airport)
async def update_airport(
    data: Airport,
    repo: GeoRepository = Depends(get_repository),
):
    """Replace the airport with the same IATA code."""
    airport = await repo.update_airport(data)

    log_audit_event(
        "airport_updated",
        record_type="airport",
        external_id=airport.iata_code,
        details={"airport_id": airport.id, "country_code": airport.country_code},
    )

    return airport
