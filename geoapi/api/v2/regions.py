"""Region write and nearby search endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from geoapi.api.deps import get_repository, parse_region_types
from geoapi.schemas.region import GeoRegion, Region
from geoapi.services.repository_base import GeoRepository
from geoapi.utils.audit import log_audit_event

router = APIRouter(prefix="/regions", tags=["Regions"])


@router.get("/nearby", response_model=list[GeoRegion])
async def nearby_regions(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    radius: float = Query(..., gt=0, description="Radius in km"),
    types: Optional[str] = Query(None, description="Comma-separated region types"),
    repo: GeoRepository = Depends(get_repository),
):
    """
    Geo regions lying entirely within *radius* km of a point.

    The search area is the spherical cap of angular radius radius/6378.1
    around (latitude, longitude).
    """
    return await repo.nearby_regions(
        latitude, longitude, radius, parse_region_types(types)
    )


@router.post("", response_model=Region, status_code=status.HTTP_201_CREATED)
async def create_region(
    data: Region,
    repo: GeoRepository = Depends(get_repository),
):
    """Create a region."""
    region = await repo.save_region(data)

    log_audit_event(
        "region_created",
        record_type=region.type.value,
        external_id=region.external_id,
        details={"region_id": region.id},
    )

    return region


@router.put("", response_model=Region)
async def update_region(
    data: Region,
    repo: GeoRepository = Depends(get_repository),
):
    """Replace the region with the same type and external id."""
    region = await repo.update_region(data)

    log_audit_event(
        "region_updated",
        record_type=region.type.value,
        external_id=region.external_id,
        details={"region_id": region.id},
    )

    return region
