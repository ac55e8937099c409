"""Geo region (polygon) endpoints and point intersection."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from geoapi.api.deps import get_repository, parse_region_types
from geoapi.geometry import point
from geoapi.schemas.region import GeoRegion, GeoRegionRef
from geoapi.services.repository_base import GeoRepository
from geoapi.utils.audit import log_audit_event

router = APIRouter(tags=["Polygons"])


@router.get("/polygons/{external_id}", response_model=GeoRegion)
async def get_polygon(
    external_id: str,
    repo: GeoRepository = Depends(get_repository),
):
    """Get a geo region by external id."""
    return await repo.get_geo_region(external_id)


@router.post("/polygons", response_model=GeoRegion, status_code=status.HTTP_201_CREATED)
async def create_polygon(
    data: GeoRegion,
    repo: GeoRepository = Depends(get_repository),
):
    """Create a geo region."""
    geo_region = await repo.save_geo_region(data)

    log_audit_event(
        "geo_region_created",
        record_type=geo_region.type.value,
        external_id=geo_region.external_id,
        details={"geo_region_id": geo_region.id, "geometry_type": geo_region.geometry.type},
    )

    return geo_region


@router.put("/polygons", response_model=GeoRegion)
async def update_polygon(
    data: GeoRegion,
    repo: GeoRepository = Depends(get_repository),
):
    """Replace the geometry of the geo region with the same type and external id."""
    geo_region = await repo.update_geo_region(data)

    log_audit_event(
        "geo_region_updated",
        record_type=geo_region.type.value,
        external_id=geo_region.external_id,
        details={"geo_region_id": geo_region.id, "geometry_type": geo_region.geometry.type},
    )

    return geo_region


@router.get("/intersections", response_model=list[GeoRegionRef])
async def intersections(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    region_types: Optional[str] = Query(None, description="Comma-separated region types"),
    repo: GeoRepository = Depends(get_repository),
):
    """Geo regions containing the point (latitude, longitude)."""
    return await repo.intersecting_regions(
        point(longitude, latitude), parse_region_types(region_types)
    )
