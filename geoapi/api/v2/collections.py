"""Read endpoints for the per-type region collections.

Every collection (``/countries``, ``/cities``, ...) exposes the same two
routes, bound to its region type.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from geoapi.api.deps import get_repository, split_list
from geoapi.schemas.region import Region, RegionType
from geoapi.services.regions import find_regions
from geoapi.services.repository_base import GeoRepository

COLLECTIONS = {
    "countries": RegionType.COUNTRY,
    "cities": RegionType.CITY,
    "high-level-regions": RegionType.HIGH_LEVEL_REGION,
    "continents": RegionType.CONTINENT,
    "multi-city-vicinities": RegionType.MULTI_CITY_VICINITY,
    "train-stations": RegionType.TRAIN_STATION,
    "metro-stations": RegionType.METRO_STATION,
    "province-states": RegionType.PROVINCE_STATE,
    "points-of-interest": RegionType.POI,
    "neighborhoods": RegionType.NEIGHBORHOOD,
}


def collection_router(path: str, region_type: RegionType) -> APIRouter:
    router = APIRouter(prefix=f"/{path}", tags=["Regions"])

    @router.get("/{external_id}", response_model=Region)
    async def get_region(
        external_id: str,
        repo: GeoRepository = Depends(get_repository),
    ):
        return await repo.get_region(region_type, external_id)

    @router.get("", response_model=list[Region], response_model_exclude_none=True)
    async def list_regions(
        ids: Optional[str] = Query(None, description="Comma-separated external ids"),
        descendants: Optional[str] = Query(
            None, description="Comma-separated descendant types that must be present"
        ),
        country_code: Optional[str] = Query(None),
        basic: bool = Query(False, description="Return external id and name only"),
        page: int = Query(0, ge=0),
        limit: int = Query(0, ge=0),
        repo: GeoRepository = Depends(get_repository),
    ):
        return await find_regions(
            repo,
            region_type,
            ids=split_list(ids),
            descendants=split_list(descendants),
            country_code=country_code,
            basic=basic,
            page=page,
            limit=limit,
        )

    get_region.__doc__ = f"Get a {region_type.value} by external id."
    list_regions.__doc__ = f"List {path}."
    return router


router = APIRouter()

for _path, _region_type in COLLECTIONS.items():
    router.include_router(collection_router(_path, _region_type))
