"""In-memory repository backend.

Keeps records in dicts and evaluates spatial predicates with shapely.
Used for single-process deployments without PostGIS and as the fake store
in tests.
"""
import asyncio
import uuid
from typing import Optional, Sequence

from shapely.geometry import shape

from geoapi.errors import EntityNotFound, MissingParameters
from geoapi.geometry import to_geojson
from geoapi.schemas.airport import Airport, AirportQuery
from geoapi.schemas.region import (
    DESCENDANT_FIELDS,
    GeoRegion,
    GeoRegionRef,
    Region,
    RegionType,
)
from geoapi.services.repository_base import GeoRepository, RegionQuery
from geoapi.utils.geo import type_values, radius_to_radians, spherical_cap


def _has_bucket(region: Region, bucket: str) -> bool:
    for region_type, field in DESCENDANT_FIELDS.items():
        if region_type.value == bucket:
            return bool(getattr(region.descendants, field))
    return False


def _matches(region: Region, query: RegionQuery) -> bool:
    if region.type != query.region_type:
        return False
    if query.external_ids and region.external_id not in query.external_ids:
        return False
    if not all(_has_bucket(region, bucket) for bucket in query.descendants):
        return False
    if query.country_code and region.country_code != query.country_code:
        return False
    if query.iata_codes and region.iata_code not in query.iata_codes:
        return False
    if (
        query.ancestors
        and query.ancestors_region_type
        and query.ancestors_region_type != query.region_type
    ):
        wanted = set(query.ancestors)
        if not any(
            a.type == query.ancestors_region_type and a.external_id in wanted
            for a in region.ancestors
        ):
            return False
    return True


class MemoryGeoRepository(GeoRepository):
    """Repository backed by process memory."""

    def __init__(self, cap_segments: int = 64):
        self._regions: dict[tuple[str, str], Region] = {}
        self._airports: dict[str, Airport] = {}
        self._geo_regions: dict[tuple[str, str], GeoRegion] = {}
        self._cap_segments = cap_segments
        self._lock = asyncio.Lock()

    # --- regions ---

    async def get_region(self, region_type: RegionType, external_id: str) -> Region:
        region = self._regions.get((region_type.value, external_id))
        if region is None:
            raise EntityNotFound(
                f"region with type {region_type.value} and id {external_id} not found"
            )
        return region.model_copy(deep=True)

    async def find_regions(self, query: RegionQuery) -> list[Region]:
        found = sorted(
            (r for r in self._regions.values() if _matches(r, query)),
            key=lambda r: r.external_id,
        )
        if query.page > 0 and query.limit > 0:
            found = found[query.offset:query.offset + query.limit]
        if query.basic:
            return [
                Region(external_id=r.external_id, type=r.type, name=dict(r.name))
                for r in found
            ]
        return [r.model_copy(deep=True) for r in found]

    async def get_country_by_code(self, country_code: str) -> Region:
        if not country_code:
            raise MissingParameters("country code is required")
        for region in self._regions.values():
            if region.type == RegionType.COUNTRY and region.country_code == country_code:
                return region.model_copy(deep=True)
        raise EntityNotFound(f"country {country_code} not found")

    async def count_regions(self, region_type: RegionType) -> int:
        return sum(1 for r in self._regions.values() if r.type == region_type)

    async def save_region(self, region: Region) -> Region:
        saved = region.model_copy(update={"id": uuid.uuid4()}, deep=True)
        async with self._lock:
            self._regions[(saved.type.value, saved.external_id)] = saved
        return saved.model_copy(deep=True)

    async def update_region(self, region: Region) -> Region:
        key = (region.type.value, region.external_id)
        async with self._lock:
            current = self._regions.get(key)
            if current is None:
                raise EntityNotFound(
                    f"region with type {region.type.value} and id {region.external_id} not found"
                )
            updated = region.model_copy(update={"id": current.id}, deep=True)
            self._regions[key] = updated
        return updated.model_copy(deep=True)

    # --- airports ---

    async def get_airport_by_iata(self, iata_code: str) -> Airport:
        airport = self._airports.get(iata_code)
        if airport is None:
            raise EntityNotFound(f"airport {iata_code} not found")
        return airport.model_copy(deep=True)

    async def find_airports(self, query: AirportQuery) -> list[Airport]:
        found = []
        for code in sorted(self._airports):
            airport = self._airports[code]
            if query.iata_codes and code not in query.iata_codes:
                continue
            if query.country_code and airport.country_code != query.country_code:
                continue
            found.append(airport.model_copy(deep=True))
        return found

    async def save_airport(self, airport: Airport) -> Airport:
        saved = airport.model_copy(update={"id": uuid.uuid4()}, deep=True)
        async with self._lock:
            self._airports[saved.iata_code] = saved
        return saved.model_copy(deep=True)

    async def update_airport(self, airport: Airport) -> Airport:
        async with self._lock:
            current = self._airports.get(airport.iata_code)
            if current is None:
                raise EntityNotFound(f"airport {airport.iata_code} not found")
            updated = airport.model_copy(update={"id": current.id}, deep=True)
            self._airports[airport.iata_code] = updated
        return updated.model_copy(deep=True)

    # --- geo regions ---

    async def get_geo_region(self, external_id: str) -> GeoRegion:
        for key in sorted(self._geo_regions):
            if key[1] == external_id:
                return self._geo_regions[key].model_copy(deep=True)
        raise EntityNotFound(f"geo region {external_id} not found")

    async def save_geo_region(self, geo_region: GeoRegion) -> GeoRegion:
        saved = geo_region.model_copy(update={"id": uuid.uuid4()}, deep=True)
        async with self._lock:
            self._geo_regions[(saved.type.value, saved.external_id)] = saved
        return saved.model_copy(deep=True)

    async def update_geo_region(self, geo_region: GeoRegion) -> GeoRegion:
        key = (geo_region.type.value, geo_region.external_id)
        async with self._lock:
            current = self._geo_regions.get(key)
            if current is None:
                raise EntityNotFound(f"geo region {geo_region.external_id} not found")
            updated = geo_region.model_copy(update={"id": current.id}, deep=True)
            self._geo_regions[key] = updated
        return updated.model_copy(deep=True)

    def _candidates(self, region_types: Optional[Sequence[RegionType]]):
        types = type_values(region_types)
        for key in sorted(self._geo_regions):
            if types and key[0] not in types:
                continue
            yield self._geo_regions[key]

    async def intersecting_regions(
        self,
        geometry,
        region_types: Optional[Sequence[RegionType]] = None,
    ) -> list[GeoRegionRef]:
        target = shape(to_geojson(geometry))
        return [
            GeoRegionRef(external_id=g.external_id, type=g.type)
            for g in self._candidates(region_types)
            if shape(to_geojson(g.geometry)).intersects(target)
        ]

    async def nearby_regions(
        self,
        latitude: float,
        longitude: float,
        radius_km: float,
        region_types: Optional[Sequence[RegionType]] = None,
    ) -> list[GeoRegion]:
        cap = shape(to_geojson(spherical_cap(
            latitude, longitude, radius_to_radians(radius_km), self._cap_segments
        )))
        return [
            g.model_copy(deep=True)
            for g in self._candidates(region_types)
            if cap.covers(shape(to_geojson(g.geometry)))
        ]
