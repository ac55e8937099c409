"""Repository abstract base class.

Defines the storage boundary for regions, geo regions and airports.
Consumers should use create_repository() from repository.py to get the
configured backend. No operation spans more than one unit of work: there is
no cross-record transaction.
"""
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from pydantic import BaseModel, Field

from geoapi.schemas.airport import Airport, AirportQuery
from geoapi.schemas.region import GeoRegion, GeoRegionRef, Region, RegionType


class RegionQuery(BaseModel):
    """Filter for region lookups; empty fields are not applied."""
    region_type: RegionType
    external_ids: list[str] = Field(default_factory=list)
    country_code: Optional[str] = None
    # Region types whose descendants bucket must exist
    descendants: list[str] = Field(default_factory=list)
    ancestors: list[str] = Field(default_factory=list)
    ancestors_region_type: Optional[RegionType] = None
    iata_codes: list[str] = Field(default_factory=list)
    # Project external_id and name only
    basic: bool = False
    page: int = 0
    limit: int = 0

    @property
    def offset(self) -> int:
        if self.page > 0 and self.limit > 0:
            return (self.page - 1) * self.limit
        return 0


class GeoRepository(ABC):
    """Abstract base class for storage backends."""

    # --- regions ---

    @abstractmethod
    async def get_region(self, region_type: RegionType, external_id: str) -> Region:
        """Get a region by type and external id.

        Raises:
            EntityNotFound: no such region
            BackendFault: storage failure
        """
        ...

    @abstractmethod
    async def find_regions(self, query: RegionQuery) -> list[Region]:
        """Regions matching *query*; an empty list when nothing matches."""
        ...

    @abstractmethod
    async def get_country_by_code(self, country_code: str) -> Region:
        """Get the country region with *country_code*.

        Raises:
            MissingParameters: empty country code
            EntityNotFound: no such country
        """
        ...

    @abstractmethod
    async def count_regions(self, region_type: RegionType) -> int:
        """Number of regions of *region_type*."""
        ...

    @abstractmethod
    async def save_region(self, region: Region) -> Region:
        """Insert a region under a fresh internal id and return it."""
        ...

    @abstractmethod
    async def update_region(self, region: Region) -> Region:
        """Replace the region with the same type and external id.

        Raises:
            EntityNotFound: no such region
        """
        ...

    # --- airports ---

    @abstractmethod
    async def get_airport_by_iata(self, iata_code: str) -> Airport:
        """Get an airport by IATA code (EntityNotFound if missing)."""
        ...

    @abstractmethod
    async def find_airports(self, query: AirportQuery) -> list[Airport]:
        """Airports matching *query*; an empty list when nothing matches."""
        ...

    @abstractmethod
    async def save_airport(self, airport: Airport) -> Airport:
        """Insert an airport under a fresh internal id and return it."""
        ...

    @abstractmethod
    async def update_airport(self, airport: Airport) -> Airport:
        """Replace the airport with the same IATA code (EntityNotFound if missing)."""
        ...

    # --- geo regions ---

    @abstractmethod
    async def get_geo_region(self, external_id: str) -> GeoRegion:
        """Get a geo region by external id (EntityNotFound if missing)."""
        ...

    @abstractmethod
    async def save_geo_region(self, geo_region: GeoRegion) -> GeoRegion:
        """Insert a geo region under a fresh internal id and return it."""
        ...

    @abstractmethod
    async def update_geo_region(self, geo_region: GeoRegion) -> GeoRegion:
        """Replace the geo region with the same type and external id."""
        ...

    @abstractmethod
    async def intersecting_regions(
        self,
        geometry,
        region_types: Optional[Sequence[RegionType]] = None,
    ) -> list[GeoRegionRef]:
        """Geo regions whose geometry intersects *geometry*.

        Args:
            geometry: Geometry value to intersect with
            region_types: Restrict to these types; empty or None means all

        Returns:
            Narrow (external_id, type) projections, possibly empty
        """
        ...

    @abstractmethod
    async def nearby_regions(
        self,
        latitude: float,
        longitude: float,
        radius_km: float,
        region_types: Optional[Sequence[RegionType]] = None,
    ) -> list[GeoRegion]:
        """Geo regions inside the spherical cap of *radius_km* around a point."""
        ...

    # --- lifecycle ---

    async def ping(self) -> bool:
        """Return True when the backend answers."""
        return True

    async def close(self) -> None:
        """Release backend resources."""
        return None
