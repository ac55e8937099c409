"""Pydantic schemas for Region and GeoRegion."""
from enum import Enum
from typing import Optional, List, Dict
from uuid import UUID
from pydantic import BaseModel, Field

from geoapi.geometry import Geometry


class RegionType(str, Enum):
    """Type of a region; also the key of its descendants bucket."""
    CITY = "city"
    COUNTRY = "country"
    CONTINENT = "continent"
    HIGH_LEVEL_REGION = "high_level_region"
    METRO_STATION = "metro_station"
    PROVINCE_STATE = "province_state"
    MULTI_CITY_VICINITY = "multi_city_vicinity"
    POI = "point_of_interest"
    NEIGHBORHOOD = "neighborhood"
    TRAIN_STATION = "train_station"
    ACCOMMODATION = "accommodation"
    GEO = "geo_coordinates"


# Region types that collect accommodation descendants.
ACCOMMODATION_ANCESTOR_TYPES = frozenset({
    RegionType.CITY,
    RegionType.MULTI_CITY_VICINITY,
    RegionType.NEIGHBORHOOD,
})


class Center(BaseModel):
    """Center point of a region in degrees."""
    latitude: float
    longitude: float


class Ancestor(BaseModel):
    """Containing region."""
    external_id: str
    type: RegionType


class Descendants(BaseModel):
    """External ids of contained regions, one list per region type."""
    cities: Optional[List[str]] = None
    countries: Optional[List[str]] = None
    points_of_interest: Optional[List[str]] = None
    high_level_regions: Optional[List[str]] = None
    train_stations: Optional[List[str]] = None
    metro_stations: Optional[List[str]] = None
    neighborhoods: Optional[List[str]] = None
    multi_city_vicinities: Optional[List[str]] = None
    province_states: Optional[List[str]] = None
    accommodations: Optional[List[str]] = None


# Descendants field <-> stored bucket key (the region type value).
DESCENDANT_FIELDS: Dict[RegionType, str] = {
    RegionType.CITY: "cities",
    RegionType.COUNTRY: "countries",
    RegionType.POI: "points_of_interest",
    RegionType.HIGH_LEVEL_REGION: "high_level_regions",
    RegionType.TRAIN_STATION: "train_stations",
    RegionType.METRO_STATION: "metro_stations",
    RegionType.NEIGHBORHOOD: "neighborhoods",
    RegionType.MULTI_CITY_VICINITY: "multi_city_vicinities",
    RegionType.PROVINCE_STATE: "province_states",
    RegionType.ACCOMMODATION: "accommodations",
}


def descendants_to_storage(descendants: Descendants) -> Dict[str, List[str]]:
    """Descendants keyed by region type value, empty buckets dropped."""
    stored = {}
    for region_type, field in DESCENDANT_FIELDS.items():
        values = getattr(descendants, field)
        if values:
            stored[region_type.value] = list(values)
    return stored


def descendants_from_storage(stored: Optional[dict]) -> Descendants:
    values = {}
    for region_type, field in DESCENDANT_FIELDS.items():
        if stored and stored.get(region_type.value):
            values[field] = list(stored[region_type.value])
    return Descendants(**values)


class Region(BaseModel):
    """Region record.

    ``id`` is the internal identifier assigned on save; ``external_id`` is the
    stable business key, unique per region type.
    """
    id: Optional[UUID] = None
    external_id: str = Field(..., min_length=1, max_length=100)
    type: RegionType
    name: Dict[str, str] = Field(default_factory=dict)
    country_code: Optional[str] = None
    iata_code: Optional[str] = None
    center: Optional[Center] = None
    ancestors: List[Ancestor] = Field(default_factory=list)
    descendants: Descendants = Field(default_factory=Descendants)


class GeoRegion(BaseModel):
    """Geometric counterpart of a region."""
    id: Optional[UUID] = None
    external_id: str = Field(..., min_length=1, max_length=100)
    type: RegionType
    geometry: Geometry


class GeoRegionRef(BaseModel):
    """Narrow projection returned by intersection queries."""
    external_id: str
    type: RegionType
