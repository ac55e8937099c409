"""Services exports."""
from geoapi.services.repository import create_repository
from geoapi.services.repository_base import GeoRepository, RegionQuery
from geoapi.services.accommodations import insert_accommodation
from geoapi.services.entities import resolve_by_iata_code

__all__ = [
    "GeoRepository",
    "RegionQuery",
    "create_repository",
    "insert_accommodation",
    "resolve_by_iata_code",
]
