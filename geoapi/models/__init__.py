"""Model exports."""
from geoapi.models.region import Airport, GeoRegion, Region

__all__ = [
    "Airport",
    "GeoRegion",
    "Region",
]
