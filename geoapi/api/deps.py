"""Shared FastAPI dependencies."""
from typing import Optional

from fastapi import HTTPException, Request, status

from geoapi.schemas.region import RegionType
from geoapi.services.repository_base import GeoRepository


def get_repository(request: Request) -> GeoRepository:
    """Repository built by the application lifespan."""
    return request.app.state.repository


def split_list(value: Optional[str]) -> list[str]:
    """Split a comma-separated query parameter, dropping blanks."""
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]


def parse_region_types(value: Optional[str]) -> list[RegionType]:
    types = []
    for item in split_list(value):
        try:
            types.append(RegionType(item))
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown region type: {item}",
            )
    return types
