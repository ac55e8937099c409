"""Pydantic schemas for airports."""
from typing import Optional, List, Dict
from uuid import UUID
from pydantic import BaseModel, Field


class Coordinates(BaseModel):
    """Coordinates in degrees."""
    latitude: float
    longitude: float


class AirportRegion(BaseModel):
    """Region an airport belongs to."""
    id: str
    type: str
    name: Dict[str, str] = Field(default_factory=dict)


class Airport(BaseModel):
    """Airport record keyed by IATA code."""
    id: Optional[UUID] = None
    iata_code: str = Field(..., min_length=1, max_length=10)
    name: Dict[str, str] = Field(default_factory=dict)
    country_code: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    region: Optional[AirportRegion] = None


class AirportQuery(BaseModel):
    """Filter for airport lookups; empty fields are not applied."""
    iata_codes: List[str] = Field(default_factory=list)
    country_code: Optional[str] = None
