"""Pydantic schemas for entities resolved by IATA code."""
from enum import Enum
from typing import Optional
from pydantic import BaseModel


class EntityType(str, Enum):
    CITY = "CITY"
    AIRPORT = "AIRPORT"


class Entity(BaseModel):
    """Flat projection of a city or airport in one language.

    ``name`` is empty when the record has no translation for the requested
    language.
    """
    id: str
    iata_code: str
    name: str
    type: EntityType
    country_id: Optional[str] = None
