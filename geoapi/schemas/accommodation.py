"""Pydantic schemas for accommodation ingestion."""
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, Field

from geoapi.geometry import Geometry
from geoapi.schemas.region import GeoRegion, GeoRegionRef, RegionType


class AccommodationCreate(BaseModel):
    """Accommodation to ingest. A missing external_id is generated."""
    external_id: Optional[str] = Field(None, min_length=1, max_length=100)
    geometry: Geometry


class AncestorStatus(str, Enum):
    UPDATED = "updated"  # back-reference appended and persisted
    SKIPPED = "skipped"  # region type does not collect accommodations
    MISSING = "missing"  # geo index entry without region record
    FAILED = "failed"    # region found but the update was not persisted


class AncestorUpdate(BaseModel):
    """Outcome of attaching the accommodation to one intersected region."""
    external_id: str
    type: RegionType
    status: AncestorStatus
    error: Optional[str] = None


class AccommodationInsertResult(BaseModel):
    """Result of an accommodation ingestion.

    ``intersected`` always holds every region returned by the intersection
    query; ``ancestors`` tells which back-references were actually written.
    """
    accommodation: GeoRegion
    intersected: List[GeoRegionRef]
    ancestors: List[AncestorUpdate]

    @property
    def failed(self) -> List[AncestorUpdate]:
        return [
            a for a in self.ancestors
            if a.status in (AncestorStatus.MISSING, AncestorStatus.FAILED)
        ]
