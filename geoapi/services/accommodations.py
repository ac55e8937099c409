"""Accommodation ingestion.

An accommodation is attached to every region its geometry intersects and then
stored as a geo region of its own. The steps are not atomic: back-references
written before a failed final insert are kept.
"""
import logging
import uuid
from typing import Optional

from geoapi.errors import EntityNotFound, GeoError
from geoapi.schemas.accommodation import (
    AccommodationCreate,
    AccommodationInsertResult,
    AncestorStatus,
    AncestorUpdate,
)
from geoapi.schemas.region import (
    ACCOMMODATION_ANCESTOR_TYPES,
    GeoRegion,
    GeoRegionRef,
    Region,
    RegionType,
)
from geoapi.services.repository_base import GeoRepository
from geoapi.utils.audit import log_audit_event

logger = logging.getLogger(__name__)


async def _attach(
    repo: GeoRepository,
    ref: GeoRegionRef,
    accommodation_id: str,
) -> AncestorUpdate:
    """Append *accommodation_id* to the accommodations bucket of one region."""
    def outcome(status: AncestorStatus, error: Optional[str] = None) -> AncestorUpdate:
        return AncestorUpdate(
            external_id=ref.external_id, type=ref.type, status=status, error=error
        )

    try:
        region: Region = await repo.get_region(ref.type, ref.external_id)
    except EntityNotFound as e:
        logger.error(
            f"No region record for intersected {ref.type.value} {ref.external_id}: {e}"
        )
        return outcome(AncestorStatus.MISSING, str(e))
    except GeoError as e:
        logger.error(f"Failed to load {ref.type.value} {ref.external_id}: {e}")
        return outcome(AncestorStatus.FAILED, str(e))

    if ref.type not in ACCOMMODATION_ANCESTOR_TYPES:
        return outcome(AncestorStatus.SKIPPED)

    accommodations = list(region.descendants.accommodations or [])
    accommodations.append(accommodation_id)
    region.descendants = region.descendants.model_copy(
        update={"accommodations": accommodations}
    )

    try:
        await repo.update_region(region)
    except GeoError as e:
        logger.error(
            f"Failed to add accommodation {accommodation_id} to "
            f"{ref.type.value} {ref.external_id}: {e}"
        )
        return outcome(AncestorStatus.FAILED, str(e))

    return outcome(AncestorStatus.UPDATED)


async def insert_accommodation(
    repo: GeoRepository,
    accommodation: AccommodationCreate,
) -> AccommodationInsertResult:
    """Ingest an accommodation.

    Args:
        repo: Repository to read regions from and write to
        accommodation: Accommodation geometry and optional external id

    Returns:
        The stored accommodation, every intersected region and the outcome of
        attaching the accommodation to each of them

    Raises:
        GeoError: the intersection query or the final insert failed. Ancestor
            updates made before a failed insert are not rolled back.
    """
    external_id = accommodation.external_id or str(uuid.uuid4())

    intersected = await repo.intersecting_regions(accommodation.geometry, None)

    # One region at a time; each update is a read-modify-write.
    ancestors = [await _attach(repo, ref, external_id) for ref in intersected]

    stored = await repo.save_geo_region(GeoRegion(
        external_id=external_id,
        type=RegionType.ACCOMMODATION,
        geometry=accommodation.geometry,
    ))

    result = AccommodationInsertResult(
        accommodation=stored,
        intersected=intersected,
        ancestors=ancestors,
    )

    log_audit_event(
        "accommodation_inserted",
        record_type=RegionType.ACCOMMODATION.value,
        external_id=external_id,
        details={
            "intersected": len(intersected),
            "ancestors": [
                {"external_id": a.external_id, "type": a.type, "status": a.status}
                for a in ancestors
            ],
        },
    )
    if result.failed:
        logger.error(
            f"Accommodation {external_id} stored with {len(result.failed)} "
            f"unattached ancestor(s)"
        )

    return result
