"""Region lookups shared by the per-type collection endpoints."""
import logging
from typing import Optional, Sequence

from geoapi.errors import MissingParameters
from geoapi.schemas.region import Region, RegionType
from geoapi.services.repository_base import GeoRepository, RegionQuery

logger = logging.getLogger(__name__)


async def build_region_query(
    repo: GeoRepository,
    region_type: RegionType,
    *,
    ids: Sequence[str] = (),
    descendants: Sequence[str] = (),
    country_code: Optional[str] = None,
    basic: bool = False,
    page: int = 0,
    limit: int = 0,
) -> RegionQuery:
    """Translate collection filters into a RegionQuery.

    On collections other than countries, *country_code* is resolved to the
    country region and matched against the ancestors of each record.

    Raises:
        MissingParameters: page or limit is negative
        EntityNotFound: *country_code* names no country
    """
    if page < 0 or limit < 0:
        raise MissingParameters("page and limit must be positive")

    query = RegionQuery(
        region_type=region_type,
        external_ids=list(ids),
        descendants=list(descendants),
        basic=basic,
        page=page,
        limit=limit,
    )

    if country_code:
        if region_type == RegionType.COUNTRY:
            query.country_code = country_code
        else:
            country = await repo.get_country_by_code(country_code)
            query.ancestors = [country.external_id]
            query.ancestors_region_type = RegionType.COUNTRY

    return query


async def find_regions(
    repo: GeoRepository,
    region_type: RegionType,
    **filters,
) -> list[Region]:
    """Regions of *region_type* matching the collection filters."""
    query = await build_region_query(repo, region_type, **filters)
    regions = await repo.find_regions(query)
    logger.debug(f"{len(regions)} {region_type.value} region(s) matched {query}")
    return regions
