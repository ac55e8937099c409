"""Entity resolution by IATA code across cities and airports."""
import asyncio
import logging

from geoapi.errors import BackendFault, EntityNotFound, MissingParameters
from geoapi.schemas.airport import AirportQuery
from geoapi.schemas.entity import Entity, EntityType
from geoapi.schemas.region import RegionType
from geoapi.services.repository_base import GeoRepository, RegionQuery

logger = logging.getLogger(__name__)


def _split_codes(code: str) -> list[str]:
    return [c.strip() for c in code.split(",") if c.strip()]


async def _find_cities(repo: GeoRepository, codes: list[str], language: str) -> list[Entity]:
    cities = await repo.find_regions(
        RegionQuery(region_type=RegionType.CITY, iata_codes=codes)
    )
    if not cities:
        raise EntityNotFound(f"no city with iata code {','.join(codes)}")
    return [
        Entity(
            id=str(city.id),
            iata_code=city.iata_code or "",
            name=city.name.get(language, ""),
            type=EntityType.CITY,
            country_id=city.country_code,
        )
        for city in cities
    ]


async def _find_airports(repo: GeoRepository, codes: list[str], language: str) -> list[Entity]:
    airports = await repo.find_airports(AirportQuery(iata_codes=codes))
    if not airports:
        raise EntityNotFound(f"no airport with iata code {','.join(codes)}")
    return [
        Entity(
            id=str(airport.id),
            iata_code=airport.iata_code,
            name=airport.name.get(language, ""),
            type=EntityType.AIRPORT,
            country_id=airport.country_code,
        )
        for airport in airports
    ]


async def resolve_by_iata_code(
    repo: GeoRepository,
    code: str,
    language: str,
) -> list[Entity]:
    """Cities and airports carrying an IATA code.

    Both lookups run concurrently. Names are taken in *language* only; a
    missing translation yields an empty name.

    Args:
        repo: Repository to query
        code: IATA code, or a comma-separated list of codes
        language: Language of the returned names

    Returns:
        Matching cities followed by matching airports

    Raises:
        MissingParameters: empty code or language
        EntityNotFound: neither lookup matched
        BackendFault: neither lookup succeeded and at least one hit a storage
            failure
    """
    codes = _split_codes(code or "")
    if not codes or not language:
        raise MissingParameters("iata_code and language are required")
    language = language.lower()

    branches = (
        ("cities", _find_cities(repo, codes, language)),
        ("airports", _find_airports(repo, codes, language)),
    )
    outcomes = await asyncio.gather(*(b for _, b in branches), return_exceptions=True)

    entities: list[Entity] = []
    failures: list[BaseException] = []
    for (label, _), outcome in zip(branches, outcomes):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, Exception):
                raise outcome
            logger.info(f"Entity lookup for {label} {','.join(codes)} failed: {outcome}")
            failures.append(outcome)
        else:
            entities.extend(outcome)

    if len(failures) == len(branches):
        fault = next((f for f in failures if isinstance(f, BackendFault)), None)
        if fault is not None:
            raise fault
        raise EntityNotFound(f"no entity with iata code {','.join(codes)}")

    return entities
