from unittest.mock import AsyncMock, patch

import pytest

from geoapi.errors import BackendFault, EntityNotFound, MissingParameters
from geoapi.schemas.airport import Airport
from geoapi.schemas.entity import EntityType
from geoapi.schemas.region import Region, RegionType
from geoapi.services.entities import resolve_by_iata_code


@pytest.mark.anyio
async def test_nothing_matches(seeded_repo):
    with pytest.raises(EntityNotFound):
        await resolve_by_iata_code(seeded_repo, "ZZZ999", "en")


@pytest.mark.anyio
async def test_airport_only(repo):
    await repo.save_airport(Airport(iata_code="JFK", name={"en": "John F. Kennedy"}, country_code="US"))

    entities = await resolve_by_iata_code(repo, "JFK", "en")

    assert len(entities) == 1
    assert entities[0].type == EntityType.AIRPORT
    assert entities[0].iata_code == "JFK"
    assert entities[0].name == "John F. Kennedy"
    assert entities[0].country_id == "US"


@pytest.mark.anyio
async def test_city_and_airport_cities_first(seeded_repo):
    entities = await resolve_by_iata_code(seeded_repo, "LIM", "es")

    assert [e.type for e in entities] == [EntityType.CITY, EntityType.AIRPORT]
    assert entities[0].name == "Lima"
    assert entities[0].country_id == "PE"


@pytest.mark.anyio
async def test_missing_translation_gives_empty_name(seeded_repo):
    entities = await resolve_by_iata_code(seeded_repo, "LIM", "fr")
    assert [e.name for e in entities] == ["", ""]


@pytest.mark.anyio
async def test_language_is_case_insensitive(seeded_repo):
    entities = await resolve_by_iata_code(seeded_repo, "LIM", "EN")
    assert entities[0].name == "Lima"


@pytest.mark.anyio
async def test_comma_separated_codes(repo):
    await repo.save_region(Region(external_id="MAD", type=RegionType.CITY, iata_code="MAD", name={"en": "Madrid"}))
    await repo.save_airport(Airport(iata_code="BCN", name={"en": "El Prat"}))

    entities = await resolve_by_iata_code(repo, "MAD, BCN", "en")

    assert [(e.iata_code, e.type) for e in entities] == [
        ("MAD", EntityType.CITY),
        ("BCN", EntityType.AIRPORT),
    ]


@pytest.mark.anyio
@pytest.mark.parametrize("code, language", [("", "en"), ("LIM", ""), (" , ", "en")])
async def test_missing_parameters(repo, code, language):
    with patch.object(repo, "find_regions", AsyncMock()) as find_regions:
        with pytest.raises(MissingParameters):
            await resolve_by_iata_code(repo, code, language)
    find_regions.assert_not_called()


@pytest.mark.anyio
async def test_single_branch_fault_is_absorbed(seeded_repo):
    with patch.object(seeded_repo, "find_regions", AsyncMock(side_effect=BackendFault("down"))):
        entities = await resolve_by_iata_code(seeded_repo, "LIM", "en")

    assert [e.type for e in entities] == [EntityType.AIRPORT]


@pytest.mark.anyio
async def test_joint_failure_with_backend_fault(seeded_repo):
    with patch.object(seeded_repo, "find_regions", AsyncMock(side_effect=BackendFault("down"))), \
            patch.object(seeded_repo, "find_airports", AsyncMock(return_value=[])):
        with pytest.raises(BackendFault):
            await resolve_by_iata_code(seeded_repo, "LIM", "en")
