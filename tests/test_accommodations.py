import logging
from unittest.mock import AsyncMock, patch

import pytest

from geoapi.errors import BackendFault, EntityNotFound
from geoapi.geometry import point
from geoapi.schemas.accommodation import AccommodationCreate, AncestorStatus
from geoapi.schemas.region import GeoRegion, GeoRegionRef, Region, RegionType
from geoapi.services.accommodations import insert_accommodation
from tests.conftest import square


@pytest.fixture
async def three_regions(repo):
    """City and neighborhood with metadata, a vicinity without."""
    await repo.save_region(Region(external_id="C1", type=RegionType.CITY))
    await repo.save_region(Region(external_id="N1", type=RegionType.NEIGHBORHOOD))
    await repo.save_geo_region(GeoRegion(
        external_id="C1", type=RegionType.CITY, geometry=square(0, 0, 10),
    ))
    await repo.save_geo_region(GeoRegion(
        external_id="N1", type=RegionType.NEIGHBORHOOD, geometry=square(4, 4, 2),
    ))
    await repo.save_geo_region(GeoRegion(
        external_id="V1", type=RegionType.MULTI_CITY_VICINITY, geometry=square(-5, -5, 20),
    ))
    return repo


@pytest.mark.anyio
async def test_missing_region_is_tolerated(three_regions, caplog):
    repo = three_regions

    with caplog.at_level(logging.ERROR, logger="geoapi.services.accommodations"):
        result = await insert_accommodation(
            repo, AccommodationCreate(external_id="H1", geometry=point(5, 5))
        )

    assert len(result.intersected) == 3
    statuses = {a.external_id: a.status for a in result.ancestors}
    assert statuses == {
        "C1": AncestorStatus.UPDATED,
        "N1": AncestorStatus.UPDATED,
        "V1": AncestorStatus.MISSING,
    }
    assert [a.external_id for a in result.failed] == ["V1"]
    assert any("V1" in r.message for r in caplog.records)

    stored = await repo.get_geo_region("H1")
    assert stored.type == RegionType.ACCOMMODATION
    assert stored.geometry == point(5, 5)
    assert result.accommodation.id == stored.id

    city = await repo.get_region(RegionType.CITY, "C1")
    assert city.descendants.accommodations == ["H1"]
    neighborhood = await repo.get_region(RegionType.NEIGHBORHOOD, "N1")
    assert neighborhood.descendants.accommodations == ["H1"]


@pytest.mark.anyio
async def test_appends_to_existing_accommodations(three_regions):
    repo = three_regions
    await insert_accommodation(repo, AccommodationCreate(external_id="H1", geometry=point(5, 5)))
    await insert_accommodation(repo, AccommodationCreate(external_id="H2", geometry=point(1, 1)))

    city = await repo.get_region(RegionType.CITY, "C1")
    assert city.descendants.accommodations == ["H1", "H2"]
    neighborhood = await repo.get_region(RegionType.NEIGHBORHOOD, "N1")
    assert neighborhood.descendants.accommodations == ["H1"]


@pytest.mark.anyio
async def test_other_region_types_are_skipped(three_regions):
    repo = three_regions
    await repo.save_region(Region(external_id="XX", type=RegionType.COUNTRY))
    await repo.save_geo_region(GeoRegion(
        external_id="XX", type=RegionType.COUNTRY, geometry=square(-50, -50, 100),
    ))

    result = await insert_accommodation(
        repo, AccommodationCreate(external_id="H1", geometry=point(5, 5))
    )

    assert len(result.intersected) == 4
    skipped = [a for a in result.ancestors if a.status == AncestorStatus.SKIPPED]
    assert [(a.external_id, a.type) for a in skipped] == [("XX", RegionType.COUNTRY)]
    country = await repo.get_region(RegionType.COUNTRY, "XX")
    assert country.descendants.accommodations is None


@pytest.mark.anyio
async def test_every_intersected_region_is_looked_up(three_regions, caplog):
    repo = three_regions
    await repo.save_geo_region(GeoRegion(
        external_id="XX", type=RegionType.COUNTRY, geometry=square(-50, -50, 100),
    ))

    with caplog.at_level(logging.ERROR, logger="geoapi.services.accommodations"):
        result = await insert_accommodation(
            repo, AccommodationCreate(external_id="H1", geometry=point(5, 5))
        )

    statuses = {a.external_id: a.status for a in result.ancestors}
    assert statuses["XX"] == AncestorStatus.MISSING
    assert statuses["C1"] == AncestorStatus.UPDATED
    assert any("XX" in r.message for r in caplog.records)


@pytest.mark.anyio
async def test_failed_ancestor_update_is_not_fatal(three_regions):
    repo = three_regions
    original = repo.update_region

    async def flaky_update(region):
        if region.type == RegionType.NEIGHBORHOOD:
            raise BackendFault("connection reset")
        return await original(region)

    with patch.object(repo, "update_region", side_effect=flaky_update):
        result = await insert_accommodation(
            repo, AccommodationCreate(external_id="H1", geometry=point(5, 5))
        )

    statuses = {a.external_id: a.status for a in result.ancestors}
    assert statuses["N1"] == AncestorStatus.FAILED
    assert statuses["C1"] == AncestorStatus.UPDATED
    assert (await repo.get_geo_region("H1")).external_id == "H1"


@pytest.mark.anyio
async def test_insert_fault_is_fatal_and_keeps_earlier_updates(three_regions):
    repo = three_regions

    with patch.object(
        repo, "save_geo_region", AsyncMock(side_effect=BackendFault("disk full"))
    ):
        with pytest.raises(BackendFault, match="disk full"):
            await insert_accommodation(
                repo, AccommodationCreate(external_id="H1", geometry=point(5, 5))
            )

    with pytest.raises(EntityNotFound):
        await repo.get_geo_region("H1")
    city = await repo.get_region(RegionType.CITY, "C1")
    assert city.descendants.accommodations == ["H1"]


@pytest.mark.anyio
async def test_intersection_fault_aborts_before_any_write(three_regions):
    repo = three_regions

    with patch.object(
        repo, "intersecting_regions", AsyncMock(side_effect=BackendFault("timeout"))
    ):
        with pytest.raises(BackendFault):
            await insert_accommodation(
                repo, AccommodationCreate(external_id="H1", geometry=point(5, 5))
            )

    city = await repo.get_region(RegionType.CITY, "C1")
    assert city.descendants.accommodations is None


@pytest.mark.anyio
async def test_no_intersection_still_stores_accommodation(repo):
    result = await insert_accommodation(
        repo, AccommodationCreate(external_id="H9", geometry=point(100, 50))
    )
    assert result.intersected == []
    assert result.ancestors == []
    assert (await repo.get_geo_region("H9")).type == RegionType.ACCOMMODATION


@pytest.mark.anyio
async def test_missing_external_id_is_generated(three_regions):
    result = await insert_accommodation(
        three_regions, AccommodationCreate(geometry=point(5, 5))
    )
    generated = result.accommodation.external_id
    assert generated
    city = await three_regions.get_region(RegionType.CITY, "C1")
    assert city.descendants.accommodations == [generated]


@pytest.mark.anyio
async def test_intersected_refs_are_narrow(three_regions):
    result = await insert_accommodation(
        three_regions, AccommodationCreate(external_id="H1", geometry=point(5, 5))
    )
    assert all(isinstance(ref, GeoRegionRef) for ref in result.intersected)
