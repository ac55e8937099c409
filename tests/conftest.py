import pytest
from fastapi.testclient import TestClient

from geoapi.config import Settings
from geoapi.geometry import MultiPolygon, Polygon, point
from geoapi.schemas.airport import Airport, Coordinates
from geoapi.schemas.region import Ancestor, GeoRegion, Region, RegionType
from geoapi.services.repository_memory import MemoryGeoRepository


@pytest.fixture
def anyio_backend():
    return "asyncio"


def square(x0, y0, size):
    return Polygon(coordinates=[[
        [x0, y0], [x0 + size, y0], [x0 + size, y0 + size], [x0, y0 + size], [x0, y0],
    ]])


@pytest.fixture
def repo():
    return MemoryGeoRepository(cap_segments=32)


@pytest.fixture
async def seeded_repo(repo):
    """Peru with Lima (city), a vicinity and Miraflores (neighborhood) around (-77, -12)."""
    await repo.save_region(Region(
        external_id="PE", type=RegionType.COUNTRY, name={"en": "Peru", "es": "Perú"},
        country_code="PE",
    ))
    await repo.save_region(Region(
        external_id="LIM", type=RegionType.CITY, name={"en": "Lima", "es": "Lima"},
        country_code="PE", iata_code="LIM",
        ancestors=[Ancestor(external_id="PE", type=RegionType.COUNTRY)],
    ))
    await repo.save_region(Region(
        external_id="LIM-V", type=RegionType.MULTI_CITY_VICINITY, name={"en": "Lima area"},
        country_code="PE",
        ancestors=[Ancestor(external_id="PE", type=RegionType.COUNTRY)],
    ))
    await repo.save_region(Region(
        external_id="MIR", type=RegionType.NEIGHBORHOOD, name={"en": "Miraflores"},
        country_code="PE",
        ancestors=[
            Ancestor(external_id="PE", type=RegionType.COUNTRY),
            Ancestor(external_id="LIM", type=RegionType.CITY),
        ],
    ))
    await repo.save_airport(Airport(
        iata_code="LIM", name={"en": "Jorge Chavez International"}, country_code="PE",
        coordinates=Coordinates(latitude=-12.02, longitude=-77.11),
    ))

    await repo.save_geo_region(GeoRegion(
        external_id="PE", type=RegionType.COUNTRY, geometry=square(-82, -18, 14),
    ))
    await repo.save_geo_region(GeoRegion(
        external_id="LIM", type=RegionType.CITY, geometry=square(-77.5, -12.5, 1),
    ))
    await repo.save_geo_region(GeoRegion(
        external_id="LIM-V", type=RegionType.MULTI_CITY_VICINITY,
        geometry=MultiPolygon(coordinates=[square(-78, -13, 2).coordinates]),
    ))
    await repo.save_geo_region(GeoRegion(
        external_id="MIR", type=RegionType.NEIGHBORHOOD, geometry=square(-77.1, -12.2, 0.2),
    ))
    await repo.save_geo_region(GeoRegion(
        external_id="PLAZA", type=RegionType.POI, geometry=point(-77.03, -12.05),
    ))
    return repo


@pytest.fixture
def settings():
    return Settings(STORAGE_BACKEND="memory", CORS_ORIGINS=[], _env_file=None)


@pytest.fixture
def client(settings, repo):
    from geoapi.main import create_app

    with TestClient(create_app(settings, repository=repo)) as test_client:
        yield test_client
