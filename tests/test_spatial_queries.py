import json
import math

import pytest
from shapely.geometry import shape
from sqlalchemy import select
from sqlalchemy.dialects import postgresql

from geoapi.geometry import MultiPolygon, Polygon, point, to_geojson
from geoapi.schemas.region import RegionType
from geoapi.utils.geo import (
    EARTH_RADIUS_KM,
    build_intersects,
    build_nearby,
    geojson_column,
    radius_to_radians,
    spherical_cap,
)


def compile_pg(stmt):
    return stmt.compile(dialect=postgresql.dialect())


def haversine_km(lon1, lat1, lon2, lat2):
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = phi2 - phi1
    dlmb = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def test_build_intersects_is_idempotent():
    geometry = point(-77.03, -12.05)
    first = compile_pg(build_intersects(geometry))
    second = compile_pg(build_intersects(geometry))
    assert str(first) == str(second)
    assert first.params == second.params


def test_build_intersects_projects_external_id_and_type():
    sql = str(compile_pg(build_intersects(point(1, 2))))
    assert sql.startswith("SELECT geo_regions.external_id, geo_regions.type")
    assert "ST_Intersects(geo_regions.bounding_polygon" in sql
    assert "ST_GeomFromGeoJSON" in sql
    assert " IN " not in sql


def test_build_intersects_binds_geojson_of_the_geometry():
    compiled = compile_pg(build_intersects(point(1, 2)))
    bound = [json.loads(v) for v in compiled.params.values() if isinstance(v, str)]
    assert {"type": "Point", "coordinates": [1, 2]} in bound
    assert 4326 in compiled.params.values()


def test_build_intersects_type_filter():
    compiled = compile_pg(
        build_intersects(point(1, 2), [RegionType.CITY, RegionType.NEIGHBORHOOD, RegionType.CITY])
    )
    assert "geo_regions.type IN" in str(compiled)
    assert ["city", "neighborhood"] in compiled.params.values()


def test_empty_type_filter_means_all():
    assert str(compile_pg(build_intersects(point(1, 2), []))) == str(
        compile_pg(build_intersects(point(1, 2)))
    )


def test_build_nearby_uses_covered_by_cap():
    compiled = compile_pg(build_nearby(-12.05, -77.03, 10, [RegionType.POI]))
    sql = str(compiled)
    assert "ST_CoveredBy(geo_regions.bounding_polygon" in sql
    assert "ST_AsGeoJSON(geo_regions.bounding_polygon, " in sql
    assert 17 in compiled.params.values()
    cap = next(
        json.loads(v) for v in compiled.params.values()
        if isinstance(v, str) and v.startswith("{")
    )
    assert cap["type"] == "Polygon"


def test_radius_to_radians():
    assert radius_to_radians(6378.1) == pytest.approx(1.0)
    assert radius_to_radians(10) == pytest.approx(10 / 6378.1)


def test_spherical_cap_vertices_lie_on_the_radius():
    cap = spherical_cap(-12.05, -77.03, radius_to_radians(25), segments=16)
    ring = cap.coordinates[0]
    assert len(ring) == 17
    assert ring[0] == ring[-1]
    for lon, lat in ring:
        assert haversine_km(-77.03, -12.05, lon, lat) == pytest.approx(25, rel=1e-6)


def test_spherical_cap_is_counter_clockwise_and_contains_center():
    cap = shape(to_geojson(spherical_cap(48.85, 2.35, radius_to_radians(5))))
    assert cap.exterior.is_ccw
    assert cap.contains(shape(to_geojson(point(2.35, 48.85))))


def test_spherical_cap_returns_polygon():
    assert isinstance(spherical_cap(0, 0, 0.01), Polygon)


@pytest.mark.parametrize("radians, segments", [(0, 64), (-1, 64), (0.1, 2)])
def test_spherical_cap_rejects_degenerate_input(radians, segments):
    with pytest.raises(ValueError):
        spherical_cap(0, 0, radians, segments)


def test_geojson_column_keeps_full_precision():
    compiled = compile_pg(select(geojson_column()))
    assert "ST_AsGeoJSON(geo_regions.bounding_polygon, " in str(compiled)
    assert "AS geojson" in str(compiled)
    assert list(compiled.params.values()) == [17]


def covers(cap, lon, lat):
    return shape(to_geojson(cap)).covers(shape(to_geojson(point(lon, lat))))


def test_cap_over_the_north_pole_reaches_the_far_side():
    cap = spherical_cap(89.9, 0, radius_to_radians(50), segments=32)

    assert covers(cap, 0, 89.9)
    # 0.15 degrees away across the pole
    assert covers(cap, 180, 89.95)
    assert covers(cap, 90, 89.8)
    assert not covers(cap, 0, 89.0)


def test_cap_over_the_south_pole_reaches_the_far_side():
    cap = spherical_cap(-89.9, 0, radius_to_radians(50), segments=32)

    assert covers(cap, 0, -89.9)
    assert covers(cap, 180, -89.95)
    assert covers(cap, -90, -89.8)
    assert not covers(cap, 0, -89.0)
    assert shape(to_geojson(cap)).exterior.is_ccw


def test_cap_centered_on_the_pole_is_a_band():
    cap = spherical_cap(90, 0, radius_to_radians(100), segments=16)

    assert isinstance(cap, Polygon)
    for lon in (-180, -45, 0, 45, 180):
        assert covers(cap, lon, 89.5)
        assert not covers(cap, lon, 88.9)


def test_cap_across_the_antimeridian_is_split():
    cap = spherical_cap(0, 179.9, radius_to_radians(50), segments=32)

    assert isinstance(cap, MultiPolygon)
    assert len(cap.coordinates) == 2
    for polygon in cap.coordinates:
        assert all(-180 <= lon <= 180 for lon, _ in polygon[0])
    assert covers(cap, 179.95, 0)
    assert covers(cap, -179.9, 0)
    assert not covers(cap, 0, 0)


def test_cap_holding_both_poles_excludes_the_antipode():
    cap = spherical_cap(0, 0, 2.8, segments=32)

    assert covers(cap, 0, 0)
    assert covers(cap, 0, 89.9)
    assert covers(cap, 0, -89.9)
    assert not covers(cap, 179.5, 0)
    assert not covers(cap, -179.5, 0)


def test_cap_of_half_circumference_is_the_world():
    cap = spherical_cap(10, 20, math.pi)
    assert covers(cap, -180, -90)
    assert covers(cap, 180, 90)
    assert shape(to_geojson(cap)).area == pytest.approx(360 * 180)


def test_build_nearby_across_the_antimeridian_binds_a_multipolygon():
    compiled = compile_pg(build_nearby(0, 179.9, 50))
    cap = next(
        json.loads(v) for v in compiled.params.values()
        if isinstance(v, str) and v.startswith("{")
    )
    assert cap["type"] == "MultiPolygon"
