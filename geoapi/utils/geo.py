"""Spatial query builders for the geo_regions table."""
import json
import math
from typing import Iterable, Optional, Union

from geoalchemy2.functions import (
    ST_AsGeoJSON,
    ST_CoveredBy,
    ST_GeomFromGeoJSON,
    ST_Intersects,
    ST_SetSRID,
)
from shapely.affinity import translate
from shapely.geometry import MultiPolygon as ShapelyMultiPolygon
from shapely.geometry import Polygon as ShapelyPolygon
from shapely.geometry import box, mapping
from shapely.geometry import shape as shapely_shape
from shapely.geometry.polygon import orient
from sqlalchemy import Select, select

from geoapi.geometry import MultiPolygon, Polygon, parse_geometry, to_geojson
from geoapi.models.region import GeoRegion

# Mean Earth radius used to turn a distance into an angle on the sphere.
EARTH_RADIUS_KM = 6378.1
SRID_WGS84 = 4326
# Decimal digits kept by ST_AsGeoJSON; enough to round-trip a double.
GEOJSON_MAX_DECIMAL_DIGITS = 17


def radius_to_radians(radius_km: float) -> float:
    """Convert a great-circle distance in km to an angular radius."""
    return radius_km / EARTH_RADIUS_KM


def _from_shapely(geometry) -> Union[Polygon, MultiPolygon]:
    parts = [p for p in getattr(geometry, "geoms", [geometry]) if p.area > 0]
    parts = [orient(p, 1.0) for p in parts]
    if len(parts) == 1:
        return parse_geometry(mapping(parts[0]))
    return parse_geometry(mapping(ShapelyMultiPolygon(parts)))


def _ring(lat1: float, lon1: float, radians: float, segments: int) -> list:
    """Great-circle destinations at evenly spaced bearings, counter-clockwise.

    Longitudes are left unwrapped around *lon1*.
    """
    sin_d, cos_d = math.sin(radians), math.cos(radians)
    ring = []
    for i in range(segments):
        bearing = -2 * math.pi * i / segments
        lat2 = math.asin(
            math.sin(lat1) * cos_d + math.cos(lat1) * sin_d * math.cos(bearing)
        )
        lon2 = lon1 + math.atan2(
            math.sin(bearing) * sin_d * math.cos(lat1),
            cos_d - math.sin(lat1) * math.sin(lat2),
        )
        ring.append([math.degrees(lon2), math.degrees(lat2)])
    ring.append(list(ring[0]))
    return ring


def _polar_band(lat1: float, lon1: float, radians: float, segments: int, north: bool) -> Polygon:
    """Cap holding exactly one pole, as the band between its edge and that pole.

    The edge is sampled meridian by meridian from -180 to 180, so the ring
    closes along the +/-180 meridian through the pole.
    """
    cos_r = math.cos(radians)
    edge = []
    for i in range(segments + 1):
        lon = -180.0 + 360.0 * i / segments
        # cos r = sin(lat) sin(lat1) + cos(lat) cos(lat1) cos(dlon), solved for lat
        a = math.sin(lat1)
        b = math.cos(lat1) * math.cos(math.radians(lon) - lon1)
        r = math.hypot(a, b)
        alpha = math.atan2(a, b)
        spread = math.acos(max(-1.0, min(1.0, cos_r / r)))
        lat = alpha - spread if north else alpha + spread
        lat = max(-math.pi / 2, min(math.pi / 2, lat))
        edge.append([lon, math.degrees(lat)])

    if north:
        ring = edge + [[180.0, 90.0], [-180.0, 90.0]]
    else:
        ring = edge[::-1] + [[-180.0, -90.0], [180.0, -90.0]]
    ring.append(list(ring[0]))
    return Polygon(coordinates=[ring])


def spherical_cap(
    latitude: float,
    longitude: float,
    radians: float,
    segments: int = 64,
) -> Union[Polygon, MultiPolygon]:
    """Polygon approximating the cap of angular radius *radians* on the sphere.

    Caps clear of the poles and of the antimeridian are a single closed,
    counter-clockwise ring of great-circle destinations around the center.
    A cap crossing the antimeridian is split into a MultiPolygon along it.
    A cap holding one pole becomes the band between its edge and that pole;
    a cap holding both poles is the world minus the antipodal cap.
    """
    if radians <= 0:
        raise ValueError(f"radius must be positive, got {radians}")
    if segments < 3:
        raise ValueError(f"a cap needs at least 3 segments, got {segments}")

    world = [[-180.0, -90.0], [180.0, -90.0], [180.0, 90.0], [-180.0, 90.0], [-180.0, -90.0]]
    if radians >= math.pi:
        return Polygon(coordinates=[world])

    lat1 = math.radians(latitude)
    lon1 = math.radians(longitude)
    north_pole = math.pi / 2 - lat1 < radians
    south_pole = math.pi / 2 + lat1 < radians

    if north_pole and south_pole:
        antipode_lon = (longitude + 360.0) % 360.0 - 180.0
        hole = spherical_cap(-latitude, antipode_lon, math.pi - radians, segments)
        return _from_shapely(shapely_shape(to_geojson(Polygon(coordinates=[world]))).difference(
            shapely_shape(to_geojson(hole))
        ))
    if north_pole or south_pole:
        return _polar_band(lat1, lon1, radians, segments, north=north_pole)

    ring = _ring(lat1, lon1, radians, segments)
    if all(-180.0 <= lon <= 180.0 for lon, _ in ring):
        return Polygon(coordinates=[ring])

    # Shift each side of the antimeridian back into [-180, 180].
    cap = ShapelyPolygon(ring)
    parts = []
    for shift in (-360.0, 0.0, 360.0):
        piece = cap.intersection(box(-180.0 + shift, -90.0, 180.0 + shift, 90.0))
        if not piece.is_empty:
            piece = translate(piece, xoff=-shift)
            parts.extend(p for p in getattr(piece, "geoms", [piece]) if p.geom_type == "Polygon")
    return _from_shapely(ShapelyMultiPolygon(parts))


def geometry_expression(geometry):
    """SQL expression for *geometry* as a WGS84 PostGIS geometry."""
    return ST_SetSRID(
        ST_GeomFromGeoJSON(json.dumps(to_geojson(geometry), separators=(",", ":"))),
        SRID_WGS84,
    )


def geojson_column():
    """Stored geometry as GeoJSON text at full double precision (``geojson``)."""
    return ST_AsGeoJSON(GeoRegion.bounding_polygon, GEOJSON_MAX_DECIMAL_DIGITS).label("geojson")


def type_values(region_types: Optional[Iterable]) -> list[str]:
    values = []
    for region_type in region_types or ():
        value = getattr(region_type, "value", region_type)
        if value and value not in values:
            values.append(value)
    return values


def build_intersects(geometry, region_types: Optional[Iterable] = None) -> Select:
    """Geo regions whose bounding geometry intersects *geometry*.

    Only ``external_id`` and ``type`` are projected; callers needing the full
    record look it up separately. An empty *region_types* means no filter.
    """
    stmt = select(GeoRegion.external_id, GeoRegion.type).where(
        ST_Intersects(GeoRegion.bounding_polygon, geometry_expression(geometry))
    )
    types = type_values(region_types)
    if types:
        stmt = stmt.where(GeoRegion.type.in_(types))
    return stmt.order_by(GeoRegion.type, GeoRegion.external_id)


def build_nearby(
    latitude: float,
    longitude: float,
    radius_km: float,
    region_types: Optional[Iterable] = None,
    segments: int = 64,
) -> Select:
    """Geo regions lying inside the spherical cap of *radius_km* around a point.

    Rows carry ``id``, ``external_id``, ``type`` and the geometry as GeoJSON
    text (``geojson``).
    """
    cap = spherical_cap(latitude, longitude, radius_to_radians(radius_km), segments)
    stmt = select(
        GeoRegion.id,
        GeoRegion.external_id,
        GeoRegion.type,
        geojson_column(),
    ).where(ST_CoveredBy(GeoRegion.bounding_polygon, geometry_expression(cap)))
    types = type_values(region_types)
    if types:
        stmt = stmt.where(GeoRegion.type.in_(types))
    return stmt.order_by(GeoRegion.type, GeoRegion.external_id)
