"""GeoJSON-like geometry values and their wire codec.

A geometry is one of four variants (Point, MultiPoint, Polygon, MultiPolygon),
each holding its coordinates in their natural nesting. Those coordinates are
the only source of truth: the shape-specific key emitted on the wire
(``point``, ``multipoint``, ``polygon``, ``multipolygon``) is projected from
them on every encode and is never read back.

Wire format::

    {"type": "Point", "point": [lon, lat], "coordinates": [lon, lat]}
"""
from __future__ import annotations

import json
from collections.abc import Mapping
from enum import Enum
from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_serializer,
)

from geoapi.errors import InvalidGeometry

Number = Union[int, float]
Position = list[Number]


class GeometryType(str, Enum):
    """Geometry kinds used by the service (subset of GeoJSON)."""

    POINT = "Point"
    MULTI_POINT = "MultiPoint"
    POLYGON = "Polygon"
    MULTI_POLYGON = "MultiPolygon"


# Key carrying the typed projection of each kind on the wire.
TYPED_KEYS = {
    GeometryType.POINT: "point",
    GeometryType.MULTI_POINT: "multipoint",
    GeometryType.POLYGON: "polygon",
    GeometryType.MULTI_POLYGON: "multipolygon",
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _decode_point(raw: Any) -> Position:
    if not isinstance(raw, (list, tuple)):
        raise InvalidGeometry(f"not a valid position, got {raw!r}")
    if len(raw) < 2:
        raise InvalidGeometry(f"a position needs at least 2 numbers, got {len(raw)}")
    for value in raw:
        if not _is_number(value):
            raise InvalidGeometry(f"not a valid coordinate, got {value!r}")
    return list(raw)


def _decode_multi_point(raw: Any) -> list[Position]:
    if not isinstance(raw, (list, tuple)):
        raise InvalidGeometry(f"not a valid set of positions, got {raw!r}")
    return [_decode_point(p) for p in raw]


def _decode_polygon(raw: Any) -> list[list[Position]]:
    if not isinstance(raw, (list, tuple)):
        raise InvalidGeometry(f"not a valid polygon, got {raw!r}")
    return [_decode_multi_point(ring) for ring in raw]


def _decode_multi_polygon(raw: Any) -> list[list[list[Position]]]:
    if not isinstance(raw, (list, tuple)):
        raise InvalidGeometry(f"not a valid multipolygon, got {raw!r}")
    return [_decode_polygon(polygon) for polygon in raw]


_DECODERS = {
    GeometryType.POINT: _decode_point,
    GeometryType.MULTI_POINT: _decode_multi_point,
    GeometryType.POLYGON: _decode_polygon,
    GeometryType.MULTI_POLYGON: _decode_multi_polygon,
}


def geometry_type(kind: Any) -> GeometryType:
    """Coerce *kind* to a GeometryType or raise InvalidGeometry."""
    try:
        return GeometryType(kind)
    except ValueError:
        raise InvalidGeometry(f"unsupported geometry type {kind!r}") from None


def decode(kind: GeometryType | str, raw: Any) -> list:
    """Materialise the typed coordinates of *kind* from a raw nested payload.

    Leaf values are kept as given (an int stays an int) so that flattening the
    result reproduces *raw* exactly. Raises InvalidGeometry on a non-numeric
    leaf or a nesting depth that does not match *kind*.
    """
    return _DECODERS[geometry_type(kind)](raw)


def _clone(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return [_clone(v) for v in value]
    return value


class _GeometryBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ClassVar[GeometryType]

    @field_validator("coordinates", mode="before", check_fields=False)
    @classmethod
    def _decode_coordinates(cls, value: Any) -> Any:
        return decode(cls.kind, value)

    @model_serializer(mode="plain")
    def _serialize(self) -> dict[str, Any]:
        return encode(self)

    @property
    def typed(self) -> list:
        """Shape-specific projection of the coordinates."""
        return decode(self.kind, self.coordinates)


class Point(_GeometryBase):
    kind: ClassVar[GeometryType] = GeometryType.POINT

    type: Literal["Point"] = "Point"
    coordinates: Position


class MultiPoint(_GeometryBase):
    kind: ClassVar[GeometryType] = GeometryType.MULTI_POINT

    type: Literal["MultiPoint"] = "MultiPoint"
    coordinates: list[Position]


class Polygon(_GeometryBase):
    kind: ClassVar[GeometryType] = GeometryType.POLYGON

    type: Literal["Polygon"] = "Polygon"
    coordinates: list[list[Position]]


class MultiPolygon(_GeometryBase):
    kind: ClassVar[GeometryType] = GeometryType.MULTI_POLYGON

    type: Literal["MultiPolygon"] = "MultiPolygon"
    coordinates: list[list[list[Position]]]


Geometry = Annotated[
    Union[Point, MultiPoint, Polygon, MultiPolygon],
    Field(discriminator="type"),
]

_VARIANTS: dict[GeometryType, type[_GeometryBase]] = {
    GeometryType.POINT: Point,
    GeometryType.MULTI_POINT: MultiPoint,
    GeometryType.POLYGON: Polygon,
    GeometryType.MULTI_POLYGON: MultiPolygon,
}

_geometry_adapter = TypeAdapter(Geometry)


def encode(geometry: _GeometryBase) -> dict[str, Any]:
    """Wire representation: ``{type, <typed key>, coordinates}`` in that order.

    Only the typed key of the geometry's own kind is emitted.
    """
    kind = geometry.kind
    return {
        "type": kind.value,
        TYPED_KEYS[kind]: decode(kind, geometry.coordinates),
        "coordinates": _clone(geometry.coordinates),
    }


def to_geojson(geometry: _GeometryBase) -> dict[str, Any]:
    """Storage representation; typed projections are never persisted."""
    return {"type": geometry.kind.value, "coordinates": _clone(geometry.coordinates)}


def from_raw(kind: GeometryType | str, raw: Any) -> _GeometryBase:
    """Build the geometry variant for *kind* from a raw coordinate payload."""
    variant = _VARIANTS[geometry_type(kind)]
    try:
        return _geometry_adapter.validate_python(
            {"type": variant.kind.value, "coordinates": raw}
        )
    except ValidationError as exc:
        raise InvalidGeometry(f"invalid {variant.kind.value} coordinates: {exc}") from exc


def parse_geometry(payload: Any) -> _GeometryBase:
    """Parse a wire/GeoJSON mapping (or its JSON text) into a geometry.

    ``coordinates`` is authoritative; typed keys sent by clients are ignored.
    """
    if isinstance(payload, _GeometryBase):
        return payload
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise InvalidGeometry(f"geometry is not valid JSON: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise InvalidGeometry(f"geometry must be an object, got {type(payload).__name__}")
    if "type" not in payload:
        raise InvalidGeometry("type property not defined")
    if "coordinates" not in payload:
        raise InvalidGeometry("coordinates property not defined")
    return from_raw(payload["type"], payload["coordinates"])


def point(longitude: float, latitude: float) -> Point:
    """Point geometry in GeoJSON axis order (lon, lat)."""
    return Point(coordinates=[longitude, latitude])
