"""Domain errors raised by the geometry codec, repositories and services."""


class GeoError(Exception):
    """Base class for geoapi errors."""


class InvalidGeometry(GeoError, ValueError):
    """Coordinate payload does not match the nesting or types of its kind."""


class EntityNotFound(GeoError):
    """A lookup by key or filter matched nothing."""


class MissingParameters(GeoError):
    """Required caller-supplied fields are absent."""


class BackendFault(GeoError):
    """The storage engine is unreachable, timed out or answered garbage."""
