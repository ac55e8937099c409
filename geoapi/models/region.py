"""Region, geo region and airport models."""
import uuid
from sqlalchemy import Float, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID, JSONB
from geoalchemy2 import Geometry
from sqlalchemy.orm import Mapped, mapped_column

from geoapi.database import Base


class Region(Base):
    """Geo-administrative unit (country, city, neighborhood, ...).

    Ancestors and descendants are denormalized lists of external ids, not
    foreign keys.
    """

    __tablename__ = "regions"
    __table_args__ = (
        UniqueConstraint("type", "external_id", name="uq_regions_type_external_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    external_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    name: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)  # {"en": "Lima", "es": "Lima"}
    country_code: Mapped[str | None] = mapped_column(String(10), nullable=True, index=True)
    iata_code: Mapped[str | None] = mapped_column(String(10), nullable=True, index=True)
    center_latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    center_longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    # [{"external_id": "PE", "type": "country"}, ...]
    ancestors: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    # {"accommodation": ["123", ...], "neighborhood": [...]}
    descendants: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)


class GeoRegion(Base):
    """Bounding geometry of a region, correlated with Region by external_id."""

    __tablename__ = "geo_regions"
    __table_args__ = (
        UniqueConstraint("type", "external_id", name="uq_geo_regions_type_external_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    external_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    # Spatial data (PostGIS) - any of Point/MultiPoint/Polygon/MultiPolygon
    bounding_polygon = mapped_column(
        Geometry("GEOMETRY", srid=4326, spatial_index=True), nullable=False
    )


class Airport(Base):
    """Airport keyed by IATA code."""

    __tablename__ = "airports"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    iata_code: Mapped[str] = mapped_column(String(10), nullable=False, unique=True)
    name: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    country_code: Mapped[str | None] = mapped_column(String(10), nullable=True, index=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    # {"id": "...", "type": "city", "name": {...}}
    region: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
