"""PostGIS repository backend.

Every operation checks out its own session and releases it on exit,
including error paths. Driver errors surface as BackendFault.
"""
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Optional, Sequence

from pydantic import ValidationError
from sqlalchemy import func, insert, or_, select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from geoapi.errors import (
    BackendFault,
    EntityNotFound,
    GeoError,
    InvalidGeometry,
    MissingParameters,
)
from geoapi.geometry import parse_geometry
from geoapi.models import region as orm
from geoapi.schemas.airport import Airport, AirportQuery
from geoapi.schemas.region import (
    GeoRegion,
    GeoRegionRef,
    Region,
    RegionType,
    descendants_from_storage,
    descendants_to_storage,
)
from geoapi.services.repository_base import GeoRepository, RegionQuery
from geoapi.utils.geo import (
    build_intersects,
    build_nearby,
    geojson_column,
    geometry_expression,
)

logger = logging.getLogger(__name__)


def _region_values(region: Region) -> dict:
    return {
        "external_id": region.external_id,
        "type": region.type.value,
        "name": dict(region.name),
        "country_code": region.country_code,
        "iata_code": region.iata_code,
        "center_latitude": region.center.latitude if region.center else None,
        "center_longitude": region.center.longitude if region.center else None,
        "ancestors": [
            {"external_id": a.external_id, "type": a.type.value} for a in region.ancestors
        ],
        "descendants": descendants_to_storage(region.descendants),
    }


def _to_region(row: orm.Region) -> Region:
    center = None
    if row.center_latitude is not None and row.center_longitude is not None:
        center = {"latitude": row.center_latitude, "longitude": row.center_longitude}
    return Region(
        id=row.id,
        external_id=row.external_id,
        type=row.type,
        name=row.name or {},
        country_code=row.country_code,
        iata_code=row.iata_code,
        center=center,
        ancestors=row.ancestors or [],
        descendants=descendants_from_storage(row.descendants),
    )


def _airport_values(airport: Airport) -> dict:
    return {
        "iata_code": airport.iata_code,
        "name": dict(airport.name),
        "country_code": airport.country_code,
        "latitude": airport.coordinates.latitude if airport.coordinates else None,
        "longitude": airport.coordinates.longitude if airport.coordinates else None,
        "region": airport.region.model_dump() if airport.region else {},
    }


def _to_airport(row: orm.Airport) -> Airport:
    coordinates = None
    if row.latitude is not None and row.longitude is not None:
        coordinates = {"latitude": row.latitude, "longitude": row.longitude}
    return Airport(
        id=row.id,
        iata_code=row.iata_code,
        name=row.name or {},
        country_code=row.country_code,
        coordinates=coordinates,
        region=row.region or None,
    )


def _to_geo_region(row) -> GeoRegion:
    return GeoRegion(
        id=row.id,
        external_id=row.external_id,
        type=row.type,
        geometry=parse_geometry(row.geojson),
    )


class PostgisGeoRepository(GeoRepository):
    """Repository backed by PostgreSQL/PostGIS through async SQLAlchemy."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        engine: Optional[AsyncEngine] = None,
        cap_segments: int = 64,
    ):
        self._session_factory = session_factory
        self._engine = engine
        self._cap_segments = cap_segments

    @asynccontextmanager
    async def _session(self):
        """Scoped session; storage and decoding errors become BackendFault."""
        try:
            async with self._session_factory() as session:
                yield session
        except (ValidationError, InvalidGeometry) as exc:
            logger.error(f"Malformed record from storage: {exc}")
            raise BackendFault(f"malformed record from storage: {exc}") from exc
        except GeoError:
            raise
        except (SQLAlchemyError, OSError) as exc:
            logger.error(f"Storage operation failed: {exc}")
            raise BackendFault(f"storage operation failed: {exc}") from exc

    # --- regions ---

    async def get_region(self, region_type: RegionType, external_id: str) -> Region:
        async with self._session() as session:
            result = await session.execute(
                select(orm.Region)
                .where(orm.Region.type == region_type.value)
                .where(orm.Region.external_id == external_id)
            )
            row = result.scalar_one_or_none()
            if row is None:
                raise EntityNotFound(
                    f"region with type {region_type.value} and id {external_id} not found"
                )
            return _to_region(row)

    async def find_regions(self, query: RegionQuery) -> list[Region]:
        conditions = [orm.Region.type == query.region_type.value]

        if query.external_ids:
            conditions.append(orm.Region.external_id.in_(query.external_ids))

        for bucket in query.descendants:
            conditions.append(orm.Region.descendants.has_key(bucket))

        if query.country_code:
            conditions.append(orm.Region.country_code == query.country_code)

        if query.iata_codes:
            conditions.append(orm.Region.iata_code.in_(query.iata_codes))

        if (
            query.ancestors
            and query.ancestors_region_type
            and query.ancestors_region_type != query.region_type
        ):
            conditions.append(or_(*[
                orm.Region.ancestors.contains(
                    [{"external_id": a, "type": query.ancestors_region_type.value}]
                )
                for a in query.ancestors
            ]))

        if query.basic:
            stmt = select(orm.Region.external_id, orm.Region.name)
        else:
            stmt = select(orm.Region)
        stmt = stmt.where(*conditions).order_by(orm.Region.external_id)

        if query.page > 0 and query.limit > 0:
            stmt = stmt.offset(query.offset).limit(query.limit)

        async with self._session() as session:
            result = await session.execute(stmt)
            if query.basic:
                return [
                    Region(external_id=r.external_id, type=query.region_type, name=r.name or {})
                    for r in result.all()
                ]
            return [_to_region(row) for row in result.scalars().all()]

    async def get_country_by_code(self, country_code: str) -> Region:
        if not country_code:
            raise MissingParameters("country code is required")

        async with self._session() as session:
            result = await session.execute(
                select(orm.Region)
                .where(orm.Region.type == RegionType.COUNTRY.value)
                .where(orm.Region.country_code == country_code)
                .limit(1)
            )
            row = result.scalars().first()
            if row is None:
                raise EntityNotFound(f"country {country_code} not found")
            return _to_region(row)

    async def count_regions(self, region_type: RegionType) -> int:
        async with self._session() as session:
            result = await session.execute(
                select(func.count(orm.Region.id)).where(orm.Region.type == region_type.value)
            )
            return result.scalar_one()

    async def save_region(self, region: Region) -> Region:
        region_id = uuid.uuid4()
        async with self._session() as session:
            await session.execute(
                insert(orm.Region).values(id=region_id, **_region_values(region))
            )
            await session.commit()
        return region.model_copy(update={"id": region_id})

    async def update_region(self, region: Region) -> Region:
        async with self._session() as session:
            result = await session.execute(
                update(orm.Region)
                .where(orm.Region.type == region.type.value)
                .where(orm.Region.external_id == region.external_id)
                .values(**_region_values(region))
                .returning(orm.Region.id)
            )
            region_id = result.scalar_one_or_none()
            if region_id is None:
                await session.rollback()
                raise EntityNotFound(
                    f"region with type {region.type.value} and id {region.external_id} not found"
                )
            await session.commit()
        return region.model_copy(update={"id": region_id})

    # --- airports ---

    async def get_airport_by_iata(self, iata_code: str) -> Airport:
        async with self._session() as session:
            result = await session.execute(
                select(orm.Airport).where(orm.Airport.iata_code == iata_code)
            )
            row = result.scalar_one_or_none()
            if row is None:
                raise EntityNotFound(f"airport {iata_code} not found")
            return _to_airport(row)

    async def find_airports(self, query: AirportQuery) -> list[Airport]:
        stmt = select(orm.Airport)
        if query.iata_codes:
            stmt = stmt.where(orm.Airport.iata_code.in_(query.iata_codes))
        if query.country_code:
            stmt = stmt.where(orm.Airport.country_code == query.country_code)

        async with self._session() as session:
            result = await session.execute(stmt.order_by(orm.Airport.iata_code))
            return [_to_airport(row) for row in result.scalars().all()]

    async def save_airport(self, airport: Airport) -> Airport:
        airport_id = uuid.uuid4()
        async with self._session() as session:
            await session.execute(
                insert(orm.Airport).values(id=airport_id, **_airport_values(airport))
            )
            await session.commit()
        return airport.model_copy(update={"id": airport_id})

    async def update_airport(self, airport: Airport) -> Airport:
        async with self._session() as session:
            result = await session.execute(
                update(orm.Airport)
                .where(orm.Airport.iata_code == airport.iata_code)
                .values(**_airport_values(airport))
                .returning(orm.Airport.id)
            )
            airport_id = result.scalar_one_or_none()
            if airport_id is None:
                await session.rollback()
                raise EntityNotFound(f"airport {airport.iata_code} not found")
            await session.commit()
        return airport.model_copy(update={"id": airport_id})

    # --- geo regions ---

    async def get_geo_region(self, external_id: str) -> GeoRegion:
        async with self._session() as session:
            result = await session.execute(
                select(
                    orm.GeoRegion.id,
                    orm.GeoRegion.external_id,
                    orm.GeoRegion.type,
                    geojson_column(),
                )
                .where(orm.GeoRegion.external_id == external_id)
                .order_by(orm.GeoRegion.type)
                .limit(1)
            )
            row = result.first()
            if row is None:
                raise EntityNotFound(f"geo region {external_id} not found")
            return _to_geo_region(row)

    async def save_geo_region(self, geo_region: GeoRegion) -> GeoRegion:
        geo_region_id = uuid.uuid4()
        async with self._session() as session:
            await session.execute(
                insert(orm.GeoRegion).values(
                    id=geo_region_id,
                    external_id=geo_region.external_id,
                    type=geo_region.type.value,
                    bounding_polygon=geometry_expression(geo_region.geometry),
                )
            )
            await session.commit()
        return geo_region.model_copy(update={"id": geo_region_id})

    async def update_geo_region(self, geo_region: GeoRegion) -> GeoRegion:
        async with self._session() as session:
            result = await session.execute(
                update(orm.GeoRegion)
                .where(orm.GeoRegion.type == geo_region.type.value)
                .where(orm.GeoRegion.external_id == geo_region.external_id)
                .values(bounding_polygon=geometry_expression(geo_region.geometry))
                .returning(orm.GeoRegion.id)
            )
            geo_region_id = result.scalar_one_or_none()
            if geo_region_id is None:
                await session.rollback()
                raise EntityNotFound(f"geo region {geo_region.external_id} not found")
            await session.commit()
        return geo_region.model_copy(update={"id": geo_region_id})

    async def intersecting_regions(
        self,
        geometry,
        region_types: Optional[Sequence[RegionType]] = None,
    ) -> list[GeoRegionRef]:
        async with self._session() as session:
            result = await session.execute(build_intersects(geometry, region_types))
            return [
                GeoRegionRef(external_id=r.external_id, type=r.type) for r in result.all()
            ]

    async def nearby_regions(
        self,
        latitude: float,
        longitude: float,
        radius_km: float,
        region_types: Optional[Sequence[RegionType]] = None,
    ) -> list[GeoRegion]:
        stmt = build_nearby(
            latitude, longitude, radius_km, region_types, segments=self._cap_segments
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            return [_to_geo_region(r) for r in result.all()]

    # --- lifecycle ---

    async def ping(self) -> bool:
        try:
            async with self._session() as session:
                await session.execute(text("SELECT 1"))
        except BackendFault:
            return False
        return True

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
