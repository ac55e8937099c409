"""initial geo tables

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from geoalchemy2 import Geometry
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS postgis')

    op.create_table(
        'regions',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('external_id', sa.String(length=100), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('name', postgresql.JSONB(), nullable=False, server_default='{}'),
        sa.Column('country_code', sa.String(length=10), nullable=True),
        sa.Column('iata_code', sa.String(length=10), nullable=True),
        sa.Column('center_latitude', sa.Float(), nullable=True),
        sa.Column('center_longitude', sa.Float(), nullable=True),
        sa.Column('ancestors', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('descendants', postgresql.JSONB(), nullable=False, server_default='{}'),
        sa.UniqueConstraint('type', 'external_id', name='uq_regions_type_external_id'),
    )
    op.create_index('ix_regions_external_id', 'regions', ['external_id'])
    op.create_index('ix_regions_type', 'regions', ['type'])
    op.create_index('ix_regions_country_code', 'regions', ['country_code'])
    op.create_index('ix_regions_iata_code', 'regions', ['iata_code'])
    # Ancestor containment filters
    op.create_index(
        'ix_regions_ancestors', 'regions', ['ancestors'], postgresql_using='gin'
    )

    op.create_table(
        'geo_regions',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('external_id', sa.String(length=100), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column(
            'bounding_polygon',
            Geometry('GEOMETRY', srid=4326, spatial_index=False),
            nullable=False,
        ),
        sa.UniqueConstraint('type', 'external_id', name='uq_geo_regions_type_external_id'),
    )
    op.create_index('ix_geo_regions_external_id', 'geo_regions', ['external_id'])
    op.create_index('ix_geo_regions_type', 'geo_regions', ['type'])
    op.create_index(
        'idx_geo_regions_bounding_polygon',
        'geo_regions',
        ['bounding_polygon'],
        postgresql_using='gist',
    )

    op.create_table(
        'airports',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('iata_code', sa.String(length=10), nullable=False, unique=True),
        sa.Column('name', postgresql.JSONB(), nullable=False, server_default='{}'),
        sa.Column('country_code', sa.String(length=10), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('region', postgresql.JSONB(), nullable=False, server_default='{}'),
    )
    op.create_index('ix_airports_country_code', 'airports', ['country_code'])


def downgrade() -> None:
    op.drop_index('ix_airports_country_code', table_name='airports')
    op.drop_table('airports')

    op.drop_index('idx_geo_regions_bounding_polygon', table_name='geo_regions')
    op.drop_index('ix_geo_regions_type', table_name='geo_regions')
    op.drop_index('ix_geo_regions_external_id', table_name='geo_regions')
    op.drop_table('geo_regions')

    op.drop_index('ix_regions_ancestors', table_name='regions')
    op.drop_index('ix_regions_iata_code', table_name='regions')
    op.drop_index('ix_regions_country_code', table_name='regions')
    op.drop_index('ix_regions_type', table_name='regions')
    op.drop_index('ix_regions_external_id', table_name='regions')
    op.drop_table('regions')
