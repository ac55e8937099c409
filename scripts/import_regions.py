"""Bulk-load a GeoJSON FeatureCollection into geo_regions.

Each feature needs ``properties.id`` (the external id) and
``properties.type`` (a region type). Existing geo regions with the same type
and external id get their geometry replaced.

Usage:
    python scripts/import_regions.py data/regions.geojson
"""
import os
import json
import asyncio
import sys

# Add parent directory to path to import geoapi modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from geoapi.config import get_settings
from geoapi.errors import EntityNotFound, GeoError
from geoapi.geometry import parse_geometry
from geoapi.schemas.region import GeoRegion, RegionType
from geoapi.services.repository import create_repository


def _feature_to_geo_region(feature: dict) -> GeoRegion:
    props = feature.get('properties') or {}
    return GeoRegion(
        external_id=str(props['id']),
        type=RegionType(props['type']),
        geometry=parse_geometry(feature['geometry']),
    )


async def import_regions(file_path):
    repo = create_repository(get_settings())

    print(f"Reading GeoJSON from {file_path}...")
    with open(file_path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    features = data.get('features', [])
    print(f"Found {len(features)} features.")

    created = updated = skipped = 0
    try:
        for index, feature in enumerate(features):
            try:
                geo_region = _feature_to_geo_region(feature)
            except (KeyError, ValueError, GeoError) as e:
                print(f"Skipping feature {index}: {e}")
                skipped += 1
                continue

            try:
                await repo.update_geo_region(geo_region)
                updated += 1
            except EntityNotFound:
                await repo.save_geo_region(geo_region)
                created += 1

            if (created + updated) % 100 == 0:
                print(f"Imported {created + updated} regions...")
    finally:
        await repo.close()

    print(f"Created {created}, updated {updated}, skipped {skipped} regions.")


if __name__ == "__main__":
    if len(sys.argv) > 1:
        file_path = sys.argv[1]
    else:
        possible_paths = [
            "/app/data/regions.geojson",
            "data/regions.geojson",
        ]
        file_path = None
        for path in possible_paths:
            if os.path.exists(path):
                file_path = path
                break

        if not file_path:
            print("No GeoJSON file found in default paths.")
            print(f"Searched: {possible_paths}")
            sys.exit(0)

    if not os.path.exists(file_path):
        print(f"File not found: {file_path}")
        sys.exit(1)

    asyncio.run(import_regions(file_path))
