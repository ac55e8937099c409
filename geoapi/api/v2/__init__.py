"""API v2 router aggregation."""
from fastapi import APIRouter

from geoapi.api.v2.accommodations import router as accommodations_router
from geoapi.api.v2.airports import router as airports_router
from geoapi.api.v2.collections import router as collections_router
from geoapi.api.v2.entities import router as entities_router
from geoapi.api.v2.polygons import router as polygons_router
from geoapi.api.v2.regions import router as regions_router

router = APIRouter()

router.include_router(regions_router)
router.include_router(collections_router)
router.include_router(airports_router)
router.include_router(polygons_router)
router.include_router(accommodations_router)
router.include_router(entities_router)
