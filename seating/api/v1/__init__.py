"""Versioned API router."""

from fastapi import APIRouter

from . import availability, health, occupancy, reservations, tables, venue

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(
    reservations.router, prefix="/reservations", tags=["reservations"]
)
router.include_router(
    availability.router, prefix="/availability", tags=["availability"]
)
router.include_router(tables.router, prefix="/tables", tags=["tables"])
router.include_router(occupancy.router, prefix="/occupancy", tags=["occupancy"])
router.include_router(venue.router, prefix="/venue", tags=["venue"])
