"""Endpoints positions chauffeur / Driver location endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from bustrack.api.deps import get_location_service
from bustrack.api.ws_tracking import manager
from bustrack.config import settings
from bustrack.rate_limit import limiter
from bustrack.schemas.location import (
    BatchIngestResult,
    IngestResult,
    LatestPosition,
    LocationBatchCreate,
    LocationFixCreate,
    LocationFixRead,
    NearbyDriver,
)
from bustrack.services.location_ingest import LocationIngestService

router = APIRouter()


async def _broadcast_position(service: LocationIngestService, fix: LocationFixCreate):
    position = await service.latest_position(fix.driver_id, fix.vehicle_id)
    if position is not None:
        await manager.broadcast({"type": "gps_update", **position.model_dump(mode="json")})


@router.post("/update", response_model=IngestResult)
@limiter.limit(settings.RATE_LIMIT_GPS)
async def update_location(
    request: Request,
    data: LocationFixCreate,
    service: LocationIngestService = Depends(get_location_service),
):
    """Envoyer une position / Submit a position.

    Les rejets (fenetre fermee, pas d'affectation...) sont des reponses 200 avec
    accepted=false et un rejection_code stable.
    Rejections are 200 responses with accepted=false and a stable rejection_code.
    """
    result = await service.submit(data)
    if result.accepted and result.applied:
        await _broadcast_position(service, data)
    return result


@router.post("/batch", response_model=BatchIngestResult)
@limiter.limit(settings.RATE_LIMIT_GPS)
async def update_location_batch(
    request: Request,
    data: LocationBatchCreate,
    service: LocationIngestService = Depends(get_location_service),
):
    """Batch de positions, traitees dans l'ordre / Position batch, processed in order."""
    batch = await service.submit_batch(data.locations)
    # Derniere position par paire / Last position per pair
    pairs = {(fix.driver_id, fix.vehicle_id): fix for fix, outcome in zip(data.locations, batch.results) if outcome.applied}
    for fix in pairs.values():
        await _broadcast_position(service, fix)
    return batch


@router.get("/live/{driver_id}", response_model=LatestPosition)
async def get_live_location(
    driver_id: str,
    vehicle_id: str | None = None,
    service: LocationIngestService = Depends(get_location_service),
):
    """Position live du chauffeur / Driver live position."""
    if vehicle_id is not None:
        position = await service.latest_position(driver_id, vehicle_id)
    else:
        positions = await service.latest_positions_for_driver(driver_id)
        position = positions[0] if positions else None
    if position is None:
        raise HTTPException(status_code=404, detail="No live location found for driver")
    return position


@router.get("/history/{driver_id}", response_model=list[LocationFixRead])
async def get_location_history(
    driver_id: str,
    limit: int = Query(default=50, ge=1, le=500),
    service: LocationIngestService = Depends(get_location_service),
):
    """Journal des positions / Position log (newest first)."""
    return await service.history(driver_id, limit)


@router.get("/nearby", response_model=list[NearbyDriver])
async def get_nearby_drivers(
    latitude: float,
    longitude: float,
    radius: float = Query(default=5.0, gt=0, le=500),
    service: LocationIngestService = Depends(get_location_service),
):
    """Chauffeurs live dans un rayon (km) / Live drivers within a radius (km)."""
    return await service.nearby(latitude, longitude, radius)
