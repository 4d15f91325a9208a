"""Routes calcul ETA / ETA calculation routes."""

from fastapi import APIRouter, Depends, Query, Request

from bustrack.api.deps import get_eta_service
from bustrack.config import settings
from bustrack.rate_limit import limiter
from bustrack.schemas.eta import EtaCalculateRequest, EtaRouteRequest, LiveEtaRead, PointToPointRead, RouteEtaRead
from bustrack.services.eta_query import ETAQueryService

router = APIRouter()


@router.post("/calculate", response_model=PointToPointRead)
@limiter.limit(settings.RATE_LIMIT_ETA)
async def calculate_eta(
    request: Request,
    data: EtaCalculateRequest,
    service: ETAQueryService = Depends(get_eta_service),
):
    """ETA entre deux points / ETA between two points."""
    return service.point_to_point(
        data.from_latitude,
        data.from_longitude,
        data.to_latitude,
        data.to_longitude,
        data.average_speed,
    )


@router.post("/route", response_model=RouteEtaRead)
@limiter.limit(settings.RATE_LIMIT_ETA)
async def calculate_route_eta(
    request: Request,
    data: EtaRouteRequest,
    service: ETAQueryService = Depends(get_eta_service),
):
    """ETA sur plusieurs points de passage / ETA over several waypoints."""
    return service.route_waypoints(data.waypoints, data.average_speed)


@router.get("/live/{driver_id}", response_model=LiveEtaRead)
async def get_live_eta(
    driver_id: str,
    to_latitude: float,
    to_longitude: float,
    average_speed: float = Query(default=settings.DEFAULT_AVERAGE_SPEED_KMH, gt=0, le=300),
    vehicle_id: str | None = None,
    service: ETAQueryService = Depends(get_eta_service),
):
    """ETA depuis la position live / ETA from the live position."""
    return await service.live_to_destination(
        driver_id,
        to_latitude,
        to_longitude,
        average_speed,
        vehicle_id=vehicle_id,
    )
