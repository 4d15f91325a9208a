"""Routes alertes SOS / SOS alert routes."""

from fastapi import APIRouter, Depends, Query, Request

from bustrack.api.deps import get_sos_service
from bustrack.api.ws_tracking import manager
from bustrack.config import settings
from bustrack.rate_limit import limiter
from bustrack.schemas.sos import SosAlertCreate, SosAlertRead, SosStatusRead
from bustrack.services.sos_alerts import SosAlertService

router = APIRouter()


@router.post("/alert", response_model=SosAlertRead, status_code=201)
@limiter.limit(settings.RATE_LIMIT_SOS)
async def create_sos_alert(
    request: Request,
    data: SosAlertCreate,
    service: SosAlertService = Depends(get_sos_service),
):
    """Declencher une alerte SOS / Raise an SOS alert."""
    alert = await service.raise_alert(
        data.driver_id,
        data.vehicle_id,
        data.latitude,
        data.longitude,
        data.message,
    )
    payload = SosAlertRead.model_validate(alert)
    await manager.broadcast({"type": "sos_alert", **payload.model_dump(mode="json")})
    return payload


@router.get("/alerts/{driver_id}", response_model=list[SosAlertRead])
async def get_driver_active_alerts(
    driver_id: str,
    service: SosAlertService = Depends(get_sos_service),
):
    """Alertes actives du chauffeur / Driver's active alerts."""
    return await service.list_active_for_driver(driver_id)


@router.put("/resolve/{alert_id}", response_model=SosAlertRead)
async def resolve_sos_alert(
    alert_id: str,
    service: SosAlertService = Depends(get_sos_service),
):
    """Resoudre une alerte / Resolve an alert."""
    alert = await service.resolve(alert_id)
    payload = SosAlertRead.model_validate(alert)
    await manager.broadcast({"type": "sos_resolved", "id": payload.id, "driver_id": payload.driver_id})
    return payload


@router.get("/all", response_model=list[SosAlertRead])
async def get_all_alerts(
    status: str = Query(default="active", pattern="^(active|all)$"),
    limit: int = Query(default=50, ge=1, le=500),
    service: SosAlertService = Depends(get_sos_service),
):
    """Alertes actives (salle de controle) ou historique global / Active alerts (control room) or global history."""
    if status == "active":
        return await service.list_all_active()
    return await service.history(None, limit)


@router.get("/history/{driver_id}", response_model=list[SosAlertRead])
async def get_alert_history(
    driver_id: str,
    limit: int = Query(default=20, ge=1, le=500),
    service: SosAlertService = Depends(get_sos_service),
):
    """Historique SOS du chauffeur / Driver SOS history."""
    return await service.history(driver_id, limit)


@router.get("/status", response_model=SosStatusRead)
async def get_sos_status(service: SosAlertService = Depends(get_sos_service)):
    """Statistiques SOS / SOS statistics."""
    return await service.status()
