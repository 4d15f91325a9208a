"""
Dépendances des routes / Route dependencies.
Injectées dans les routes via Depends().
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from bustrack.database import get_db
from bustrack.realtime import RealtimeStore
from bustrack.services.eta_query import ETAQueryService
from bustrack.services.location_ingest import LocationIngestService
from bustrack.services.sos_alerts import SosAlertService
from bustrack.services.tracking_window import TrackingWindowGate


def get_realtime(request: Request) -> RealtimeStore:
    """Stockage temps reel ouvert par le lifespan / Real-time store opened by the lifespan."""
    return request.app.state.realtime


def get_gate() -> TrackingWindowGate:
    return TrackingWindowGate()


def get_location_service(
    db: AsyncSession = Depends(get_db),
    realtime: RealtimeStore = Depends(get_realtime),
    gate: TrackingWindowGate = Depends(get_gate),
) -> LocationIngestService:
    return LocationIngestService(db, realtime, gate=gate)


def get_eta_service(
    locations: LocationIngestService = Depends(get_location_service),
) -> ETAQueryService:
    return ETAQueryService(locations)


def get_sos_service(
    db: AsyncSession = Depends(get_db),
    realtime: RealtimeStore = Depends(get_realtime),
) -> SosAlertService:
    return SosAlertService(db, realtime)
