"""Schemas alertes SOS / SOS alert schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from bustrack.models.sos_alert import SosStatus


class SosAlertCreate(BaseModel):
    """Bornes et longueur verifiees par le service / Bounds and length checked by the service."""
    driver_id: str = Field(min_length=1, max_length=64)
    vehicle_id: str = Field(min_length=1, max_length=64)
    latitude: float
    longitude: float
    message: str | None = None

class SosAlertRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    driver_id: str
    vehicle_id: str
    latitude: float
    longitude: float
    message: str
    status: SosStatus
    created_at: datetime
    resolved_at: datetime | None = None

class SosStatusRead(BaseModel):
    active_alerts: int
    last_alert: datetime | None = None
    system_status: str = "operational"
