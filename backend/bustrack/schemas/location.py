"""Schemas suivi GPS / GPS tracking schemas: fixes, live positions, ingest results."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from bustrack.services.errors import ErrorCode


# ─── Fix ───

class LocationFixCreate(BaseModel):
    """Position envoyee par l'appareil / Fix submitted by the device.

    Bornes lat/lon verifiees par le service (INVALID_FIX) / Lat/lon bounds checked by the service.
    """
    driver_id: str = Field(min_length=1, max_length=64)
    vehicle_id: str = Field(min_length=1, max_length=64)
    assignment_id: str | None = Field(default=None, max_length=36)
    latitude: float
    longitude: float
    accuracy: float = Field(default=0.0, ge=0)
    speed: float | None = Field(default=None, ge=0)
    timestamp: datetime | None = None  # horloge appareil / device clock

class LocationBatchCreate(BaseModel):
    """Batch de positions / Fix batch."""
    locations: list[LocationFixCreate] = Field(min_length=1, max_length=100)

class LocationFixRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    driver_id: str
    vehicle_id: str
    assignment_id: str | None = None
    latitude: float
    longitude: float
    accuracy: float
    reported_speed: float | None = None
    speed_kmh: float
    bearing_deg: int
    applied: bool
    captured_at: datetime
    received_at: datetime


# ─── Live position ───

class LatestPosition(BaseModel):
    """Position courante par (chauffeur, vehicule) / Current position per (driver, vehicle)."""
    driver_id: str
    vehicle_id: str
    assignment_id: str | None = None
    latitude: float
    longitude: float
    accuracy: float = 0.0
    speed_kmh: float = 0.0
    bearing_deg: int = 0
    status: str = "running"
    is_online: bool = True
    captured_at: datetime
    last_update: datetime

class NearbyDriver(LatestPosition):
    distance_km: float


# ─── Ingest result ───

class DerivedKinematics(BaseModel):
    speed_kmh: float = 0.0
    bearing_deg: int = 0

class IngestResult(BaseModel):
    """Resultat d'un envoi / Submission result (rejet = valeur, pas exception)."""
    accepted: bool
    rejection_code: ErrorCode | None = None
    reason: str | None = None
    time_until_start: str | None = None
    time_after_end: str | None = None
    derived: DerivedKinematics | None = None
    applied: bool = False  # position live mise a jour / live position updated

class BatchIngestResult(BaseModel):
    processed: int
    accepted: int
    rejected: int
    results: list[IngestResult]


# ─── Tracking status ───

class TrackingWindowRead(BaseModel):
    start_time: str
    end_time: str
    duration_label: str

class TrackingStatusRead(BaseModel):
    """Puis-je commencer le suivi ? / Can I start tracking yet?"""
    driver_id: str
    assignment_id: str | None = None
    vehicle_id: str | None = None
    can_track: bool
    rejection_code: ErrorCode | None = None
    reason: str
    time_until_start: str | None = None
    time_after_end: str | None = None
    window: TrackingWindowRead | None = None
