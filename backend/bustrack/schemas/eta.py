"""Schemas ETA / ETA schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class Waypoint(BaseModel):
    latitude: float
    longitude: float
    name: str | None = Field(default=None, max_length=100)

class EtaCalculateRequest(BaseModel):
    from_latitude: float
    from_longitude: float
    to_latitude: float
    to_longitude: float
    average_speed: float = Field(default=40.0, gt=0, le=300)

class EtaRouteRequest(BaseModel):
    waypoints: list[Waypoint]
    average_speed: float = Field(default=40.0, gt=0, le=300)

class EtaRead(BaseModel):
    hours: float | None = None  # None si indetermine / None when indeterminate
    minutes: float | None = None
    seconds: float | None = None
    formatted: str
    speed_kmh: float
    traffic_factor: float
    traffic_condition: str

class DistanceRead(BaseModel):
    meters: int
    kilometers: float

class PointToPointRead(BaseModel):
    distance: DistanceRead
    eta: EtaRead
    calculated_at: datetime

class RouteSegmentRead(BaseModel):
    from_name: str
    to_name: str
    distance: DistanceRead
    eta: EtaRead

class RouteEtaRead(BaseModel):
    segments: list[RouteSegmentRead]
    total_distance: DistanceRead
    total_eta: EtaRead
    calculated_at: datetime

class DestinationEtaRead(BaseModel):
    destination: str
    latitude: float
    longitude: float
    distance: DistanceRead
    eta: EtaRead

class LiveEtaRead(BaseModel):
    driver_id: str
    vehicle_id: str
    current_latitude: float
    current_longitude: float
    last_update: datetime
    destination_latitude: float
    destination_longitude: float
    distance: DistanceRead
    eta: EtaRead
    calculated_at: datetime
