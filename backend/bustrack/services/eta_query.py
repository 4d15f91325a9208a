"""
Service de requetes ETA / ETA query service.
Distance et temps estime entre points, sur un itineraire, ou depuis la position live.
Distance and estimated time between points, along waypoints, or from the live position.
"""

from collections.abc import Callable
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from bustrack.config import settings
from bustrack.schemas.eta import (
    DestinationEtaRead,
    DistanceRead,
    EtaRead,
    LiveEtaRead,
    PointToPointRead,
    RouteEtaRead,
    RouteSegmentRead,
    Waypoint,
)
from bustrack.services.errors import DriverLocationUnavailable, InvalidQuery
from bustrack.services.location_ingest import LocationIngestService
from bustrack.utils.geo import eta_with_traffic, haversine_m, is_valid_coordinate, traffic_condition, traffic_factor


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _distance(meters: float) -> DistanceRead:
    return DistanceRead(meters=round(meters), kilometers=round(meters / 1000, 2))


class ETAQueryService:
    """Facade ETA / ETA facade over GeoMath and live positions."""

    def __init__(
        self,
        locations: LocationIngestService | None = None,
        clock: Callable[[], datetime] = _utcnow,
        timezone_name: str | None = None,
    ):
        self.locations = locations
        self.clock = clock
        self.tz = ZoneInfo(timezone_name or settings.LOCAL_TIMEZONE)

    def _local_hour(self, at: datetime) -> int:
        if at.tzinfo is not None:
            at = at.astimezone(self.tz)
        return at.hour

    def _eta(self, distance_m: float, base_speed_kmh: float, at: datetime) -> EtaRead:
        """ETA avec trafic a l'heure locale de `at` / Traffic ETA at the local hour of `at`."""
        hour = self._local_hour(at)
        factor = traffic_factor(hour)
        eta = eta_with_traffic(distance_m, base_speed_kmh, hour)
        return EtaRead(
            hours=None if eta.indeterminate else eta.hours,
            minutes=None if eta.indeterminate else eta.minutes,
            seconds=None if eta.indeterminate else eta.seconds,
            formatted=eta.formatted,
            speed_kmh=eta.speed_kmh,
            traffic_factor=factor,
            traffic_condition=traffic_condition(factor),
        )

    @staticmethod
    def _check_point(lat: float, lon: float):
        if not is_valid_coordinate(lat, lon):
            raise InvalidQuery(f"Invalid coordinates: {lat}, {lon}")

    def point_to_point(
        self,
        lat1: float,
        lon1: float,
        lat2: float,
        lon2: float,
        base_speed_kmh: float = settings.DEFAULT_AVERAGE_SPEED_KMH,
        at: datetime | None = None,
    ) -> PointToPointRead:
        """Distance et ETA entre deux points / Distance and ETA between two points."""
        self._check_point(lat1, lon1)
        self._check_point(lat2, lon2)
        at = at or self.clock()
        distance_m = haversine_m(lat1, lon1, lat2, lon2)
        return PointToPointRead(
            distance=_distance(distance_m),
            eta=self._eta(distance_m, base_speed_kmh, at),
            calculated_at=at,
        )

    def route_waypoints(
        self,
        points: list[Waypoint],
        base_speed_kmh: float = settings.DEFAULT_AVERAGE_SPEED_KMH,
        at: datetime | None = None,
    ) -> RouteEtaRead:
        """ETA par segment et total / Per-segment and total ETA.

        Meme instant pour tous les segments ; total calcule depuis la distance totale.
        Same instant for every segment; total computed from the total distance.
        """
        if len(points) < 2:
            raise InvalidQuery("At least 2 waypoints are required")
        for point in points:
            self._check_point(point.latitude, point.longitude)

        at = at or self.clock()
        segments = []
        total_m = 0.0
        for i, (start, end) in enumerate(zip(points, points[1:])):
            segment_m = haversine_m(start.latitude, start.longitude, end.latitude, end.longitude)
            segments.append(RouteSegmentRead(
                from_name=start.name or f"Point {i + 1}",
                to_name=end.name or f"Point {i + 2}",
                distance=_distance(segment_m),
                eta=self._eta(segment_m, base_speed_kmh, at),
            ))
            total_m += segment_m

        return RouteEtaRead(
            segments=segments,
            total_distance=_distance(total_m),
            total_eta=self._eta(total_m, base_speed_kmh, at),
            calculated_at=at,
        )

    def multiple_destinations(
        self,
        origin: Waypoint,
        destinations: list[Waypoint],
        base_speed_kmh: float = settings.DEFAULT_AVERAGE_SPEED_KMH,
        at: datetime | None = None,
    ) -> list[DestinationEtaRead]:
        """ETA depuis un point vers plusieurs destinations / ETA from one origin to several destinations."""
        self._check_point(origin.latitude, origin.longitude)
        at = at or self.clock()
        out = []
        for dest in destinations:
            self._check_point(dest.latitude, dest.longitude)
            distance_m = haversine_m(origin.latitude, origin.longitude, dest.latitude, dest.longitude)
            out.append(DestinationEtaRead(
                destination=dest.name or "Unknown",
                latitude=dest.latitude,
                longitude=dest.longitude,
                distance=_distance(distance_m),
                eta=self._eta(distance_m, base_speed_kmh, at),
            ))
        return out

    async def live_to_destination(
        self,
        driver_id: str,
        dest_lat: float,
        dest_lon: float,
        base_speed_kmh: float = settings.DEFAULT_AVERAGE_SPEED_KMH,
        vehicle_id: str | None = None,
        at: datetime | None = None,
    ) -> LiveEtaRead:
        """ETA depuis la position live du chauffeur / ETA from the driver's live position."""
        self._check_point(dest_lat, dest_lon)
        if self.locations is None:
            raise DriverLocationUnavailable("Live positions are not available")

        if vehicle_id is not None:
            current = await self.locations.latest_position(driver_id, vehicle_id)
        else:
            positions = await self.locations.latest_positions_for_driver(driver_id)
            current = positions[0] if positions else None
        if current is None:
            raise DriverLocationUnavailable("Driver location not found")

        at = at or self.clock()
        distance_m = haversine_m(current.latitude, current.longitude, dest_lat, dest_lon)
        return LiveEtaRead(
            driver_id=driver_id,
            vehicle_id=current.vehicle_id,
            current_latitude=current.latitude,
            current_longitude=current.longitude,
            last_update=current.last_update,
            destination_latitude=dest_lat,
            destination_longitude=dest_lon,
            distance=_distance(distance_m),
            eta=self._eta(distance_m, base_speed_kmh, at),
            calculated_at=at,
        )
