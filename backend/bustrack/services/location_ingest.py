"""
Service d'ingestion GPS / GPS ingest service.

Verifie l'affectation et la fenetre de suivi, derive vitesse et cap depuis la
position live precedente, journalise le fix puis met a jour la position live.
Checks assignment and tracking window, derives speed and bearing from the
previous live position, logs the fix then upserts the live position.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bustrack.database import storage_guard
from bustrack.models.assignment import Assignment, AssignmentStatus
from bustrack.models.location_fix import LocationFix
from bustrack.realtime import LIVE_LOCATIONS, RealtimeStore
from bustrack.schemas.location import (
    BatchIngestResult,
    DerivedKinematics,
    IngestResult,
    LatestPosition,
    LocationFixCreate,
    NearbyDriver,
)
from bustrack.services.errors import ErrorCode, InvalidQuery
from bustrack.services.tracking_window import TrackingWindowGate
from bustrack.utils.geo import bearing_deg, bounding_box, haversine, haversine_m, is_valid_coordinate

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    """Datetime naive = UTC / Naive datetime is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def live_key(driver_id: str, vehicle_id: str) -> str:
    return f"{driver_id}:{vehicle_id}"


def _reject(code: ErrorCode, reason: str, **extra) -> IngestResult:
    return IngestResult(accepted=False, rejection_code=code, reason=reason, **extra)


class LocationIngestService:
    """Ingestion des positions chauffeur / Driver position ingestion."""

    def __init__(
        self,
        db: AsyncSession,
        realtime: RealtimeStore,
        gate: TrackingWindowGate | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.db = db
        self.realtime = realtime
        self.gate = gate or TrackingWindowGate()
        self.clock = clock

    @staticmethod
    def validate(fix: LocationFixCreate) -> str | None:
        """Message d'erreur ou None / Error message or None."""
        if not fix.driver_id.strip() or not fix.vehicle_id.strip():
            return "Driver ID and vehicle ID are required"
        if not is_valid_coordinate(fix.latitude, fix.longitude):
            return "Invalid latitude or longitude coordinates"
        return None

    async def active_assignments(self, driver_id: str) -> list[Assignment]:
        """Affectations actives du chauffeur (au plus 2) / Driver's active assignments (at most 2)."""
        with storage_guard():
            result = await self.db.execute(
                select(Assignment)
                .where(
                    Assignment.driver_id == driver_id,
                    Assignment.status == AssignmentStatus.ACTIVE,
                )
                .limit(2)
            )
        return list(result.scalars().all())

    async def submit(self, fix: LocationFixCreate) -> IngestResult:
        """Envoyer un fix / Submit one fix."""
        problem = self.validate(fix)
        if problem:
            logger.info("Rejected fix from driver %s: %s", fix.driver_id, problem)
            return _reject(ErrorCode.INVALID_FIX, problem)

        now = self.clock()
        captured_at = _as_utc(fix.timestamp or now)

        # 1. Affectation active unique / Single active assignment
        assignments = await self.active_assignments(fix.driver_id)
        if not assignments:
            logger.info("No active assignment found for driver %s", fix.driver_id)
            return _reject(ErrorCode.NO_ACTIVE_ASSIGNMENT, "No active assignment found for driver")
        if len(assignments) > 1:
            logger.warning("Driver %s has several active assignments", fix.driver_id)
            return _reject(
                ErrorCode.MULTIPLE_ACTIVE_ASSIGNMENTS,
                "Several active assignments found for driver, contact dispatch",
            )
        assignment = assignments[0]
        if assignment.vehicle_id != fix.vehicle_id:
            return _reject(
                ErrorCode.ASSIGNMENT_VEHICLE_MISMATCH,
                f"Driver is assigned to vehicle {assignment.vehicle_id}, not {fix.vehicle_id}",
            )
        if fix.assignment_id is not None and fix.assignment_id != assignment.id:
            # Fix d'une affectation perimee / Fix tagged with a stale assignment
            return _reject(
                ErrorCode.ASSIGNMENT_MISMATCH,
                f"Fix belongs to assignment {fix.assignment_id}, active assignment is {assignment.id}",
            )

        # 2. Fenetre de suivi / Tracking window
        decision = self.gate.is_allowed(assignment, now)
        if not decision.allowed:
            return _reject(
                ErrorCode.TRACKING_WINDOW_CLOSED,
                decision.reason,
                time_until_start=decision.time_until_start,
                time_after_end=decision.time_after_end,
            )

        # 3. Cinematique vs position live / Kinematics vs live position
        key = live_key(fix.driver_id, fix.vehicle_id)
        previous = await self.realtime.get(LIVE_LOCATIONS, key)
        speed_kmh = 0.0
        bearing = 0
        applied = True
        if previous is not None:
            prev = LatestPosition.model_validate(previous)
            prev_ts = _as_utc(prev.captured_at)
            if captured_at > prev_ts:
                distance = haversine_m(prev.latitude, prev.longitude, fix.latitude, fix.longitude)
                dt_seconds = (captured_at - prev_ts).total_seconds()
                speed_kmh = round(distance / dt_seconds * 3.6, 2) if dt_seconds > 0 else 0.0
                bearing = round(bearing_deg(prev.latitude, prev.longitude, fix.latitude, fix.longitude))
            else:
                # Fix en retard : journal seulement / Late fix: log only
                applied = False
                logger.info(
                    "Out-of-order fix for %s (captured %s <= %s), live position kept",
                    key, captured_at.isoformat(), prev_ts.isoformat(),
                )

        # 4. Journal durable / Durable log
        self.db.add(LocationFix(
            driver_id=fix.driver_id,
            vehicle_id=fix.vehicle_id,
            assignment_id=assignment.id,
            latitude=fix.latitude,
            longitude=fix.longitude,
            accuracy=fix.accuracy,
            reported_speed=fix.speed,
            speed_kmh=speed_kmh,
            bearing_deg=bearing,
            applied=applied,
            captured_at=captured_at,
            received_at=now,
        ))
        # Commit avant la projection live / Commit before the live projection
        with storage_guard():
            await self.db.commit()

        # 5. Projection live / Live projection
        if applied:
            position = LatestPosition(
                driver_id=fix.driver_id,
                vehicle_id=fix.vehicle_id,
                assignment_id=assignment.id,
                latitude=fix.latitude,
                longitude=fix.longitude,
                accuracy=fix.accuracy,
                speed_kmh=speed_kmh,
                bearing_deg=bearing,
                captured_at=captured_at,
                last_update=now,
            )
            await self.realtime.set(LIVE_LOCATIONS, key, position.model_dump(mode="json"))
            logger.debug("Live position updated for %s at %s, %s", key, fix.latitude, fix.longitude)

        return IngestResult(
            accepted=True,
            derived=DerivedKinematics(speed_kmh=speed_kmh, bearing_deg=bearing),
            applied=applied,
        )

    async def submit_batch(self, fixes: list[LocationFixCreate]) -> BatchIngestResult:
        """Envoyer plusieurs fix dans l'ordre / Submit several fixes in order."""
        results = [await self.submit(fix) for fix in fixes]
        accepted = sum(1 for r in results if r.accepted)
        return BatchIngestResult(
            processed=len(results),
            accepted=accepted,
            rejected=len(results) - accepted,
            results=results,
        )

    # ─── Lectures / Reads ───

    async def latest_position(self, driver_id: str, vehicle_id: str) -> LatestPosition | None:
        raw = await self.realtime.get(LIVE_LOCATIONS, live_key(driver_id, vehicle_id))
        return LatestPosition.model_validate(raw) if raw is not None else None

    async def latest_positions_for_driver(self, driver_id: str) -> list[LatestPosition]:
        """Positions live du chauffeur, la plus recente d'abord / Driver's live positions, newest first."""
        positions = [
            LatestPosition.model_validate(raw)
            for raw in await self.realtime.values(LIVE_LOCATIONS)
            if raw.get("driver_id") == driver_id
        ]
        positions.sort(key=lambda p: _as_utc(p.captured_at), reverse=True)
        return positions

    async def history(self, driver_id: str, limit: int = 50) -> list[LocationFix]:
        """Journal des fix, plus recent d'abord / Fix log, newest first."""
        with storage_guard():
            result = await self.db.execute(
                select(LocationFix)
                .where(LocationFix.driver_id == driver_id)
                .order_by(LocationFix.captured_at.desc(), LocationFix.id.desc())
                .limit(limit)
            )
        return list(result.scalars().all())

    async def nearby(self, latitude: float, longitude: float, radius_km: float = 5.0) -> list[NearbyDriver]:
        """Chauffeurs live dans le rayon, tries par distance / Live drivers within radius, by distance."""
        if not is_valid_coordinate(latitude, longitude):
            raise InvalidQuery("Invalid latitude or longitude coordinates")
        if radius_km <= 0:
            raise InvalidQuery("Radius must be positive")

        lat_min, lat_max, lon_min, lon_max = bounding_box(latitude, longitude, radius_km)
        # Pas de prefiltre longitude si la boite depasse l'antimeridien / No lon prefilter across the antimeridian
        check_lon = lon_min >= -180 and lon_max <= 180
        found = []
        for raw in await self.realtime.values(LIVE_LOCATIONS):
            position = LatestPosition.model_validate(raw)
            # Prefiltre rapide / Quick prefilter
            if not (lat_min <= position.latitude <= lat_max):
                continue
            if check_lon and not (lon_min <= position.longitude <= lon_max):
                continue
            distance = haversine(latitude, longitude, position.latitude, position.longitude)
            if distance <= radius_km:
                found.append(NearbyDriver(**position.model_dump(), distance_km=round(distance, 2)))
        found.sort(key=lambda d: d.distance_km)
        return found
