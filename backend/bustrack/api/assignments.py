"""Routes statut de suivi par affectation / Assignment tracking-status routes."""

from fastapi import APIRouter, Depends

from bustrack.api.deps import get_gate, get_location_service
from bustrack.schemas.location import TrackingStatusRead, TrackingWindowRead
from bustrack.services.errors import ErrorCode
from bustrack.services.location_ingest import LocationIngestService
from bustrack.services.tracking_window import TrackingWindowGate

router = APIRouter()


@router.get("/driver/{driver_id}/tracking-status", response_model=TrackingStatusRead)
async def get_tracking_status(
    driver_id: str,
    service: LocationIngestService = Depends(get_location_service),
    gate: TrackingWindowGate = Depends(get_gate),
):
    """Le chauffeur peut-il commencer le suivi ? / Can the driver start tracking yet?"""
    assignments = await service.active_assignments(driver_id)
    if not assignments:
        return TrackingStatusRead(
            driver_id=driver_id,
            can_track=False,
            rejection_code=ErrorCode.NO_ACTIVE_ASSIGNMENT,
            reason="No active assignment found for driver",
        )
    if len(assignments) > 1:
        return TrackingStatusRead(
            driver_id=driver_id,
            can_track=False,
            rejection_code=ErrorCode.MULTIPLE_ACTIVE_ASSIGNMENTS,
            reason="Several active assignments found for driver, contact dispatch",
        )

    assignment = assignments[0]
    decision = gate.is_allowed(assignment, service.clock())
    window = gate.tracking_window(assignment)
    return TrackingStatusRead(
        driver_id=driver_id,
        assignment_id=assignment.id,
        vehicle_id=assignment.vehicle_id,
        can_track=decision.allowed,
        rejection_code=None if decision.allowed else ErrorCode.TRACKING_WINDOW_CLOSED,
        reason=decision.reason,
        time_until_start=decision.time_until_start,
        time_after_end=decision.time_after_end,
        window=TrackingWindowRead(
            start_time=window.start_time,
            end_time=window.end_time,
            duration_label=window.duration_label,
        ) if window else None,
    )
