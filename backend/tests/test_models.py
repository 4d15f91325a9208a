"""Tests des modèles / Model tests."""

from bustrack.models.assignment import Assignment, AssignmentStatus
from bustrack.models.sos_alert import SosStatus


def test_assignment_repr():
    a = Assignment(id="asg-1", driver_id="drv-1", vehicle_id="BUS-101", start_time="08:00")
    assert "BUS-101" in repr(a)
    assert "08:00" in repr(a)


def test_enums():
    assert AssignmentStatus.ACTIVE.value == "active"
    assert AssignmentStatus.INACTIVE.value == "inactive"
    assert AssignmentStatus.COMPLETED.value == "completed"
    assert SosStatus.ACTIVE.value == "active"
    assert SosStatus.RESOLVED.value == "resolved"
