"""Tests API / API tests."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from bustrack.models.assignment import Assignment, AssignmentStatus
from bustrack.models.sos_alert import SosAlert
from bustrack.realtime import ACTIVE_SOS_ALERTS


@pytest.fixture
async def seeded(session_factory):
    """Affectation active 08:00 pour drv-1 / Active 08:00 assignment for drv-1."""
    async with session_factory() as session:
        session.add(Assignment(
            id="asg-1",
            driver_id="drv-1",
            vehicle_id="BUS-101",
            start_time="08:00",
            status=AssignmentStatus.ACTIVE,
        ))
        session.add(Assignment(
            id="asg-2",
            driver_id="drv-2",
            vehicle_id="BUS-202",
            start_time="11:00",
            status=AssignmentStatus.ACTIVE,
        ))
        await session.commit()


def _fix(**overrides):
    payload = {
        "driver_id": "drv-1",
        "vehicle_id": "BUS-101",
        "latitude": 12.97,
        "longitude": 77.59,
        "accuracy": 8.0,
        "timestamp": "2024-05-06T08:25:00Z",
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_root(client):
    resp = await client.get("/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "running"
    assert "X-Request-ID" in resp.headers
    assert resp.headers["X-Content-Type-Options"] == "nosniff"


@pytest.mark.asyncio
async def test_api_health(client):
    resp = await client.get("/api/")
    assert resp.status_code == 200
    assert resp.json()["app"] == "BusTrack"


@pytest.mark.asyncio
async def test_location_update_accepted(client, seeded):
    resp = await client.post("/api/location/update", json=_fix())
    assert resp.status_code == 200
    data = resp.json()
    assert data["accepted"] is True
    assert data["applied"] is True
    assert data["derived"] == {"speed_kmh": 0.0, "bearing_deg": 0}

    resp = await client.get("/api/location/live/drv-1")
    assert resp.status_code == 200
    live = resp.json()
    assert live["vehicle_id"] == "BUS-101"
    assert live["assignment_id"] == "asg-1"
    assert live["latitude"] == 12.97

    resp = await client.get("/api/location/history/drv-1")
    assert resp.status_code == 200
    assert len(resp.json()) == 1


@pytest.mark.asyncio
async def test_location_update_rejected_outside_window(client, seeded):
    resp = await client.post("/api/location/update", json=_fix(driver_id="drv-2", vehicle_id="BUS-202"))
    assert resp.status_code == 200
    data = resp.json()
    assert data["accepted"] is False
    assert data["rejection_code"] == "TRACKING_WINDOW_CLOSED"
    assert data["time_until_start"] == "2h 30m"


@pytest.mark.asyncio
async def test_location_update_invalid_fix(client, seeded):
    resp = await client.post("/api/location/update", json=_fix(latitude=91))
    assert resp.status_code == 200
    assert resp.json()["rejection_code"] == "INVALID_FIX"

    resp = await client.get("/api/location/live/drv-1")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_location_batch(client, seeded):
    resp = await client.post("/api/location/batch", json={"locations": [
        _fix(),
        _fix(timestamp="2024-05-06T08:26:00Z", latitude=12.98),
        _fix(driver_id="drv-unknown"),
    ]})
    assert resp.status_code == 200
    data = resp.json()
    assert (data["processed"], data["accepted"], data["rejected"]) == (3, 2, 1)
    assert data["results"][2]["rejection_code"] == "NO_ACTIVE_ASSIGNMENT"


@pytest.mark.asyncio
async def test_nearby(client, seeded):
    await client.post("/api/location/update", json=_fix())
    resp = await client.get("/api/location/nearby", params={"latitude": 12.971, "longitude": 77.59, "radius": 2})
    assert resp.status_code == 200
    assert [d["driver_id"] for d in resp.json()] == ["drv-1"]

    resp = await client.get("/api/location/nearby", params={"latitude": 95, "longitude": 77.59})
    assert resp.status_code == 422
    assert resp.json()["code"] == "INVALID_QUERY"


@pytest.mark.asyncio
async def test_tracking_status(client, seeded):
    resp = await client.get("/api/assignments/driver/drv-1/tracking-status")
    assert resp.status_code == 200
    data = resp.json()
    assert data["can_track"] is True
    assert data["assignment_id"] == "asg-1"
    assert data["window"] == {"start_time": "08:00", "end_time": "09:00", "duration_label": "1 hour"}

    resp = await client.get("/api/assignments/driver/nobody/tracking-status")
    data = resp.json()
    assert data["can_track"] is False
    assert data["rejection_code"] == "NO_ACTIVE_ASSIGNMENT"


@pytest.mark.asyncio
async def test_eta_calculate(client):
    resp = await client.post("/api/eta/calculate", json={
        "from_latitude": 0.0,
        "from_longitude": 0.0,
        "to_latitude": 0.1,
        "to_longitude": 0.0,
    })
    assert resp.status_code == 200
    data = resp.json()
    assert data["distance"]["kilometers"] == 11.12
    assert data["eta"]["formatted"]


@pytest.mark.asyncio
async def test_eta_route_needs_two_waypoints(client):
    resp = await client.post("/api/eta/route", json={"waypoints": [{"latitude": 0.0, "longitude": 0.0}]})
    assert resp.status_code == 422
    assert resp.json()["code"] == "INVALID_QUERY"


@pytest.mark.asyncio
async def test_eta_live(client, seeded):
    resp = await client.get("/api/eta/live/drv-1", params={"to_latitude": 13.0, "to_longitude": 77.6})
    assert resp.status_code == 404
    assert resp.json()["code"] == "DRIVER_LOCATION_UNAVAILABLE"

    await client.post("/api/location/update", json=_fix())
    resp = await client.get("/api/eta/live/drv-1", params={"to_latitude": 13.0, "to_longitude": 77.6})
    assert resp.status_code == 200
    assert resp.json()["vehicle_id"] == "BUS-101"


@pytest.mark.asyncio
async def test_sos_lifecycle(client):
    resp = await client.post("/api/sos/alert", json={
        "driver_id": "drv-1",
        "vehicle_id": "BUS-101",
        "latitude": 12.97,
        "longitude": 77.59,
    })
    assert resp.status_code == 201
    alert = resp.json()
    assert alert["status"] == "active"
    assert alert["message"] == "Emergency SOS Alert from Driver"

    resp = await client.get("/api/sos/alerts/drv-1")
    assert [a["id"] for a in resp.json()] == [alert["id"]]

    resp = await client.get("/api/sos/status")
    assert resp.json()["active_alerts"] == 1

    resp = await client.put(f"/api/sos/resolve/{alert['id']}")
    assert resp.status_code == 200
    assert resp.json()["status"] == "resolved"

    resp = await client.put(f"/api/sos/resolve/{alert['id']}")
    assert resp.status_code == 409
    assert resp.json()["code"] == "ALERT_ALREADY_RESOLVED"

    resp = await client.get("/api/sos/all")
    assert resp.json() == []
    resp = await client.get("/api/sos/all", params={"status": "all"})
    assert len(resp.json()) == 1
    resp = await client.get("/api/sos/history/drv-1")
    assert len(resp.json()) == 1


@pytest.mark.asyncio
async def test_sos_unknown_alert(client):
    resp = await client.put("/api/sos/resolve/nope")
    assert resp.status_code == 404
    assert resp.json()["code"] == "ALERT_NOT_FOUND"


@pytest.mark.asyncio
async def test_sos_invalid_coordinates(client):
    resp = await client.post("/api/sos/alert", json={
        "driver_id": "drv-1",
        "vehicle_id": "BUS-101",
        "latitude": 120.0,
        "longitude": 0.0,
    })
    assert resp.status_code == 422
    assert resp.json()["code"] == "INVALID_FIX"


@pytest.mark.asyncio
async def test_sos_storage_outage_returns_503(client, realtime, session_factory, monkeypatch):
    async def _locked(self):
        raise OperationalError("COMMIT", None, Exception("database is locked"))

    monkeypatch.setattr(AsyncSession, "commit", _locked)
    resp = await client.post("/api/sos/alert", json={
        "driver_id": "drv-1",
        "vehicle_id": "BUS-101",
        "latitude": 12.97,
        "longitude": 77.59,
    })
    assert resp.status_code == 503
    assert resp.json()["code"] == "STORAGE_UNAVAILABLE"
    assert await realtime.values(ACTIVE_SOS_ALERTS) == []

    async with session_factory() as session:
        assert await session.scalar(select(func.count(SosAlert.id))) == 0
