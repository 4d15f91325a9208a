"""Fixtures partagees / Shared fixtures."""

from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import bustrack.models  # noqa: F401
from bustrack.api.deps import get_location_service, get_realtime
from bustrack.database import Base, get_db
from bustrack.main import app
from bustrack.models.assignment import Assignment, AssignmentStatus
from bustrack.rate_limit import limiter
from bustrack.realtime import MemoryRealtimeStore
from bustrack.services.location_ingest import LocationIngestService
from bustrack.services.tracking_window import TrackingWindowGate

# 08:30 UTC, dans la fenetre 08:00-09:00 / inside the 08:00-09:00 window
FIXED_NOW = datetime(2024, 5, 6, 8, 30, tzinfo=timezone.utc)


@pytest.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def realtime():
    return MemoryRealtimeStore()


@pytest.fixture
def make_assignment(db):
    async def _make(
        driver_id="drv-1",
        vehicle_id="BUS-101",
        start_time="08:00",
        status=AssignmentStatus.ACTIVE,
        assignment_id=None,
    ):
        assignment = Assignment(
            id=assignment_id or f"asg-{driver_id}-{vehicle_id}-{status.value}",
            driver_id=driver_id,
            vehicle_id=vehicle_id,
            start_time=start_time,
            status=status,
        )
        db.add(assignment)
        await db.flush()
        return assignment

    return _make


@pytest.fixture
async def client(session_factory, realtime):
    async def _get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def _get_location_service():
        async with session_factory() as session:
            yield LocationIngestService(session, realtime, gate=TrackingWindowGate(), clock=lambda: FIXED_NOW)
            await session.commit()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_realtime] = lambda: realtime
    app.dependency_overrides[get_location_service] = _get_location_service
    limiter.enabled = False

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    limiter.enabled = True
