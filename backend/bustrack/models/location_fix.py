"""Modele Journal des positions GPS / GPS fix log model."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Float, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from bustrack.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LocationFix(Base):
    """Position GPS chauffeur, une ligne par envoi accepte / Driver GPS fix, one row per accepted submission.

    Journal en ajout seul : jamais mis a jour / Append-only log: never updated.
    """
    __tablename__ = "location_fixes"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    driver_id: Mapped[str] = mapped_column(String(64), nullable=False)
    vehicle_id: Mapped[str] = mapped_column(String(64), nullable=False)
    assignment_id: Mapped[str | None] = mapped_column(String(36))
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    accuracy: Mapped[float] = mapped_column(Float, default=0.0)
    reported_speed: Mapped[float | None] = mapped_column(Float)  # km/h, envoye par l'appareil / device supplied
    speed_kmh: Mapped[float] = mapped_column(Float, default=0.0)  # derive / derived
    bearing_deg: Mapped[int] = mapped_column(Integer, default=0)  # derive / derived
    applied: Mapped[bool] = mapped_column(Boolean, default=True)  # a mis a jour la position live / updated live position
    captured_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)  # horloge appareil / device clock
    received_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)  # horloge serveur / server clock

    __table_args__ = (
        Index("ix_location_fixes_driver_captured", "driver_id", "captured_at"),
    )
