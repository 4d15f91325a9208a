"""Modele Alerte SOS / SOS alert model."""

import enum
from datetime import datetime, timezone

from sqlalchemy import DateTime, Enum, Float, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from bustrack.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SosStatus(str, enum.Enum):
    """Statut de l'alerte / Alert status."""
    ACTIVE = "active"
    RESOLVED = "resolved"


class SosAlert(Base):
    """Alertes SOS chauffeur / Driver SOS alerts (historique permanent / kept forever)."""
    __tablename__ = "sos_alerts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    driver_id: Mapped[str] = mapped_column(String(64), nullable=False)
    vehicle_id: Mapped[str] = mapped_column(String(64), nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[SosStatus] = mapped_column(
        Enum(SosStatus, values_callable=lambda e: [m.value for m in e]),
        default=SosStatus.ACTIVE,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("ix_sos_alerts_driver_status", "driver_id", "status"),
    )
