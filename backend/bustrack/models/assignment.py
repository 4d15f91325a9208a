"""Modele Affectation chauffeur-vehicule / Driver-vehicle assignment model."""

import enum
from datetime import datetime, timezone

from sqlalchemy import DateTime, Enum, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from bustrack.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AssignmentStatus(str, enum.Enum):
    """Statut de l'affectation / Assignment status."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    COMPLETED = "completed"


class Assignment(Base):
    """Lien quotidien chauffeur-vehicule / Daily driver-vehicle link.

    Cree par le provisioning externe, lu seulement par le suivi.
    Created by external provisioning, read-only for tracking.
    start_time est un horaire recurrent sans date / start_time is a recurring time of day.
    """
    __tablename__ = "assignments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    driver_id: Mapped[str] = mapped_column(String(64), nullable=False)
    vehicle_id: Mapped[str] = mapped_column(String(64), nullable=False)
    route_id: Mapped[str | None] = mapped_column(String(64))
    start_time: Mapped[str | None] = mapped_column(String(5))  # HH:MM
    status: Mapped[AssignmentStatus] = mapped_column(
        Enum(AssignmentStatus, values_callable=lambda e: [m.value for m in e]),
        default=AssignmentStatus.ACTIVE,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("ix_assignments_driver_status", "driver_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Assignment {self.id} driver={self.driver_id} vehicle={self.vehicle_id} start={self.start_time}>"
