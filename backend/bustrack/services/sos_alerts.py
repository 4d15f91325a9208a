"""
Service alertes SOS / SOS alert service.

Cycle de vie active -> resolue. La base est la reference ; le hash temps reel
ne sert qu'a la diffusion rapide des alertes actives.
Lifecycle active -> resolved. The database is authoritative; the real-time hash
only serves fast fan-out of active alerts.
"""

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from bustrack.config import settings
from bustrack.database import storage_guard
from bustrack.models.sos_alert import SosAlert, SosStatus
from bustrack.realtime import ACTIVE_SOS_ALERTS, RealtimeStore
from bustrack.schemas.sos import SosAlertRead, SosStatusRead
from bustrack.services.errors import AlertAlreadyResolved, AlertNotFound, InvalidFix
from bustrack.utils.geo import is_valid_coordinate

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _sort_key(alert: SosAlert) -> datetime:
    created = alert.created_at
    return created.replace(tzinfo=timezone.utc) if created.tzinfo is None else created


def newest_first(alerts: list[SosAlert]) -> list[SosAlert]:
    """Tri par date de creation decroissante / Sort by creation time, newest first."""
    return sorted(alerts, key=_sort_key, reverse=True)


class SosAlertService:
    """Creation, resolution et lecture des alertes / Raise, resolve and read alerts."""

    def __init__(self, db: AsyncSession, realtime: RealtimeStore, clock: Callable[[], datetime] = _utcnow):
        self.db = db
        self.realtime = realtime
        self.clock = clock

    async def raise_alert(
        self,
        driver_id: str,
        vehicle_id: str,
        latitude: float,
        longitude: float,
        message: str | None = None,
    ) -> SosAlert:
        """Creer une alerte active / Raise an active alert.

        Validation avant toute ecriture / Validation before any write.
        """
        if not driver_id or not driver_id.strip() or not vehicle_id or not vehicle_id.strip():
            raise InvalidFix("Driver ID and vehicle ID are required")
        if not is_valid_coordinate(latitude, longitude):
            raise InvalidFix("Invalid latitude or longitude coordinates")
        message = (message or "").strip() or settings.SOS_DEFAULT_MESSAGE
        if len(message) > settings.SOS_MESSAGE_MAX_LENGTH:
            raise InvalidFix(f"Message exceeds {settings.SOS_MESSAGE_MAX_LENGTH} characters")

        now = self.clock()
        alert = SosAlert(
            id=str(uuid.uuid4()),
            driver_id=driver_id,
            vehicle_id=vehicle_id,
            latitude=latitude,
            longitude=longitude,
            message=message,
            status=SosStatus.ACTIVE,
            created_at=now,
            updated_at=now,
        )
        self.db.add(alert)
        with storage_guard():
            await self.db.commit()

        # Diffusion temps reel apres le commit / Real-time write after the commit
        await self.realtime.set(
            ACTIVE_SOS_ALERTS,
            alert.id,
            SosAlertRead.model_validate(alert).model_dump(mode="json"),
        )
        logger.warning("SOS alert %s raised by driver %s (vehicle %s)", alert.id, driver_id, vehicle_id)
        return alert

    async def get(self, alert_id: str) -> SosAlert | None:
        with storage_guard():
            return await self.db.get(SosAlert, alert_id)

    async def resolve(self, alert_id: str) -> SosAlert:
        """Resoudre une alerte, une seule fois / Resolve an alert, exactly once."""
        alert = await self.get(alert_id)
        if alert is None:
            raise AlertNotFound("SOS alert not found")
        if alert.status != SosStatus.ACTIVE:
            raise AlertAlreadyResolved("Alert is already resolved")

        # Mise a jour conditionnelle : une seule resolution gagne / Conditional update: a single resolve wins
        now = self.clock()
        with storage_guard():
            result = await self.db.execute(
                update(SosAlert)
                .where(SosAlert.id == alert_id, SosAlert.status == SosStatus.ACTIVE)
                .values(status=SosStatus.RESOLVED, resolved_at=now, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                await self.db.rollback()
                raise AlertAlreadyResolved("Alert is already resolved")
            await self.db.commit()
            await self.db.refresh(alert)

        await self.realtime.delete(ACTIVE_SOS_ALERTS, alert.id)
        logger.info("SOS alert %s resolved", alert.id)
        return alert

    async def list_active_for_driver(self, driver_id: str) -> list[SosAlert]:
        with storage_guard():
            result = await self.db.execute(
                select(SosAlert).where(
                    SosAlert.driver_id == driver_id,
                    SosAlert.status == SosStatus.ACTIVE,
                )
            )
        return newest_first(list(result.scalars().all()))

    async def list_all_active(self) -> list[SosAlert]:
        """Toutes les alertes actives (salle de controle) / All active alerts (control room)."""
        with storage_guard():
            result = await self.db.execute(
                select(SosAlert).where(SosAlert.status == SosStatus.ACTIVE)
            )
        return newest_first(list(result.scalars().all()))

    async def history(self, driver_id: str | None = None, limit: int = 20) -> list[SosAlert]:
        """Historique, plus recent d'abord / History, newest first."""
        query = select(SosAlert)
        if driver_id is not None:
            query = query.where(SosAlert.driver_id == driver_id)
        query = query.order_by(SosAlert.created_at.desc()).limit(limit)
        with storage_guard():
            result = await self.db.execute(query)
        return newest_first(list(result.scalars().all()))

    async def live_active(self) -> list[SosAlertRead]:
        """Alertes actives vues par le hash temps reel / Active alerts as seen by the real-time hash."""
        alerts = [SosAlertRead.model_validate(raw) for raw in await self.realtime.values(ACTIVE_SOS_ALERTS)]
        alerts.sort(
            key=lambda a: a.created_at if a.created_at.tzinfo else a.created_at.replace(tzinfo=timezone.utc),
            reverse=True,
        )
        return alerts

    async def status(self) -> SosStatusRead:
        active = await self.list_all_active()
        return SosStatusRead(
            active_alerts=len(active),
            last_alert=active[0].created_at if active else None,
        )
