"""
Service fenetre de suivi / Tracking window service.
Decide si un chauffeur peut envoyer sa position pour une affectation.
Decides whether a driver may submit positions for an assignment.
"""

from dataclasses import dataclass
from datetime import datetime
from zoneinfo import ZoneInfo

from bustrack.config import settings
from bustrack.models.assignment import Assignment

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class TrackingDecision:
    """Resultat de la verification / Gate decision."""
    allowed: bool
    reason: str
    time_until_start: str | None = None
    time_after_end: str | None = None
    minutes_until_start: int | None = None
    minutes_after_end: int | None = None


@dataclass(frozen=True)
class TrackingWindow:
    """Fenetre formatee pour affichage / Formatted window for display."""
    start_time: str
    end_time: str
    duration_label: str


class TrackingWindowGate:
    """Fenetre [debut, debut + 60 min] en minutes depuis minuit / Window in minutes since midnight."""

    def __init__(self, window_minutes: int | None = None, timezone: str | None = None):
        self.window_minutes = window_minutes or settings.TRACKING_WINDOW_MINUTES
        self.tz = ZoneInfo(timezone or settings.LOCAL_TIMEZONE)

    @staticmethod
    def parse_time(time_str: str) -> int:
        """HH:MM -> minutes depuis minuit / minutes since midnight."""
        hours, mins = map(int, time_str.split(":"))
        if not (0 <= hours < 24 and 0 <= mins < 60):
            raise ValueError(f"Invalid time: {time_str}")
        return hours * 60 + mins

    @staticmethod
    def format_minutes(total_minutes: int) -> str:
        """Minutes depuis minuit -> HH:MM (modulo 24h) / Minutes since midnight -> HH:MM."""
        total_minutes %= MINUTES_PER_DAY
        return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"

    @staticmethod
    def format_wait(minutes: int) -> str:
        return f"{minutes // 60}h {minutes % 60}m"

    def _local_minutes(self, now: datetime) -> int:
        if now.tzinfo is not None:
            now = now.astimezone(self.tz)
        return now.hour * 60 + now.minute

    def is_allowed(self, assignment: Assignment, now: datetime) -> TrackingDecision:
        """Verifier la fenetre de suivi a l'instant donne / Check the tracking window at a given instant."""
        if not assignment.start_time:
            return TrackingDecision(allowed=False, reason="No start time defined")

        try:
            start = self.parse_time(assignment.start_time)
        except ValueError:
            return TrackingDecision(allowed=False, reason="Invalid start time")

        current = self._local_minutes(now)
        end = start + self.window_minutes

        if end >= MINUTES_PER_DAY:
            # Passage de minuit / Midnight crossover
            if current >= start or current <= end - MINUTES_PER_DAY:
                return TrackingDecision(allowed=True, reason="Within tracking window")
        elif start <= current <= end:
            return TrackingDecision(allowed=True, reason="Within tracking window")

        until_start = start - current
        if until_start > 0:
            wait = self.format_wait(until_start)
            return TrackingDecision(
                allowed=False,
                reason=f"Tracking starts at {self.format_minutes(start)}. Please wait {wait}",
                time_until_start=wait,
                minutes_until_start=until_start,
            )

        after_end = current - end
        missed = self.format_wait(after_end)
        return TrackingDecision(
            allowed=False,
            reason=f"Tracking window ended at {self.format_minutes(end)}. You missed it by {missed}",
            time_after_end=missed,
            minutes_after_end=after_end,
        )

    def tracking_window(self, assignment: Assignment) -> TrackingWindow | None:
        """Fenetre formatee, heure de fin modulo 24 / Formatted window, end hour modulo 24."""
        if not assignment.start_time:
            return None
        try:
            start = self.parse_time(assignment.start_time)
        except ValueError:
            return None
        hours, mins = divmod(self.window_minutes, 60)
        label = f"{hours} hour" if hours == 1 and not mins else self.format_wait(self.window_minutes)
        return TrackingWindow(
            start_time=self.format_minutes(start),
            end_time=self.format_minutes(start + self.window_minutes),
            duration_label=label,
        )
