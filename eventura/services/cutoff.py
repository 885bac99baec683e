"""Effective-cutoff resolution shared by the lifecycle and reminder jobs.

Both jobs must agree on what "the deadline" of an event is, so neither reads
``application_deadline`` or ``event_date`` directly; they go through
:func:`resolve_cutoff` and the window predicates below.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from enum import StrEnum

from pydantic import BaseModel

from eventura.domain.models import Event, EventStatus, as_utc

REMINDER_WINDOW_HOURS = 24


class CutoffSource(StrEnum):
    APPLICATION_DEADLINE = "application_deadline"
    EVENT_DATE = "event_date"


class EffectiveCutoff(BaseModel):
    at: datetime | None = None
    source: CutoffSource | None = None
    cancelled: bool = False

    @property
    def missing(self) -> bool:
        return self.at is None

    @property
    def label(self) -> str:
        """Human label used in email copy ("Application Deadline" / "Event Date")."""
        if self.source is CutoffSource.APPLICATION_DEADLINE:
            return "Application Deadline"
        return "Event Date"


def resolve_cutoff(
    application_deadline: datetime | date | str | None,
    event_date: date | str | None,
    status: EventStatus | None = None,
) -> EffectiveCutoff:
    """Return the deadline if present, else midnight UTC of the event date."""
    cancelled = status == EventStatus.CANCELLED
    if application_deadline:
        return EffectiveCutoff(
            at=as_utc(application_deadline),
            source=CutoffSource.APPLICATION_DEADLINE,
            cancelled=cancelled,
        )
    if event_date:
        return EffectiveCutoff(
            at=as_utc(event_date), source=CutoffSource.EVENT_DATE, cancelled=cancelled
        )
    return EffectiveCutoff(cancelled=cancelled)


def cutoff_for(event: Event) -> EffectiveCutoff:
    return resolve_cutoff(event.application_deadline, event.event_date, event.status)


def has_elapsed(cutoff: EffectiveCutoff, now: datetime) -> bool:
    """True when the cutoff is strictly before *now*. Missing cutoffs never elapse."""
    return cutoff.at is not None and cutoff.at < now


def reminder_window(
    now: datetime, hours: int = REMINDER_WINDOW_HOURS
) -> tuple[datetime, datetime]:
    return now, now + timedelta(hours=hours)


def in_window(cutoff: EffectiveCutoff, window: tuple[datetime, datetime]) -> bool:
    """Inclusive at both ends."""
    if cutoff.at is None:
        return False
    start, end = window
    return start <= cutoff.at <= end
