"""Automatic upcoming -> past transition for events whose cutoff has elapsed."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from eventura.domain.models import Event, EventStatus, TransitionSummary, as_utc
from eventura.repos.memory import EVENTS, DocumentStore
from eventura.services.cutoff import cutoff_for, has_elapsed

logger = logging.getLogger(__name__)


class LifecycleTransitioner:
    """Closes upcoming events once their effective cutoff is in the past.

    Only ``upcoming`` events are examined. An event an admin reopened after its
    cutoff is closed again on the next run.
    """

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    def run(self, now: datetime | None = None) -> TransitionSummary:
        now = as_utc(now) or datetime.now(timezone.utc)
        upcoming: list[Event] = self.store.query_by_index(
            EVENTS, "status", EventStatus.UPCOMING
        )

        transitioned = 0
        for event in upcoming:
            cutoff = cutoff_for(event)
            if cutoff.missing:
                logger.debug("Event %s has no date fields, skipping", event.id)
                continue
            if not has_elapsed(cutoff, now):
                continue
            try:
                self.store.patch(EVENTS, event.id, {"status": EventStatus.PAST})
            except Exception:
                logger.exception("Failed to mark event %s as past", event.id)
                continue
            transitioned += 1

        if transitioned:
            logger.info("Transitioned %d event(s) to past", transitioned)
        return TransitionSummary(transitioned=transitioned)
