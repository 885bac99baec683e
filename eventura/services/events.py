"""Admin event management: create, edit, delete, list."""

from __future__ import annotations

import logging
from datetime import date

from eventura.domain.bus import EventBus
from eventura.domain.events import EventCreated
from eventura.domain.models import (
    Event,
    EventCreateRequest,
    EventStatus,
    EventUpdateRequest,
)
from eventura.repos.memory import EVENTS, DocumentStore

logger = logging.getLogger(__name__)


class EventService:
    def __init__(self, store: DocumentStore, bus: EventBus) -> None:
        self.store = store
        self.bus = bus

    def create(self, request: EventCreateRequest) -> Event:
        event_id = self.store.insert(EVENTS, request.model_dump())
        logger.info("Created event %s (%s)", event_id, request.title)
        self.bus.publish(EventCreated(event_id=event_id))
        return self.store.get(EVENTS, event_id)

    def update(self, event_id: str, request: EventUpdateRequest) -> Event:
        """Patch only the fields that were sent.

        Any status is accepted, including reopening a past event; the
        lifecycle job closes it again if its cutoff has already elapsed.
        """
        fields = request.model_dump(exclude_unset=True)
        return self.store.patch(EVENTS, event_id, fields)

    def remove(self, event_id: str) -> None:
        """Delete the event. Its subscriptions stay and are skipped by the dispatcher."""
        self.store.delete(EVENTS, event_id)
        logger.info("Deleted event %s", event_id)

    def get(self, event_id: str) -> Event | None:
        return self.store.get(EVENTS, event_id)

    def list_all(self) -> list[Event]:
        """Newest event date first; undated events last."""
        return sorted(
            self.store.list_all(EVENTS),
            key=lambda e: e.event_date or date.min,
            reverse=True,
        )

    def list_by_status(self, status: EventStatus) -> list[Event]:
        """Upcoming events soonest first, past events most recent first."""
        events = self.store.query_by_index(EVENTS, "status", status)
        return sorted(
            events,
            key=lambda e: e.event_date or date.max,
            reverse=status == EventStatus.PAST,
        )
