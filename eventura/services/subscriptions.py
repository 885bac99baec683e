"""Reminder opt-in/opt-out for a (user, event) pair."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from eventura.core.config import Settings
from eventura.domain.models import (
    ReminderSubscription,
    SubscriptionStatus,
    ToggleResult,
    as_utc,
)
from eventura.repos.memory import EVENTS, SUBSCRIPTIONS, DocumentStore, RecordNotFound

logger = logging.getLogger(__name__)

REMINDER_SET = "Reminder set! You'll receive email reminders before the event."
REMINDER_REMOVED = "Reminder removed."


class SubscriptionService:
    """Keeps at most one subscription per (user, event); records are never deleted."""

    def __init__(self, store: DocumentStore, settings: Settings) -> None:
        self.store = store
        self.settings = settings

    def find(self, user_id: str, event_id: str) -> ReminderSubscription | None:
        return self.store.first_by_index(SUBSCRIPTIONS, user_id=user_id, event_id=event_id)

    def toggle(
        self, user_id: str, event_id: str, now: datetime | None = None
    ) -> ToggleResult:
        if self.store.get(EVENTS, event_id) is None:
            raise RecordNotFound(EVENTS, event_id)
        now = as_utc(now) or datetime.now(timezone.utc)

        existing = self.find(user_id, event_id)
        if existing is None:
            self.store.insert(
                SUBSCRIPTIONS,
                {
                    "user_id": user_id,
                    "event_id": event_id,
                    "is_applied": True,
                    "applied_at": now,
                    "reminder_sent": False,
                },
            )
            logger.info("User %s subscribed to reminders for event %s", user_id, event_id)
            return ToggleResult(is_applied=True, message=REMINDER_SET)

        activating = not existing.is_applied
        fields: dict = {"is_applied": activating}
        if activating:
            fields["applied_at"] = now
            if self.settings.reset_reminder_on_reapply:
                fields["reminder_sent"] = False
        self.store.patch(SUBSCRIPTIONS, existing.id, fields)
        return ToggleResult(
            is_applied=activating,
            message=REMINDER_SET if activating else REMINDER_REMOVED,
        )

    def remove(self, subscription_id: str) -> None:
        """Deactivate without deleting, so the history is preserved."""
        self.store.patch(SUBSCRIPTIONS, subscription_id, {"is_applied": False})

    def check_status(self, user_id: str, event_id: str) -> SubscriptionStatus:
        existing = self.find(user_id, event_id)
        if existing is None:
            return SubscriptionStatus()
        return SubscriptionStatus(
            is_applied=existing.is_applied, applied_at=existing.applied_at
        )

    def list_for_event(self, event_id: str) -> list[ReminderSubscription]:
        return [
            s
            for s in self.store.query_by_index(SUBSCRIPTIONS, "event_id", event_id)
            if s.is_applied
        ]

    def count_by_event(self, event_id: str) -> int:
        return len(self.list_for_event(event_id))

    def list_for_user(self, user_id: str) -> list[ReminderSubscription]:
        """Active subscriptions, most recently applied first."""
        active = [
            s
            for s in self.store.query_by_index(SUBSCRIPTIONS, "user_id", user_id)
            if s.is_applied
        ]
        return sorted(active, key=lambda s: s.applied_at, reverse=True)
