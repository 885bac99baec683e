"""Reminder delivery: the periodic 24h-window batch and the admin single send."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone

from eventura.core.config import Settings
from eventura.domain.models import (
    DispatchSummary,
    Event,
    EventStatus,
    ReminderSubscription,
    SendResult,
    UserProfile,
    as_utc,
)
from eventura.repos.memory import EVENTS, PROFILES, SUBSCRIPTIONS, DocumentStore
from eventura.services.cutoff import (
    CutoffSource,
    EffectiveCutoff,
    cutoff_for,
    in_window,
    reminder_window,
)
from eventura.services.mailer import Mailer, MailMessage, MailRecipient
from eventura.services.templates import (
    deadline_reminder_email_html,
    event_reminder_email_html,
    format_long_date,
)

logger = logging.getLogger(__name__)


def pending_subscriptions(store: DocumentStore) -> list[ReminderSubscription]:
    """Active subscriptions whose reminder has not been sent, in store order."""
    return [
        s
        for s in store.query_by_index(SUBSCRIPTIONS, "is_applied", True)
        if not s.reminder_sent
    ]


def find_profile(store: DocumentStore, user_id: str) -> UserProfile | None:
    return store.first_by_index(PROFILES, user_id=user_id)


class ReminderDispatcher:
    """Sends one reminder per pending subscription whose cutoff is within the window.

    Each successful send is committed (``reminder_sent = True``) before the
    next candidate is looked at. Failed sends stay pending and are retried by
    the next scheduled run; there are no retries inside a run.

    Only one batch runs at a time per dispatcher: a run that starts while
    another is in flight (a manual trigger during the scheduled job) returns
    immediately with ``busy`` set instead of sending.
    """

    def __init__(self, store: DocumentStore, mailer: Mailer, settings: Settings) -> None:
        self.store = store
        self.mailer = mailer
        self.settings = settings
        self._running = threading.Lock()

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    def run(self, now: datetime | None = None) -> DispatchSummary:
        if not self._running.acquire(blocking=False):
            logger.warning("Reminder run already in progress, skipping")
            return DispatchSummary(busy=True)
        try:
            return self._run(now)
        finally:
            self._running.release()

    def _run(self, now: datetime | None) -> DispatchSummary:
        now = as_utc(now) or datetime.now(timezone.utc)
        window = reminder_window(now, self.settings.reminder_window_hours)

        candidates = pending_subscriptions(self.store)
        summary = DispatchSummary(candidates=len(candidates))
        if not candidates:
            logger.info("No pending reminders found.")
            return summary

        for subscription in candidates:
            try:
                message = self._prepare(subscription, window)
            except Exception:
                logger.exception("Could not prepare reminder %s", subscription.id)
                summary.failed += 1
                continue
            if message is None:
                summary.skipped += 1
                continue

            try:
                result = self.mailer.send(message)
            except Exception:
                logger.exception(
                    "Mailer raised sending reminder to %s for event %s",
                    message.addresses,
                    subscription.event_id,
                )
                summary.failed += 1
                continue
            if not result.success:
                logger.error(
                    "Failed to send reminder to %s for event %s: %s",
                    message.addresses,
                    subscription.event_id,
                    result.message,
                )
                summary.failed += 1
                continue

            try:
                self.store.patch(SUBSCRIPTIONS, subscription.id, {"reminder_sent": True})
            except Exception:
                logger.exception(
                    "Reminder %s was delivered but could not be marked sent",
                    subscription.id,
                )
                summary.failed += 1
                continue
            summary.sent += 1

        logger.info(
            "Sent %d deadline reminder(s) (%d failed, %d skipped)",
            summary.sent,
            summary.failed,
            summary.skipped,
        )
        return summary

    def _prepare(
        self, subscription: ReminderSubscription, window: tuple[datetime, datetime]
    ) -> MailMessage | None:
        current = self.store.get(SUBSCRIPTIONS, subscription.id)
        if current is None or current.reminder_sent or not current.is_applied:
            return None
        event: Event | None = self.store.get(EVENTS, subscription.event_id)
        profile = find_profile(self.store, subscription.user_id)
        if event is None or profile is None or not profile.email:
            logger.debug("Reminder %s has no event or recipient, skipping", subscription.id)
            return None
        if event.status == EventStatus.CANCELLED:
            return None

        cutoff = cutoff_for(event)
        if cutoff.missing or not in_window(cutoff, window):
            return None
        return self.render(event, profile, cutoff)

    def render(
        self, event: Event, profile: UserProfile, cutoff: EffectiveCutoff
    ) -> MailMessage:
        """Deadline-style copy when the deadline drove the cutoff, event-style otherwise."""
        if cutoff.source is CutoffSource.APPLICATION_DEADLINE:
            html_body = deadline_reminder_email_html(
                profile.full_name,
                event.title,
                cutoff.label,
                format_long_date(cutoff.at),
                self.settings.site_url,
                event_time=event.event_time,
                event_location=event.location,
            )
        else:
            html_body = event_reminder_email_html(
                profile.full_name,
                event.title,
                format_long_date(event.event_date),
                self.settings.site_url,
                event_time=event.event_time,
                event_location=event.location,
                event_category=event.category,
                event_description=event.description,
            )
        return MailMessage(
            to=[MailRecipient(email=profile.email, name=profile.full_name)],
            subject=f"Tomorrow: {event.title} - {cutoff.label}",
            html_body=html_body,
        )

    # ------------------------------------------------------------------
    # Admin-triggered
    # ------------------------------------------------------------------

    def send_reminder(self, user_id: str, event_id: str) -> SendResult:
        """Send an event reminder right away, outside the window.

        Does not touch ``reminder_sent``; the batch reminder is still due.
        """
        profile = find_profile(self.store, user_id)
        if profile is None or not profile.email:
            return SendResult(success=False, message="User not found or no email")

        event: Event | None = self.store.get(EVENTS, event_id)
        if event is None:
            return SendResult(success=False, message="Event not found")

        event_date = format_long_date(event.event_date)
        deadline = (
            format_long_date(event.application_deadline)
            if event.application_deadline
            else None
        )
        message = MailMessage(
            to=[MailRecipient(email=profile.email, name=profile.full_name)],
            subject=f"Reminder: {event.title} - {event_date}",
            html_body=event_reminder_email_html(
                profile.full_name,
                event.title,
                event_date,
                self.settings.site_url,
                event_time=event.event_time,
                event_location=event.location,
                event_category=event.category,
                event_description=event.description,
                application_deadline=deadline,
            ),
        )
        return self.mailer.send(message)
