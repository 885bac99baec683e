"""One-off notification emails: welcome, new-event broadcast, admin custom mail."""

from __future__ import annotations

import logging

from eventura.core.config import Settings
from eventura.domain.models import Event, EventStatus, SendResult, UserProfile
from eventura.repos.memory import EVENTS, PROFILES, DocumentStore
from eventura.services.mailer import Mailer, MailMessage, MailRecipient
from eventura.services.templates import (
    format_long_date,
    new_event_email_html,
    welcome_email_html,
)

logger = logging.getLogger(__name__)


def send_welcome_email(
    mailer: Mailer, settings: Settings, email: str, full_name: str
) -> SendResult:
    result = mailer.send(
        MailMessage(
            to=[MailRecipient(email=email, name=full_name)],
            subject=f"Welcome to Eventura, {full_name}!",
            html_body=welcome_email_html(full_name, settings.site_url),
        )
    )
    logger.info("Welcome email to %s: %s", email, result.message)
    return result


def notify_new_event(
    store: DocumentStore, mailer: Mailer, settings: Settings, event_id: str
) -> int:
    """Email every profile about a newly created upcoming event.

    Returns the number of successful sends. One failed recipient does not
    stop the broadcast.
    """
    event: Event | None = store.get(EVENTS, event_id)
    if event is None or event.status != EventStatus.UPCOMING:
        logger.info("Event %s not found or not upcoming, skipping notification.", event_id)
        return 0

    profiles: list[UserProfile] = store.list_all(PROFILES)
    if not profiles:
        logger.info("No users to notify.")
        return 0

    event_date = format_long_date(event.event_date)
    deadline = (
        format_long_date(event.application_deadline) if event.application_deadline else None
    )

    sent = 0
    for profile in profiles:
        if not profile.email:
            continue
        html_body = new_event_email_html(
            profile.full_name,
            event.title,
            event_date,
            settings.site_url,
            event_time=event.event_time,
            event_location=event.location,
            event_category=event.category,
            event_description=event.description,
            application_deadline=deadline,
        )
        try:
            result = mailer.send(
                MailMessage(
                    to=[MailRecipient(email=profile.email, name=profile.full_name)],
                    subject=f"New Event: {event.title}",
                    html_body=html_body,
                )
            )
        except Exception:
            logger.exception("New event notification to %s failed", profile.email)
            continue
        if result.success:
            sent += 1

    logger.info(
        'New event notification sent to %d/%d users for "%s".',
        sent,
        len(profiles),
        event.title,
    )
    return sent


def send_custom_email(
    mailer: Mailer, to_email: str, subject: str, html_body: str, to_name: str | None = None
) -> SendResult:
    return mailer.send(
        MailMessage(
            to=[MailRecipient(email=to_email, name=to_name or to_email)],
            subject=subject,
            html_body=html_body,
        )
    )
