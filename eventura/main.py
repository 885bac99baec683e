"""FastAPI application: entry point for the campus event reminder service."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, HTTPException

from eventura.core.config import settings
from eventura.core.logging import configure_logging
from eventura.domain.bus import EventBus
from eventura.domain.handlers import HandlerRegistry
from eventura.domain.models import (
    CustomEmailRequest,
    Event,
    EventCreateRequest,
    EventStatus,
    EventUpdateRequest,
    ProfileCreateRequest,
    ProfileUpdateRequest,
    PromoteRequest,
    ReminderSubscription,
    SendResult,
    SingleReminderRequest,
    SubscriptionStatus,
    ToggleReminderRequest,
    ToggleResult,
    UserProfile,
)
from eventura.repos.memory import DocumentStore, RecordNotFound
from eventura.scheduler import start_scheduler
from eventura.services.events import EventService
from eventura.services.lifecycle import LifecycleTransitioner
from eventura.services.mailer import ZeptoMailer
from eventura.services.notifications import send_custom_email
from eventura.services.profiles import ProfileService
from eventura.services.reminders import ReminderDispatcher
from eventura.services.subscriptions import SubscriptionService

configure_logging(settings.log_level)

# ── Singletons (created at import time for simplicity) ────────────────
store = DocumentStore()
event_bus = EventBus()
mailer = ZeptoMailer(settings)

handler_registry = HandlerRegistry(
    bus=event_bus, store=store, mailer=mailer, settings=settings
)
event_service = EventService(store, event_bus)
profile_service = ProfileService(store, event_bus, settings.admin_emails)
subscription_service = SubscriptionService(store, settings)
transitioner = LifecycleTransitioner(store)
dispatcher = ReminderDispatcher(store, mailer, settings)


# ── Scheduled entry points ────────────────────────────────────────────


def auto_transition_past_events(now: datetime | None = None) -> dict:
    """Move upcoming events whose cutoff has passed to ``past``."""
    return {"transitioned": transitioner.run(now).transitioned}


def send_upcoming_reminders(now: datetime | None = None) -> dict:
    """Email every pending subscriber whose event cutoff is within the next 24 hours."""
    summary = dispatcher.run(now)
    return {"success": not summary.busy, "message": summary.message, "sent": summary.sent}


@asynccontextmanager
async def lifespan(_app: FastAPI):
    scheduler = start_scheduler(
        settings, auto_transition_past_events, send_upcoming_reminders
    )
    yield
    if scheduler is not None:
        scheduler.shutdown(wait=False)


app = FastAPI(title=settings.app_name, lifespan=lifespan)


def _not_found(exc: RecordNotFound) -> HTTPException:
    return HTTPException(status_code=404, detail=str(exc))


# ── Events ────────────────────────────────────────────────────────────


@app.post("/events", response_model=Event)
def create_event(body: EventCreateRequest) -> Event:
    """Create an event; upcoming events are announced to every user."""
    return event_service.create(body)


@app.get("/events", response_model=list[Event])
def list_events(status: EventStatus | None = None) -> list[Event]:
    if status is None:
        return event_service.list_all()
    return event_service.list_by_status(status)


@app.get("/events/{event_id}", response_model=Event)
def get_event(event_id: str) -> Event:
    event = event_service.get(event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@app.patch("/events/{event_id}", response_model=Event)
def update_event(event_id: str, body: EventUpdateRequest) -> Event:
    try:
        return event_service.update(event_id, body)
    except RecordNotFound as exc:
        raise _not_found(exc) from exc


@app.delete("/events/{event_id}")
def delete_event(event_id: str) -> dict:
    try:
        event_service.remove(event_id)
    except RecordNotFound as exc:
        raise _not_found(exc) from exc
    return {"deleted": event_id}


# ── Reminder subscriptions ────────────────────────────────────────────


@app.post("/events/{event_id}/reminders/toggle", response_model=ToggleResult)
def toggle_reminder(event_id: str, body: ToggleReminderRequest) -> ToggleResult:
    try:
        return subscription_service.toggle(body.user_id, event_id)
    except RecordNotFound as exc:
        raise _not_found(exc) from exc


@app.get("/events/{event_id}/reminders/status", response_model=SubscriptionStatus)
def reminder_status(event_id: str, user_id: str) -> SubscriptionStatus:
    return subscription_service.check_status(user_id, event_id)


@app.get("/events/{event_id}/reminders/count")
def reminder_count(event_id: str) -> dict:
    return {"event_id": event_id, "count": subscription_service.count_by_event(event_id)}


@app.get("/users/{user_id}/reminders", response_model=list[ReminderSubscription])
def user_reminders(user_id: str) -> list[ReminderSubscription]:
    return subscription_service.list_for_user(user_id)


# ── Profiles ──────────────────────────────────────────────────────────


@app.post("/profiles")
def create_profile(body: ProfileCreateRequest) -> dict:
    return {"id": profile_service.create(body)}


@app.put("/profiles")
def upsert_profile(body: ProfileCreateRequest) -> dict:
    """Sync name and email from the auth provider without a welcome email."""
    return {"id": profile_service.upsert(body)}


@app.patch("/profiles/{user_id}", response_model=UserProfile)
def update_profile(user_id: str, body: ProfileUpdateRequest) -> UserProfile:
    try:
        return profile_service.update(user_id, body)
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail="Profile not found") from exc


# ── Admin ─────────────────────────────────────────────────────────────


@app.post("/admin/reminders/send", response_model=SendResult)
def send_single_reminder(body: SingleReminderRequest) -> SendResult:
    return dispatcher.send_reminder(body.user_id, body.event_id)


@app.post("/admin/emails", response_model=SendResult)
def send_admin_email(body: CustomEmailRequest) -> SendResult:
    return send_custom_email(
        mailer, body.to_email, body.subject, body.html_body, to_name=body.to_name
    )


@app.post("/admin/profiles/promote", response_model=SendResult)
def promote_profile(body: PromoteRequest) -> SendResult:
    return profile_service.set_admin_by_email(body.email)


# ── Manual job triggers ───────────────────────────────────────────────


@app.post("/jobs/transition-past-events")
def run_transition(now: datetime | None = None) -> dict:
    """Run the lifecycle job now.

    Pass *now* as a query param to control the simulated clock.
    """
    return auto_transition_past_events(now)


@app.post("/jobs/send-reminders")
def run_reminders(now: datetime | None = None) -> dict:
    """Run the reminder job now, optionally at a simulated *now*."""
    return send_upcoming_reminders(now)
