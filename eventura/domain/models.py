"""Domain models for campus events, reminder subscriptions and profiles."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time, timezone
from enum import StrEnum

from dateutil.parser import isoparse
from pydantic import BaseModel, EmailStr, Field, field_validator


class EventStatus(StrEnum):
    UPCOMING = "upcoming"
    PAST = "past"
    CANCELLED = "cancelled"


class EventCategory(StrEnum):
    HACKATHON = "hackathon"
    WORKSHOP = "workshop"
    TECH_TALK = "tech-talk"
    SEMINAR = "seminar"
    CONFERENCE = "conference"
    COMPETITION = "competition"
    WEBINAR = "webinar"
    GENERAL = "general"


class ProfileRole(StrEnum):
    USER = "user"
    ADMIN = "admin"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def as_utc(value: datetime | date | str | None) -> datetime | None:
    """Coerce a stored timestamp to an aware UTC datetime.

    Date-only values mean midnight UTC and naive datetimes are taken as UTC.
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = isoparse(value)
    if not isinstance(value, datetime):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ---------------------------------------------------------------------------
# Stored records
# ---------------------------------------------------------------------------


class Event(BaseModel):
    id: str = Field(default_factory=_new_id)
    title: str
    description: str | None = None
    event_date: date | None = None
    event_time: str | None = None
    application_deadline: datetime | None = None
    status: EventStatus = EventStatus.UPCOMING
    location: str | None = None
    category: EventCategory | None = None
    organizer: str | None = None
    max_participants: int | None = Field(default=None, gt=0)
    registration_link: str | None = None
    created_by: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)

    @field_validator("event_date", mode="before")
    @classmethod
    def _parse_event_date(cls, value):
        if isinstance(value, str) and value:
            return isoparse(value).date()
        return value or None

    @field_validator("application_deadline", mode="before")
    @classmethod
    def _parse_deadline(cls, value):
        return as_utc(value) if value else None


class ReminderSubscription(BaseModel):
    """One row per (user, event); ``is_applied`` is the reminder toggle."""

    id: str = Field(default_factory=_new_id)
    user_id: str
    event_id: str
    is_applied: bool = True
    applied_at: datetime = Field(default_factory=_utcnow)
    reminder_sent: bool = False


class UserProfile(BaseModel):
    id: str = Field(default_factory=_new_id)
    user_id: str
    full_name: str
    email: str | None = None
    role: ProfileRole = ProfileRole.USER
    mobile_number: str | None = None
    department: str | None = None
    year_of_study: str | None = None
    bio: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class EventCreateRequest(BaseModel):
    title: str = Field(min_length=1)
    description: str | None = None
    event_date: date
    event_time: str | None = None
    application_deadline: datetime | None = None
    status: EventStatus = EventStatus.UPCOMING
    location: str | None = None
    category: EventCategory | None = None
    organizer: str | None = None
    max_participants: int | None = Field(default=None, gt=0)
    registration_link: str | None = None
    created_by: str | None = None


class EventUpdateRequest(BaseModel):
    """Admin edit; only the fields sent are patched."""

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    event_date: date | None = None
    event_time: str | None = None
    application_deadline: datetime | None = None
    status: EventStatus | None = None
    location: str | None = None
    category: EventCategory | None = None
    organizer: str | None = None
    max_participants: int | None = Field(default=None, gt=0)
    registration_link: str | None = None


class ProfileCreateRequest(BaseModel):
    user_id: str
    full_name: str
    email: EmailStr
    role: ProfileRole = ProfileRole.USER
    mobile_number: str | None = None
    department: str | None = None
    year_of_study: str | None = None


class ProfileUpdateRequest(BaseModel):
    """Self-service edit; role and email are not editable here."""

    full_name: str | None = Field(default=None, min_length=1)
    mobile_number: str | None = None
    department: str | None = None
    year_of_study: str | None = None
    bio: str | None = None


class ToggleReminderRequest(BaseModel):
    user_id: str


class SingleReminderRequest(BaseModel):
    user_id: str
    event_id: str


class CustomEmailRequest(BaseModel):
    to_email: EmailStr
    to_name: str | None = None
    subject: str = Field(min_length=1)
    html_body: str


class PromoteRequest(BaseModel):
    email: EmailStr


class SendResult(BaseModel):
    success: bool
    message: str


class ToggleResult(BaseModel):
    success: bool = True
    is_applied: bool
    message: str


class SubscriptionStatus(BaseModel):
    is_applied: bool = False
    applied_at: datetime | None = None


class TransitionSummary(BaseModel):
    transitioned: int = 0


class DispatchSummary(BaseModel):
    candidates: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    busy: bool = False

    @property
    def message(self) -> str:
        if self.busy:
            return "Reminder run already in progress."
        if not self.candidates:
            return "No pending reminders."
        return f"Sent {self.sent} deadline reminder(s)."
