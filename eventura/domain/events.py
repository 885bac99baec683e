"""Domain events published by admin and profile mutations."""

from __future__ import annotations

from pydantic import BaseModel


class EventCreated(BaseModel):
    """Fired after an event is inserted."""

    event_id: str


class ProfileCreated(BaseModel):
    """Fired when a user profile is inserted for the first time."""

    profile_id: str
    email: str
    full_name: str
