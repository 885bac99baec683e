"""User profiles and admin role assignment.

Role assignment reads the admin allowlist from settings instead of a
hard-coded list, so each deployment (and each test) chooses its own admins.
"""

from __future__ import annotations

import logging

from eventura.domain.bus import EventBus
from eventura.domain.events import ProfileCreated
from eventura.domain.models import (
    ProfileCreateRequest,
    ProfileRole,
    ProfileUpdateRequest,
    SendResult,
    UserProfile,
)
from eventura.repos.memory import PROFILES, DocumentStore, RecordNotFound

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(
        self, store: DocumentStore, bus: EventBus, admin_emails: frozenset[str]
    ) -> None:
        self.store = store
        self.bus = bus
        self.admin_emails = frozenset(e.lower() for e in admin_emails)

    def resolve_role(self, email: str, requested: ProfileRole) -> ProfileRole:
        if email.lower() in self.admin_emails:
            return ProfileRole.ADMIN
        return requested

    def get_by_user_id(self, user_id: str) -> UserProfile | None:
        return self.store.first_by_index(PROFILES, user_id=user_id)

    def create(self, request: ProfileCreateRequest) -> str:
        """Insert a profile and send the welcome email; existing users keep theirs."""
        existing = self.get_by_user_id(request.user_id)
        if existing is not None:
            return existing.id

        fields = request.model_dump()
        fields["role"] = self.resolve_role(request.email, request.role)
        profile_id = self.store.insert(PROFILES, fields)
        logger.info("Created profile %s with role %s", profile_id, fields["role"])

        self.bus.publish(
            ProfileCreated(
                profile_id=profile_id, email=request.email, full_name=request.full_name
            )
        )
        return profile_id

    def upsert(self, request: ProfileCreateRequest) -> str:
        """Refresh name and email on an existing profile, or insert quietly."""
        existing = self.get_by_user_id(request.user_id)
        if existing is not None:
            self.store.patch(
                PROFILES,
                existing.id,
                {"full_name": request.full_name, "email": request.email},
            )
            return existing.id

        fields = request.model_dump()
        fields["role"] = self.resolve_role(request.email, request.role)
        return self.store.insert(PROFILES, fields)

    def update(self, user_id: str, request: ProfileUpdateRequest) -> UserProfile:
        profile = self.get_by_user_id(user_id)
        if profile is None:
            raise RecordNotFound(PROFILES, user_id)
        return self.store.patch(
            PROFILES, profile.id, request.model_dump(exclude_unset=True)
        )

    def set_admin_by_email(self, email: str) -> SendResult:
        profile = self.store.first_by_index(PROFILES, email=email)
        if profile is None:
            return SendResult(success=False, message=f"No user found with email {email}")
        self.store.patch(PROFILES, profile.id, {"role": ProfileRole.ADMIN})
        return SendResult(success=True, message=f"{email} is now an admin")
