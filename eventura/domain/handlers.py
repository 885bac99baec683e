"""Domain-event handlers, wired up at application startup."""

from __future__ import annotations

from eventura.core.config import Settings
from eventura.domain.bus import EventBus
from eventura.domain.events import EventCreated, ProfileCreated
from eventura.repos.memory import DocumentStore
from eventura.services.mailer import Mailer
from eventura.services.notifications import notify_new_event, send_welcome_email


class HandlerRegistry:
    """Wires notification handlers to the bus with access to the store and mailer."""

    def __init__(
        self,
        bus: EventBus,
        store: DocumentStore,
        mailer: Mailer,
        settings: Settings,
    ) -> None:
        self.bus = bus
        self.store = store
        self.mailer = mailer
        self.settings = settings
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(EventCreated, self.on_event_created)
        self.bus.subscribe(ProfileCreated, self.on_profile_created)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_event_created(self, event: EventCreated) -> None:
        # Only upcoming events are broadcast; notify_new_event checks status
        notify_new_event(self.store, self.mailer, self.settings, event.event_id)

    def on_profile_created(self, event: ProfileCreated) -> None:
        send_welcome_email(self.mailer, self.settings, event.email, event.full_name)
