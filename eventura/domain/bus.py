"""Synchronous in-process bus for domain events."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)


class EventBus:
    """Publish/subscribe bus for domain events.

    Handlers are called synchronously in registration order. A failing handler
    is logged and does not stop the remaining handlers or fail the publisher;
    handlers only carry side effects such as notification emails.
    """

    def __init__(self) -> None:
        self._subscribers: dict[type, list[Callable[[Any], None]]] = defaultdict(list)

    def subscribe(self, message_type: type, handler: Callable[[Any], None]) -> None:
        self._subscribers[message_type].append(handler)

    def publish(self, message: Any) -> None:
        for handler in self._subscribers.get(type(message), []):
            try:
                handler(message)
            except Exception:
                logger.exception(
                    "Handler %s failed for %s",
                    getattr(handler, "__qualname__", handler),
                    type(message).__name__,
                )
