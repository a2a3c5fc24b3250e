"""Typed publish/subscribe registry for room events."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Any

from .logging_config import get_logger

logger = get_logger(__name__)

Handler = Callable[[Any], object]


class EventKind(str, Enum):
    """Events emitted by the room.

    ``MESSAGE`` carries the whole chat log as a tuple of `ChatEntry`,
    ``ROSTER_UPDATE`` the whole roster as a tuple of `Participant`.
    """

    MESSAGE = "message"
    ROSTER_UPDATE = "roster-update"


class NotificationBus:
    """Synchronous fan-out of event payloads to subscribed handlers.

    A failing handler is logged and skipped, the remaining handlers still receive
    the payload.
    """

    def __init__(self) -> None:
        self._handlers: dict[EventKind, list[Handler]] = {kind: [] for kind in EventKind}

    def subscribe(self, kind: EventKind | str, handler: Handler) -> None:
        """Register a handler for an event kind. Registering twice has no effect."""
        handlers = self._handlers[EventKind(kind)]
        if handler not in handlers:
            handlers.append(handler)

    def unsubscribe(self, kind: EventKind | str, handler: Handler) -> None:
        """Remove a handler, ignoring handlers that were never registered."""
        handlers = self._handlers[EventKind(kind)]
        if handler in handlers:
            handlers.remove(handler)

    def subscriber_count(self, kind: EventKind | str) -> int:
        return len(self._handlers[EventKind(kind)])

    def publish(self, kind: EventKind, payload: Any) -> None:  # noqa: ANN401
        """Deliver a payload to every handler currently subscribed to ``kind``."""
        # Copy so handlers may unsubscribe themselves during delivery
        for handler in list(self._handlers[kind]):
            try:
                handler(payload)
            except Exception:
                logger.exception(
                    "Event handler failed",
                    event_kind=kind.value,
                    handler=getattr(handler, "__qualname__", repr(handler)),
                )
