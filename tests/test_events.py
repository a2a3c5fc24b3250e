"""Tests for the notification bus."""

from __future__ import annotations

import pytest

from simroom.events import EventKind, NotificationBus


class TestNotificationBus:
    """Test subscription management and delivery."""

    def test_publish_reaches_every_subscriber(self) -> None:
        """Every handler subscribed to a kind receives the payload."""
        bus = NotificationBus()
        first: list[object] = []
        second: list[object] = []
        bus.subscribe(EventKind.MESSAGE, first.append)
        bus.subscribe(EventKind.MESSAGE, second.append)

        bus.publish(EventKind.MESSAGE, ("entry",))

        assert first == [("entry",)]
        assert second == [("entry",)]

    def test_kinds_are_independent(self) -> None:
        """Handlers only see events of the kind they subscribed to."""
        bus = NotificationBus()
        messages: list[object] = []
        rosters: list[object] = []
        bus.subscribe(EventKind.MESSAGE, messages.append)
        bus.subscribe(EventKind.ROSTER_UPDATE, rosters.append)

        bus.publish(EventKind.ROSTER_UPDATE, ())

        assert messages == []
        assert rosters == [()]

    def test_string_kinds(self) -> None:
        """The wire names of the event kinds can be used instead of the enum."""
        bus = NotificationBus()
        received: list[object] = []
        bus.subscribe("roster-update", received.append)

        bus.publish(EventKind.ROSTER_UPDATE, ("alice",))
        bus.unsubscribe("roster-update", received.append)
        bus.publish(EventKind.ROSTER_UPDATE, ("bob",))

        assert received == [("alice",)]

    def test_unknown_kind_is_rejected(self) -> None:
        """Subscribing to an event kind that doesn't exist fails loudly."""
        bus = NotificationBus()
        with pytest.raises(ValueError, match="typing"):
            bus.subscribe("typing", print)

    def test_duplicate_subscription_delivers_once(self) -> None:
        """Subscribing the same handler twice registers it once."""
        bus = NotificationBus()
        received: list[object] = []
        bus.subscribe(EventKind.MESSAGE, received.append)
        bus.subscribe(EventKind.MESSAGE, received.append)

        bus.publish(EventKind.MESSAGE, ())

        assert received == [()]
        assert bus.subscriber_count(EventKind.MESSAGE) == 1

    def test_unsubscribe_unknown_handler_is_noop(self) -> None:
        """Removing a handler that was never added does nothing."""
        bus = NotificationBus()
        bus.unsubscribe(EventKind.MESSAGE, print)
        assert bus.subscriber_count(EventKind.MESSAGE) == 0

    def test_failing_handler_does_not_block_others(self) -> None:
        """A handler that raises is isolated from the rest."""
        bus = NotificationBus()
        received: list[object] = []

        def broken(payload: object) -> None:
            msg = "render failed"
            raise RuntimeError(msg)

        bus.subscribe(EventKind.MESSAGE, broken)
        bus.subscribe(EventKind.MESSAGE, received.append)

        bus.publish(EventKind.MESSAGE, ("entry",))

        assert received == [("entry",)]

    def test_handler_can_unsubscribe_during_delivery(self) -> None:
        """Unsubscribing from inside a handler doesn't skip other handlers."""
        bus = NotificationBus()
        received: list[str] = []

        def once(payload: object) -> None:
            received.append("once")
            bus.unsubscribe(EventKind.MESSAGE, once)

        bus.subscribe(EventKind.MESSAGE, once)
        bus.subscribe(EventKind.MESSAGE, lambda payload: received.append("always"))

        bus.publish(EventKind.MESSAGE, ())
        bus.publish(EventKind.MESSAGE, ())

        assert received == ["once", "always", "always"]
