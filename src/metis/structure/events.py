"""
Synchronous event bus for the mission structure engine.

The engine publishes one event per observable change (structure changes,
new and deleted prototypes, decoration changes, transformation and
selection changes). Hosts subscribe to a specific kind, or to ``activity``
to receive everything.

Delivery is synchronous and in subscription order: ``publish`` returns only
after every matching handler has run. Handler exceptions propagate to the
caller of the mutation that triggered the event.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

logger = logging.getLogger(__name__)


class StructureEventKind(str, Enum):
    """Kinds of events published by the structure engine."""

    ACTIVITY = "activity"  # Subscription-only wildcard, never published
    STRUCTURE_CHANGE = "structure-change"
    NEW_PROTOTYPE = "new-prototype"
    DELETE_PROTOTYPE = "delete-prototype"
    SET_BUTTONS = "set-buttons"
    TRANSFORMATION_CHANGE = "transformation-change"
    SELECTION_CHANGE = "selection-change"


def _utc_now() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(UTC)


@dataclass(frozen=True)
class StructureEvent:
    """
    Envelope for a structure engine event.

    Attributes:
        kind: What happened
        key: Prototype id for prototype events, the new structure change
            key for structure changes, empty otherwise
        payload: Event details as a JSON-serializable dict
        event_id: Unique identifier for this event
        timestamp: When the event was published (UTC)
    """

    kind: StructureEventKind
    key: str = ""
    payload: dict[str, Any] = field(default_factory=dict)
    event_id: UUID = field(default_factory=uuid4)
    timestamp: datetime = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the event to a JSON-serializable dictionary."""
        return {
            "event_id": str(self.event_id),
            "kind": self.kind.value,
            "key": self.key,
            "payload": self.payload,
            "timestamp": self.timestamp.isoformat(),
        }


# Type alias for event handlers
StructureEventHandler = Callable[[StructureEvent], None]


@dataclass
class Subscription:
    """An active subscription on the bus."""

    kind: StructureEventKind
    handler: StructureEventHandler
    created_at: datetime = field(default_factory=_utc_now)


class StructureEventBus:
    """
    In-process publish/subscribe for structure events.

    Example:
        bus = StructureEventBus()

        def on_change(event: StructureEvent) -> None:
            print(f"Redraw: {event.key}")

        bus.subscribe(StructureEventKind.STRUCTURE_CHANGE, on_change)
    """

    def __init__(self, history_size: int = 256) -> None:
        self._subscriptions: list[Subscription] = []
        # Most recent events, oldest first
        self._history: deque[StructureEvent] = deque(maxlen=history_size)

    @property
    def subscriptions(self) -> list[Subscription]:
        return list(self._subscriptions)

    def subscribe(
        self,
        kind: StructureEventKind | str,
        handler: StructureEventHandler,
    ) -> Subscription:
        """
        Subscribe a handler to one kind of event.

        Args:
            kind: Event kind, or ``activity`` for every event
            handler: Callable receiving the event

        Returns:
            The created subscription
        """
        subscription = Subscription(kind=StructureEventKind(kind), handler=handler)
        self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, handler: StructureEventHandler) -> int:
        """
        Remove every subscription using ``handler``.

        Returns:
            Number of subscriptions removed
        """
        before = len(self._subscriptions)
        self._subscriptions = [s for s in self._subscriptions if s.handler != handler]
        return before - len(self._subscriptions)

    def clear(self) -> None:
        """Remove all subscriptions."""
        self._subscriptions = []

    def publish(self, event: StructureEvent) -> None:
        """
        Deliver an event to matching subscribers.

        Raises:
            ValueError: If the event kind is the ``activity`` wildcard
        """
        if event.kind == StructureEventKind.ACTIVITY:
            raise ValueError("activity is a subscription wildcard and cannot be published")

        self._history.append(event)
        logger.debug("Publishing %s (key=%s)", event.kind.value, event.key)

        # Snapshot so handlers may (un)subscribe while being notified
        for subscription in list(self._subscriptions):
            if subscription.kind in (event.kind, StructureEventKind.ACTIVITY):
                subscription.handler(event)

    def emit(
        self,
        kind: StructureEventKind,
        key: str = "",
        /,
        **payload: Any,
    ) -> StructureEvent:
        """Build and publish an event, returning it."""
        event = StructureEvent(kind=kind, key=key, payload=payload)
        self.publish(event)
        return event

    def history(
        self,
        kind: StructureEventKind | None = None,
        key: str | None = None,
    ) -> Iterator[StructureEvent]:
        """
        Replay recently published events, oldest first.

        Args:
            kind: Only yield events of this kind
            key: Only yield events with this key
        """
        for event in list(self._history):
            if kind is not None and event.kind != kind:
                continue
            if key is not None and event.key != key:
                continue
            yield event


__all__ = [
    "StructureEvent",
    "StructureEventBus",
    "StructureEventHandler",
    "StructureEventKind",
    "Subscription",
]
