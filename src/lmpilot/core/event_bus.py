"""Event bus for synchronous notification of pipeline outcomes.

The ticker and the command slot publish events here so a host can observe
published commands and failed ticks without coupling to either.

Typical usage example:
    from lmpilot.core.event_bus import EventBus, EventPriority
    from lmpilot.control.actuator import CommandPublishedEvent

    bus = EventBus()
    bus.subscribe(CommandPublishedEvent, on_command, EventPriority.HIGH)
"""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any


class EventPriority(Enum):
    """Priority levels for event handlers, CRITICAL first."""

    CRITICAL = auto()
    HIGH = auto()
    NORMAL = auto()
    LOW = auto()


@dataclass
class Event:
    """Base class for all events.

    Attributes:
        timestamp: Unix timestamp when the event was created.
    """

    timestamp: float = field(default_factory=time.time, kw_only=True)


class EventBus:
    """Central event bus for synchronous event dispatch.

    Handlers run in the publisher's context, in priority order. Exceptions
    raised by a handler propagate to the publisher.

    Examples:
        >>> bus = EventBus()
        >>> bus.subscribe(TickFailedEvent, lambda e: print(e.error))
        >>> bus.publish(TickFailedEvent(error=TransportError("boom")))
        boom
    """

    def __init__(self) -> None:
        self._handlers: dict[type[Event], list[tuple[Callable[[Any], None], EventPriority]]] = {}

    def subscribe(
        self,
        event_type: type[Event],
        handler: Callable[[Any], None],
        priority: EventPriority = EventPriority.NORMAL,
    ) -> None:
        """Subscribe a handler to an event type.

        Args:
            event_type: The class of event to subscribe to.
            handler: Callable that accepts the event as its only parameter.
            priority: Priority level for this handler.
        """
        handlers = self._handlers.setdefault(event_type, [])
        handlers.append((handler, priority))
        handlers.sort(key=lambda x: x[1].value)

    def unsubscribe(self, event_type: type[Event], handler: Callable[[Any], None]) -> None:
        """Unsubscribe a handler. No-op if it is not subscribed.

        Args:
            event_type: The event type to unsubscribe from.
            handler: The handler function to remove.
        """
        if event_type in self._handlers:
            self._handlers[event_type] = [
                (h, p) for h, p in self._handlers[event_type] if h != handler
            ]

            if not self._handlers[event_type]:
                del self._handlers[event_type]

    def publish(self, event: Event) -> None:
        """Publish an event to all subscribers of its exact type.

        Args:
            event: The event to publish.
        """
        for handler, _ in self._handlers.get(type(event), []):
            handler(event)

    def clear(self) -> None:
        """Remove all event handlers."""
        self._handlers.clear()

    def get_subscriber_count(self, event_type: type[Event]) -> int:
        """Get the number of subscribers for an event type."""
        return len(self._handlers.get(event_type, []))
