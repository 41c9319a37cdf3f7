"""
Event bus for decoupled communication between metronome components.

Events allow components to communicate without direct dependencies.
For example, the config store can emit ConfigChanged events without
knowing which plugin (if any) is listening for them.
"""

import threading
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from .log import get_logger

logger = get_logger(__name__)


# Base event class
@dataclass
class Event:
    """Base class for all events."""

    timestamp: datetime = field(default_factory=datetime.now)


# Host events
@dataclass
class GameTick(Event):
    """Fired once per host simulation step.

    Carries no payload; the receiver only cares that a step happened.
    """

    pass


@dataclass
class ConfigChanged(Event):
    """Fired when a single configuration key changes value.

    Listeners filter on `group` so several plugins can share one store.
    """

    group: str = ""
    key: str = ""
    old_value: Any = None
    new_value: Any = None


class EventBus:
    """
    Simple synchronous event bus for component communication.

    Components can subscribe to event types and will be notified
    when events of that type are emitted.

    Thread-safe: can be used from multiple threads.
    """

    def __init__(self):
        self._subscribers: dict[type, list[Callable[[Event], None]]] = defaultdict(list)
        self._lock = threading.RLock()

    def subscribe(self, event_type: type[Event], handler: Callable[[Event], None]) -> None:
        """
        Subscribe to events of a specific type.

        Args:
            event_type: The event class to subscribe to
            handler: Callable that receives the event when emitted
        """
        with self._lock:
            self._subscribers[event_type].append(handler)

    def unsubscribe(self, event_type: type[Event], handler: Callable[[Event], None]) -> None:
        """
        Unsubscribe from events of a specific type.

        Args:
            event_type: The event class to unsubscribe from
            handler: The handler to remove
        """
        with self._lock:
            if handler in self._subscribers[event_type]:
                self._subscribers[event_type].remove(handler)

    def emit(self, event: Event) -> None:
        """
        Emit an event to all subscribers.

        Handlers are called synchronously in subscription order, so a handler
        finishes before the next event is delivered.

        Args:
            event: The event instance to emit
        """
        with self._lock:
            handlers = list(self._subscribers[type(event)])

        for handler in handlers:
            try:
                handler(event)
            except Exception:
                # Log but don't propagate handler errors
                logger.exception(f"Error in event handler for {type(event).__name__}")

    def clear(self) -> None:
        """Remove all subscribers."""
        with self._lock:
            self._subscribers.clear()
