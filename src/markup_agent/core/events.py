"""Event system for observing agent sessions.

This module provides the stream-event alphabet shared by the tag parser and
the turn orchestrator, and a per-session event bus that fans those events
out to subscribers in publish order.
"""

import asyncio
from abc import ABC
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from rich.console import Console

_console = Console(stderr=True)

# Handlers receive the session id alongside the event
EventHandler = Callable[[str, "Event"], None]


# =============================================================================
# Base Event Class
# =============================================================================


@dataclass
class Event(ABC):
    """Base class for all events.

    The timestamp is informational only and does not take part in equality,
    so two event sequences describing the same stream compare equal.
    """

    timestamp: datetime = field(
        default_factory=datetime.now, compare=False, repr=False, kw_only=True
    )

    @property
    def event_type(self) -> str:
        """Return the event type name (class name)."""
        return self.__class__.__name__

    @property
    def topic(self) -> str:
        """Topic name observers use to route the event."""
        return "token"


# =============================================================================
# Stream Events (parser + orchestrator output alphabet)
# =============================================================================


@dataclass
class TokenEvent(Event):
    """Plain thought text, emitted as early as possible."""

    text: str


@dataclass
class ToolStartEvent(Event):
    """A <tool name="..."> element opened."""

    name: str


@dataclass
class ToolArgEvent(Event):
    """One complete argument of the current tool."""

    name: str
    value: str


@dataclass
class ToolEndEvent(Event):
    """The current tool element closed."""


@dataclass
class ErrorEvent(Event):
    """Malformed markup or a fatal turn error."""

    message: str


@dataclass
class DoneEvent(Event):
    """End of one model response stream."""


# =============================================================================
# Out-of-band Events
# =============================================================================


@dataclass
class StatusEvent(Event):
    """Session status changed (running, waiting, error, cancelled, idle)."""

    status: str

    @property
    def topic(self) -> str:
        return "status"


@dataclass
class ToolOutputEvent(Event):
    """A formatted tool result was appended to history."""

    tool_name: str
    content: str
    success: bool = True

    @property
    def topic(self) -> str:
        return "tool_output"


# =============================================================================
# Subscription
# =============================================================================

_CLOSED = object()


class Subscription:
    """Ordered, per-subscriber view of one session's events.

    Events published after the subscription was created are queued in
    publish order. Consume them with ``drain()`` (non-blocking), ``await
    get()``, or ``async for``. Closing the subscription (or closing the
    session on the bus) ends async iteration once the queue is empty.
    """

    def __init__(self, bus: "EventBus", session_id: str) -> None:
        self.session_id = session_id
        self._bus = bus
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _deliver(self, event: Event) -> None:
        if not self._closed:
            self._queue.put_nowait(event)

    def _end(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    def drain(self) -> list[Event]:
        """Return every queued event without waiting."""
        events: list[Event] = []
        while True:
            try:
                item = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            if item is _CLOSED:
                # Keep the marker so async consumers still see the end
                self._queue.put_nowait(_CLOSED)
                break
            events.append(item)
        return events

    async def get(self) -> Event | None:
        """Wait for the next event. Returns None once the subscription ended."""
        item = await self._queue.get()
        if item is _CLOSED:
            self._queue.put_nowait(_CLOSED)
            return None
        return item

    def close(self) -> None:
        """Stop receiving events."""
        self._bus._remove_subscription(self)
        self._end()

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> Event:
        event = await self.get()
        if event is None:
            raise StopAsyncIteration
        return event

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


# =============================================================================
# EventBus
# =============================================================================


class EventBus:
    """Per-session synchronous event bus.

    Queue subscriptions and callback handlers are both fed synchronously
    from ``publish``, in subscription order, so every subscriber sees the
    exact publish order. Handler errors are caught and printed but don't
    affect other subscribers.
    """

    def __init__(self) -> None:
        self._subscriptions: dict[str, list[Subscription]] = defaultdict(list)
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._global_handlers: list[EventHandler] = []

    def subscribe(self, session_id: str) -> Subscription:
        """Create a queue subscription for one session.

        No replay: only events published after this call are delivered.
        """
        subscription = Subscription(self, session_id)
        self._subscriptions[session_id].append(subscription)
        return subscription

    def subscribe_handler(
        self,
        session_id: str,
        handler: EventHandler,
    ) -> Callable[[], None]:
        """Subscribe a callback to one session.

        Returns:
            Unsubscribe function - call to remove the subscription
        """
        self._handlers[session_id].append(handler)

        def unsubscribe() -> None:
            try:
                self._handlers[session_id].remove(handler)
            except ValueError:
                pass  # Already removed

        return unsubscribe

    def subscribe_all(self, handler: EventHandler) -> Callable[[], None]:
        """Subscribe a callback to every session.

        Returns:
            Unsubscribe function - call to remove the subscription
        """
        self._global_handlers.append(handler)

        def unsubscribe() -> None:
            try:
                self._global_handlers.remove(handler)
            except ValueError:
                pass  # Already removed

        return unsubscribe

    def publish(self, session_id: str, event: Event) -> None:
        """Publish an event to all subscribers of a session.

        Queue subscriptions first, then session handlers, then global
        handlers.
        """
        for subscription in list(self._subscriptions.get(session_id, [])):
            subscription._deliver(event)

        for handler in list(self._handlers.get(session_id, [])):
            try:
                handler(session_id, event)
            except Exception as e:
                _console.print(f"[yellow][EventBus][/yellow] Handler error for {event.event_type}: {e}")

        for handler in list(self._global_handlers):
            try:
                handler(session_id, event)
            except Exception as e:
                _console.print(f"[yellow][EventBus][/yellow] Global handler error for {event.event_type}: {e}")

    def subscriber_count(self, session_id: str) -> int:
        return len(self._subscriptions.get(session_id, [])) + len(
            self._handlers.get(session_id, [])
        )

    def close_session(self, session_id: str) -> None:
        """End every subscription tied to a session."""
        for subscription in self._subscriptions.pop(session_id, []):
            subscription._end()
        self._handlers.pop(session_id, None)

    def clear(self) -> None:
        """Clear all subscriptions."""
        for session_id in list(self._subscriptions):
            self.close_session(session_id)
        self._handlers.clear()
        self._global_handlers.clear()

    def _remove_subscription(self, subscription: Subscription) -> None:
        subscriptions = self._subscriptions.get(subscription.session_id)
        if subscriptions and subscription in subscriptions:
            subscriptions.remove(subscription)
