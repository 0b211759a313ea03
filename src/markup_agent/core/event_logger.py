"""Event-based logger for debugging and monitoring.

Subscribes to the event bus and logs session activity to the console.
"""

from typing import Callable

from rich.console import Console
from rich.markup import escape
from rich.text import Text

from .events import (
    Event,
    EventBus,
    TokenEvent,
    ToolStartEvent,
    ToolArgEvent,
    ToolEndEvent,
    ErrorEvent,
    DoneEvent,
    StatusEvent,
    ToolOutputEvent,
)


class EventLogger:
    """Logs session events to the console.

    Normal mode logs status changes, tool calls, tool outputs and errors.
    Verbose mode also logs tool arguments and stream boundaries.
    """

    def __init__(
        self,
        console: Console | None = None,
        verbose: bool = False,
        preview_length: int = 200,
    ) -> None:
        """Initialize the event logger.

        Args:
            console: Rich console for output. Creates new one if not provided.
            verbose: If True, logs argument and stream events too.
            preview_length: Maximum characters shown for tool output.
        """
        self.console = console or Console()
        self.verbose = verbose
        self.preview_length = preview_length
        self._unsubscribers: list[Callable[[], None]] = []

    def attach(self, bus: EventBus, session_id: str | None = None) -> None:
        """Attach to an event bus and start logging.

        Args:
            bus: The event bus to subscribe to
            session_id: Only log this session (all sessions when omitted)
        """
        if session_id is None:
            unsub = bus.subscribe_all(self._on_event)
        else:
            unsub = bus.subscribe_handler(session_id, self._on_event)
        self._unsubscribers.append(unsub)

    def detach(self) -> None:
        """Detach from the event bus and stop logging."""
        for unsub in self._unsubscribers:
            unsub()
        self._unsubscribers.clear()

    def _on_event(self, session_id: str, event: Event) -> None:
        short_id = session_id[:8]

        if isinstance(event, StatusEvent):
            self.console.print(f"[dim]({short_id}) status → {event.status}[/dim]")
        elif isinstance(event, ToolStartEvent):
            self.console.print(f"[dim]({short_id})  ▶ {escape(event.name)}[/dim]")
        elif isinstance(event, ToolOutputEvent):
            status = "✓" if event.success else "✗"
            preview = event.content
            if len(preview) > self.preview_length:
                preview = preview[: self.preview_length] + "..."
            self.console.print(f"[dim]({short_id})  {status} {escape(event.tool_name)}[/dim]")
            self.console.print(Text(preview, style="dim"))
        elif isinstance(event, ErrorEvent):
            self.console.print(f"[yellow]({short_id}) error:[/yellow] {escape(event.message)}")
        elif self.verbose:
            if isinstance(event, ToolArgEvent):
                preview = escape(repr(event.value[:80]))
                self.console.print(f"[dim]({short_id})    {escape(event.name)} = {preview}[/dim]")
            elif isinstance(event, (ToolEndEvent, DoneEvent)):
                self.console.print(f"[dim]({short_id})  \\[{event.event_type}][/dim]")
            elif not isinstance(event, TokenEvent):
                self.console.print(f"[dim]({short_id})  \\[EVENT] {event.event_type}[/dim]")
