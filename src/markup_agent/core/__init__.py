"""Core components package.

Contains fundamental building blocks used across the application.
"""

from .errors import (
    AgentError,
    ParseError,
    ToolError,
    ToolErrorKind,
    TransportError,
    SessionError,
    FsError,
    ShellError,
)
from .events import (
    # Base
    Event,
    EventBus,
    EventHandler,
    Subscription,
    # Stream events
    TokenEvent,
    ToolStartEvent,
    ToolArgEvent,
    ToolEndEvent,
    ErrorEvent,
    DoneEvent,
    # Out-of-band events
    StatusEvent,
    ToolOutputEvent,
)
from .event_logger import EventLogger

__all__ = [
    # Errors
    "AgentError",
    "ParseError",
    "ToolError",
    "ToolErrorKind",
    "TransportError",
    "SessionError",
    "FsError",
    "ShellError",
    # Base
    "Event",
    "EventBus",
    "EventHandler",
    "Subscription",
    # Stream events
    "TokenEvent",
    "ToolStartEvent",
    "ToolArgEvent",
    "ToolEndEvent",
    "ErrorEvent",
    "DoneEvent",
    # Out-of-band events
    "StatusEvent",
    "ToolOutputEvent",
    # Logger
    "EventLogger",
]
