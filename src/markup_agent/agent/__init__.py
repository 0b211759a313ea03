"""Agent core module."""

from .dispatcher import ToolDispatcher
from .loop import TurnOrchestrator, SYSTEM_PROMPT_TEMPLATE
from .session import SessionRecord, SessionStore
from .history import (
    HistoryRow,
    HistoryRepository,
    InMemoryHistoryRepository,
    SqliteHistoryRepository,
)
from .states import (
    SessionStatus,
    TurnPhase,
    TerminationReason,
    TurnContext,
    ALLOWED_TRANSITIONS,
    can_transition,
)
from .message import (
    Role,
    MessageKind,
    Message,
    ToolCall,
    PendingMessage,
)

__all__ = [
    "ToolDispatcher",
    "TurnOrchestrator",
    "SYSTEM_PROMPT_TEMPLATE",
    # Sessions
    "SessionRecord",
    "SessionStore",
    "HistoryRow",
    "HistoryRepository",
    "InMemoryHistoryRepository",
    "SqliteHistoryRepository",
    # States
    "SessionStatus",
    "TurnPhase",
    "TerminationReason",
    "TurnContext",
    "ALLOWED_TRANSITIONS",
    "can_transition",
    # Messages
    "Role",
    "MessageKind",
    "Message",
    "ToolCall",
    "PendingMessage",
]
