"""Message history persistence.

Rows of ``(session_id, role, content, sequence_order)`` plus the message
kind and its tool calls as JSON. The session store owns ordering; a
repository only appends and queries.
"""

import json
import sqlite3
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from .message import Message, MessageKind, ToolCall


@dataclass(frozen=True)
class HistoryRow:
    """One persisted message."""

    session_id: str
    role: str
    content: str
    sequence_order: int
    kind: str = MessageKind.PLAIN.value
    tool_calls: str = "[]"

    @classmethod
    def from_message(cls, session_id: str, sequence_order: int, message: Message) -> "HistoryRow":
        return cls(
            session_id=session_id,
            role=message.role,
            content=message.content,
            sequence_order=sequence_order,
            kind=message.kind.value,
            tool_calls=json.dumps([call.to_dict() for call in message.tool_calls]),
        )

    def to_message(self) -> Message:
        calls = json.loads(self.tool_calls) if self.tool_calls else []
        return Message(
            role=self.role,  # type: ignore[arg-type]
            content=self.content,
            kind=MessageKind(self.kind),
            tool_calls=tuple(ToolCall.from_dict(c) for c in calls),
        )


class HistoryRepository(ABC):
    """Append/query persistence collaborator."""

    @abstractmethod
    def append(self, row: HistoryRow) -> None:
        """Persist one row."""
        pass

    @abstractmethod
    def query(self, session_id: str) -> list[HistoryRow]:
        """All rows of a session ordered by sequence_order."""
        pass

    @abstractmethod
    def session_ids(self) -> list[str]:
        """Sessions with at least one row."""
        pass

    def close(self) -> None:
        """Release resources."""
        pass


class InMemoryHistoryRepository(HistoryRepository):
    """Process-local repository."""

    def __init__(self) -> None:
        self._rows: dict[str, list[HistoryRow]] = {}
        self._lock = threading.Lock()

    def append(self, row: HistoryRow) -> None:
        with self._lock:
            self._rows.setdefault(row.session_id, []).append(row)

    def query(self, session_id: str) -> list[HistoryRow]:
        with self._lock:
            rows = list(self._rows.get(session_id, []))
        return sorted(rows, key=lambda r: r.sequence_order)

    def session_ids(self) -> list[str]:
        with self._lock:
            return list(self._rows)


class SqliteHistoryRepository(HistoryRepository):
    """SQLite-backed repository.

    Args:
        path: Database file path, or ":memory:"
    """

    _SCHEMA = """
        CREATE TABLE IF NOT EXISTS messages (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            session_id TEXT NOT NULL,
            role TEXT NOT NULL,
            content TEXT NOT NULL,
            sequence_order INTEGER NOT NULL,
            kind TEXT NOT NULL DEFAULT 'plain',
            tool_calls TEXT NOT NULL DEFAULT '[]',
            UNIQUE (session_id, sequence_order)
        )
    """

    def __init__(self, path: str | Path = ":memory:") -> None:
        if str(path) != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(path), check_same_thread=False)
        self._lock = threading.Lock()
        with self._lock, self._conn:
            self._conn.execute(self._SCHEMA)

    def append(self, row: HistoryRow) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT INTO messages (session_id, role, content, sequence_order, kind, tool_calls) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (row.session_id, row.role, row.content, row.sequence_order, row.kind, row.tool_calls),
            )

    def query(self, session_id: str) -> list[HistoryRow]:
        with self._lock:
            cursor = self._conn.execute(
                "SELECT session_id, role, content, sequence_order, kind, tool_calls "
                "FROM messages WHERE session_id = ? ORDER BY sequence_order ASC",
                (session_id,),
            )
            return [HistoryRow(*values) for values in cursor.fetchall()]

    def session_ids(self) -> list[str]:
        with self._lock:
            cursor = self._conn.execute(
                "SELECT session_id FROM messages GROUP BY session_id ORDER BY MIN(id)"
            )
            return [values[0] for values in cursor.fetchall()]

    def close(self) -> None:
        with self._lock:
            self._conn.close()
