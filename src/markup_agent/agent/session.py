"""세션 저장소.

세션 식별자, 상태, 추가 전용 메시지 로그를 관리합니다.
"""

import threading
import time
from dataclasses import dataclass, field
from uuid import uuid4

from markup_agent.core.errors import SessionError

from .history import HistoryRepository, HistoryRow, InMemoryHistoryRepository
from .message import Message
from .states import SessionStatus, can_transition


@dataclass
class SessionRecord:
    """세션 메타데이터."""

    id: str
    status: SessionStatus = SessionStatus.IDLE
    turn_count: int = 0
    owner: str | None = None
    created_at: float = field(default_factory=time.time)


class SessionStore:
    """세션 상태와 메시지 로그 저장소.

    변경 작업은 세션을 claim()한 오케스트레이터만 호출해야 합니다.
    읽기는 언제나 안전하며 완전히 기록된 메시지들의 접두부를 반환합니다.
    """

    def __init__(self, repository: HistoryRepository | None = None) -> None:
        self.repository = repository or InMemoryHistoryRepository()
        self._sessions: dict[str, SessionRecord] = {}
        self._logs: dict[str, list[Message]] = {}
        self._lock = threading.RLock()

    # --- 세션 생명주기 ---

    def create(self) -> str:
        """새 세션 생성.

        Returns:
            세션 ID
        """
        session_id = str(uuid4())
        with self._lock:
            self._sessions[session_id] = SessionRecord(id=session_id)
            self._logs[session_id] = []
        return session_id

    def load(self, session_id: str) -> str:
        """저장소의 기록으로 세션 복원 (상태는 IDLE).

        Raises:
            SessionError: 기록이 없는 세션
        """
        with self._lock:
            if session_id in self._sessions:
                return session_id
            rows = self.repository.query(session_id)
            if not rows:
                raise SessionError(f"No stored history for session: {session_id}")
            self._sessions[session_id] = SessionRecord(id=session_id)
            self._logs[session_id] = [row.to_message() for row in rows]
        return session_id

    def exists(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def list_sessions(self) -> list[str]:
        with self._lock:
            return list(self._sessions)

    def _get(self, session_id: str) -> SessionRecord:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionError(f"Unknown session: {session_id}") from None

    # --- 단일 작성자 ---

    def claim(self, session_id: str, owner: str) -> bool:
        """세션 변경 권한 획득. 다른 소유자가 있으면 False."""
        with self._lock:
            record = self._get(session_id)
            if record.owner is not None and record.owner != owner:
                return False
            record.owner = owner
            return True

    def release(self, session_id: str, owner: str) -> None:
        """세션 변경 권한 반납."""
        with self._lock:
            record = self._get(session_id)
            if record.owner == owner:
                record.owner = None

    def owner_of(self, session_id: str) -> str | None:
        with self._lock:
            return self._get(session_id).owner

    # --- 메시지 로그 ---

    def append_message(self, session_id: str, message: Message) -> int:
        """메시지 추가.

        Returns:
            메시지의 sequence_order
        """
        with self._lock:
            self._get(session_id)
            log = self._logs[session_id]
            sequence = len(log)
            # 영속화가 실패하면 로그도 바뀌지 않음
            self.repository.append(HistoryRow.from_message(session_id, sequence, message))
            log.append(message)
            return sequence

    def read_all(self, session_id: str) -> list[Message]:
        """메시지 로그 스냅샷."""
        with self._lock:
            self._get(session_id)
            return list(self._logs[session_id])

    def message_count(self, session_id: str) -> int:
        with self._lock:
            self._get(session_id)
            return len(self._logs[session_id])

    # --- 상태 ---

    def get_status(self, session_id: str) -> SessionStatus:
        with self._lock:
            return self._get(session_id).status

    def set_status(self, session_id: str, status: SessionStatus) -> None:
        """상태 변경.

        Raises:
            SessionError: 허용되지 않은 전이
        """
        with self._lock:
            record = self._get(session_id)
            if record.status is status:
                return
            if not can_transition(record.status, status):
                raise SessionError(
                    f"Invalid status transition for {session_id}: "
                    f"{record.status.value} -> {status.value}"
                )
            record.status = status

    def increment_turn_count(self, session_id: str) -> int:
        with self._lock:
            record = self._get(session_id)
            record.turn_count += 1
            return record.turn_count

    def get_turn_count(self, session_id: str) -> int:
        with self._lock:
            return self._get(session_id).turn_count

    def close(self) -> None:
        self.repository.close()
