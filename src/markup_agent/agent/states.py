"""Session status and turn context.

세션 상태 전이 규칙과 턴 실행 컨텍스트 정의.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any
import time


class SessionStatus(Enum):
    """세션의 현재 상태."""

    IDLE = "idle"               # 생성 직후
    RUNNING = "running"         # 턴 실행 중
    WAITING = "waiting"         # 모델이 도구 없이 응답 (사용자 입력 대기)
    ERROR = "error"             # 전송 실패 또는 턴 한도 초과
    CANCELLED = "cancelled"     # 협조적 취소


# 허용된 상태 전이
ALLOWED_TRANSITIONS: dict[SessionStatus, frozenset[SessionStatus]] = {
    SessionStatus.IDLE: frozenset({SessionStatus.RUNNING}),
    SessionStatus.RUNNING: frozenset({
        SessionStatus.WAITING,
        SessionStatus.ERROR,
        SessionStatus.CANCELLED,
    }),
    SessionStatus.WAITING: frozenset({SessionStatus.RUNNING}),
    SessionStatus.ERROR: frozenset({SessionStatus.IDLE}),
    SessionStatus.CANCELLED: frozenset({SessionStatus.IDLE}),
}


def can_transition(old: SessionStatus, new: SessionStatus) -> bool:
    """상태 전이 허용 여부."""
    return new in ALLOWED_TRANSITIONS[old]


class TurnPhase(Enum):
    """턴 내부 단계."""

    IDLE = auto()               # start_turn() 호출 전
    RECEIVING_INPUT = auto()    # 사용자 메시지 기록 중
    CALLING_MODEL = auto()      # 모델 스트림 소비 중
    EXECUTING_TOOLS = auto()    # 도구 실행 중
    COMPLETED = auto()          # 종료


class TerminationReason(Enum):
    """턴 종료 사유."""

    END_TURN = auto()           # 모델이 도구 없이 응답 (정상 종료)
    MAX_TURNS = auto()          # 모델 요청 한도 도달
    CANCELLED = auto()          # 사용자가 취소
    TRANSPORT_ERROR = auto()    # 모델 호출 실패
    ERROR = auto()              # 예기치 못한 에러


@dataclass
class TurnContext:
    """한 번의 start_turn() 실행 컨텍스트.

    실행 단계, 통계, 종료 정보를 추적합니다.
    """

    session_id: str = ""

    # 단계
    phase: TurnPhase = TurnPhase.IDLE
    termination_reason: TerminationReason | None = None

    # 모델 요청 횟수
    current_turn: int = 0
    max_turns: int = 20

    # 에러
    last_error: Exception | None = None

    # 통계
    total_tool_calls: int = 0
    total_model_calls: int = 0
    parse_errors: int = 0
    start_time: float | None = None
    end_time: float | None = None

    # 단계 변경 이력 (디버깅용)
    _phase_history: list[tuple[float, TurnPhase]] = field(default_factory=list)

    def is_running(self) -> bool:
        """턴이 실행 중인지 확인."""
        return self.phase not in (TurnPhase.IDLE, TurnPhase.COMPLETED)

    def is_finished(self) -> bool:
        """턴이 종료되었는지 확인."""
        return self.phase is TurnPhase.COMPLETED

    def duration_ms(self) -> float | None:
        """실행 시간 (밀리초)."""
        if self.start_time is not None:
            end = self.end_time or time.time()
            return (end - self.start_time) * 1000
        return None

    def record_phase(self, phase: TurnPhase) -> None:
        """단계 변경 기록 (이력 추적용)."""
        self._phase_history.append((time.time(), phase))
        self.phase = phase

    def finish(self, reason: TerminationReason, error: Exception | None = None) -> None:
        """종료 사유 기록."""
        self.termination_reason = reason
        if error is not None:
            self.last_error = error
        self.record_phase(TurnPhase.COMPLETED)

    def to_dict(self) -> dict[str, Any]:
        """컨텍스트를 딕셔너리로 변환 (직렬화용)."""
        return {
            "session_id": self.session_id,
            "phase": self.phase.name,
            "termination_reason": self.termination_reason.name if self.termination_reason else None,
            "current_turn": self.current_turn,
            "max_turns": self.max_turns,
            "total_tool_calls": self.total_tool_calls,
            "total_model_calls": self.total_model_calls,
            "parse_errors": self.parse_errors,
            "duration_ms": self.duration_ms(),
            "has_error": self.last_error is not None,
        }
