"""Messages and tool calls.

세션 로그에 기록되는 메시지와 도구 호출 타입을 정의합니다.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

Role = Literal["system", "user", "assistant"]


class MessageKind(Enum):
    """메시지 출처 구분 (생성 시 한 번만 설정)."""

    USER_INPUT = "user_input"
    TOOL_OUTPUT = "tool_output"
    PLAIN = "plain"


@dataclass(frozen=True)
class ToolCall:
    """모델이 요청한 도구 호출.

    arguments는 문서 순서를 유지합니다.
    """

    name: str
    arguments: dict[str, str] = field(default_factory=dict)

    def to_markup(self) -> str:
        """도구 호출을 <tool> 마크업으로 직렬화."""
        lines = [f'  <tool name="{self.name}">']
        for arg_name, value in self.arguments.items():
            lines.append(f"    <{arg_name}>{value}</{arg_name}>")
        lines.append("  </tool>")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "arguments": [[k, v] for k, v in self.arguments.items()],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ToolCall":
        return cls(name=data["name"], arguments={k: v for k, v in data["arguments"]})


@dataclass(frozen=True)
class Message:
    """커밋된 대화 메시지 (불변)."""

    role: Role
    content: str
    kind: MessageKind = MessageKind.PLAIN
    tool_calls: tuple[ToolCall, ...] = ()

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role="user", content=content, kind=MessageKind.USER_INPUT)

    @classmethod
    def tool_output(cls, content: str, role: Role = "user") -> "Message":
        return cls(role=role, content=content, kind=MessageKind.TOOL_OUTPUT)

    @property
    def is_tool_output(self) -> bool:
        return self.kind is MessageKind.TOOL_OUTPUT

    def to_provider_format(self) -> dict[str, str]:
        """프로바이더 전송용 형식.

        어시스턴트 메시지는 도구 호출을 마크업으로 다시 붙여서
        모델이 자신이 요청한 내용을 볼 수 있게 합니다.
        """
        content = self.content
        if self.tool_calls:
            block = "\n".join(call.to_markup() for call in self.tool_calls)
            markup = f"<tool_code>\n{block}\n</tool_code>"
            content = f"{content}\n{markup}" if content else markup
        return {"role": self.role, "content": content}

    def to_dict(self) -> dict[str, Any]:
        """직렬화용 딕셔너리."""
        return {
            "role": self.role,
            "content": self.content,
            "kind": self.kind.value,
            "tool_calls": [call.to_dict() for call in self.tool_calls],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        """딕셔너리에서 복원."""
        return cls(
            role=data["role"],
            content=data["content"],
            kind=MessageKind(data.get("kind", MessageKind.PLAIN.value)),
            tool_calls=tuple(ToolCall.from_dict(c) for c in data.get("tool_calls", [])),
        )


class PendingMessage:
    """스트리밍 중인 어시스턴트 메시지 (가변).

    파서 이벤트를 받아 보이는 텍스트와 도구 호출을 누적하고,
    턴이 끝나면 finalize()로 불변 Message를 만듭니다.
    """

    def __init__(self, role: Role = "assistant") -> None:
        self.role = role
        self._text: list[str] = []
        self._tool_calls: list[ToolCall] = []
        self._current_name: str | None = None
        self._current_args: dict[str, str] = {}

    @property
    def text(self) -> str:
        return "".join(self._text)

    @property
    def tool_calls(self) -> list[ToolCall]:
        return list(self._tool_calls)

    def append_text(self, text: str) -> None:
        self._text.append(text)

    def begin_tool(self, name: str) -> None:
        self._current_name = name
        self._current_args = {}

    def add_argument(self, name: str, value: str) -> None:
        if self._current_name is not None and name not in self._current_args:
            self._current_args[name] = value

    def end_tool(self) -> ToolCall | None:
        """현재 도구 호출을 닫고 반환."""
        if self._current_name is None:
            return None
        call = ToolCall(name=self._current_name, arguments=dict(self._current_args))
        self._tool_calls.append(call)
        self._current_name = None
        self._current_args = {}
        return call

    def finalize(self) -> Message:
        """보이는 텍스트(마크업 제거)와 구조화된 도구 호출로 Message 생성."""
        return Message(
            role=self.role,
            content=self.text.strip(),
            tool_calls=tuple(self._tool_calls),
        )
