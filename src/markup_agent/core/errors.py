"""Error taxonomy.

에이전트 전반에서 사용하는 예외 계층 정의.
"""

from enum import Enum


class AgentError(Exception):
    """Base class for all markup_agent errors."""


class ParseError(AgentError):
    """Malformed tool markup. Recovered locally by the parser."""


class ToolErrorKind(Enum):
    """도구 실패 종류."""

    UNKNOWN = "unknown"
    MISSING_ARGUMENT = "missing_argument"
    EXECUTION = "execution"


class ToolError(AgentError):
    """A tool could not be dispatched or failed while running.

    Always converted to a textual tool-output message; never aborts a turn.
    """

    def __init__(
        self,
        kind: ToolErrorKind,
        message: str,
        argument: str | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.argument = argument

    @classmethod
    def unknown(cls, tool_name: str) -> "ToolError":
        return cls(ToolErrorKind.UNKNOWN, f"Unknown tool: {tool_name}")

    @classmethod
    def missing_argument(cls, argument: str) -> "ToolError":
        return cls(
            ToolErrorKind.MISSING_ARGUMENT,
            f"Missing '{argument}' argument",
            argument=argument,
        )

    @classmethod
    def execution(cls, message: str) -> "ToolError":
        return cls(ToolErrorKind.EXECUTION, message)

    def __repr__(self) -> str:
        return f"ToolError({self.kind.name}, {self.message!r})"


class TransportError(AgentError):
    """The model provider could not be reached or returned an error."""


class SessionError(AgentError):
    """Session-level rejection (turn already active, bad transition, limits)."""


class FsError(AgentError):
    """Workspace file operation failed."""


class ShellError(AgentError):
    """Command execution failed before producing a result."""
