"""Base class for all tools."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from markup_agent.core.errors import ToolError
from markup_agent.workspace import CommandRunner, Workspace


@dataclass
class ToolResult:
    """Result returned by a tool execution."""

    success: bool
    output: str
    error: ToolError | None = None

    @classmethod
    def ok(cls, output: str) -> "ToolResult":
        return cls(success=True, output=output)

    @classmethod
    def fail(cls, error: ToolError) -> "ToolResult":
        return cls(success=False, output="", error=error)

    @property
    def text(self) -> str:
        """Output on success, error message on failure."""
        if self.success or self.error is None:
            return self.output
        return self.error.message


@dataclass
class ToolEnvironment:
    """Collaborators shared by the built-in tools."""

    workspace: Workspace
    runner: CommandRunner


class BaseTool(ABC):
    """Abstract base class for all tools."""

    def __init__(self, environment: ToolEnvironment) -> None:
        self.environment = environment

    @property
    @abstractmethod
    def name(self) -> str:
        """Tool name used in <tool name="...">."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Description of what the tool does."""
        pass

    @property
    @abstractmethod
    def parameters(self) -> dict[str, Any]:
        """Argument descriptions.

        Each entry may set ``required`` (key must be present) and
        ``allow_empty`` (a required key may hold an empty string).
        """
        pass

    @abstractmethod
    def execute(self, **kwargs: str) -> ToolResult:
        """Execute the tool with validated arguments."""
        pass

    def to_prompt_entry(self, index: int) -> str:
        """Render the tool for the system prompt."""
        args = []
        for key, spec in self.parameters.items():
            qualifier = "" if spec.get("required", False) else ", optional"
            hint = spec.get("description", "")
            args.append(f"<{key}> ({spec.get('type', 'string')}{qualifier}) {hint}".rstrip())

        lines = [f"{index}. {self.name}"]
        lines.append(f"   - Arguments: {'; '.join(args) if args else 'none'}")
        lines.append(f"   - Description: {self.description}")
        return "\n".join(lines)
