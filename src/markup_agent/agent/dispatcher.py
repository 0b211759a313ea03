"""Tool dispatcher - Runs tool calls parsed from model output."""

from __future__ import annotations

import asyncio
from typing import Mapping

from markup_agent.core.errors import ToolError
from markup_agent.tools import BaseTool, ToolEnvironment, ToolResult, get_all_tools


class ToolDispatcher:
    """Resolves a tool name to a registered tool and executes it."""

    def __init__(self, tools: list[BaseTool]) -> None:
        """
        Initialize tool dispatcher.

        Args:
            tools: Tools to make available, keyed by their ``name``
        """
        self.tools = {tool.name: tool for tool in tools}

    @classmethod
    def for_environment(cls, environment: ToolEnvironment) -> "ToolDispatcher":
        """Dispatcher over every registered tool, bound to one workspace."""
        return cls(get_all_tools(environment))

    @property
    def tool_names(self) -> list[str]:
        return list(self.tools)

    def describe_tools(self) -> str:
        """Numbered tool list for the system prompt."""
        return "\n\n".join(
            tool.to_prompt_entry(index)
            for index, tool in enumerate(self.tools.values(), 1)
        )

    def execute(self, tool_name: str, arguments: Mapping[str, str]) -> ToolResult:
        """Execute a tool by name with the parsed arguments.

        Never raises for tool-level problems; they come back as a failed
        ToolResult carrying a ToolError.
        """
        tool = self.tools.get(tool_name)
        if tool is None:
            return ToolResult.fail(ToolError.unknown(tool_name))

        missing = self._missing_argument(tool, arguments)
        if missing is not None:
            return ToolResult.fail(ToolError.missing_argument(missing))

        try:
            return tool.execute(**dict(arguments))
        except ToolError as e:
            return ToolResult.fail(e)
        except Exception as e:
            return ToolResult.fail(ToolError.execution(f"Error executing {tool_name}: {e}"))

    async def execute_async(self, tool_name: str, arguments: Mapping[str, str]) -> ToolResult:
        """Execute a tool in a worker thread so the event loop stays free."""
        return await asyncio.to_thread(self.execute, tool_name, arguments)

    @staticmethod
    def _missing_argument(tool: BaseTool, arguments: Mapping[str, str]) -> str | None:
        for key, spec in tool.parameters.items():
            if not spec.get("required", False):
                continue
            if key not in arguments:
                return key
            # 빈 값 허용 여부는 도구가 결정
            if not spec.get("allow_empty", False) and not arguments[key].strip():
                return key
        return None
