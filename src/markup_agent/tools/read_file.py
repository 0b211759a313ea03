"""read_file tool - Read file contents."""

from typing import Any

from markup_agent.core.errors import FsError, ToolError

from .base import BaseTool, ToolResult
from .registry import register_tool


@register_tool
class ReadFileTool(BaseTool):
    """Tool for reading file contents."""

    name = "read_file"
    description = "Reads the content of a file."

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "file_path": {
                "type": "string",
                "description": "Path relative to the workspace root",
                "required": True,
            },
        }

    def execute(self, file_path: str = "", **kwargs: Any) -> ToolResult:
        """Return the raw file content."""
        file_path = file_path.strip()
        if not file_path:
            return ToolResult.fail(ToolError.missing_argument("file_path"))

        try:
            return ToolResult.ok(self.environment.workspace.read_file(file_path).content)
        except FsError as e:
            return ToolResult.fail(ToolError.execution(str(e)))
