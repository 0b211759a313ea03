"""write_file tool - Write content to a file."""

from typing import Any

from markup_agent.core.errors import FsError, ToolError

from .base import BaseTool, ToolResult
from .registry import register_tool


@register_tool
class WriteFileTool(BaseTool):
    """Tool for writing content to files."""

    name = "write_file"
    description = (
        "Overwrites or creates a file with content. Parent directories are created. "
        "Provide the COMPLETE content in a single call."
    )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "file_path": {
                "type": "string",
                "description": "Path relative to the workspace root",
                "required": True,
            },
            "content": {
                "type": "string",
                "description": "The full file content",
                "required": True,
                "allow_empty": True,
            },
        }

    def execute(
        self,
        file_path: str = "",
        content: str | None = None,
        **kwargs: Any,
    ) -> ToolResult:
        """Write content to a file."""
        file_path = file_path.strip()
        if not file_path:
            return ToolResult.fail(ToolError.missing_argument("file_path"))
        # Empty content is allowed, a missing key is not
        if content is None:
            return ToolResult.fail(ToolError.missing_argument("content"))

        try:
            self.environment.workspace.write_file(file_path, content)
        except FsError as e:
            return ToolResult.fail(ToolError.execution(str(e)))

        return ToolResult.ok(f"Successfully wrote to {file_path}")
