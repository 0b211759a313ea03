"""list_files tool - List a workspace directory."""

from typing import Any

from markup_agent.core.errors import FsError, ToolError

from .base import BaseTool, ToolResult
from .registry import register_tool


@register_tool
class ListFilesTool(BaseTool):
    """Tool for listing directory entries."""

    name = "list_files"
    description = "Lists the entries of a directory. Directories are prefixed with [DIR]."

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "dir_path": {
                "type": "string",
                "description": "Directory relative to the workspace root; leave empty for the root",
                "required": False,
            },
        }

    def execute(self, dir_path: str | None = None, **kwargs: Any) -> ToolResult:
        """List one entry per line."""
        # Empty string means the root
        effective_dir = (dir_path or "").strip() or None

        try:
            entries = self.environment.workspace.list_files(effective_dir)
        except FsError as e:
            return ToolResult.fail(ToolError.execution(str(e)))

        return ToolResult.ok(
            "\n".join(f"{'[DIR] ' if entry.is_dir else ''}{entry.name}" for entry in entries)
        )
