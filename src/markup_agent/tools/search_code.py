"""search_code tool - Regex search across the workspace."""

from typing import Any

from markup_agent.core.errors import FsError, ToolError

from .base import BaseTool, ToolResult
from .registry import register_tool

MAX_MATCHES = 20


@register_tool
class SearchCodeTool(BaseTool):
    """Tool for searching file contents."""

    name = "search_code"
    description = (
        "Searches workspace files for a regex pattern. "
        "Returns matching lines as path:line: content."
    )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "query": {
                "type": "string",
                "description": "Regular expression to search for",
                "required": True,
            },
        }

    def execute(self, query: str = "", **kwargs: Any) -> ToolResult:
        """Search and cap the listing at MAX_MATCHES lines."""
        query = query.strip()
        if not query:
            return ToolResult.fail(ToolError.missing_argument("query"))

        try:
            matches = self.environment.workspace.search(query)
        except FsError as e:
            return ToolResult.fail(ToolError.execution(str(e)))

        if not matches:
            return ToolResult.ok("No matches found.")
        if len(matches) > MAX_MATCHES:
            return ToolResult.ok(
                f"Found {len(matches)} matches. First {MAX_MATCHES}:\n"
                + "\n".join(matches[:MAX_MATCHES])
            )
        return ToolResult.ok("\n".join(matches))
