"""Tools module - command execution, workspace file operations and search."""

from pathlib import Path

# Import registry first
from .registry import ToolRegistry, register_tool

# Import base classes
from .base import BaseTool, ToolEnvironment, ToolResult

# Import all tools (this triggers @register_tool decorators)
from .run_command import RunCommandTool, split_command_args
from .list_files import ListFilesTool
from .read_file import ReadFileTool
from .write_file import WriteFileTool
from .search_code import SearchCodeTool

from markup_agent.workspace import CommandRunner, Workspace

__all__ = [
    # Registry
    "ToolRegistry",
    "register_tool",
    # Base
    "BaseTool",
    "ToolEnvironment",
    "ToolResult",
    # Tools
    "RunCommandTool",
    "ListFilesTool",
    "ReadFileTool",
    "WriteFileTool",
    "SearchCodeTool",
    "split_command_args",
    # Factories
    "build_environment",
    "get_all_tools",
]


def build_environment(root: str | Path, command_timeout: float = 120) -> ToolEnvironment:
    """Create the default collaborators for a workspace root."""
    return ToolEnvironment(
        workspace=Workspace(root),
        runner=CommandRunner(root, timeout=command_timeout),
    )


def get_all_tools(environment: ToolEnvironment) -> list[BaseTool]:
    """
    Get instances of all registered tools bound to one environment.

    Args:
        environment: Workspace and command collaborators

    Returns:
        List of tool instances.
    """
    return ToolRegistry.get_all(environment=environment)
