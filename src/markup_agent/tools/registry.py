"""Tool registry system."""

from typing import Any, Type, TYPE_CHECKING

if TYPE_CHECKING:
    from .base import BaseTool


class ToolRegistry:
    """
    Tool registration and management.

    Classes are registered globally via @register_tool; instances are built
    per environment because every tool needs its collaborators.
    """

    _tools: dict[str, Type["BaseTool"]] = {}

    @classmethod
    def register(
        cls,
        tool_class: Type["BaseTool"],
        name: str | None = None,
    ) -> Type["BaseTool"]:
        """
        Register a tool class.

        Args:
            tool_class: Tool class to register
            name: Optional tool name (uses class's name attribute if not provided)

        Returns:
            Registered tool class (for decorator chaining)
        """
        tool_name = name or getattr(tool_class, "name", None)
        if not isinstance(tool_name, str) or not tool_name:
            raise ValueError(f"Tool class {tool_class.__name__} must have a 'name' attribute")

        cls._tools[tool_name] = tool_class
        return tool_class

    @classmethod
    def get(cls, name: str, **kwargs: Any) -> "BaseTool":
        """
        Build a tool instance by name.

        Args:
            name: Tool name
            **kwargs: Tool initialization arguments (environment)

        Returns:
            Tool instance
        """
        if name not in cls._tools:
            raise KeyError(f"Unknown tool: {name}. Available: {list(cls._tools.keys())}")
        return cls._tools[name](**kwargs)

    @classmethod
    def get_all(cls, **shared_kwargs: Any) -> list["BaseTool"]:
        """
        Return instances of all registered tools.

        Args:
            **shared_kwargs: Common arguments to pass to all tools

        Returns:
            List of tool instances, in registration order
        """
        return [cls.get(name, **shared_kwargs) for name in cls._tools]

    @classmethod
    def is_registered(cls, name: str) -> bool:
        """Check if tool is registered."""
        return name in cls._tools


def register_tool(cls: Type["BaseTool"]) -> Type["BaseTool"]:
    """
    Tool registration decorator.

    Usage:
        @register_tool
        class ReadFileTool(BaseTool):
            name = "read_file"
            ...
    """
    return ToolRegistry.register(cls)
