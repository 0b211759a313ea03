"""run_command tool - Execute a program in the workspace root."""

import re
from typing import Any

from markup_agent.core.errors import ShellError, ToolError

from .base import BaseTool, ToolResult
from .registry import register_tool

# "double quoted" | 'single quoted' | bare word
_ARG_RE = re.compile(r""""([^"]*)"|'([^']*)'|(\S+)""")


def split_command_args(args: str) -> list[str]:
    """Tokenize an argument string, respecting quotes.

    Quoted runs lose their quotes and keep inner whitespace; everything else
    splits on whitespace.

    >>> split_command_args('ls -la "my file.txt"')
    ['ls', '-la', 'my file.txt']
    """
    tokens = []
    for match in _ARG_RE.finditer(args):
        double, single, bare = match.groups()
        if double is not None:
            tokens.append(double)
        elif single is not None:
            tokens.append(single)
        else:
            tokens.append(bare)
    return tokens


@register_tool
class RunCommandTool(BaseTool):
    """Tool for executing programs."""

    name = "run_command"
    description = (
        "Executes a program in the workspace root. "
        "Use for 'ls', 'git', 'pytest', 'npm', etc. Not run through a shell."
    )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "program": {
                "type": "string",
                "description": "The program to run",
                "required": True,
            },
            "args": {
                "type": "string",
                "description": "Space separated arguments; quote arguments containing spaces",
                "required": False,
            },
        }

    def execute(self, program: str = "", args: str = "", **kwargs: Any) -> ToolResult:
        """Run the program and report its combined output."""
        program = program.strip()
        if not program:
            return ToolResult.fail(ToolError.missing_argument("program"))

        try:
            result = self.environment.runner.run(program, split_command_args(args))
        except ShellError as e:
            return ToolResult.fail(ToolError.execution(str(e)))

        output = result.stdout + result.stderr
        if result.exit_code != 0:
            output += f"\n(Exit Code: {result.exit_code})"
        return ToolResult.ok(output)
