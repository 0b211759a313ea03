"""Command execution in the workspace root."""

import subprocess
from dataclasses import dataclass
from pathlib import Path

from markup_agent.core.errors import ShellError


@dataclass(frozen=True)
class CommandOutput:
    stdout: str
    stderr: str
    exit_code: int


class CommandRunner:
    """Runs a program with an argument vector (no shell)."""

    def __init__(self, cwd: str | Path, timeout: float = 120) -> None:
        self.cwd = Path(cwd)
        self.timeout = timeout

    def run(self, program: str, args: list[str]) -> CommandOutput:
        """Execute a program and capture its output.

        Raises:
            ShellError: program not found, not runnable, or timed out
        """
        try:
            result = subprocess.run(
                [program, *args],
                capture_output=True,
                text=True,
                timeout=self.timeout,
                cwd=self.cwd,
            )
        except FileNotFoundError:
            raise ShellError(f"Command not found: {program}") from None
        except subprocess.TimeoutExpired:
            raise ShellError(f"Command timed out after {self.timeout} seconds") from None
        except OSError as e:
            raise ShellError(f"Error executing command: {e}") from e

        return CommandOutput(
            stdout=result.stdout,
            stderr=result.stderr,
            exit_code=result.returncode,
        )
