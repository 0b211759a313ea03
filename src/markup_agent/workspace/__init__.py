"""Workspace collaborators - file access and command execution."""

from .files import FileContent, FileEntry, Workspace
from .terminal import CommandOutput, CommandRunner

__all__ = [
    "Workspace",
    "FileEntry",
    "FileContent",
    "CommandRunner",
    "CommandOutput",
]
