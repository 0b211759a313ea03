"""Workspace file access.

All paths are relative to a workspace root; absolute paths, ``..``
components and paths resolving outside the root are rejected.
"""

import re
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Iterator

from markup_agent.core.errors import FsError

# 목록에서 제외할 디렉토리
IGNORED_NAMES = frozenset({".git", "target", "node_modules", ".vscode", "__pycache__", ".venv"})


@dataclass(frozen=True)
class FileEntry:
    """One listed directory entry."""

    path: str      # relative to the workspace root
    name: str
    is_dir: bool


@dataclass(frozen=True)
class FileContent:
    path: str
    content: str


class Workspace:
    """Sandboxed file operations below a root directory."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).resolve()

    def resolve(self, user_path: str, require_exists: bool) -> Path:
        """Map a user path to an absolute path inside the root.

        Raises:
            FsError: traversal outside the root, or a missing path when
                require_exists is set
        """
        user = PurePath(user_path)
        if user.is_absolute() or ".." in user.parts:
            raise FsError("Security Violation: Path traversal detected")

        # Non-strict resolve still follows symlinks in the existing prefix
        target = (self.root / user).resolve()
        if target != self.root and self.root not in target.parents:
            raise FsError("Security Violation: Path traversal detected")

        if require_exists and not target.exists():
            raise FsError(f"IO Error: No such file or directory: {user_path}")
        return target

    def list_files(self, dir_path: str | None = None) -> list[FileEntry]:
        """List a directory (root when dir_path is None), directories first."""
        directory = self.root if dir_path is None else self.resolve(dir_path, require_exists=True)
        if not directory.is_dir():
            raise FsError(f"IO Error: Not a directory: {dir_path}")

        entries = []
        try:
            for child in directory.iterdir():
                if child.name in IGNORED_NAMES:
                    continue
                entries.append(FileEntry(
                    path=child.relative_to(self.root).as_posix(),
                    name=child.name,
                    is_dir=child.is_dir(),
                ))
        except OSError as e:
            raise FsError(f"IO Error: {e}") from e

        entries.sort(key=lambda e: (not e.is_dir, e.name))
        return entries

    def read_file(self, file_path: str) -> FileContent:
        path = self.resolve(file_path, require_exists=True)
        if not path.is_file():
            raise FsError(f"IO Error: Not a file: {file_path}")
        try:
            content = path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            raise FsError(f"IO Error: Cannot read file (binary or unknown encoding): {file_path}") from None
        except OSError as e:
            raise FsError(f"IO Error: {e}") from e
        return FileContent(path=file_path, content=content)

    def write_file(self, file_path: str, content: str) -> FileContent:
        path = self.resolve(file_path, require_exists=False)
        try:
            # Create parent directories if they don't exist
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise FsError(f"IO Error: {e}") from e
        return FileContent(path=file_path, content=content)

    def search(self, query: str) -> list[str]:
        """Regex search over the workspace text files.

        Returns:
            Matches as ``path:line: content``, files in path order
        """
        try:
            pattern = re.compile(query)
        except re.error as e:
            raise FsError(f"Invalid search pattern: {e}") from None

        matches = []
        for path in self._iter_files(self.root):
            try:
                text = path.read_text(encoding="utf-8")
            except (UnicodeDecodeError, OSError):
                continue
            relative = path.relative_to(self.root).as_posix()
            for lineno, line in enumerate(text.splitlines(), 1):
                if pattern.search(line):
                    matches.append(f"{relative}:{lineno}: {line.strip()}")
        return matches

    def _iter_files(self, directory: Path) -> Iterator[Path]:
        try:
            children = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as e:
            raise FsError(f"IO Error: {e}") from e

        for child in children:
            # Symlinks may point outside the root
            if child.name in IGNORED_NAMES or child.is_symlink():
                continue
            if child.is_dir():
                yield from self._iter_files(child)
            elif child.is_file():
                yield child
