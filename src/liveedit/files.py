"""File collaborator: where source files are read from and saved to."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable

from liveedit.errors import FileCollaboratorError

logger = logging.getLogger(__name__)

_SKIP_DIRS = frozenset({"node_modules", ".git", "dist", "build", ".next", "__pycache__", ".venv"})


@dataclass(frozen=True)
class ProjectFile:
    file_path: str
    file_contents: str


@dataclass(frozen=True)
class SaveResult:
    success: bool
    error: str | None = None


@runtime_checkable
class FileManager(Protocol):
    def list_files(self) -> list[ProjectFile]: ...

    def save_file(self, path: str, contents: str | bytes, commit_message: str) -> SaveResult: ...


def read_file(manager: FileManager, path: str) -> str | None:
    """Return the text of ``path`` from ``manager`` or None if it is unknown."""
    for project_file in manager.list_files():
        if project_file.file_path == path:
            return project_file.file_contents
    return None


def save_or_raise(manager: FileManager, path: str, contents: str | bytes, commit_message: str) -> None:
    result = manager.save_file(path, contents, commit_message)
    if not result.success:
        raise FileCollaboratorError(result.error or f"Failed to save {path}", path=path)


@dataclass
class InMemoryFileManager:
    """Dict-backed collaborator. Records every save with its commit message."""

    files: dict[str, str] = field(default_factory=dict)
    binaries: dict[str, bytes] = field(default_factory=dict)
    commits: list[tuple[str, str]] = field(default_factory=list)
    fail_saves: bool = False

    def list_files(self) -> list[ProjectFile]:
        return [ProjectFile(path, contents) for path, contents in self.files.items()]

    def save_file(self, path: str, contents: str | bytes, commit_message: str) -> SaveResult:
        if self.fail_saves:
            return SaveResult(False, f"save rejected for {path}")
        if isinstance(contents, bytes):
            self.binaries[path] = contents
        else:
            self.files[path] = contents
        self.commits.append((path, commit_message))
        return SaveResult(True)


class DirectoryFileManager:
    """Collaborator backed by a project directory on disk."""

    def __init__(self, root: str | Path, extensions: tuple[str, ...] = (".tsx", ".jsx", ".ts", ".js", ".html")) -> None:
        self.root = Path(root).resolve()
        self.extensions = extensions

    def _resolve(self, path: str) -> Path:
        target = (self.root / path.lstrip("/")).resolve()
        if not target.is_relative_to(self.root):
            raise FileCollaboratorError(f"Path escapes project root: {path}", path=path)
        return target

    def list_files(self) -> list[ProjectFile]:
        result: list[ProjectFile] = []
        for candidate in sorted(self.root.rglob("*")):
            rel = candidate.relative_to(self.root)
            if any(part in _SKIP_DIRS for part in rel.parts):
                continue
            if not candidate.is_file() or candidate.suffix not in self.extensions:
                continue
            try:
                text = candidate.read_text(encoding="utf-8")
            except UnicodeDecodeError:
                logger.debug("Skipping non-UTF-8 file %s", rel)
                continue
            result.append(ProjectFile(rel.as_posix(), text))
        return result

    def save_file(self, path: str, contents: str | bytes, commit_message: str) -> SaveResult:
        try:
            target = self._resolve(path)
        except FileCollaboratorError as exc:
            return SaveResult(False, str(exc))
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(contents, bytes):
                target.write_bytes(contents)
            else:
                target.write_text(contents, encoding="utf-8")
        except OSError as exc:
            logger.warning("Failed to save %s: %s", path, exc)
            return SaveResult(False, str(exc))
        logger.info("Saved %s (%s)", path, commit_message)
        return SaveResult(True)
