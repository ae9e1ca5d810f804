"""In-memory staging tree over a workspace directory.

Reads fall through to disk; writes are staged and only reach the file system
when :meth:`VirtualTree.commit` is awaited.  A failed scaffold run therefore
leaves the workspace untouched.
"""

from __future__ import annotations

import asyncio
import posixpath
from dataclasses import dataclass
from pathlib import Path

from federated_scaffold.errors import FileAlreadyExistsError


@dataclass(frozen=True)
class FileAction:
    """A staged write: ``kind`` is ``"create"`` or ``"overwrite"``."""

    kind: str
    path: str


class VirtualTree:
    """Staged view of the workspace rooted at *root*.

    Paths are workspace-relative POSIX strings; a leading ``/`` or ``./`` is
    accepted and ignored.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self._staged: dict[str, bytes] = {}
        self._actions: dict[str, FileAction] = {}

    # -- Reading -----------------------------------------------------------

    def exists(self, path: str) -> bool:
        key = normalize_path(path)
        return key in self._staged or (self.root / key).is_file()

    def read(self, path: str) -> bytes | None:
        """Return the staged or on-disk content of *path*, or ``None``."""
        key = normalize_path(path)
        if key in self._staged:
            return self._staged[key]
        disk = self.root / key
        if not disk.is_file():
            return None
        try:
            return disk.read_bytes()
        except OSError:
            return None

    def read_text(self, path: str) -> str | None:
        content = self.read(path)
        if content is None:
            return None
        return content.decode("utf-8", errors="replace")

    # -- Writing -----------------------------------------------------------

    def create(self, path: str, content: str | bytes) -> None:
        """Stage a new file.

        Raises:
            FileAlreadyExistsError: If *path* already exists on disk or in
                the staging area.
        """
        key = normalize_path(path)
        if self.exists(key):
            raise FileAlreadyExistsError(key)
        self._staged[key] = _to_bytes(content)
        self._actions[key] = FileAction("create", key)

    def overwrite(self, path: str, content: str | bytes) -> None:
        """Stage new content for an existing file."""
        key = normalize_path(path)
        if not self.exists(key):
            raise FileNotFoundError(key)
        self._staged[key] = _to_bytes(content)
        if key not in self._actions:
            self._actions[key] = FileAction("overwrite", key)

    @property
    def actions(self) -> list[FileAction]:
        return list(self._actions.values())

    # -- Commit ------------------------------------------------------------

    async def commit(self) -> list[Path]:
        """Write every staged file to disk and clear the staging area."""
        written: list[Path] = []
        for key, content in self._staged.items():
            target = self.root / key
            await asyncio.to_thread(_write_file, target, content)
            written.append(target)
        self._staged.clear()
        self._actions.clear()
        return written

    def discard(self) -> None:
        """Drop every staged change without touching the disk."""
        self._staged.clear()
        self._actions.clear()


def normalize_path(path: str) -> str:
    """Normalise a workspace path to a relative POSIX string."""
    normalized = posixpath.normpath(str(path).replace("\\", "/"))
    normalized = normalized.lstrip("/")
    if normalized in ("", "."):
        raise ValueError(f"Invalid tree path: {path!r}")
    if normalized == ".." or normalized.startswith("../"):
        raise ValueError(f"Path escapes the workspace: {path!r}")
    return normalized


def _to_bytes(content: str | bytes) -> bytes:
    if isinstance(content, bytes):
        return content
    return content.encode("utf-8")


def _write_file(path: Path, content: bytes) -> None:
    """Synchronous helper: create parent dirs and write content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
