"""Filesystem handles used by the scaffolder and the customizer.

Every component reads and writes through a ``Filesystem`` so the same code
runs against a real project directory (``DiskFilesystem``) or an in-memory
tree (``MemoryFilesystem``) in tests.  Paths are POSIX-style and relative to
the root of the tree.
"""

from __future__ import annotations

import os
from pathlib import Path, PurePosixPath
from typing import Protocol, runtime_checkable

from hybrid_scaffold.errors import FilesystemError

DEFAULT_DIR_MODE = 0o755
DEFAULT_FILE_MODE = 0o644


@runtime_checkable
class Filesystem(Protocol):
    """Minimal tree interface consumed by the engine."""

    def exists(self, path: str) -> bool: ...

    def is_dir(self, path: str) -> bool: ...

    def read(self, path: str) -> bytes: ...

    def write(self, path: str, data: bytes, mode: int = DEFAULT_FILE_MODE) -> None: ...

    def mkdir_all(self, path: str, mode: int = DEFAULT_DIR_MODE) -> None: ...

    def list_dir(self, path: str) -> list[str]: ...

    def remove(self, path: str) -> None: ...

    def mode(self, path: str) -> int: ...


def normalize_path(path: str | PurePosixPath) -> str:
    """Return *path* as a clean relative POSIX path.

    ``""`` and ``"."`` denote the root.  Absolute paths and paths escaping
    the root through ``..`` are rejected.
    """
    raw = str(path).replace("\\", "/")
    pure = PurePosixPath(raw)
    if pure.is_absolute():
        raise FilesystemError(raw, "resolve", "absolute paths are not allowed")
    parts = [p for p in pure.parts if p not in ("", ".")]
    if ".." in parts:
        raise FilesystemError(raw, "resolve", "path escapes the project root")
    return "/".join(parts)


def parent_of(path: str) -> str:
    """Return the parent directory of a normalized path (``""`` for the root)."""
    parent = str(PurePosixPath(path).parent)
    return "" if parent == "." else parent


def join(*parts: str) -> str:
    """Join path segments and normalize the result."""
    return normalize_path("/".join(p for p in parts if p))


# ---------------------------------------------------------------------------
# Disk
# ---------------------------------------------------------------------------


class DiskFilesystem:
    """A ``Filesystem`` rooted at a directory on disk."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def _abs(self, path: str) -> Path:
        rel = normalize_path(path)
        return self.root / rel if rel else self.root

    def exists(self, path: str) -> bool:
        return self._abs(path).exists()

    def is_dir(self, path: str) -> bool:
        return self._abs(path).is_dir()

    def read(self, path: str) -> bytes:
        target = self._abs(path)
        try:
            return target.read_bytes()
        except OSError as exc:
            raise FilesystemError(path, "read", str(exc)) from exc

    def write(self, path: str, data: bytes, mode: int = DEFAULT_FILE_MODE) -> None:
        target = self._abs(path)
        try:
            target.write_bytes(data)
            target.chmod(mode)
        except OSError as exc:
            raise FilesystemError(path, "write", str(exc)) from exc

    def mkdir_all(self, path: str, mode: int = DEFAULT_DIR_MODE) -> None:
        target = self._abs(path)
        try:
            target.mkdir(mode=mode, parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemError(path, "mkdir", str(exc)) from exc

    def list_dir(self, path: str) -> list[str]:
        target = self._abs(path)
        try:
            return sorted(os.listdir(target))
        except OSError as exc:
            raise FilesystemError(path, "list", str(exc)) from exc

    def remove(self, path: str) -> None:
        target = self._abs(path)
        try:
            target.unlink()
        except OSError as exc:
            raise FilesystemError(path, "remove", str(exc)) from exc

    def mode(self, path: str) -> int:
        target = self._abs(path)
        try:
            return target.stat().st_mode & 0o777
        except OSError as exc:
            raise FilesystemError(path, "stat", str(exc)) from exc

    def __repr__(self) -> str:
        return f"DiskFilesystem({str(self.root)!r})"


# ---------------------------------------------------------------------------
# Memory
# ---------------------------------------------------------------------------


class MemoryFilesystem:
    """An in-memory ``Filesystem`` with disk-like semantics.

    Writes require the parent directory to exist, exactly like a real disk,
    so a missing ``mkdir_all`` shows up in tests.  ``files`` seeds the tree
    (parents are created implicitly).
    """

    def __init__(self, files: dict[str, bytes | str] | None = None) -> None:
        self._files: dict[str, bytes] = {}
        self._modes: dict[str, int] = {}
        self._dirs: dict[str, int] = {"": DEFAULT_DIR_MODE}
        for path, content in (files or {}).items():
            rel = normalize_path(path)
            self.mkdir_all(parent_of(rel))
            data = content.encode("utf-8") if isinstance(content, str) else content
            self.write(rel, data)

    def exists(self, path: str) -> bool:
        rel = normalize_path(path)
        return rel in self._files or rel in self._dirs

    def is_dir(self, path: str) -> bool:
        return normalize_path(path) in self._dirs

    def read(self, path: str) -> bytes:
        rel = normalize_path(path)
        if rel not in self._files:
            reason = "is a directory" if rel in self._dirs else "no such file"
            raise FilesystemError(rel, "read", reason)
        return self._files[rel]

    def write(self, path: str, data: bytes, mode: int = DEFAULT_FILE_MODE) -> None:
        rel = normalize_path(path)
        if not rel or rel in self._dirs:
            raise FilesystemError(rel, "write", "is a directory")
        if parent_of(rel) not in self._dirs:
            raise FilesystemError(rel, "write", "parent directory does not exist")
        self._files[rel] = bytes(data)
        self._modes[rel] = mode

    def mkdir_all(self, path: str, mode: int = DEFAULT_DIR_MODE) -> None:
        rel = normalize_path(path)
        current = ""
        for part in rel.split("/") if rel else []:
            current = f"{current}/{part}" if current else part
            if current in self._files:
                raise FilesystemError(current, "mkdir", "a file exists at this path")
            self._dirs.setdefault(current, mode)

    def list_dir(self, path: str) -> list[str]:
        rel = normalize_path(path)
        if rel not in self._dirs:
            raise FilesystemError(rel, "list", "no such directory")
        prefix = f"{rel}/" if rel else ""
        names = {
            entry[len(prefix):].split("/", 1)[0]
            for entry in (*self._files, *self._dirs)
            if entry and entry.startswith(prefix) and entry != rel
        }
        return sorted(names)

    def remove(self, path: str) -> None:
        rel = normalize_path(path)
        if rel not in self._files:
            raise FilesystemError(rel, "remove", "no such file")
        del self._files[rel]
        del self._modes[rel]

    def mode(self, path: str) -> int:
        """Return the permission bits a file or directory was created with."""
        rel = normalize_path(path)
        if rel in self._modes:
            return self._modes[rel]
        if rel in self._dirs:
            return self._dirs[rel]
        raise FilesystemError(rel, "stat", "no such file")

    # -- Test helpers ------------------------------------------------------

    def snapshot(self) -> dict[str, bytes]:
        """Return a copy of every file, keyed by path."""
        return dict(sorted(self._files.items()))
