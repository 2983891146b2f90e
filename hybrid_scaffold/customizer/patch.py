"""Exact-match text patches applied to already generated files.

Each operation reads the whole file, performs one string transformation on
the first literal occurrence of its anchor, and writes the whole file back.
A missing anchor raises ``AnchorNotFoundError`` and leaves the file alone.
There is no deduplication: inserting twice inserts twice.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Union

from hybrid_scaffold.errors import AnchorNotFoundError, FilesystemError
from hybrid_scaffold.scaffolder.filesystem import Filesystem


def insert_code(fs: Filesystem, path: str, anchor: str, text: str) -> None:
    """Insert *text* right after the first occurrence of *anchor* in *path*."""
    content = _read_text(fs, path)
    index = content.find(anchor)
    if index < 0:
        raise AnchorNotFoundError(path, anchor)
    end = index + len(anchor)
    _write_text(fs, path, content[:end] + text + content[end:])


def replace_in_file(fs: Filesystem, path: str, old: str, new: str) -> None:
    """Replace the first occurrence of *old* in *path* with *new*.

    An empty *new* deletes the fragment.
    """
    content = _read_text(fs, path)
    if old not in content:
        raise AnchorNotFoundError(path, old)
    _write_text(fs, path, content.replace(old, new, 1))


def delete_in_file(fs: Filesystem, path: str, text: str) -> None:
    """Remove the first occurrence of *text* from *path*."""
    replace_in_file(fs, path, text, "")


# ---------------------------------------------------------------------------
# Operation values
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Insert:
    path: str
    anchor: str
    text: str

    def apply(self, fs: Filesystem) -> None:
        insert_code(fs, self.path, self.anchor, self.text)


@dataclass(frozen=True)
class Replace:
    path: str
    old: str
    new: str

    def apply(self, fs: Filesystem) -> None:
        replace_in_file(fs, self.path, self.old, self.new)


@dataclass(frozen=True)
class Delete:
    path: str
    text: str

    def apply(self, fs: Filesystem) -> None:
        delete_in_file(fs, self.path, self.text)


PatchOperation = Union[Insert, Replace, Delete]


def apply_patches(fs: Filesystem, operations: Iterable[PatchOperation]) -> None:
    """Apply *operations* in order, stopping at the first failure."""
    for operation in operations:
        operation.apply(fs)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _read_text(fs: Filesystem, path: str) -> str:
    try:
        return fs.read(path).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise FilesystemError(path, "decode", f"not valid UTF-8: {exc.reason}") from exc


def _write_text(fs: Filesystem, path: str, content: str) -> None:
    fs.write(path, content.encode("utf-8"), fs.mode(path))
