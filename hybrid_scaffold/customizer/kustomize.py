"""Keeps a kustomization's ``resources:`` list in step with its directory.

``reconcile`` rewrites the whole list rather than patching single entries,
so running it twice yields the same file.  Entries that are not local
manifest files (``../crd``, remote bases) are carried over untouched;
manifest-file entries survive only while their file exists; manifest files
in the directory that the kustomization does not mention anywhere else
(patches, generators, commented-out references) are added.  The result is
sorted lexically.

Comments inside the block keep their positions.  Entry lines are refilled
in order, extra entries go after the last one, surplus lines are dropped.
"""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass, field

import yaml

from hybrid_scaffold.errors import InvalidManifestStructureError
from hybrid_scaffold.scaffolder.filesystem import Filesystem, join

KUSTOMIZATION_FILE = "kustomization.yaml"

_MANIFEST_SUFFIXES = (".yaml", ".yml")
_KEY_RE = re.compile(r"^resources:[ \t]*(?P<rest>[^#\s].*)?(?:#.*)?$")
_ITEM_RE = re.compile(r"^(?P<indent>[ \t]*)-(?:[ \t]|$)")
_COMMENT_RE = re.compile(r"^[ \t]*#")


@dataclass
class _Block:
    key: int
    inline: bool
    entries: list[int] = field(default_factory=list)
    indent: str = ""


def reconcile(
    fs: Filesystem,
    directory: str,
    filename: str = KUSTOMIZATION_FILE,
) -> list[str]:
    """Rewrite ``<directory>/<filename>`` so its resources match the tree.

    Returns:
        The reconciled resource list.

    Raises:
        InvalidManifestStructureError: The file is missing, is not valid
            YAML, is not a mapping, or has a non-list ``resources``.  The
            file is left untouched.  Also raised for a file that is not
            valid UTF-8.
        FilesystemError: A manifest entry resolves outside the project
            root.
    """
    path = join(directory, filename)
    if not fs.exists(path) or fs.is_dir(path):
        raise InvalidManifestStructureError(path, "file does not exist")

    try:
        text = fs.read(path).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidManifestStructureError(path, f"not valid UTF-8: {exc}") from exc
    current = _parse_resources(path, text)
    lines = text.splitlines(keepends=True)
    block = _find_block(lines)

    entry_lines = set(block.entries) if block else set()
    outside = "".join(line for i, line in enumerate(lines) if i not in entry_lines)
    desired = _desired_resources(fs, directory, filename, current, outside)

    if block is None and not desired:
        return desired
    if block is not None and not block.inline and current == desired and desired:
        return desired

    new_text = _render(lines, block, desired)
    if new_text == text:
        return desired
    if _parse_resources(path, new_text) != desired:
        raise InvalidManifestStructureError(path, "resources block could not be rewritten")
    fs.write(path, new_text.encode("utf-8"), fs.mode(path))
    return desired


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _parse_resources(path: str, text: str) -> list[str]:
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise InvalidManifestStructureError(path, f"not valid YAML: {exc}") from exc
    if not isinstance(document, dict):
        raise InvalidManifestStructureError(path, "top level is not a mapping")
    resources = document.get("resources")
    if resources is None:
        return []
    if not isinstance(resources, list) or not all(isinstance(r, str) for r in resources):
        raise InvalidManifestStructureError(path, "resources is not a list of strings")
    return resources


def _find_block(lines: list[str]) -> _Block | None:
    for index, line in enumerate(lines):
        match = _KEY_RE.match(line.rstrip("\r\n"))
        if match is None:
            continue
        block = _Block(key=index, inline=bool(match.group("rest")))
        if block.inline:
            return block
        i = index + 1
        while i < len(lines):
            current = lines[i]
            if _COMMENT_RE.match(current):
                i += 1
                continue
            item = _ITEM_RE.match(current)
            if item:
                if not block.entries:
                    block.indent = item.group("indent")
                block.entries.append(i)
                i += 1
                continue
            if not current.strip() and _next_is_item(lines, i):
                i += 1
                continue
            break
        return block
    return None


def _next_is_item(lines: list[str], start: int) -> bool:
    for line in lines[start:]:
        if not line.strip() or _COMMENT_RE.match(line):
            continue
        return bool(_ITEM_RE.match(line))
    return False


# ---------------------------------------------------------------------------
# Desired state
# ---------------------------------------------------------------------------


def _is_manifest_file(entry: str) -> bool:
    return "://" not in entry and entry.lower().endswith(_MANIFEST_SUFFIXES)


def _mentioned(name: str, text: str) -> bool:
    return re.search(rf"(?<![\w./-]){re.escape(name)}(?![\w.-])", text) is not None


def _desired_resources(
    fs: Filesystem,
    directory: str,
    filename: str,
    current: list[str],
    outside: str,
) -> list[str]:
    desired: set[str] = set()
    for entry in current:
        if not _is_manifest_file(entry):
            desired.add(entry)
            continue
        entry = posixpath.normpath(entry)
        # ``../rbac/role.yaml`` resolves against the directory before the root check.
        target = join(posixpath.normpath(posixpath.join(directory, entry)))
        if fs.exists(target) and not fs.is_dir(target):
            desired.add(entry)

    for name in fs.list_dir(directory):
        if name == filename or not _is_manifest_file(name):
            continue
        if fs.is_dir(join(directory, name)) or _mentioned(name, outside):
            continue
        desired.add(name)
    return sorted(desired)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _render(lines: list[str], block: _Block | None, desired: list[str]) -> str:
    if block is None:
        head = "".join(lines)
        if head and not head.endswith("\n"):
            head += "\n"
        return head + "resources:\n" + "".join(f"- {entry}\n" for entry in desired)

    items = [f"{block.indent}- {entry}\n" for entry in desired]
    key_line = "resources:\n" if desired else "resources: []\n"
    last_entry = block.entries[-1] if block.entries else None
    out: list[str] = []
    pending = iter(items)

    for index, line in enumerate(lines):
        if index == block.key:
            out.append(key_line)
            if block.inline or last_entry is None:
                out.extend(pending)
            continue
        if index in block.entries:
            item = next(pending, None)
            if item is not None:
                out.append(item)
            if index == last_entry:
                out.extend(pending)
            continue
        out.append(line)
    return "".join(out)
