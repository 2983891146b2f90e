"""Scaffold executor: renders file templates and writes them to a filesystem.

The executor owns the overwrite policy and the file/directory permissions
for one scaffold run.  Files it has written during the run may be written
again; anything else already on disk is protected according to the policy.
"""

from __future__ import annotations

import asyncio
import enum
from collections.abc import Iterable
from dataclasses import dataclass, field

from hybrid_scaffold.config import ProjectConfig
from hybrid_scaffold.errors import FileConflictError, MissingBoilerplateError
from hybrid_scaffold.scaffolder.filesystem import (
    DEFAULT_DIR_MODE,
    DEFAULT_FILE_MODE,
    Filesystem,
    normalize_path,
    parent_of,
)
from hybrid_scaffold.scaffolder.templates import (
    BOILERPLATE_PATH,
    FileTemplate,
    TemplateRenderer,
)
from hybrid_scaffold.utils import print_file_action, print_warning


class OverwritePolicy(str, enum.Enum):
    """What to do when a template targets a non-empty pre-existing file."""

    ERROR = "error"
    SKIP = "skip"
    OVERWRITE = "overwrite"


@dataclass
class ExecutionResult:
    """Paths touched by a call to :meth:`ScaffoldExecutor.execute`."""

    written: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    def extend(self, other: "ExecutionResult") -> None:
        self.written.extend(other.written)
        self.unchanged.extend(other.unchanged)
        self.skipped.extend(other.skipped)


class ScaffoldExecutor:
    """Renders ``FileTemplate`` objects and writes them through a ``Filesystem``.

    Args:
        fs: Target tree.
        renderer: Jinja2 renderer; a default one is created when omitted.
        dir_mode: Permission for created directories.
        file_mode: Permission for written files.
        overwrite: Policy for pre-existing, non-empty files that were not
            written by this executor.  A pre-existing file whose bytes equal
            the rendered output is never rewritten, whatever the policy.
        verbose: Print one line per file.
        header_path: Where the license header lives; templates that embed
            it refuse to render until this file exists and is non-empty.
    """

    def __init__(
        self,
        fs: Filesystem,
        renderer: TemplateRenderer | None = None,
        *,
        dir_mode: int = DEFAULT_DIR_MODE,
        file_mode: int = DEFAULT_FILE_MODE,
        overwrite: OverwritePolicy = OverwritePolicy.ERROR,
        verbose: bool = False,
        header_path: str = BOILERPLATE_PATH,
    ) -> None:
        self.fs = fs
        self.renderer = renderer or TemplateRenderer()
        self.dir_mode = dir_mode
        self.file_mode = file_mode
        self.overwrite = OverwritePolicy(overwrite)
        self.verbose = verbose
        self.header_path = normalize_path(header_path)
        self._written: set[str] = set()

    @property
    def written(self) -> frozenset[str]:
        """Paths written by this executor so far."""
        return frozenset(self._written)

    # -- Public API --------------------------------------------------------

    async def execute(
        self,
        templates: Iterable[FileTemplate],
        config: ProjectConfig,
        boilerplate: str | None = None,
    ) -> ExecutionResult:
        """Render and write *templates* in order.

        The first failure aborts the run; files written before it stay on
        disk.

        Raises:
            MissingBoilerplateError: A template embeds the header but
                *boilerplate* is empty or the header file is missing or blank.
            TemplateRenderError: A path or body failed to render.
            FileConflictError: The ``ERROR`` policy refused an overwrite.
            FilesystemError: Any read, mkdir or write failed.
        """
        result = ExecutionResult()
        for template in templates:
            if template.embeds_boilerplate and not await self._header_ready(boilerplate):
                raise MissingBoilerplateError(template.name)
            path = template.resolve_path(self.renderer, config)
            content = template.render(self.renderer, config, boilerplate, path)
            outcome = await self.write(
                path,
                content,
                dir_mode=template.dir_mode,
                file_mode=template.file_mode,
            )
            getattr(result, outcome).append(path)
        return result

    async def write(
        self,
        path: str,
        content: bytes,
        *,
        dir_mode: int | None = None,
        file_mode: int | None = None,
    ) -> str:
        """Write *content* to *path* under the overwrite policy.

        Returns:
            ``"written"``, ``"unchanged"`` or ``"skipped"``.
        """
        path = normalize_path(path)
        if path not in self._written and await asyncio.to_thread(self.fs.exists, path):
            existing = await asyncio.to_thread(self.fs.read, path)
            if existing == content:
                self._written.add(path)
                self._log("unchanged", path)
                return "unchanged"
            if existing.strip():
                if self.overwrite is OverwritePolicy.ERROR:
                    raise FileConflictError(path)
                if self.overwrite is OverwritePolicy.SKIP:
                    print_warning(f"Skipping existing file {path}")
                    return "skipped"

        await asyncio.to_thread(
            self.fs.mkdir_all,
            parent_of(path),
            self.dir_mode if dir_mode is None else dir_mode,
        )
        await asyncio.to_thread(
            self.fs.write,
            path,
            content,
            self.file_mode if file_mode is None else file_mode,
        )
        self._written.add(path)
        self._log("written", path)
        return "written"

    async def _header_ready(self, boilerplate: str | None) -> bool:
        if not boilerplate or not boilerplate.strip():
            return False
        if not await asyncio.to_thread(self.fs.exists, self.header_path):
            return False
        header = await asyncio.to_thread(self.fs.read, self.header_path)
        return bool(header.strip())

    def _log(self, action: str, path: str) -> None:
        if self.verbose:
            print_file_action(action, path)
