"""Init scaffolding orchestrator.

Runs the two phases of ``init`` explicitly:

1. produce the license header and read it back from the tree;
2. render the init template set with that header passed in as an argument.

The generic controller-manager manifest layer that the customization pass
specializes is written by :meth:`InitScaffolder.scaffold_base`.
"""

from __future__ import annotations

from collections.abc import Sequence

from hybrid_scaffold.config import ProjectConfig
from hybrid_scaffold.errors import UnsupportedLicenseError
from hybrid_scaffold.scaffolder.boilerplate import LICENSES, BoilerplateProvider
from hybrid_scaffold.scaffolder.executor import (
    ExecutionResult,
    OverwritePolicy,
    ScaffoldExecutor,
)
from hybrid_scaffold.scaffolder.filesystem import Filesystem
from hybrid_scaffold.scaffolder.templates import (
    BASE_TEMPLATES,
    INIT_TEMPLATES,
    FileTemplate,
    TemplateRenderer,
)
from hybrid_scaffold.utils import console

# Pinned for the generated go.mod via ``go get`` after scaffolding.
CONTROLLER_RUNTIME_VERSION = "v0.8.3"


class InitScaffolder:
    """Writes the files of a new hybrid operator project."""

    def __init__(
        self,
        config: ProjectConfig,
        fs: Filesystem,
        *,
        overwrite: OverwritePolicy = OverwritePolicy.ERROR,
        renderer: TemplateRenderer | None = None,
        templates: Sequence[FileTemplate] = INIT_TEMPLATES,
        base_templates: Sequence[FileTemplate] = BASE_TEMPLATES,
        verbose: bool = False,
    ) -> None:
        self.config = config
        self.fs = fs
        self.templates = tuple(templates)
        self.base_templates = tuple(base_templates)
        self.executor = ScaffoldExecutor(
            fs,
            renderer,
            dir_mode=0o755,
            file_mode=0o644,
            overwrite=overwrite,
            verbose=verbose,
        )
        self.boilerplate: str | None = None

    async def scaffold(self) -> ExecutionResult:
        """Write the boilerplate header, then the init template set.

        The returned result covers the init templates; the header file is
        exposed through :attr:`boilerplate` instead.
        """
        self._check_license()
        console.print("Writing scaffolds for you to edit...")

        # The header is read back from the tree so every embedded copy
        # matches hack/boilerplate.go.txt byte for byte.
        self.boilerplate = await BoilerplateProvider(self.executor).produce(self.config)

        return await self.executor.execute(self.templates, self.config, self.boilerplate)

    async def scaffold_base(self) -> ExecutionResult:
        """Write the generic manager/default/prometheus kustomize layer."""
        self._check_license()
        return await self.executor.execute(self.base_templates, self.config)

    def _check_license(self) -> None:
        # Fail before any file of the run is written.
        if self.config.license not in LICENSES:
            raise UnsupportedLicenseError(self.config.license, sorted(LICENSES))
