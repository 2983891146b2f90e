"""Hybrid scaffold -- renders the files of a new hybrid Helm/Go operator.

Quick usage::

    from hybrid_scaffold.config import ProjectConfig
    from hybrid_scaffold.scaffolder import DiskFilesystem, InitScaffolder

    config = ProjectConfig(repository="github.com/example/memcached-operator",
                           owner="Jane Doe")
    scaffolder = InitScaffolder(config, DiskFilesystem("."))
    await scaffolder.scaffold_base()
    await scaffolder.scaffold()
"""

from hybrid_scaffold.scaffolder.boilerplate import BoilerplateProvider, render_boilerplate
from hybrid_scaffold.scaffolder.executor import (
    ExecutionResult,
    OverwritePolicy,
    ScaffoldExecutor,
)
from hybrid_scaffold.scaffolder.filesystem import DiskFilesystem, Filesystem, MemoryFilesystem
from hybrid_scaffold.scaffolder.generator import InitScaffolder
from hybrid_scaffold.scaffolder.templates import FileTemplate, TemplateRenderer

__all__ = [
    "BoilerplateProvider",
    "DiskFilesystem",
    "ExecutionResult",
    "FileTemplate",
    "Filesystem",
    "InitScaffolder",
    "MemoryFilesystem",
    "OverwritePolicy",
    "ScaffoldExecutor",
    "TemplateRenderer",
    "render_boilerplate",
]
