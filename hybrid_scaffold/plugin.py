"""The ``init`` subcommand of the hybrid Helm/Go plugin.

Pipeline for one invocation:

1. resolve the project configuration (inferring the repository from
   ``go.mod`` when ``--repo`` is not given);
2. write the boilerplate and init files, then the generic kustomize layer;
3. run the customization pass, but only when the patched manifests were
   freshly written by this run;
4. pin controller-runtime and tidy the module.

Usage::

    python -m hybrid_scaffold.plugin --owner "Jane Doe" --domain example.com
    python -m hybrid_scaffold.plugin --repo github.com/example/memcached-operator --skip-go-mod
"""

from __future__ import annotations

import asyncio
import sys
from dataclasses import dataclass
from pathlib import Path

from hybrid_scaffold.config import ProjectConfig, Settings, find_current_repo
from hybrid_scaffold.customizer.init import apply_init_customizations, pending_targets
from hybrid_scaffold.errors import PluginError, ScaffoldError
from hybrid_scaffold.scaffolder.executor import ExecutionResult, OverwritePolicy
from hybrid_scaffold.scaffolder.filesystem import DiskFilesystem, Filesystem
from hybrid_scaffold.scaffolder.generator import CONTROLLER_RUNTIME_VERSION, InitScaffolder
from hybrid_scaffold.utils import (
    print_error,
    print_success,
    print_summary_table,
    print_warning,
    run_command,
)

PLUGIN_KEY = "hybrid.helm.sdk.operatorframework.io/v1-alpha"


@dataclass
class SubcommandMetadata:
    description: str
    examples: str


class InitSubcommand:
    """Scaffolds a new hybrid operator project."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        self.config: ProjectConfig | None = None
        self.command_name = "operator-sdk"

    # -- Metadata ----------------------------------------------------------

    def metadata(self, command_name: str) -> SubcommandMetadata:
        self.command_name = command_name
        description = (
            "Initialize a new project including the following files:\n"
            '  - a "go.mod" with project dependencies\n'
            '  - a "PROJECT" file that stores project configuration\n'
            '  - a "Makefile" with several useful make targets for the project\n'
            '  - several YAML files for project deployment under the "config" directory\n'
            '  - a "main.go" file that creates the manager that will run the project controllers\n'
        )
        examples = (
            "  # Initialize a new project with your domain and name in copyright\n"
            f'  $ {command_name} init --plugins={PLUGIN_KEY} --domain=example.com --owner "Your Name"\n'
            "\n"
            "  # Initialize a new project defining a specific project version\n"
            f"  $ {command_name} init --plugins={PLUGIN_KEY} --project-version 3\n"
        )
        return SubcommandMetadata(description=description, examples=examples)

    # -- Configuration -----------------------------------------------------

    def inject_config(
        self,
        repository: str = "",
        *,
        group: str = "",
        version: str = "",
        kind: str = "",
        project_name: str = "",
        year: int | None = None,
    ) -> ProjectConfig:
        """Build the project configuration, inferring the repository if needed."""
        if not repository:
            repository = find_current_repo(self.settings.output_dir)

        fields: dict[str, object] = {
            "repository": repository,
            "domain": self.settings.domain,
            "group": group,
            "version": version,
            "kind": kind,
            "license": self.settings.license,
            "owner": self.settings.owner,
            "project_name": project_name,
        }
        if year is not None:
            fields["year"] = year
        self.config = ProjectConfig(**fields)
        return self.config

    # -- Scaffolding -------------------------------------------------------

    def overwrite_policy(self) -> OverwritePolicy:
        if self.settings.force:
            return OverwritePolicy.OVERWRITE
        if self.settings.skip_existing:
            return OverwritePolicy.SKIP
        return OverwritePolicy.ERROR

    async def scaffold(self, fs: Filesystem) -> ExecutionResult:
        """Write the project files and, if enabled, customize them."""
        if self.config is None:
            raise ScaffoldError("inject_config must be called before scaffold")

        scaffolder = InitScaffolder(self.config, fs, overwrite=self.overwrite_policy())
        result = await scaffolder.scaffold()
        base = await scaffolder.scaffold_base()
        result.extend(base)

        if not self.settings.customize:
            return result
        pending = pending_targets(base.written + base.unchanged)
        if pending:
            print_warning(
                "Skipping hybrid customization, these files were kept as found: "
                + ", ".join(pending)
            )
            return result
        await asyncio.to_thread(apply_init_customizations, fs, self.config.project_name)
        return result

    async def post_scaffold(self) -> None:
        """Pin controller-runtime and tidy the generated module."""
        commands = [
            ("Get controller runtime", ["go", "get", f"sigs.k8s.io/controller-runtime@{CONTROLLER_RUNTIME_VERSION}"]),
            ("Update dependencies", ["go", "mod", "tidy"]),
        ]
        for label, cmd in commands:
            result = await run_command(cmd, cwd=self.settings.output_dir, label=label)
            if result.returncode != 0:
                raise PluginError(
                    f"{label} failed with exit code {result.returncode}",
                    command=" ".join(cmd),
                    stderr=result.stderr,
                )

    async def run(self, fs: Filesystem | None = None) -> ExecutionResult:
        fs = fs or DiskFilesystem(self.settings.output_dir)
        result = await self.scaffold(fs)
        if self.settings.run_go_mod:
            await self.post_scaffold()
        return result


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``python -m hybrid_scaffold.plugin``."""
    import argparse

    env = Settings.from_env()
    parser = argparse.ArgumentParser(
        prog="hybrid-scaffold",
        description="Initialize a hybrid Helm/Go operator project",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=InitSubcommand().metadata("hybrid-scaffold").examples,
    )
    parser.add_argument(
        "--repo",
        default="",
        help="name to use for go module (e.g., github.com/user/repo), "
        "defaults to the go package of the output directory",
    )
    parser.add_argument("--domain", default=env.domain, help="domain for groups (default: %(default)s)")
    parser.add_argument("--group", default="", help="API group of the initial watch")
    parser.add_argument("--version", default="", help="API version of the initial watch")
    parser.add_argument("--kind", default="", help="Kind of the initial watch")
    parser.add_argument(
        "--license",
        default=env.license,
        help="license to use to boilerplate, may be one of 'apache2', 'none'",
    )
    parser.add_argument("--owner", default=env.owner, help="owner to add to the copyright")
    parser.add_argument("--project-name", default="", help="name of this project")
    parser.add_argument("--output", "-o", default=str(env.output_dir), help="project directory")
    conflict = parser.add_mutually_exclusive_group()
    conflict.add_argument("--force", action="store_true", default=env.force, help="overwrite existing files")
    conflict.add_argument(
        "--skip-existing", action="store_true", default=env.skip_existing, help="keep existing files"
    )
    parser.add_argument(
        "--no-customize", action="store_true", default=not env.customize,
        help="skip the hybrid customization pass",
    )
    parser.add_argument(
        "--skip-go-mod", action="store_true", default=not env.run_go_mod,
        help="do not run go get / go mod tidy",
    )

    args = parser.parse_args(argv)

    settings = Settings(
        output_dir=Path(args.output),
        force=args.force,
        skip_existing=args.skip_existing and not args.force,
        customize=not args.no_customize,
        run_go_mod=not args.skip_go_mod,
        license=args.license,
        owner=args.owner,
        domain=args.domain,
    )
    subcommand = InitSubcommand(settings)

    try:
        config = subcommand.inject_config(
            args.repo,
            group=args.group,
            version=args.version,
            kind=args.kind,
            project_name=args.project_name,
        )
        settings.output_dir.mkdir(parents=True, exist_ok=True)
        result = asyncio.run(subcommand.run())
    except ScaffoldError as exc:
        print_error(f"Error: {exc}")
        sys.exit(1)

    print_summary_table(
        {
            "Repository": config.repository,
            "Project": config.project_name,
            "Files written": str(len(result.written)),
            "Files unchanged": str(len(result.unchanged)),
            "Files skipped": str(len(result.skipped)),
        },
        title="hybrid init",
    )
    print_success("Next: define a resource with:\n$ operator-sdk create api")


if __name__ == "__main__":
    main()
