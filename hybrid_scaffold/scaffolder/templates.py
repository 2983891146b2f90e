"""Jinja2 rendering and the fixed template set for the hybrid scaffold.

``TemplateRenderer`` loads ``.j2`` files from ``scaffolder/templates/``.
``FileTemplate`` binds an output path (itself a Jinja expression over the
project context) to one of those files.  The template set is a fixed,
ordered registration list assembled at import time; nothing is discovered
at runtime.
"""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from hybrid_scaffold.config import ProjectConfig, dns_label
from hybrid_scaffold.errors import TemplateRenderError
from hybrid_scaffold.scaffolder.filesystem import normalize_path

# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for project scaffolding.

    Undefined variables are errors rather than empty strings, so a template
    that drifts from the context fails loudly instead of writing a
    half-rendered file.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=False,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )
        self.env.filters["dns_label"] = dns_label
        self.env.filters["lower_kind"] = _lower_kind_filter

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template file with the provided context."""
        template = self.env.get_template(template_path)
        return template.render(**context)

    def render_string(self, template_string: str, context: dict[str, Any]) -> str:
        """Render an inline template string (used for output paths)."""
        template = self.env.from_string(template_string)
        return template.render(**context)

    def list_templates(self) -> list[str]:
        """Return a sorted list of all ``.j2`` template paths."""
        return sorted(
            p.relative_to(self.template_dir).as_posix()
            for p in self.template_dir.rglob("*.j2")
        )


# ---------------------------------------------------------------------------
# FileTemplate
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FileTemplate:
    """A single generated file.

    Attributes:
        name: Short identifier used in messages.
        path: Output path, rendered as a Jinja expression over the context.
        template: ``.j2`` file under the template directory.
        embeds_boilerplate: The body includes the license header, so the
            header must have been produced before this template renders.
        dir_mode: Permission for created parent directories (executor
            default when ``None``).
        file_mode: Permission for the written file (executor default when
            ``None``).
    """

    name: str
    path: str
    template: str
    embeds_boilerplate: bool = False
    dir_mode: int | None = None
    file_mode: int | None = None

    def resolve_path(self, renderer: TemplateRenderer, config: ProjectConfig) -> str:
        try:
            rendered = renderer.render_string(self.path, build_context(config)).strip()
        except TemplateError as exc:
            raise TemplateRenderError(self.name, self.path, str(exc)) from exc
        if not rendered:
            raise TemplateRenderError(self.name, self.path, "output path rendered empty")
        return normalize_path(rendered)

    def render(
        self,
        renderer: TemplateRenderer,
        config: ProjectConfig,
        boilerplate: str | None = None,
        path: str = "",
    ) -> bytes:
        context = build_context(config, boilerplate)
        try:
            return renderer.render(self.template, context).encode("utf-8")
        except TemplateError as exc:
            raise TemplateRenderError(self.name, path or self.path, str(exc)) from exc


def build_context(config: ProjectConfig, boilerplate: str | None = None) -> dict[str, Any]:
    """Build the Jinja2 context from the project config."""
    return {
        "repository": config.repository,
        "domain": config.domain,
        "group": config.group,
        "version": config.version,
        "kind": config.kind,
        "resource_group": config.resource_group,
        "has_resource": config.has_resource,
        "project_name": config.project_name,
        "owner": config.owner,
        "year": config.year,
        "license": config.license,
        "leader_election_id": f"{repository_hash(config.repository)}.{config.domain}",
        "boilerplate": boilerplate if boilerplate is not None else "",
    }


def repository_hash(repository: str) -> str:
    """Short stable hash of the module path, used in the leader-election lock name."""
    return hashlib.sha256(repository.encode("utf-8")).hexdigest()[:8]


# ---------------------------------------------------------------------------
# Template set
# ---------------------------------------------------------------------------

BOILERPLATE_PATH = "hack/boilerplate.go.txt"

BOILERPLATE = FileTemplate(
    name="boilerplate",
    path=BOILERPLATE_PATH,
    template="hack/boilerplate.go.txt.j2",
)

MAIN = FileTemplate(
    name="main",
    path="main.go",
    template="main.go.j2",
    embeds_boilerplate=True,
)

GITIGNORE = FileTemplate(
    name="gitignore",
    path=".gitignore",
    template="gitignore.j2",
)

WATCHES = FileTemplate(
    name="watches",
    path="watches.yaml",
    template="watches.yaml.j2",
)

# Rendered after the boilerplate; no ordering dependency among themselves.
INIT_TEMPLATES: tuple[FileTemplate, ...] = (MAIN, GITIGNORE, WATCHES)

# Generic controller-manager manifests that the customization pass specializes.
BASE_TEMPLATES: tuple[FileTemplate, ...] = (
    FileTemplate("manager", "config/manager/manager.yaml", "config/manager/manager.yaml.j2"),
    FileTemplate(
        "controller-manager-config",
        "config/manager/controller_manager_config.yaml",
        "config/manager/controller_manager_config.yaml.j2",
    ),
    FileTemplate(
        "manager-kustomization",
        "config/manager/kustomization.yaml",
        "config/manager/kustomization.yaml.j2",
    ),
    FileTemplate(
        "default-kustomization",
        "config/default/kustomization.yaml",
        "config/default/kustomization.yaml.j2",
    ),
    FileTemplate(
        "auth-proxy-patch",
        "config/default/manager_auth_proxy_patch.yaml",
        "config/default/manager_auth_proxy_patch.yaml.j2",
    ),
    FileTemplate(
        "manager-config-patch",
        "config/default/manager_config_patch.yaml",
        "config/default/manager_config_patch.yaml.j2",
    ),
    FileTemplate(
        "prometheus-kustomization",
        "config/prometheus/kustomization.yaml",
        "config/prometheus/kustomization.yaml.j2",
    ),
    FileTemplate(
        "prometheus-monitor",
        "config/prometheus/monitor.yaml",
        "config/prometheus/monitor.yaml.j2",
    ),
)


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------


def _lower_kind_filter(value: str) -> str:
    """Convert ``MemcachedBackup`` to ``memcached-backup`` (chart directory names)."""
    s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1-\2", value)
    return re.sub(r"([a-z0-9])([A-Z])", r"\1-\2", s1).lower()
