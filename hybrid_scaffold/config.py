"""Hybrid scaffold configuration.

Two Pydantic v2 models live here.  ``ProjectConfig`` is the immutable
snapshot of project facts consulted by every template and patch.
``Settings`` holds the run-level knobs (output directory, overwrite policy,
customization toggle) and can be populated from environment variables.
"""

from __future__ import annotations

import os
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from hybrid_scaffold.errors import ScaffoldError

DEFAULT_DOMAIN = "my.domain"
DEFAULT_LICENSE = "apache2"

_MODULE_RE = re.compile(r"^\s*module\s+(\"?)([^\s\"]+)\1\s*(?://.*)?$", re.MULTILINE)


class ProjectConfig(BaseModel):
    """Project-level facts shared read-only by all scaffolding components."""

    model_config = ConfigDict(frozen=True)

    repository: str = Field(..., min_length=1, description="Go module path, e.g. github.com/example/memcached-operator")
    domain: str = Field(default=DEFAULT_DOMAIN, description="Domain used for API groups")
    group: str = Field(default="", description="API group of the initial resource")
    version: str = Field(default="", description="API version of the initial resource")
    kind: str = Field(default="", description="Kind of the initial resource")
    license: str = Field(default=DEFAULT_LICENSE, description="Boilerplate license kind")
    owner: str = Field(default="", description="Copyright owner")
    project_name: str = Field(default="", description="Defaults to the last repository segment")
    year: int = Field(
        default_factory=lambda: datetime.now(timezone.utc).year,
        description="Copyright year written into the boilerplate",
    )

    @model_validator(mode="before")
    @classmethod
    def _derive_project_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("project_name"):
            repository = str(data.get("repository") or "").strip().rstrip("/")
            name = repository.rsplit("/", 1)[-1]
            data = {**data, "project_name": dns_label(name)}
        return data

    @property
    def resource_group(self) -> str:
        """Fully qualified API group (``<group>.<domain>``)."""
        if not self.group:
            return self.domain
        if not self.domain:
            return self.group
        return f"{self.group}.{self.domain}"

    @property
    def has_resource(self) -> bool:
        """Whether a group/version/kind was supplied for the initial watch."""
        return bool(self.group and self.version and self.kind)


class Settings(BaseModel):
    """Run-level settings for a single ``init`` invocation."""

    output_dir: Path = Field(default=Path("."))
    force: bool = Field(default=False, description="Overwrite pre-existing files")
    skip_existing: bool = Field(default=False, description="Keep pre-existing files")
    customize: bool = Field(default=True, description="Run the hybrid customization pass")
    run_go_mod: bool = Field(default=True, description="Run go get / go mod tidy afterwards")
    license: str = Field(default=DEFAULT_LICENSE)
    owner: str = Field(default="")
    domain: str = Field(default=DEFAULT_DOMAIN)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build ``Settings`` from environment variables.

        Recognised variables (all optional):
            HYBRID_OUTPUT_DIR, HYBRID_FORCE, HYBRID_SKIP_EXISTING,
            HYBRID_CUSTOMIZE, HYBRID_RUN_GO_MOD, HYBRID_LICENSE,
            HYBRID_OWNER, HYBRID_DOMAIN.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("HYBRID_OUTPUT_DIR"):
            kwargs["output_dir"] = Path(os.environ["HYBRID_OUTPUT_DIR"])
        for name in ("force", "skip_existing", "customize", "run_go_mod"):
            raw = os.environ.get(f"HYBRID_{name.upper()}")
            if raw:
                kwargs[name] = _env_bool(raw)
        for name in ("license", "owner", "domain"):
            raw = os.environ.get(f"HYBRID_{name.upper()}")
            if raw:
                kwargs[name] = raw
        return cls(**kwargs)


def find_current_repo(directory: str | Path = ".") -> str:
    """Return the module path declared in ``go.mod`` under *directory*.

    Raises:
        ScaffoldError: If there is no ``go.mod`` or it declares no module.
    """
    go_mod = Path(directory) / "go.mod"
    if not go_mod.is_file():
        raise ScaffoldError(
            f"error finding current repository: no go.mod in {Path(directory).resolve()}; "
            "pass --repo explicitly"
        )
    match = _MODULE_RE.search(go_mod.read_text(encoding="utf-8"))
    if match is None:
        raise ScaffoldError(f"error finding current repository: {go_mod} declares no module")
    return match.group(2)


def dns_label(name: str) -> str:
    """Lowercase *name* into a DNS-1123 label (used for leader-election ids)."""
    label = re.sub(r"[^a-z0-9-]+", "-", name.lower())
    return re.sub(r"-+", "-", label).strip("-")


def _env_bool(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")
