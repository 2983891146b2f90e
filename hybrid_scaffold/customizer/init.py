"""Customizations that turn the generic manager manifests into the hybrid variant.

Every literal anchor lives in a named constant next to the file it targets,
so a version-skew failure (``AnchorNotFoundError``) points at exactly one
string.
"""

from __future__ import annotations

from collections.abc import Iterable

from hybrid_scaffold.customizer.kustomize import reconcile
from hybrid_scaffold.customizer.patch import (
    Delete,
    Insert,
    PatchOperation,
    Replace,
    apply_patches,
)
from hybrid_scaffold.scaffolder.filesystem import Filesystem

MANAGER_FILE = "config/manager/manager.yaml"
AUTH_PROXY_PATCH_FILE = "config/default/manager_auth_proxy_patch.yaml"
CONTROLLER_MANAGER_CONFIG_FILE = "config/manager/controller_manager_config.yaml"

# manager.yaml
LEADER_ELECT_ANCHOR = "--leader-elect"
LEADER_ELECTION_ID_ARG = "\n        - --leader-election-id={project_name}"
MEMORY_LIMIT_OLD = "memory: 30Mi"
MEMORY_LIMIT_NEW = "memory: 90Mi"
MEMORY_REQUEST_OLD = "memory: 20Mi"
MEMORY_REQUEST_NEW = "memory: 60Mi"
# The helm-based manager image has no /manager entrypoint to call.
MANAGER_COMMAND = """command:
        - /manager
        """

# manager_auth_proxy_patch.yaml
AUTH_PROXY_LEADER_ELECT_ANCHOR = '- "--leader-elect"'
AUTH_PROXY_LEADER_ELECTION_ID_ARG = '\n        - "--leader-election-id={project_name}"'

# controller_manager_config.yaml; webhooks are not supported by helm.
WEBHOOK_STANZA = "webhook:\n  port: 9443"

# Files the patch list edits.
CUSTOMIZED_FILES = (MANAGER_FILE, AUTH_PROXY_PATCH_FILE, CONTROLLER_MANAGER_CONFIG_FILE)

# Directories whose kustomization.yaml is reconciled after patching.
KUSTOMIZATION_DIRS = ("config/default", "config/manager")


def customization_operations(project_name: str) -> list[PatchOperation]:
    """Return the ordered patch list for *project_name*."""
    return [
        Insert(
            MANAGER_FILE,
            LEADER_ELECT_ANCHOR,
            LEADER_ELECTION_ID_ARG.format(project_name=project_name),
        ),
        Insert(
            AUTH_PROXY_PATCH_FILE,
            AUTH_PROXY_LEADER_ELECT_ANCHOR,
            AUTH_PROXY_LEADER_ELECTION_ID_ARG.format(project_name=project_name),
        ),
        Replace(MANAGER_FILE, MEMORY_LIMIT_OLD, MEMORY_LIMIT_NEW),
        Replace(MANAGER_FILE, MEMORY_REQUEST_OLD, MEMORY_REQUEST_NEW),
        Delete(CONTROLLER_MANAGER_CONFIG_FILE, WEBHOOK_STANZA),
        Delete(MANAGER_FILE, MANAGER_COMMAND),
    ]


def apply_init_customizations(fs: Filesystem, project_name: str) -> dict[str, list[str]]:
    """Patch the freshly written tree and reconcile its kustomizations.

    Must run once, right after the base manifests are scaffolded; the
    inserts are not deduplicated.  Callers check :func:`pending_targets`
    first.

    Returns:
        Mapping of reconciled directory to its resource list.
    """
    apply_patches(fs, customization_operations(project_name))
    return {directory: reconcile(fs, directory) for directory in KUSTOMIZATION_DIRS}


def pending_targets(fresh: Iterable[str]) -> list[str]:
    """Return the patched files that are missing from *fresh*.

    *fresh* holds the paths the current run left in their generic,
    unpatched form (written or found byte-identical).  Anything else may
    already carry the customizations or user edits.
    """
    fresh = set(fresh)
    return [path for path in CUSTOMIZED_FILES if path not in fresh]
