"""Shared pytest fixtures for the hybrid scaffold test suite.

Provides reusable fixtures for:
- A fixed ``ProjectConfig`` (year pinned so renders are reproducible)
- In-memory and on-disk filesystems
- A memory tree holding the generic manager manifests
"""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from hybrid_scaffold.config import ProjectConfig
from hybrid_scaffold.scaffolder.filesystem import DiskFilesystem, MemoryFilesystem


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@pytest.fixture
def project_config() -> ProjectConfig:
    """Config for a memcached operator owned by Jane Doe."""
    return ProjectConfig(
        repository="github.com/example/memcached-operator",
        domain="example.com",
        group="cache",
        version="v1alpha1",
        kind="Memcached",
        license="apache2",
        owner="Jane Doe",
        year=2026,
    )


@pytest.fixture
def bare_config() -> ProjectConfig:
    """Config without an initial resource and without a license text."""
    return ProjectConfig(
        repository="github.com/example/bare-operator",
        license="none",
        year=2026,
    )


# ---------------------------------------------------------------------------
# Filesystems
# ---------------------------------------------------------------------------


@pytest.fixture
def memory_fs() -> MemoryFilesystem:
    """An empty in-memory tree."""
    return MemoryFilesystem()


@pytest.fixture
def disk_fs(tmp_path: Path) -> DiskFilesystem:
    """A tree rooted at a temporary directory (auto-cleanup)."""
    root = tmp_path / "project"
    root.mkdir()
    return DiskFilesystem(root)


MANAGER_YAML = textwrap.dedent(
    """\
    apiVersion: apps/v1
    kind: Deployment
    metadata:
      name: controller-manager
      namespace: system
    spec:
      template:
        spec:
          containers:
          - command:
            - /manager
            args:
            - --leader-elect
            image: controller:latest
            name: manager
            resources:
              limits:
                cpu: 100m
                memory: 30Mi
              requests:
                cpu: 100m
                memory: 20Mi
    """
)

CONTROLLER_MANAGER_CONFIG_YAML = textwrap.dedent(
    """\
    apiVersion: controller-runtime.sigs.k8s.io/v1alpha1
    kind: ControllerManagerConfig
    health:
      healthProbeBindAddress: :8081
    webhook:
      port: 9443
    leaderElection:
      leaderElect: true
    """
)


@pytest.fixture
def manifest_fs() -> MemoryFilesystem:
    """Memory tree with a manager deployment, its config, and a kustomization."""
    return MemoryFilesystem(
        {
            "config/manager/manager.yaml": MANAGER_YAML,
            "config/manager/controller_manager_config.yaml": CONTROLLER_MANAGER_CONFIG_YAML,
            "config/manager/kustomization.yaml": (
                "resources:\n"
                "- manager.yaml\n"
                "\n"
                "configMapGenerator:\n"
                "- name: manager-config\n"
                "  files:\n"
                "  - controller_manager_config.yaml\n"
            ),
        }
    )
