"""Tests for the hybrid init customizations.

Covers:
- The ordered patch list and its literal anchors
- Patched manager deployment (leader-election id, memory, no command)
- Patched auth proxy patch and controller manager config
- Kustomization reconciliation after patching
- Version skew: a missing anchor aborts with AnchorNotFoundError
"""

from __future__ import annotations

import pytest
import yaml

from hybrid_scaffold.customizer.init import (
    AUTH_PROXY_PATCH_FILE,
    CONTROLLER_MANAGER_CONFIG_FILE,
    MANAGER_FILE,
    apply_init_customizations,
    customization_operations,
    pending_targets,
)
from hybrid_scaffold.customizer.patch import Delete, Insert, Replace
from hybrid_scaffold.errors import AnchorNotFoundError, FilesystemError
from hybrid_scaffold.scaffolder.filesystem import MemoryFilesystem
from hybrid_scaffold.scaffolder.generator import InitScaffolder

pytestmark = pytest.mark.unit


@pytest.fixture
async def base_fs(project_config) -> MemoryFilesystem:
    """A memory tree holding the generic manifest layer."""
    fs = MemoryFilesystem()
    await InitScaffolder(project_config, fs).scaffold_base()
    return fs


def _manager_container(fs: MemoryFilesystem) -> dict:
    documents = list(yaml.safe_load_all(fs.read(MANAGER_FILE)))
    deployment = next(d for d in documents if d["kind"] == "Deployment")
    return deployment["spec"]["template"]["spec"]["containers"][0]


# ---------------------------------------------------------------------------
# customization_operations
# ---------------------------------------------------------------------------


class TestCustomizationOperations:
    def test_order_and_kinds(self):
        operations = customization_operations("demo")
        assert [type(op) for op in operations] == [Insert, Insert, Replace, Replace, Delete, Delete]
        assert [op.path for op in operations] == [
            MANAGER_FILE,
            AUTH_PROXY_PATCH_FILE,
            MANAGER_FILE,
            MANAGER_FILE,
            CONTROLLER_MANAGER_CONFIG_FILE,
            MANAGER_FILE,
        ]

    def test_project_name_in_inserts(self):
        inserts = [op for op in customization_operations("demo") if isinstance(op, Insert)]
        assert inserts[0].text == "\n        - --leader-election-id=demo"
        assert inserts[1].text == '\n        - "--leader-election-id=demo"'


# ---------------------------------------------------------------------------
# apply_init_customizations
# ---------------------------------------------------------------------------


class TestApplyInitCustomizations:
    @pytest.mark.asyncio
    async def test_manager_deployment(self, base_fs):
        apply_init_customizations(base_fs, "memcached-operator")

        container = _manager_container(base_fs)
        assert "command" not in container
        assert container["args"] == [
            "--leader-elect",
            "--leader-election-id=memcached-operator",
        ]
        assert container["resources"]["limits"]["memory"] == "90Mi"
        assert container["resources"]["requests"]["memory"] == "60Mi"

    @pytest.mark.asyncio
    async def test_manager_text(self, base_fs):
        apply_init_customizations(base_fs, "memcached-operator")
        text = base_fs.read(MANAGER_FILE).decode()
        assert (
            "      - args:\n"
            "        - --leader-elect\n"
            "        - --leader-election-id=memcached-operator\n"
        ) in text
        assert "/manager" not in text

    @pytest.mark.asyncio
    async def test_auth_proxy_patch(self, base_fs):
        apply_init_customizations(base_fs, "memcached-operator")
        document = yaml.safe_load(base_fs.read(AUTH_PROXY_PATCH_FILE))
        manager = document["spec"]["template"]["spec"]["containers"][1]
        assert manager["name"] == "manager"
        assert manager["args"][-2:] == [
            "--leader-elect",
            "--leader-election-id=memcached-operator",
        ]

    @pytest.mark.asyncio
    async def test_webhook_removed(self, base_fs):
        apply_init_customizations(base_fs, "memcached-operator")
        document = yaml.safe_load(base_fs.read(CONTROLLER_MANAGER_CONFIG_FILE))
        assert "webhook" not in document
        assert document["leaderElection"]["leaderElect"] is True

    @pytest.mark.asyncio
    async def test_kustomizations_reconciled(self, base_fs):
        reconciled = apply_init_customizations(base_fs, "memcached-operator")
        assert reconciled == {
            "config/default": ["../crd", "../manager", "../rbac"],
            "config/manager": ["manager.yaml"],
        }
        default = yaml.safe_load(base_fs.read("config/default/kustomization.yaml"))
        assert default["resources"] == ["../crd", "../manager", "../rbac"]
        assert default["patchesStrategicMerge"] == ["manager_auth_proxy_patch.yaml"]
        assert "#- ../prometheus" in base_fs.read("config/default/kustomization.yaml").decode()

    @pytest.mark.asyncio
    async def test_prometheus_untouched(self, base_fs):
        before = base_fs.read("config/prometheus/kustomization.yaml")
        apply_init_customizations(base_fs, "memcached-operator")
        assert base_fs.read("config/prometheus/kustomization.yaml") == before

    @pytest.mark.asyncio
    async def test_deterministic(self, project_config):
        trees = []
        for _ in range(2):
            fs = MemoryFilesystem()
            await InitScaffolder(project_config, fs).scaffold_base()
            apply_init_customizations(fs, project_config.project_name)
            trees.append(fs.snapshot())
        assert trees[0] == trees[1]


# ---------------------------------------------------------------------------
# Version skew
# ---------------------------------------------------------------------------


class TestAnchorSkew:
    @pytest.mark.asyncio
    async def test_missing_memory_limit(self, base_fs):
        text = base_fs.read(MANAGER_FILE).decode().replace("memory: 30Mi", "memory: 32Mi")
        base_fs.write(MANAGER_FILE, text.encode())

        with pytest.raises(AnchorNotFoundError) as exc_info:
            apply_init_customizations(base_fs, "memcached-operator")
        assert exc_info.value.path == MANAGER_FILE
        assert exc_info.value.anchor == "memory: 30Mi"
        # Earlier patches stay applied; later ones never run.
        assert b"--leader-election-id=memcached-operator" in base_fs.read(MANAGER_FILE)
        assert b"webhook:" in base_fs.read(CONTROLLER_MANAGER_CONFIG_FILE)

    def test_generic_tree_from_fixture_lacks_auth_proxy(self, manifest_fs):
        with pytest.raises(FilesystemError) as exc_info:
            apply_init_customizations(manifest_fs, "memcached-operator")
        assert exc_info.value.path == AUTH_PROXY_PATCH_FILE
        assert b"--leader-election-id=memcached-operator" in manifest_fs.read(MANAGER_FILE)


# ---------------------------------------------------------------------------
# Individual operations on the generic manifests
# ---------------------------------------------------------------------------


class TestSingleOperations:
    def test_memory_limit_replacement(self, manifest_fs):
        op = next(o for o in customization_operations("x") if isinstance(o, Replace))
        op.apply(manifest_fs)
        text = manifest_fs.read(MANAGER_FILE).decode()
        assert "memory: 90Mi" in text
        assert "memory: 30Mi" not in text

    def test_webhook_removal_touches_nothing_else(self, manifest_fs):
        before = manifest_fs.read(CONTROLLER_MANAGER_CONFIG_FILE).decode()
        op = next(o for o in customization_operations("x") if isinstance(o, Delete))
        op.apply(manifest_fs)
        assert manifest_fs.read(CONTROLLER_MANAGER_CONFIG_FILE).decode() == before.replace(
            "webhook:\n  port: 9443", "", 1
        )

    def test_leader_election_insert_without_anchor(self):
        fs = MemoryFilesystem({MANAGER_FILE: "args:\n- --metrics-bind-address=:8080\n"})
        before = fs.read(MANAGER_FILE)
        op = customization_operations("x")[0]
        with pytest.raises(AnchorNotFoundError):
            op.apply(fs)
        assert fs.read(MANAGER_FILE) == before


# ---------------------------------------------------------------------------
# pending_targets
# ---------------------------------------------------------------------------


class TestPendingTargets:
    def test_all_fresh(self):
        fresh = [MANAGER_FILE, AUTH_PROXY_PATCH_FILE, CONTROLLER_MANAGER_CONFIG_FILE, "main.go"]
        assert pending_targets(fresh) == []

    def test_reports_missing_in_patch_order(self):
        assert pending_targets([AUTH_PROXY_PATCH_FILE]) == [
            MANAGER_FILE,
            CONTROLLER_MANAGER_CONFIG_FILE,
        ]

    @pytest.mark.asyncio
    async def test_generic_layer_is_fresh(self, project_config):
        result = await InitScaffolder(project_config, MemoryFilesystem()).scaffold_base()
        assert pending_targets(result.written) == []
