"""Text patches and kustomization upkeep applied after scaffolding."""

from hybrid_scaffold.customizer.init import apply_init_customizations, customization_operations
from hybrid_scaffold.customizer.kustomize import reconcile
from hybrid_scaffold.customizer.patch import (
    Delete,
    Insert,
    PatchOperation,
    Replace,
    apply_patches,
    delete_in_file,
    insert_code,
    replace_in_file,
)

__all__ = [
    "Delete",
    "Insert",
    "PatchOperation",
    "Replace",
    "apply_init_customizations",
    "apply_patches",
    "customization_operations",
    "delete_in_file",
    "insert_code",
    "reconcile",
    "replace_in_file",
]
