"""Layout reconciliation across independent builds of the same design."""

from .reconcile import (
    apply_layout,
    build_id_map,
    extract_layout,
    reconcile_layout,
    remap_layout,
    structural_key,
)

__all__ = [
    "structural_key",
    "build_id_map",
    "extract_layout",
    "remap_layout",
    "apply_layout",
    "reconcile_layout",
]
