"""Validation layer for archviews workspaces.

Collects unresolved references, ambiguous relationships and view integrity
problems into one aggregate result reported before rendering.
"""

from .framework import (
    ValidationFramework,
    ValidationIssue,
    ValidationResult,
    ValidationRule,
    ValidationStatus,
)
from .rules import (
    AnimationStepRule,
    DuplicateRelationshipRule,
    RelationshipViewIntegrityRule,
    UniqueNamesRule,
    ViewKeysRule,
)

__all__ = [
    "ValidationFramework",
    "ValidationIssue",
    "ValidationResult",
    "ValidationRule",
    "ValidationStatus",
    "UniqueNamesRule",
    "DuplicateRelationshipRule",
    "ViewKeysRule",
    "RelationshipViewIntegrityRule",
    "AnimationStepRule",
]
