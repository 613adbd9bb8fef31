"""Validation rules over a finalized workspace.

Each rule checks one aspect of the model or its populated views.
"""

import logging
from collections import Counter

from ..config import ArchviewsConfig
from ..layout.reconcile import structural_key
from ..models.workspace import Workspace
from .framework import ValidationResult, ValidationRule, ValidationStatus

logger = logging.getLogger(__name__)


class UniqueNamesRule(ValidationRule):
    """Warn about elements sharing a structural key.

    Layout reconciliation matches such elements first-match-wins, so saved
    positions may land on the wrong one.
    """

    @property
    def name(self) -> str:
        return "unique_names"

    def validate(self, workspace: Workspace, config: ArchviewsConfig, result: ValidationResult) -> None:
        elements = workspace.model.elements()
        counts = Counter(structural_key(e) for e in elements)
        result.increment_counter("elements", len(elements))

        reported = set()
        for element in elements:
            key = structural_key(element)
            if counts[key] > 1 and key not in reported:
                reported.add(key)
                result.add_issue(
                    self.name,
                    ValidationStatus.WARN,
                    f"{counts[key]} elements named {element.name!r} in the same scope",
                    path=element.path
                )


class DuplicateRelationshipRule(ValidationRule):
    """Warn about relationships sharing source, destination and description."""

    @property
    def name(self) -> str:
        return "duplicate_relationships"

    def validate(self, workspace: Workspace, config: ArchviewsConfig, result: ValidationResult) -> None:
        relationships = workspace.model.relationships()
        result.increment_counter("relationships", len(relationships))

        seen: dict[tuple[int, int, str], int] = {}
        for relationship in relationships:
            key = (id(relationship.source), id(relationship.destination), relationship.description)
            seen[key] = seen.get(key, 0) + 1
            if seen[key] == 2:
                result.add_issue(
                    self.name,
                    ValidationStatus.WARN,
                    f"Duplicate relationship {relationship}",
                    path=relationship.source.path
                )


class ViewKeysRule(ValidationRule):
    """Validate that every view has a unique, non-empty key."""

    @property
    def name(self) -> str:
        return "view_keys"

    def validate(self, workspace: Workspace, config: ArchviewsConfig, result: ValidationResult) -> None:
        keys = [v.key for v in workspace.views.views] + [f.key for f in workspace.views.filtered_views]
        result.increment_counter("views", len(keys))

        for key, count in Counter(keys).items():
            if not key:
                result.add_issue(self.name, ValidationStatus.FAIL, f"{count} views have no key")
            elif count > 1:
                result.add_issue(
                    self.name,
                    ValidationStatus.FAIL,
                    f"View key {key!r} is used by {count} views",
                    view=key
                )


class RelationshipViewIntegrityRule(ValidationRule):
    """Validate that every relationship view has both endpoints in its view."""

    @property
    def name(self) -> str:
        return "relationship_view_integrity"

    def validate(self, workspace: Workspace, config: ArchviewsConfig, result: ValidationResult) -> None:
        for view in workspace.views.all():
            present = {id(ev.element) for ev in view.element_views}
            if len(present) != len(view.element_views):
                result.add_issue(
                    self.name,
                    ValidationStatus.FAIL,
                    "View lists the same element more than once",
                    view=view.key
                )
            for rv in view.relationship_views:
                result.increment_counter("relationship_views")
                relationship = rv.relationship
                if id(relationship.source) not in present or id(relationship.destination) not in present:
                    result.add_issue(
                        self.name,
                        ValidationStatus.FAIL,
                        f"Relationship {relationship} is shown without both of its endpoints",
                        view=view.key
                    )


class AnimationStepRule(ValidationRule):
    """Warn about animation steps revealing elements absent from their view."""

    @property
    def name(self) -> str:
        return "animation_steps"

    def validate(self, workspace: Workspace, config: ArchviewsConfig, result: ValidationResult) -> None:
        for view in workspace.views.all():
            for step in view.animation_steps:
                result.increment_counter("animation_steps")
                for element in step.elements:
                    if not view.has_element(element):
                        result.add_issue(
                            self.name,
                            ValidationStatus.WARN,
                            f"Animation step {step.order} reveals {element} which is not in the view",
                            view=view.key
                        )
