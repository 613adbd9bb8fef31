"""Core validation framework for archviews workspaces.

Validation problems are collected into one aggregate result and surfaced
before any view is handed to rendering; nothing is auto-corrected.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from ..config import ArchviewsConfig

if TYPE_CHECKING:
    from ..models.workspace import Workspace

logger = logging.getLogger(__name__)


class ValidationStatus(str, Enum):
    """Overall validation status."""
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


@dataclass
class ValidationIssue:
    """A single validation issue."""
    rule: str
    severity: ValidationStatus
    message: str
    view: str | None = None
    path: str | None = None

    def __str__(self) -> str:
        location = ""
        if self.view:
            location += f" in view {self.view}"
        if self.path:
            location += f" at {self.path}"
        return f"[{self.severity.value.upper()}] {self.rule}: {self.message}{location}"


@dataclass
class ValidationResult:
    """Aggregate result of a validation run."""
    status: ValidationStatus = ValidationStatus.PASS
    issues: list[ValidationIssue] = field(default_factory=list)
    counters: dict[str, int] = field(default_factory=dict)

    @property
    def exit_code(self) -> int:
        """Exit code for CI: 0 = pass/warn, 1 = fail."""
        return 0 if self.status != ValidationStatus.FAIL else 1

    @property
    def failed(self) -> bool:
        return self.status == ValidationStatus.FAIL

    def add_issue(self, rule: str, severity: ValidationStatus, message: str,
                  view: str | None = None, path: str | None = None) -> None:
        """Add a validation issue."""
        issue = ValidationIssue(rule, severity, message, view, path)
        self.issues.append(issue)

        # Update overall status (fail > warn > pass)
        if severity == ValidationStatus.FAIL:
            self.status = ValidationStatus.FAIL
        elif severity == ValidationStatus.WARN and self.status == ValidationStatus.PASS:
            self.status = ValidationStatus.WARN

    def increment_counter(self, name: str, value: int = 1) -> None:
        """Increment a counter."""
        self.counters[name] = self.counters.get(name, 0) + value

    def escalate_warnings(self) -> None:
        """Treat warnings as failures."""
        if self.status == ValidationStatus.WARN:
            self.status = ValidationStatus.FAIL

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "status": self.status.value,
            "exit_code": self.exit_code,
            "counters": self.counters,
            "issues": [
                {
                    "rule": issue.rule,
                    "severity": issue.severity.value,
                    "message": issue.message,
                    "view": issue.view,
                    "path": issue.path
                }
                for issue in self.issues
            ]
        }


class ValidationRule(ABC):
    """Base class for validation rules."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Rule name for identification."""
        pass

    @abstractmethod
    def validate(self, workspace: "Workspace", config: ArchviewsConfig,
                 result: ValidationResult) -> None:
        """Execute validation rule.

        Args:
            workspace: Finalized workspace with populated views
            config: archviews configuration
            result: Validation result to update with issues/counters
        """
        pass


class ValidationFramework:
    """Runs validation rules over a finalized workspace."""

    def __init__(self, config: ArchviewsConfig):
        self.config = config
        self.rules: list[ValidationRule] = []

    def add_rule(self, rule: ValidationRule) -> None:
        """Add a validation rule."""
        self.rules.append(rule)

    def validate(self, workspace: "Workspace",
                 result: ValidationResult | None = None) -> ValidationResult:
        """Run all rules on a workspace.

        Args:
            workspace: Finalized workspace to validate
            result: Optional result to extend, e.g. with document loading issues

        Returns:
            ValidationResult with status, issues, and counters
        """
        result = result or ValidationResult()

        logger.info(f"Starting validation of workspace {workspace.name!r}")
        logger.info(f"Running {len(self.rules)} validation rules")

        for rule in self.rules:
            logger.debug(f"Executing rule: {rule.name}")
            try:
                rule.validate(workspace, self.config, result)
            except Exception as e:
                logger.error(f"Rule {rule.name} failed with error: {e}")
                result.add_issue(
                    rule.name,
                    ValidationStatus.FAIL,
                    f"Rule execution failed: {e}"
                )

        if self.config.validation.fail_on_warnings:
            result.escalate_warnings()

        logger.info(f"Validation completed with status: {result.status.value}")
        logger.info(f"Found {len(result.issues)} issues")

        return result

    def create_default_rules(self) -> None:
        """Register the default rule set."""
        from .rules import (
            AnimationStepRule,
            DuplicateRelationshipRule,
            RelationshipViewIntegrityRule,
            UniqueNamesRule,
            ViewKeysRule,
        )

        self.add_rule(UniqueNamesRule())
        self.add_rule(DuplicateRelationshipRule())
        self.add_rule(ViewKeysRule())
        self.add_rule(RelationshipViewIntegrityRule())
        self.add_rule(AnimationStepRule())
