"""Artifact generation for archviews outputs."""

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from archviews import __version__
from archviews.config import ArchviewsConfig
from archviews.document import to_document
from archviews.models.views import FilteredView, View
from archviews.models.workspace import Workspace

logger = logging.getLogger(__name__)


class ArtifactGenerator:
    """Generates archviews artifacts from a finalized workspace."""

    def __init__(self, config: ArchviewsConfig, output_dir: Path | None = None):
        """Initialize artifact generator.

        Args:
            config: archviews configuration
            output_dir: Optional override for output directory
        """
        self.config = config
        self.output_dir = Path(output_dir or config.output.dir)
        self.timestamp = datetime.now(UTC).isoformat()

    def generate_all_artifacts(self, workspace: Workspace) -> dict[str, Path]:
        """Generate all artifacts for a workspace.

        Args:
            workspace: Finalized workspace with populated views

        Returns:
            Dict mapping artifact names to file paths
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)

        artifacts = {}
        artifacts["views"] = self._generate_views(workspace)
        if self.config.layout.enabled:
            artifacts["snapshot"] = self._generate_snapshot(workspace)

        logger.info(f"Generated {len(artifacts)} artifacts in {self.output_dir}")
        return artifacts

    def _write_json(self, file_name: str, data: dict[str, Any]) -> Path:
        path = self.output_dir / file_name
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=self.config.output.indent or None, ensure_ascii=False)
        logger.debug(f"Wrote {path}")
        return path

    def _generate_snapshot(self, workspace: Workspace) -> Path:
        """Write the workspace with its IDs and layout, reloadable as a document."""
        return self._write_json(self.config.layout.snapshot_file, to_document(workspace).to_dict())

    def _generate_views(self, workspace: Workspace) -> Path:
        """Write the populated views consumed by diagram renderers."""
        data = {
            "archviewsVersion": __version__,
            "generatedAt": self.timestamp,
            "workspace": workspace.name,
            "views": [view_to_dict(v) for v in workspace.views.all()],
            "filteredViews": [filtered_view_to_dict(f) for f in workspace.views.filtered_views],
        }
        return self._write_json("views.json", data)


def view_to_dict(view: View) -> dict[str, Any]:
    """Renderer representation of a populated view."""
    scope = view.scope
    data = {
        "key": view.key,
        "kind": view.kind.value,
        "title": view.title,
        "description": view.description,
        "scopeId": scope.id if scope is not None else None,
        "environment": view.environment,
        "elements": [
            {
                "id": ev.element.id,
                "name": ev.element.name,
                "kind": ev.element.kind.value,
                "description": ev.element.description,
                "technology": ev.element.technology,
                "tags": ev.element.tag_string,
                "parentId": ev.element.parent.id if ev.element.parent is not None else None,
                "x": ev.x,
                "y": ev.y,
            }
            for ev in view.element_views
        ],
        "relationships": [
            {
                "id": rv.relationship.id,
                "sourceId": rv.relationship.source.id,
                "destinationId": rv.relationship.destination.id,
                "description": rv.description or rv.relationship.description,
                "technology": rv.relationship.technology,
                "tags": rv.relationship.tag_string,
                "order": rv.order,
                "vertices": [{"x": v.x, "y": v.y} for v in rv.vertices],
                "routing": rv.routing.value,
                "position": rv.position,
            }
            for rv in view.relationship_views
        ],
        "animationSteps": [
            {
                "order": step.order,
                "elements": [e.id for e in step.elements],
                "relationships": list(step.relationship_ids),
            }
            for step in view.animation_steps
        ],
    }
    if view.auto_layout is not None:
        data["autoLayout"] = {
            "rankDirection": view.auto_layout.rank_direction.value,
            "rankSeparation": view.auto_layout.rank_separation,
            "nodeSeparation": view.auto_layout.node_separation,
            "edgeSeparation": view.auto_layout.edge_separation,
            "vertices": view.auto_layout.vertices,
        }
    return data


def filtered_view_to_dict(filtered: FilteredView) -> dict[str, Any]:
    return {
        "key": filtered.key,
        "baseKey": filtered.base_key,
        "mode": filtered.mode.value,
        "tags": list(filtered.tags),
        "elements": [ev.element.id for ev in filtered.element_views],
        "relationships": [rv.relationship.id for rv in filtered.relationship_views],
    }
