"""JSON Schema generation for workspace documents and layouts."""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from .document import WorkspaceDocument
from .models.layout import WorkspaceLayout

logger = logging.getLogger(__name__)

SCHEMA_URN_PREFIX = "urn:archviews:schema"


class SchemaGenerator:
    """Generates JSON schemas from the Pydantic document models."""

    def __init__(self):
        self.schemas: dict[str, dict[str, Any]] = {}

    def generate_all_schemas(self) -> dict[str, dict[str, Any]]:
        """Generate JSON schemas for the workspace document and the layout.

        Returns:
            Dictionary mapping schema names to JSON schemas
        """
        self.schemas = {
            "workspace": self._model_to_schema(
                WorkspaceDocument,
                "archviews workspace document",
                "Model, views and optional saved layout of one design",
                "workspace",
            ),
            "layout": self._model_to_schema(
                WorkspaceLayout,
                "archviews workspace layout",
                "Element positions and relationship routing keyed by view key",
                "layout",
            ),
        }
        logger.info(f"Generated {len(self.schemas)} JSON schemas")
        return self.schemas

    def save_schemas(self, output_dir: Path) -> dict[str, Path]:
        """Save generated schemas to files.

        Args:
            output_dir: Directory to save schema files

        Returns:
            Dictionary mapping schema names to file paths
        """
        if not self.schemas:
            self.generate_all_schemas()
        output_dir.mkdir(parents=True, exist_ok=True)
        schema_files = {}

        for schema_name, schema in self.schemas.items():
            schema_file = output_dir / f"{schema_name}.schema.json"
            with open(schema_file, "w", encoding="utf-8") as f:
                json.dump(schema, f, indent=2, ensure_ascii=False)
            schema_files[schema_name] = schema_file
            logger.debug(f"Saved schema: {schema_file}")

        return schema_files

    def _model_to_schema(self, model_class: type[BaseModel], title: str, description: str,
                         name: str) -> dict[str, Any]:
        schema = model_class.model_json_schema(by_alias=True)
        schema["$schema"] = "https://json-schema.org/draft/2020-12/schema"
        schema["$id"] = f"{SCHEMA_URN_PREFIX}:{name}"
        schema["title"] = title
        schema["description"] = description
        return schema
