"""Configuration management for archviews using Pydantic models."""

import json
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

CONFIG_FILENAME = ".archviews.json"


class IdStrategy(str, Enum):
    """How the registry mints element and relationship IDs."""
    RANDOM = "random"
    CONTENT = "content"


class LogLevel(str, Enum):
    """Logging levels."""
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"


class ModelConfig(BaseModel):
    """Model building configuration section."""
    id_strategy: IdStrategy = Field(alias="idStrategy", default=IdStrategy.RANDOM)
    add_implied_relationships: bool = Field(alias="addImpliedRelationships", default=True)

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)


class LayoutConfig(BaseModel):
    """Layout persistence configuration section."""
    enabled: bool = True
    snapshot_file: str = Field(alias="snapshotFile", default="workspace.json")

    @field_validator("snapshot_file")
    @classmethod
    def validate_snapshot_file(cls, v):
        if not v.endswith(".json"):
            raise ValueError(f"snapshot_file must be a .json file, got: {v}")
        return v

    model_config = ConfigDict(populate_by_name=True)


class ValidationConfig(BaseModel):
    """Validation configuration section."""
    fail_on_warnings: bool = Field(alias="failOnWarnings", default=False)

    model_config = ConfigDict(populate_by_name=True)


class OutputConfig(BaseModel):
    """Output configuration section."""
    dir: str = ".archviews"
    indent: int = 2

    @field_validator("indent")
    @classmethod
    def validate_indent(cls, v):
        if v < 0:
            raise ValueError("indent must be >= 0")
        return v

    model_config = ConfigDict(populate_by_name=True)


class LoggingConfig(BaseModel):
    """Logging configuration section."""
    level: LogLevel = LogLevel.INFO

    model_config = ConfigDict(use_enum_values=True)


class ArchviewsConfig(BaseModel):
    """Complete archviews configuration model."""
    model: ModelConfig = Field(default_factory=ModelConfig)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(extra="forbid")


def load_config(config_path: str | Path | None = None) -> ArchviewsConfig:
    """Load configuration from file with fallback to defaults.

    Args:
        config_path: Optional path to configuration file. If None, searches
                    current directory and parents for .archviews.json

    Returns:
        ArchviewsConfig: Loaded and validated configuration

    Raises:
        ValueError: If configuration is invalid
    """
    if config_path is None:
        config_path = find_config_file()
    else:
        config_path = Path(config_path)

    if config_path and config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                config_data = json.load(f)
            return ArchviewsConfig(**config_data)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in config file {config_path}: {e}")
        except Exception as e:
            raise ValueError(f"Failed to load config from {config_path}: {e}")
    else:
        return create_default_config()


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Find .archviews.json configuration file by searching up directory tree.

    Args:
        start_dir: Directory to start search from (default: current directory)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = Path(start_dir).resolve()

    while True:
        config_file = current / CONFIG_FILENAME
        if config_file.exists():
            return config_file

        parent = current.parent
        if parent == current:  # Reached root directory
            break
        current = parent

    return None


def create_default_config() -> ArchviewsConfig:
    """Create default configuration with sensible defaults."""
    return ArchviewsConfig()
