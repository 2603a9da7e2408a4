"""
Project configuration.

Settings live in `.paramgraph/config.yaml` (written by `paramgraph init`).
A missing file means defaults; environment variables override the file:
- PARAMGRAPH_DB_PATH
- PARAMGRAPH_LOG_LEVEL
"""

import logging
import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .core.exceptions import ConfigError
from .core.preview import DEFAULT_TEMPLATE

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(".paramgraph")
CONFIG_PATH = CONFIG_DIR / "config.yaml"

# Parameter order the task name preview falls back to.
STANDARD_ORDER: List[str] = [
    "tipo_tarea",
    "tipo_de_muro",
    "tipo_elemento",
    "tipo_ladrillo",
    "tipo_mortero",
    "aditivos",
]


class Settings(BaseModel):
    """
    Validated configuration.

    Attributes:
        db_path: SQLite record store used by the command line.
        log_level: Root logging level name.
        standard_order: Parameter slug order used by the task name preview.
        default_expression_template: Template for parameters without one.
    """

    db_path: Path = CONFIG_DIR / "paramgraph.db"
    log_level: str = "WARNING"
    standard_order: List[str] = Field(default_factory=lambda: list(STANDARD_ORDER))
    default_expression_template: str = DEFAULT_TEMPLATE

    model_config = {"extra": "ignore"}

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("default_expression_template")
    @classmethod
    def _has_placeholder(cls, value: str) -> str:
        if "{value}" not in value:
            raise ValueError("default_expression_template must contain {value}")
        return value

    def to_yaml_dict(self) -> dict:
        data = self.model_dump()
        data["db_path"] = str(self.db_path)
        return data


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """
    Load settings from YAML, then apply environment overrides.

    Raises:
        ConfigError: If the file exists but cannot be parsed or validated.
    """
    path = config_path or CONFIG_PATH
    data = {}

    if path.exists():
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot read {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{path} must contain a mapping")
    else:
        logger.debug(f"No config at {path}, using defaults")

    if os.getenv("PARAMGRAPH_DB_PATH"):
        data["db_path"] = os.environ["PARAMGRAPH_DB_PATH"]
    if os.getenv("PARAMGRAPH_LOG_LEVEL"):
        data["log_level"] = os.environ["PARAMGRAPH_LOG_LEVEL"]

    try:
        return Settings(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e


def configure_logging(settings: Settings, verbose: bool = False) -> None:
    """Configure root logging for command line runs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="[%X]",
    )
