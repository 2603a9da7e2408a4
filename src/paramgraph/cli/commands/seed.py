"""
Seed Command - Load parameters, options and dependencies into SQLite.

Accepts a YAML or JSON document:

    parameters:
      - {id: p1, slug: tipo_tarea, label: Tipo de tarea, type: select}
    options:
      - {id: o1, parameter_id: p1, label: Muros}
    dependencies:
      - {parent_parameter_id: p1, parent_option_id: o1, child_parameter_id: p2,
         child_option_ids: [o7, o8]}
"""

import logging
from pathlib import Path
from typing import List

import click
import yaml
from pydantic import BaseModel, Field, ValidationError

from ...core.types import DependencyEdge, OptionFilter, Parameter, ParameterOption
from ...storage.sqlite import SQLiteRecordStore
from ..utils import echo_info, echo_success, resolve_settings

logger = logging.getLogger(__name__)


class SeedDependency(DependencyEdge):
    """A dependency edge plus the child options it allows."""
    child_option_ids: List[str] = Field(default_factory=list)

    def to_edge(self) -> DependencyEdge:
        return DependencyEdge(
            parent_parameter_id=self.parent_parameter_id,
            parent_option_id=self.parent_option_id,
            child_parameter_id=self.child_parameter_id,
        )


class SeedDocument(BaseModel):
    parameters: List[Parameter] = Field(default_factory=list)
    options: List[ParameterOption] = Field(default_factory=list)
    dependencies: List[SeedDependency] = Field(default_factory=list)

    def option_filters(self) -> List[OptionFilter]:
        return [
            OptionFilter(edge=dep.to_edge(), child_option_id=option_id)
            for dep in self.dependencies
            for option_id in dep.child_option_ids
        ]


def read_seed_file(path: Path) -> SeedDocument:
    """
    Parse a seed document (JSON is accepted as YAML).

    Raises:
        click.ClickException: On unreadable or invalid content.
    """
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as e:
        raise click.ClickException(f"Cannot parse {path}: {e}")
    try:
        return SeedDocument.model_validate(data)
    except ValidationError as e:
        raise click.ClickException(f"Invalid seed document {path}:\n{e}")


@click.command()
@click.argument("seed_file", type=click.Path(exists=True, dir_okay=False))
@click.option("-d", "--db", "db_path", default=None, help="Path to the SQLite database")
@click.option("--replace", is_flag=True, help="Clear existing data before loading")
def seed(seed_file: str, db_path: str | None, replace: bool):
    """
    Load a parameter graph document into the local database.
    """
    settings = resolve_settings(db_path)
    document = read_seed_file(Path(seed_file))

    store = SQLiteRecordStore(settings.db_path)
    if replace:
        store.clear()
        echo_info("Cleared existing data")

    parameters = store.save_parameters_batch(document.parameters)
    options = store.save_options_batch(document.options)
    edges = store.save_edges_batch(dep.to_edge() for dep in document.dependencies)
    filters = store.save_option_filters_batch(document.option_filters())
    store.close()

    logger.debug(f"Seeded {settings.db_path} from {seed_file}")
    echo_success(f"Seeded {settings.db_path}")
    echo_info(f"Parameters: {parameters}")
    echo_info(f"Options: {options}")
    echo_info(f"Dependencies: {edges}")
    echo_info(f"Option filters: {filters}")
