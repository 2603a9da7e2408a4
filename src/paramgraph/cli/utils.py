"""
CLI Utilities - Shared helper functions for command line operations.

Formatted printing, settings resolution and graph loading shared by
the individual commands.
"""

from pathlib import Path
from typing import Optional, Tuple

import click

from ..config import Settings, load_settings
from ..core.exceptions import PersistenceFailure
from ..core.graph import GraphStore
from ..core.selection import match_option
from ..core.types import DependencyEdge, LoadReport
from ..editor.controller import EditorController
from ..storage.sqlite import SQLiteRecordStore


def echo_success(message: str) -> None:
    """
    Print a success message with a green checkmark.

    Args:
        message (str): The message to display.
    """
    click.echo(click.style(f"✅ {message}", fg="green"))


def echo_error(message: str) -> None:
    """
    Print an error message with a red cross.

    Args:
        message (str): The error message to display.
    """
    click.echo(click.style(f"❌ {message}", fg="red"), err=True)


def echo_warning(message: str) -> None:
    """Print a warning message with a yellow alert symbol."""
    click.echo(click.style(f"⚠️  {message}", fg="yellow"))


def echo_info(message: str) -> None:
    """Print an informational message, dimmed."""
    click.echo(click.style(f"   {message}", dim=True))


def resolve_settings(db_path: Optional[str]) -> Settings:
    """Load settings, letting an explicit --db win over config and environment."""
    settings = load_settings()
    if db_path:
        settings = settings.model_copy(update={"db_path": Path(db_path)})
    return settings


def cli_notifier(title: str, description: str, is_error: bool) -> None:
    """Editor notifier that prints to the terminal."""
    if is_error:
        echo_error(f"{title}: {description}")
    else:
        echo_success(f"{title}: {description}")


async def open_editor(settings: Settings) -> Tuple[EditorController, LoadReport]:
    """
    Build an editor over the SQLite record store and load the graph.

    Raises:
        click.ClickException: If no database exists at the configured path
            or it cannot be read.
    """
    if not Path(settings.db_path).exists():
        raise click.ClickException(
            f"No database at {settings.db_path}. Run 'paramgraph seed <file>' first."
        )
    store = SQLiteRecordStore(settings.db_path)
    controller = EditorController(GraphStore(), store, notifier=cli_notifier)
    try:
        report = await controller.refresh()
    except PersistenceFailure as e:
        controller.close()
        raise click.ClickException(str(e))
    return controller, report


def resolve_edge(graph: GraphStore, parent: str, option: str, child: str) -> DependencyEdge:
    """
    Resolve command-line names (ids, slugs, labels) into a DependencyEdge.

    Unknown names are passed through untouched so the guard reports them.
    """
    parent_param = graph.find_parameter(parent)
    child_param = graph.find_parameter(child)
    parent_id = parent_param.id if parent_param else parent
    child_id = child_param.id if child_param else child

    option_id = option
    if parent_param is not None:
        matched = match_option(graph.options_for(parent_param.id), option)
        if matched is not None:
            option_id = matched.id

    return DependencyEdge(
        parent_parameter_id=parent_id,
        parent_option_id=option_id,
        child_parameter_id=child_id,
    )


def describe_parameter(graph: GraphStore, parameter_id: str) -> str:
    parameter = graph.get_parameter(parameter_id)
    if parameter is None:
        return parameter_id
    return f"{parameter.label} ({parameter.slug})"
