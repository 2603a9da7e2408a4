"""
Connect / Disconnect Commands - Edit dependencies from the terminal.

Both commands run the same protocol as the visual editor: guard check,
record store write, then in-memory update.
"""

import asyncio
import sys

import click

from ...core.result import Rejected, Result
from ...core.types import DependencyEdge
from ..utils import open_editor, resolve_edge, resolve_settings


async def _connect(settings, parent: str, option: str, child: str) -> Result[DependencyEdge]:
    controller, _ = await open_editor(settings)
    try:
        edge = resolve_edge(controller.graph, parent, option, child)
        return await controller.on_connect(
            edge.parent_parameter_id, edge.parent_option_id, edge.child_parameter_id
        )
    finally:
        controller.close()


async def _disconnect(settings, parent: str, option: str, child: str) -> Result[DependencyEdge]:
    controller, _ = await open_editor(settings)
    try:
        edge = resolve_edge(controller.graph, parent, option, child)
        return await controller.on_disconnect(edge)
    finally:
        controller.close()


@click.command()
@click.argument("parent")
@click.argument("option")
@click.argument("child")
@click.option("-d", "--db", "db_path", default=None, help="Path to the SQLite database")
def connect(parent: str, option: str, child: str, db_path: str | None):
    """
    Make CHILD appear when PARENT is set to OPTION.

    Parameters may be given by id or slug, options by id, label or name.
    """
    settings = resolve_settings(db_path)
    result = asyncio.run(_connect(settings, parent, option, child))
    if isinstance(result, Rejected):
        sys.exit(1)


@click.command()
@click.argument("parent")
@click.argument("option")
@click.argument("child")
@click.option("-d", "--db", "db_path", default=None, help="Path to the SQLite database")
def disconnect(parent: str, option: str, child: str, db_path: str | None):
    """
    Remove the dependency PARENT[OPTION] -> CHILD.
    """
    settings = resolve_settings(db_path)
    result = asyncio.run(_disconnect(settings, parent, option, child))
    if isinstance(result, Rejected):
        sys.exit(1)
