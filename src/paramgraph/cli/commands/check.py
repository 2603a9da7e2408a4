"""
Check Command - Validate the stored dependency graph.

Loads the graph the way the editor does and reports what the load
found: inert edges, duplicated tuples and parameter cycles.
"""

import asyncio
import json
import sys

import click
from rich.console import Console
from rich.table import Table

from ...core.graph import GraphStore
from ...core.types import LoadReport
from ..utils import describe_parameter, echo_success, open_editor, resolve_settings

console = Console()


def render_report(report: LoadReport, graph: GraphStore) -> None:
    stats = graph.get_stats()
    console.print(
        f"[bold]{stats['total_parameters']}[/bold] parameters, "
        f"[bold]{stats['total_options']}[/bold] options, "
        f"[bold]{stats['total_edges']}[/bold] dependencies, "
        f"[bold]{stats['roots']}[/bold] roots"
    )

    if report.is_clean:
        echo_success("Graph is consistent")
        return

    table = Table(title="Problems")
    table.add_column("Kind", style="yellow")
    table.add_column("Detail")

    for problem, edges in sorted(report.inert_edges.items()):
        for edge in edges:
            table.add_row(f"inert ({problem})", str(edge))
    for edge in report.duplicate_edges:
        table.add_row("duplicate", str(edge))
    for cycle in report.cycles:
        names = [describe_parameter(graph, pid) for pid in cycle]
        table.add_row("cycle", " -> ".join([*names, names[0]]))

    console.print(table)


@click.command()
@click.option("-d", "--db", "db_path", default=None, help="Path to the SQLite database")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def check(db_path: str | None, as_json: bool):
    """
    Validate the dependency graph and exit non-zero on problems.
    """
    settings = resolve_settings(db_path)
    controller, report = asyncio.run(open_editor(settings))
    controller.close()

    if as_json:
        payload = {
            "clean": report.is_clean,
            "report": report.model_dump(mode="json"),
            "stats": controller.graph.get_stats(),
        }
        click.echo(json.dumps(payload, indent=2))
    else:
        render_report(report, controller.graph)

    if not report.is_clean:
        sys.exit(1)
