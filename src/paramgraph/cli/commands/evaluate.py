"""
Evaluate / Preview Commands - What the task-creation form would show.
"""

import asyncio
from typing import Dict, List

import click
from pydantic import BaseModel, Field
from rich.console import Console
from rich.table import Table

from ...core.evaluation import EvaluationEngine
from ...core.exceptions import SelectionError
from ...core.graph import GraphStore
from ...core.preview import compose_task_name, resolve_parameter_order
from ...core.selection import resolve_selection_tokens
from ..utils import echo_warning, open_editor, resolve_settings

console = Console()


# --- API Models ---
class VisibleParameter(BaseModel):
    id: str
    slug: str
    label: str
    selected_option: str | None = None
    allowed_options: List[str] = Field(default_factory=list)


class EvaluateResponse(BaseModel):
    visible: List[VisibleParameter]
    pruned: List[str] = Field(default_factory=list)
    count: int


def _load_graph(db_path: str | None) -> GraphStore:
    settings = resolve_settings(db_path)
    controller, _ = asyncio.run(open_editor(settings))
    controller.close()
    return controller.graph


def _parse_selection(graph: GraphStore, tokens: tuple) -> Dict[str, str]:
    try:
        return resolve_selection_tokens(tokens, graph)
    except SelectionError as e:
        raise click.BadParameter(str(e), param_hint="--select")


def build_response(graph: GraphStore, selection: Dict[str, str]) -> EvaluateResponse:
    engine = EvaluationEngine(graph)
    visible_ids = engine.evaluate(selection)
    kept = engine.prune(selection)

    visible = []
    for parameter in sorted(graph.iter_parameters(), key=lambda p: p.label):
        if parameter.id not in visible_ids:
            continue
        option = graph.get_option(kept[parameter.id]) if parameter.id in kept else None
        visible.append(VisibleParameter(
            id=parameter.id,
            slug=parameter.slug,
            label=parameter.label,
            selected_option=option.label if option else None,
            allowed_options=[o.label for o in engine.allowed_options(parameter.id, kept)],
        ))

    pruned = sorted(graph.get_parameter(pid).slug for pid in set(selection) - set(kept))
    return EvaluateResponse(visible=visible, pruned=pruned, count=len(visible))


@click.command()
@click.option("-s", "--select", "tokens", multiple=True, help="Selection as parameter=option (repeatable)")
@click.option("-d", "--db", "db_path", default=None, help="Path to the SQLite database")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def evaluate(tokens: tuple, db_path: str | None, as_json: bool):
    """
    Show the parameters visible for a selection.
    """
    graph = _load_graph(db_path)
    selection = _parse_selection(graph, tokens)
    response = build_response(graph, selection)

    if as_json:
        click.echo(response.model_dump_json(indent=2))
        return

    table = Table(title=f"Visible parameters ({response.count})")
    table.add_column("Parameter", style="cyan")
    table.add_column("Selected")
    table.add_column("Options", style="dim")
    for item in response.visible:
        table.add_row(
            f"{item.label} ({item.slug})",
            item.selected_option or "-",
            ", ".join(item.allowed_options),
        )
    console.print(table)

    for slug in response.pruned:
        echo_warning(f"Selection for '{slug}' no longer applies and would be cleared")


@click.command()
@click.option("-s", "--select", "tokens", multiple=True, help="Selection as parameter=option (repeatable)")
@click.option("--order", default=None, help="Saved parameter order as comma separated slugs")
@click.option("-d", "--db", "db_path", default=None, help="Path to the SQLite database")
def preview(tokens: tuple, order: str | None, db_path: str | None):
    """
    Print the task name generated for a selection.
    """
    settings = resolve_settings(db_path)
    graph = _load_graph(db_path)
    selection = EvaluationEngine(graph).prune(_parse_selection(graph, tokens))

    slugs = [graph.get_parameter(pid).slug for pid in selection]
    saved_order = [s.strip() for s in order.split(",") if s.strip()] if order else None
    resolved = resolve_parameter_order(slugs, saved_order, settings.standard_order)

    click.echo(compose_task_name(
        graph, selection, resolved, default_template=settings.default_expression_template
    ))
