"""
Task name preview.

A task's display name is built from the options the user selected: each
parameter contributes its expression template (e.g. "de {value}") with
the option label substituted, in the task's parameter order.
"""

import re
from typing import List, Optional, Sequence

from .graph import GraphStore
from .types import Selection

DEFAULT_TEMPLATE = "{value}"

_WHITESPACE = re.compile(r"\s+")
_DOUBLE_COMMA = re.compile(r",\s*,")
_DOUBLE_PERIOD = re.compile(r"\.\s*\.")


def resolve_parameter_order(
    selected_slugs: Sequence[str],
    saved_order: Optional[Sequence[str]],
    standard_order: Sequence[str],
) -> List[str]:
    """
    Decide the order in which selected parameters appear in the task name.

    With a saved order, it is kept as is and each selected slug missing
    from it is inserted right after the closest slug that precedes it in
    the standard order (or appended when there is none). Without a saved
    order, the standard order filtered to the selection comes first,
    followed by the remaining selected slugs.
    """
    if saved_order:
        order = list(saved_order)
        for slug in selected_slugs:
            if slug in order:
                continue
            if slug not in standard_order:
                order.append(slug)
                continue
            insert_at = len(order)
            for before in reversed(standard_order[:standard_order.index(slug)]):
                if before in order:
                    insert_at = order.index(before) + 1
                    break
            order.insert(insert_at, slug)
        return order

    head = [slug for slug in standard_order if slug in selected_slugs]
    tail = [slug for slug in selected_slugs if slug not in standard_order]
    return head + tail


def compose_task_name(
    graph: GraphStore,
    selection: Selection,
    order: Sequence[str] = (),
    default_template: str = DEFAULT_TEMPLATE,
) -> str:
    """
    Build the task name for a selection.

    `order` lists parameter slugs; selected parameters not listed keep the
    selection's own order after the listed ones.
    """
    selected = []
    for parameter_id, option_id in selection.items():
        parameter = graph.get_parameter(parameter_id)
        option = graph.get_option(option_id)
        if parameter is None or option is None:
            continue
        selected.append((parameter, option))

    if not selected:
        return ""

    rank = {slug: i for i, slug in enumerate(order)}
    selected.sort(key=lambda pair: rank.get(pair[0].slug, len(rank)))

    parts = [
        (parameter.expression_template or default_template).replace("{value}", option.label, 1)
        for parameter, option in selected
    ]
    return tidy_sentence(" ".join(parts))


def tidy_sentence(text: str) -> str:
    """Collapse whitespace and repeated punctuation, and close with a period."""
    text = _WHITESPACE.sub(" ", text).strip()
    text = _DOUBLE_COMMA.sub(",", text)
    text = _DOUBLE_PERIOD.sub(".", text)
    if text and not text.endswith((".", ",")):
        text += "."
    return text
