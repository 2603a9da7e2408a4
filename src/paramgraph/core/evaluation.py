"""
Visibility evaluation for the task-creation form.

Given the options the user has picked so far, decide which parameters
the form should show. Root parameters (no incoming edges) are always
shown; every other parameter is shown once a visible parent is set to
an option that reveals it.

The engine is read-only: it never mutates the graph store and never owns
form state. `prune` is offered to the form so it can drop values of
parameters that are no longer visible.
"""

import logging
from collections import deque
from typing import Dict, FrozenSet, List, Set

from .graph import GraphStore
from .types import DependencyEdge, ParameterOption, Selection

logger = logging.getLogger(__name__)


class EvaluationEngine:
    """
    Computes the visible parameter set for a partial selection.
    """

    def __init__(self, graph: GraphStore):
        self.graph = graph

    def evaluate(self, selection: Selection) -> FrozenSet[str]:
        """
        Breadth-first expansion from the root parameters to a fixed point.

        A parameter only contributes its selected option once it is itself
        visible, so a stale selection entry for a hidden parameter reveals
        nothing. Several satisfied parents reveal a child exactly once.
        """
        visible: Set[str] = set(self.graph.roots())
        queue = deque(visible)

        while queue:
            parameter_id = queue.popleft()
            option_id = selection.get(parameter_id)
            if option_id is None:
                continue
            if not self.graph.owns_option(parameter_id, option_id):
                logger.debug(f"Ignoring selection {parameter_id}={option_id}: option not owned")
                continue
            for child_id in self.graph.children(parameter_id, option_id):
                if child_id not in visible:
                    visible.add(child_id)
                    queue.append(child_id)

        return frozenset(visible)

    def activating_edges(self, parameter_id: str, selection: Selection) -> List[DependencyEdge]:
        """
        Edges currently revealing parameter_id: their parent is visible and
        set to the edge's option.
        """
        visible = self.evaluate(selection)
        return self._active_edges(parameter_id, selection, visible)

    def allowed_options(self, parameter_id: str, selection: Selection) -> List[ParameterOption]:
        """
        Options the form should offer for parameter_id.

        Option filters of the active incoming edges are unioned; when none
        of them restricts anything, every option is offered. A hidden
        parameter offers nothing.
        """
        visible = self.evaluate(selection)
        return self._allowed_options(parameter_id, selection, visible)

    def prune(self, selection: Selection) -> Dict[str, str]:
        """
        Drop selection entries the form should clear.

        An entry survives if its parameter is visible and its option is
        still offered. Dropping one entry can hide its dependents, so the
        check repeats until nothing changes.
        """
        current: Dict[str, str] = dict(selection)
        while True:
            visible = self.evaluate(current)
            kept: Dict[str, str] = {}
            for parameter_id, option_id in current.items():
                if parameter_id not in visible:
                    continue
                offered = {o.id for o in self._allowed_options(parameter_id, current, visible)}
                if option_id in offered:
                    kept[parameter_id] = option_id
            if kept == current:
                return kept
            dropped = sorted(set(current) - set(kept))
            logger.debug(f"Pruned selection entries: {dropped}")
            current = kept

    # --- Internals ---

    def _active_edges(
        self, parameter_id: str, selection: Selection, visible: FrozenSet[str]
    ) -> List[DependencyEdge]:
        edges = []
        for parent_id, option_id in self.graph.parents(parameter_id):
            if parent_id in visible and selection.get(parent_id) == option_id:
                edges.append(DependencyEdge(
                    parent_parameter_id=parent_id,
                    parent_option_id=option_id,
                    child_parameter_id=parameter_id,
                ))
        return sorted(edges, key=lambda e: e.key)

    def _allowed_options(
        self, parameter_id: str, selection: Selection, visible: FrozenSet[str]
    ) -> List[ParameterOption]:
        if parameter_id not in visible:
            return []
        options = self.graph.options_for(parameter_id)

        allowed: Set[str] = set()
        for edge in self._active_edges(parameter_id, selection, visible):
            allowed |= self.graph.filters_for(edge)

        if not allowed:
            return options
        return [option for option in options if option.id in allowed]
