"""
Consistency guard for dependency edge mutations.

Every edge the editor wants to persist is checked here first. The guard
never mutates the graph store; it only answers Ok or Rejected(reason).
"""

import logging
from typing import Dict, List, Optional

from .graph import GraphStore
from .result import Ok, Rejected, RejectionReason, Result
from .types import DependencyEdge

logger = logging.getLogger(__name__)


class ConsistencyGuard:
    """
    Admits or rejects proposed edge mutations against the graph invariants.

    Checks run in a fixed order so the reported reason is deterministic:
    self-loop, unknown parameter, unknown option, duplicate, cycle.
    """

    def __init__(self, graph: GraphStore):
        self.graph = graph

    def can_add(self, edge: DependencyEdge) -> Result[DependencyEdge]:
        if edge.is_self_loop:
            return Rejected(
                RejectionReason.SELF_LOOP,
                "A parameter cannot depend on itself.",
            )

        for parameter_id in (edge.parent_parameter_id, edge.child_parameter_id):
            if not self.graph.has_parameter(parameter_id):
                return Rejected(
                    RejectionReason.UNKNOWN_PARAMETER,
                    f"Unknown parameter: {parameter_id}",
                )

        if not self.graph.owns_option(edge.parent_parameter_id, edge.parent_option_id):
            return Rejected(
                RejectionReason.UNKNOWN_OPTION,
                f"Option {edge.parent_option_id} does not belong to {edge.parent_parameter_id}",
            )

        if self.graph.has_edge(edge):
            return Rejected(
                RejectionReason.DUPLICATE_EDGE,
                f"Dependency already exists: {edge}",
            )

        path = self.find_path(edge.child_parameter_id, edge.parent_parameter_id)
        if path is not None:
            cycle = " -> ".join([*path, edge.child_parameter_id])
            logger.debug(f"Rejecting {edge}: closes cycle {cycle}")
            return Rejected(
                RejectionReason.WOULD_CREATE_CYCLE,
                f"Dependency would create a cycle: {cycle}",
            )

        return Ok(edge)

    def can_remove(self, edge: DependencyEdge) -> Result[DependencyEdge]:
        """Removing an edge can never break an invariant; it only has to exist."""
        if not self.graph.has_edge(edge):
            return Rejected(
                RejectionReason.MISSING_EDGE,
                f"Dependency does not exist: {edge}",
            )
        return Ok(edge)

    def find_path(self, source_id: str, target_id: str) -> Optional[List[str]]:
        """
        Depth-first search over parameter-level arcs from source_id.

        Only the part of the graph reachable from source_id is visited, and
        each parameter at most once, so the search also terminates on a
        malformed graph that already contains a cycle.

        Returns:
            The parameter path from source_id to target_id, or None.
        """
        if source_id == target_id:
            return [source_id]

        came_from: Dict[str, Optional[str]] = {source_id: None}
        stack = [source_id]

        while stack:
            current = stack.pop()
            for successor in self.graph.successors(current):
                if successor in came_from:
                    continue
                came_from[successor] = current
                if successor == target_id:
                    return self._rebuild_path(came_from, target_id)
                stack.append(successor)

        return None

    @staticmethod
    def _rebuild_path(came_from: Dict[str, Optional[str]], target_id: str) -> List[str]:
        path = [target_id]
        step = came_from[target_id]
        while step is not None:
            path.append(step)
            step = came_from[step]
        path.reverse()
        return path
