"""
In-memory task-parameter dependency graph.

The store is the single source of truth for the editor and for the
task-creation form. It manages:
- Parameters and options keyed by id.
- Dependency edges keyed by their (parent, option, child) tuple.
- Adjacency indices, updated incrementally on every mutation:
  (parent, option) -> children, child -> (parent, option) sources,
  and parameter-level successor arcs with a multiplicity count.
- Subscribers notified of every structural change.

Edges that reference missing parameters or options (e.g. an option deleted
by an administrator) are kept out of the indices: they are inert and take
no part in any query.
"""

import logging
from collections import Counter, defaultdict
from itertools import islice
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Set, Tuple

import rustworkx as rx

from .types import (
    DependencyEdge, EdgeSource, GraphEvent, GraphEventType, LoadReport,
    OptionFilter, Parameter, ParameterOption, ParameterWithOptions,
)

logger = logging.getLogger(__name__)

GraphListener = Callable[[GraphEvent], None]

# Upper bound on cycles listed in a LoadReport; enumeration is exponential.
MAX_REPORTED_CYCLES = 20


class GraphStore:
    """
    Authoritative in-memory dependency graph.

    Features:
    - O(1) lookups of children and parents through explicit indices
    - Wholesale reload with a report of malformed data
    - Listener registration instead of framework-level reactivity
    """

    def __init__(self):
        self._parameters: Dict[str, Parameter] = {}
        self._options: Dict[str, ParameterOption] = {}
        self._options_by_parameter: Dict[str, List[str]] = defaultdict(list)
        self._edges: Set[DependencyEdge] = set()
        self._children: Dict[EdgeSource, Set[str]] = defaultdict(set)
        self._parents: Dict[str, Set[EdgeSource]] = defaultdict(set)
        self._arc_counts: Counter = Counter()
        self._successors: Dict[str, Set[str]] = defaultdict(set)
        self._filters: Dict[DependencyEdge, Set[str]] = defaultdict(set)
        self._listeners: List[GraphListener] = []

    # --- Loading ---

    def load(
        self,
        parameters: Iterable[Parameter],
        options: Iterable[ParameterOption],
        edges: Iterable[DependencyEdge],
        option_filters: Iterable[OptionFilter] = (),
    ) -> LoadReport:
        """
        Replace the whole graph.

        There is no merge with the previous state. Malformed edges are
        reported and left inert; duplicates collapse to one edge.
        """
        self._reset()
        report = LoadReport()

        for parameter in parameters:
            self._parameters[parameter.id] = parameter

        for option in options:
            if option.parameter_id not in self._parameters:
                logger.debug(f"Skipping option {option.id}: unknown parameter {option.parameter_id}")
                continue
            if option.id in self._options:
                continue
            self._options[option.id] = option
            self._options_by_parameter[option.parameter_id].append(option.id)

        for edge in edges:
            problem = self.classify_edge(edge)
            if problem is not None:
                report.inert_edges.setdefault(problem, []).append(edge)
                logger.warning(f"Inert dependency edge ({problem}): {edge}")
                continue
            if edge in self._edges:
                report.duplicate_edges.append(edge)
                logger.warning(f"Duplicate dependency edge collapsed: {edge}")
                continue
            self._index_edge(edge)

        for option_filter in option_filters:
            edge = option_filter.edge
            if edge not in self._edges:
                continue
            child_option = self._options.get(option_filter.child_option_id)
            if child_option is None or child_option.parameter_id != edge.child_parameter_id:
                logger.debug(f"Ignoring option filter {option_filter.child_option_id} on {edge}")
                continue
            self._filters[edge].add(option_filter.child_option_id)

        report.parameter_count = len(self._parameters)
        report.option_count = len(self._options)
        report.edge_count = len(self._edges)
        report.cycles = self.find_cycles()
        if report.cycles:
            logger.warning(f"Loaded graph contains {len(report.cycles)} parameter cycle(s)")

        logger.debug(
            f"Graph loaded: {report.parameter_count} parameters, "
            f"{report.option_count} options, {report.edge_count} edges"
        )
        self._notify(GraphEvent(type=GraphEventType.LOADED))
        return report

    def load_bundles(
        self,
        bundles: Iterable[ParameterWithOptions],
        edges: Iterable[DependencyEdge],
        option_filters: Iterable[OptionFilter] = (),
    ) -> LoadReport:
        """Load from the record store's parameters-with-options payload."""
        parameters: List[Parameter] = []
        options: List[ParameterOption] = []
        for bundle in bundles:
            parameters.append(bundle.parameter)
            options.extend(bundle.options)
        return self.load(parameters, options, edges, option_filters)

    def classify_edge(self, edge: DependencyEdge) -> Optional[str]:
        """
        Return why an edge cannot take part in the graph, or None if it can.
        """
        if edge.is_self_loop:
            return "self_loop"
        if edge.parent_parameter_id not in self._parameters:
            return "unknown_parent"
        if edge.child_parameter_id not in self._parameters:
            return "unknown_child"
        option = self._options.get(edge.parent_option_id)
        if option is None:
            return "unknown_option"
        if option.parameter_id != edge.parent_parameter_id:
            return "foreign_option"
        return None

    # --- Mutation ---

    def add_edge(self, edge: DependencyEdge) -> None:
        """
        Add an edge that already passed the consistency guard.

        Adding a tuple that is already present is a no-op: two concurrent
        editor requests for the same connection can both be confirmed.
        An edge whose endpoints or option have gone missing is ignored.
        """
        if edge in self._edges:
            logger.warning(f"Edge already present, ignoring: {edge}")
            return
        problem = self.classify_edge(edge)
        if problem is not None:
            logger.warning(f"Inert dependency edge ({problem}) not added: {edge}")
            return
        self._index_edge(edge)
        self._notify(GraphEvent(type=GraphEventType.EDGE_ADDED, edge=edge))

    def remove_edge(self, edge: DependencyEdge) -> None:
        """Remove an edge and its option filters."""
        if edge not in self._edges:
            logger.debug(f"Edge not present, nothing to remove: {edge}")
            return

        self._edges.discard(edge)
        self._filters.pop(edge, None)

        children = self._children[edge.source]
        children.discard(edge.child_parameter_id)
        if not children:
            del self._children[edge.source]

        sources = self._parents[edge.child_parameter_id]
        sources.discard(edge.source)
        if not sources:
            del self._parents[edge.child_parameter_id]

        self._arc_counts[edge.arc] -= 1
        if self._arc_counts[edge.arc] <= 0:
            del self._arc_counts[edge.arc]
            successors = self._successors[edge.parent_parameter_id]
            successors.discard(edge.child_parameter_id)
            if not successors:
                del self._successors[edge.parent_parameter_id]

        self._notify(GraphEvent(type=GraphEventType.EDGE_REMOVED, edge=edge))

    def clear(self) -> None:
        self._reset()
        self._notify(GraphEvent(type=GraphEventType.LOADED))

    # --- Subscriptions ---

    def subscribe(self, listener: GraphListener) -> Callable[[], None]:
        """
        Register a listener for structural changes.

        Returns:
            A callable that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    # --- Queries ---

    def children(self, parameter_id: str, option_id: str) -> Set[str]:
        """Child parameters directly revealed by choosing option_id on parameter_id."""
        return set(self._children.get((parameter_id, option_id), ()))

    def parents(self, parameter_id: str) -> Set[EdgeSource]:
        """(parent parameter, parent option) pairs that can reveal parameter_id."""
        return set(self._parents.get(parameter_id, ()))

    def successors(self, parameter_id: str) -> Set[str]:
        """Parameter-level successors: children reachable through any option."""
        return set(self._successors.get(parameter_id, ()))

    def has_edge(self, edge: DependencyEdge) -> bool:
        return edge in self._edges

    def has_parameter(self, parameter_id: str) -> bool:
        return parameter_id in self._parameters

    def get_parameter(self, parameter_id: str) -> Optional[Parameter]:
        return self._parameters.get(parameter_id)

    def get_option(self, option_id: str) -> Optional[ParameterOption]:
        return self._options.get(option_id)

    def find_parameter(self, key: str) -> Optional[Parameter]:
        """Look a parameter up by id, falling back to its slug."""
        if key in self._parameters:
            return self._parameters[key]
        for parameter in self._parameters.values():
            if parameter.slug == key:
                return parameter
        return None

    def options_for(self, parameter_id: str) -> List[ParameterOption]:
        return [self._options[oid] for oid in self._options_by_parameter.get(parameter_id, ())]

    def owns_option(self, parameter_id: str, option_id: str) -> bool:
        option = self._options.get(option_id)
        return option is not None and option.parameter_id == parameter_id

    def filters_for(self, edge: DependencyEdge) -> Set[str]:
        """Child option ids allowed while edge is active (empty: no restriction)."""
        return set(self._filters.get(edge, ()))

    def is_root(self, parameter_id: str) -> bool:
        """A root parameter has no incoming edges and is always applicable."""
        return parameter_id in self._parameters and not self._parents.get(parameter_id)

    def roots(self) -> List[str]:
        return [pid for pid in self._parameters if not self._parents.get(pid)]

    def iter_parameters(self) -> Iterator[Parameter]:
        return iter(self._parameters.values())

    def iter_edges(self) -> Iterator[DependencyEdge]:
        return iter(sorted(self._edges, key=lambda e: e.key))

    @property
    def parameter_count(self) -> int:
        return len(self._parameters)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    # --- Analysis ---

    def to_rustworkx(self) -> Tuple[rx.PyDiGraph, Dict[int, str]]:
        """
        Build the parameter-collapsed graph as a rustworkx digraph.

        Returns:
            The digraph and the index -> parameter id map.
        """
        graph = rx.PyDiGraph(multigraph=False)
        id_to_idx: Dict[str, int] = {}
        for parameter_id in self._parameters:
            id_to_idx[parameter_id] = graph.add_node(parameter_id)
        for parent_id, child_id in self._arc_counts:
            graph.add_edge(id_to_idx[parent_id], id_to_idx[child_id], None)
        return graph, {idx: pid for pid, idx in id_to_idx.items()}

    def is_acyclic(self) -> bool:
        graph, _ = self.to_rustworkx()
        return rx.is_directed_acyclic_graph(graph)

    def find_cycles(self, limit: int = MAX_REPORTED_CYCLES) -> List[List[str]]:
        """List up to `limit` parameter cycles (empty for a valid graph)."""
        graph, idx_to_id = self.to_rustworkx()
        if rx.is_directed_acyclic_graph(graph):
            return []
        return [
            [idx_to_id[idx] for idx in cycle]
            for cycle in islice(rx.simple_cycles(graph), limit)
        ]

    def get_stats(self) -> Dict[str, Any]:
        return {
            "total_parameters": self.parameter_count,
            "total_options": len(self._options),
            "total_edges": self.edge_count,
            "parameter_arcs": len(self._arc_counts),
            "roots": len(self.roots()),
            "filtered_edges": len(self._filters),
            "acyclic": self.is_acyclic(),
            "backend": "rustworkx",
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "parameters": [p.model_dump() for p in self._parameters.values()],
            "options": [o.model_dump() for o in self._options.values()],
            "edges": [e.model_dump() for e in self.iter_edges()],
            "option_filters": [
                {"edge": edge.model_dump(), "child_option_id": option_id}
                for edge, option_ids in self._filters.items()
                for option_id in sorted(option_ids)
            ],
            "stats": self.get_stats(),
        }

    # --- Internals ---

    def _index_edge(self, edge: DependencyEdge) -> None:
        self._edges.add(edge)
        self._children[edge.source].add(edge.child_parameter_id)
        self._parents[edge.child_parameter_id].add(edge.source)
        self._arc_counts[edge.arc] += 1
        self._successors[edge.parent_parameter_id].add(edge.child_parameter_id)

    def _reset(self) -> None:
        self._parameters.clear()
        self._options.clear()
        self._options_by_parameter.clear()
        self._edges.clear()
        self._children.clear()
        self._parents.clear()
        self._arc_counts.clear()
        self._successors.clear()
        self._filters.clear()

    def _notify(self, event: GraphEvent) -> None:
        # One failing subscriber must not keep the others out of sync.
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Graph listener failed on {event.type.value}")
