"""
Visual node/edge collection of the parameter node editor.

This is UI state: one node per parameter with a source handle per
option and one target handle, and one visual edge per dependency. It is
kept apart from the logical GraphStore; only the EditorController reads
both and reconciles them.

Handle ids embed parameter and option ids. Ids are often UUIDs, which
contain dashes, so the separator is "::".
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..core.types import DependencyEdge, Parameter, ParameterOption

HANDLE_SEPARATOR = "::"
TARGET_PREFIX = "target"


def source_handle_id(parameter_id: str, option_id: str) -> str:
    return f"{parameter_id}{HANDLE_SEPARATOR}{option_id}"


def target_handle_id(parameter_id: str) -> str:
    return f"{TARGET_PREFIX}{HANDLE_SEPARATOR}{parameter_id}"


def parse_source_handle(handle: str) -> Optional[Tuple[str, str]]:
    """Split a source handle into (parameter_id, option_id); None if malformed."""
    parameter_id, sep, option_id = handle.partition(HANDLE_SEPARATOR)
    if not sep or not parameter_id or not option_id:
        return None
    return parameter_id, option_id


def visual_edge_id(edge: DependencyEdge) -> str:
    return HANDLE_SEPARATOR.join(edge.key)


@dataclass
class VisualNode:
    """A parameter card on the canvas."""
    id: str
    label: str
    slug: str
    source_handles: List[str] = field(default_factory=list)

    @property
    def target_handle(self) -> str:
        return target_handle_id(self.id)

    @classmethod
    def from_parameter(cls, parameter: Parameter, options: Iterable[ParameterOption]) -> "VisualNode":
        return cls(
            id=parameter.id,
            label=parameter.label,
            slug=parameter.slug,
            source_handles=[source_handle_id(parameter.id, o.id) for o in options],
        )


@dataclass
class VisualEdge:
    """A connection drawn between an option handle and a parameter card."""
    id: str
    source: str
    source_handle: str
    target: str
    target_handle: str
    dependency: DependencyEdge

    @classmethod
    def from_dependency(cls, edge: DependencyEdge) -> "VisualEdge":
        return cls(
            id=visual_edge_id(edge),
            source=edge.parent_parameter_id,
            source_handle=source_handle_id(edge.parent_parameter_id, edge.parent_option_id),
            target=edge.child_parameter_id,
            target_handle=target_handle_id(edge.child_parameter_id),
            dependency=edge,
        )


class Canvas:
    """
    The editor's drawable state.
    """

    def __init__(self):
        self.nodes: Dict[str, VisualNode] = {}
        self.edges: Dict[str, VisualEdge] = {}

    def replace(self, nodes: Iterable[VisualNode], edges: Iterable[DependencyEdge]) -> None:
        """Rebuild everything, dropping edges whose endpoints are not drawn."""
        self.nodes = {node.id: node for node in nodes}
        self.edges = {}
        for edge in edges:
            self.add_edge(edge)

    def add_edge(self, edge: DependencyEdge) -> Optional[VisualEdge]:
        if edge.parent_parameter_id not in self.nodes or edge.child_parameter_id not in self.nodes:
            return None
        visual = VisualEdge.from_dependency(edge)
        self.edges[visual.id] = visual
        return visual

    def remove_edge(self, edge: DependencyEdge) -> None:
        self.edges.pop(visual_edge_id(edge), None)

    def get_edge(self, edge_id: str) -> Optional[VisualEdge]:
        return self.edges.get(edge_id)

    def dependencies(self) -> Set[DependencyEdge]:
        """The logical edges currently drawn."""
        return {visual.dependency for visual in self.edges.values()}

    def clear(self) -> None:
        self.nodes.clear()
        self.edges.clear()
