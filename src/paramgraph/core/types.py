"""
Core type definitions for paramgraph.

Parameters, their options and the dependency edges between them are
plain pydantic models. Edges are frozen so they can live in sets and
act as dictionary keys: the (parent, option, child) tuple is their identity.
"""

from enum import StrEnum
from typing import Dict, List, Mapping, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

# parameter_id -> selected option_id
Selection = Mapping[str, str]

# (parent_parameter_id, parent_option_id)
EdgeSource = Tuple[str, str]


class ParameterType(StrEnum):
    """Input types a task parameter can take."""
    TEXT = "text"
    NUMBER = "number"
    SELECT = "select"
    BOOLEAN = "boolean"


class GraphEventType(StrEnum):
    """Structural changes broadcast by the graph store."""
    LOADED = "loaded"
    EDGE_ADDED = "edge_added"
    EDGE_REMOVED = "edge_removed"


class Parameter(BaseModel):
    """
    A configurable slot of a construction task template.
    """
    id: str
    label: str
    slug: str
    type: ParameterType = ParameterType.SELECT
    required: bool = False
    # Fragment used to build the task name, e.g. "de {value}"
    expression_template: str | None = None

    model_config = ConfigDict(extra="ignore")

    @property
    def is_selectable(self) -> bool:
        return self.type == ParameterType.SELECT

    def __hash__(self):
        return hash(self.id)

    def __eq__(self, other):
        if isinstance(other, Parameter):
            return self.id == other.id
        return False


class ParameterOption(BaseModel):
    """
    One selectable value of a select-type parameter.
    """
    id: str
    parameter_id: str
    label: str
    name: str = ""

    model_config = ConfigDict(extra="ignore")

    def model_post_init(self, __context) -> None:
        if not self.name:
            object.__setattr__(self, "name", self.label)

    def __hash__(self):
        return hash(self.id)

    def __eq__(self, other):
        if isinstance(other, ParameterOption):
            return self.id == other.id
        return False


class DependencyEdge(BaseModel):
    """
    Directed rule: when `parent_parameter_id` is set to `parent_option_id`,
    `child_parameter_id` becomes applicable.
    """
    parent_parameter_id: str
    parent_option_id: str
    child_parameter_id: str

    model_config = ConfigDict(frozen=True, extra="ignore")

    @property
    def source(self) -> EdgeSource:
        return (self.parent_parameter_id, self.parent_option_id)

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.parent_parameter_id, self.parent_option_id, self.child_parameter_id)

    @property
    def arc(self) -> Tuple[str, str]:
        """The parameter-level arc this edge collapses to."""
        return (self.parent_parameter_id, self.child_parameter_id)

    @property
    def is_self_loop(self) -> bool:
        return self.parent_parameter_id == self.child_parameter_id

    def __str__(self) -> str:
        return f"{self.parent_parameter_id}[{self.parent_option_id}] -> {self.child_parameter_id}"


class OptionFilter(BaseModel):
    """
    Narrows the options offered for a child parameter while `edge` is active.
    """
    edge: DependencyEdge
    child_option_id: str

    model_config = ConfigDict(frozen=True, extra="ignore")


class ParameterWithOptions(BaseModel):
    """
    Record-store payload: a parameter bundled with its options.
    """
    parameter: Parameter
    options: List[ParameterOption] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_ownership(self) -> "ParameterWithOptions":
        for option in self.options:
            if option.parameter_id != self.parameter.id:
                raise ValueError(
                    f"Option {option.id} belongs to {option.parameter_id}, not {self.parameter.id}"
                )
        return self


class GraphEvent(BaseModel):
    """
    Notification sent to graph store subscribers.

    `edge` is set for EDGE_ADDED / EDGE_REMOVED and None for LOADED.
    """
    type: GraphEventType
    edge: DependencyEdge | None = None


class LoadReport(BaseModel):
    """
    What `GraphStore.load` found wrong with the data it was handed.

    None of these conditions stop a load: inert edges are simply left out
    of the adjacency indices.
    """
    parameter_count: int = 0
    option_count: int = 0
    edge_count: int = 0
    inert_edges: Dict[str, List[DependencyEdge]] = Field(default_factory=dict)
    duplicate_edges: List[DependencyEdge] = Field(default_factory=list)
    cycles: List[List[str]] = Field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not (self.inert_edges or self.duplicate_edges or self.cycles)

    @property
    def inert_count(self) -> int:
        return sum(len(edges) for edges in self.inert_edges.values())
