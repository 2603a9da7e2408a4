"""
In-memory record store.

Fast ephemeral storage for tests and scripted sessions. Edges are kept
in a list, so the same tuple can be stored twice, exactly like two racing
inserts against a backend without a uniqueness constraint.
"""

import logging
from typing import Iterable, List

from ..core.types import (
    DependencyEdge, OptionFilter, Parameter, ParameterOption, ParameterWithOptions,
)
from .base import RecordStore

logger = logging.getLogger(__name__)


class MemoryRecordStore(RecordStore):
    """Record store backed by plain Python lists."""

    def __init__(
        self,
        parameters: Iterable[Parameter] = (),
        options: Iterable[ParameterOption] = (),
        edges: Iterable[DependencyEdge] = (),
        option_filters: Iterable[OptionFilter] = (),
    ):
        self.parameters: List[Parameter] = list(parameters)
        self.options: List[ParameterOption] = list(options)
        self.edges: List[DependencyEdge] = list(edges)
        self.option_filters: List[OptionFilter] = list(option_filters)

    async def fetch_parameters_with_options(self) -> List[ParameterWithOptions]:
        bundles = []
        for parameter in sorted(self.parameters, key=lambda p: p.label):
            if not parameter.is_selectable:
                continue
            options = [o for o in self.options if o.parameter_id == parameter.id]
            bundles.append(ParameterWithOptions(
                parameter=parameter,
                options=sorted(options, key=lambda o: o.label),
            ))
        return bundles

    async def fetch_dependency_edges(self) -> List[DependencyEdge]:
        return list(self.edges)

    async def fetch_option_filters(self) -> List[OptionFilter]:
        return list(self.option_filters)

    async def create_dependency_edge(self, edge: DependencyEdge) -> DependencyEdge:
        self.edges.append(edge)
        logger.debug(f"Stored dependency {edge}")
        return edge

    async def delete_dependency_edge(self, edge: DependencyEdge) -> None:
        self.edges = [e for e in self.edges if e != edge]
        self.option_filters = [f for f in self.option_filters if f.edge != edge]
        logger.debug(f"Deleted dependency {edge}")
