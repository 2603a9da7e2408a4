"""
Record store contract.

The record store is the collaborator that persists parameters, options
and dependency edges (a hosted relational backend in production). The
graph core only consumes it; every call is asynchronous.

Adapters must raise `PersistenceFailure` when a call fails.
"""

from abc import ABC, abstractmethod
from typing import List

from ..core.types import DependencyEdge, OptionFilter, ParameterWithOptions


class RecordStore(ABC):
    """Abstract persistence collaborator of the dependency graph."""

    @abstractmethod
    async def fetch_parameters_with_options(self) -> List[ParameterWithOptions]:
        """Return select-type parameters bundled with their options."""

    @abstractmethod
    async def fetch_dependency_edges(self) -> List[DependencyEdge]:
        """Return every stored dependency edge, duplicates included."""

    @abstractmethod
    async def fetch_option_filters(self) -> List[OptionFilter]:
        """Return the child option filters attached to dependency edges."""

    @abstractmethod
    async def create_dependency_edge(self, edge: DependencyEdge) -> DependencyEdge:
        """Persist an edge and return the stored record."""

    @abstractmethod
    async def delete_dependency_edge(self, edge: DependencyEdge) -> None:
        """Delete the edge with the same (parent, option, child) tuple."""

    def close(self) -> None:
        """Release resources held by the adapter."""
