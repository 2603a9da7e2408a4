"""
Core modules for paramgraph.

This package contains the fundamental building blocks:
- types: Data structures (Parameter, ParameterOption, DependencyEdge, etc.)
- graph: In-memory dependency graph store
- guard: Consistency checks for edge mutations
- evaluation: Visible parameter set computation
- selection / preview: Stored selection parsing and task name composition
"""

from .evaluation import EvaluationEngine
from .exceptions import ConfigError, ParamGraphError, PersistenceFailure, SelectionError
from .graph import GraphStore
from .guard import ConsistencyGuard
from .preview import compose_task_name, resolve_parameter_order
from .result import Ok, Rejected, RejectionReason, Result
from .selection import parse_stored_selection, resolve_selection_tokens
from .types import (
    DependencyEdge, GraphEvent, GraphEventType, LoadReport, OptionFilter,
    Parameter, ParameterOption, ParameterType, ParameterWithOptions, Selection,
)

__all__ = [
    # Types
    "DependencyEdge", "GraphEvent", "GraphEventType", "LoadReport", "OptionFilter",
    "Parameter", "ParameterOption", "ParameterType", "ParameterWithOptions", "Selection",
    # Results & errors
    "Ok", "Rejected", "RejectionReason", "Result",
    "ParamGraphError", "PersistenceFailure", "ConfigError", "SelectionError",
    # Graph
    "GraphStore", "ConsistencyGuard", "EvaluationEngine",
    # Helpers
    "compose_task_name", "resolve_parameter_order",
    "parse_stored_selection", "resolve_selection_tokens",
]
