"""
paramgraph - Task-parameter dependency graph.

Selecting an option of a "parent" task parameter can reveal one or more
"child" parameters when a construction task template is configured.
This package keeps that graph consistent and evaluates it.

Key Components:
- core: Data types, graph store, consistency guard, evaluation engine
- editor: Bridge between node-editor gestures and graph mutations
- storage: Record store contract and adapters
- cli: Administrative command line

Usage:
    from paramgraph import GraphStore, EvaluationEngine

    store = GraphStore()
    store.load(parameters, options, edges)
    visible = EvaluationEngine(store).evaluate({"tipo_tarea": "muros"})
"""

__version__ = "0.1.0"

from .core.evaluation import EvaluationEngine
from .core.graph import GraphStore
from .core.guard import ConsistencyGuard
from .core.types import (
    DependencyEdge, OptionFilter, Parameter, ParameterOption,
    ParameterType, ParameterWithOptions,
)

__all__ = [
    "__version__",
    "DependencyEdge",
    "OptionFilter",
    "Parameter",
    "ParameterOption",
    "ParameterType",
    "ParameterWithOptions",
    "GraphStore",
    "ConsistencyGuard",
    "EvaluationEngine",
]
