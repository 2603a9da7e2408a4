"""
Exception hierarchy for paramgraph.

Edge validation never raises (see result.py). Exceptions are reserved for
failures outside the graph itself: the record store, configuration files
and user input on the command line.
"""

from .types import DependencyEdge


class ParamGraphError(Exception):
    """Base class for all paramgraph errors."""


class PersistenceFailure(ParamGraphError):
    """
    Raised by record store adapters when a remote call fails.

    Attributes:
        operation: Name of the record store call ("create", "delete", "fetch").
        edge: The edge involved, if any.
        cause: The underlying exception.
    """

    def __init__(self, operation: str, edge: DependencyEdge | None = None, cause: Exception | None = None):
        self.operation = operation
        self.edge = edge
        self.cause = cause
        target = f" for {edge}" if edge is not None else ""
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Record store '{operation}' failed{target}{detail}")


class ConfigError(ParamGraphError):
    """Raised when the configuration file cannot be read or validated."""


class SelectionError(ParamGraphError):
    """Raised when a selection cannot be parsed or resolved."""
