"""
Parameter node editor support.

- canvas: Visual nodes/edges and handle id helpers
- controller: Gesture handling with validate, persist, mutate ordering
"""

from .canvas import Canvas, VisualEdge, VisualNode, parse_source_handle, source_handle_id
from .controller import EditorController

__all__ = [
    "Canvas", "VisualEdge", "VisualNode", "EditorController",
    "parse_source_handle", "source_handle_id",
]
