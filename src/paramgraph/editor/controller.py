"""
Editor Controller - bridge between node-editor gestures and the graph.

Gestures follow a validate, persist, then mutate protocol:
1. The consistency guard checks the proposed change against the
   in-memory graph.
2. The record store is awaited.
3. Only after the store confirms is the GraphStore mutated. The edge
   is checked again first, since a concurrent change may have made it
   inadmissible; such a row is deleted again. The canvas follows
   through the store's change notifications.

If the store fails, nothing local has changed, so the gesture can simply
be retried. If the editor is closed while a request is in flight, the
late result is discarded rather than applied.
"""

import asyncio
import logging
from typing import Callable, Iterable, List, Optional

from ..core.graph import GraphStore
from ..core.guard import ConsistencyGuard
from ..core.result import Ok, Rejected, RejectionReason, Result
from ..core.types import DependencyEdge, GraphEvent, GraphEventType, LoadReport
from ..storage.base import RecordStore
from .canvas import Canvas, VisualEdge, VisualNode, parse_source_handle

logger = logging.getLogger(__name__)

# (title, description, is_error)
Notifier = Callable[[str, str, bool], None]


def _log_notifier(title: str, description: str, is_error: bool) -> None:
    level = logging.WARNING if is_error else logging.INFO
    logger.log(level, f"{title}: {description}")


class EditorController:
    """
    Translates connect/disconnect gestures into guarded graph mutations
    and keeps the canvas in step with the logical graph.
    """

    def __init__(
        self,
        graph: GraphStore,
        record_store: RecordStore,
        guard: Optional[ConsistencyGuard] = None,
        canvas: Optional[Canvas] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.graph = graph
        self.record_store = record_store
        self.guard = guard or ConsistencyGuard(graph)
        self.canvas = canvas or Canvas()
        self.notify = notifier or _log_notifier
        self._mounted = True
        self._unsubscribe = graph.subscribe(self._on_graph_event)
        self._sync_canvas()

    @property
    def is_mounted(self) -> bool:
        return self._mounted

    def close(self) -> None:
        """Unmount the editor. Requests still in flight will be discarded."""
        if not self._mounted:
            return
        self._mounted = False
        self._unsubscribe()
        logger.debug("Editor closed")

    async def refresh(self) -> Optional[LoadReport]:
        """
        Fetch the graph from the record store and reload the GraphStore.

        Returns:
            The load report, or None if the editor was closed meanwhile.

        Raises:
            PersistenceFailure: If the record store cannot be read.
        """
        bundles, edges, option_filters = await asyncio.gather(
            self.record_store.fetch_parameters_with_options(),
            self.record_store.fetch_dependency_edges(),
            self.record_store.fetch_option_filters(),
        )
        if not self._mounted:
            logger.debug("Discarding refresh result: editor closed")
            return None

        report = self.graph.load_bundles(bundles, edges, option_filters)
        if report.duplicate_edges:
            self.notify(
                "Duplicate dependencies",
                f"{len(report.duplicate_edges)} duplicated connection(s) were merged.",
                True,
            )
        return report

    async def on_connect(
        self, source_parameter_id: str, source_option_id: str, target_parameter_id: str
    ) -> Result[DependencyEdge]:
        """Handle a new connection from an option handle to a parameter card."""
        if source_parameter_id == target_parameter_id:
            self.notify("Invalid connection", "A parameter cannot be connected to itself.", True)
            return Rejected(RejectionReason.SELF_LOOP, "A parameter cannot depend on itself.")

        edge = DependencyEdge(
            parent_parameter_id=source_parameter_id,
            parent_option_id=source_option_id,
            child_parameter_id=target_parameter_id,
        )

        verdict = self.guard.can_add(edge)
        if isinstance(verdict, Rejected):
            self.notify("Invalid connection", str(verdict), True)
            return verdict

        try:
            stored = await self.record_store.create_dependency_edge(edge)
        except Exception as e:
            logger.error(f"Failed to persist {edge}: {e}")
            if self._mounted:
                self.notify("Error", "The dependency could not be saved. Try again.", True)
            return Rejected(RejectionReason.PERSISTENCE_FAILURE, str(e))

        if not self._mounted:
            logger.debug(f"Discarding confirmed creation of {edge}: editor closed")
            return Rejected(RejectionReason.DISCARDED, "Editor closed before confirmation")

        # The graph may have changed while the request was in flight.
        verdict = self.guard.can_add(stored)
        if isinstance(verdict, Rejected) and verdict.reason != RejectionReason.DUPLICATE_EDGE:
            logger.warning(f"Confirmed {stored} no longer admissible: {verdict}")
            await self._revert_creation(stored)
            self.notify("Invalid connection", str(verdict), True)
            return verdict

        self.graph.add_edge(stored)
        self.notify("Dependency created", f"{stored}", False)
        return Ok(stored)

    async def _revert_creation(self, edge: DependencyEdge) -> None:
        """Delete a stored row that was rejected after confirmation."""
        try:
            await self.record_store.delete_dependency_edge(edge)
        except Exception as e:
            logger.error(f"Failed to revert {edge}; it will show on the next refresh: {e}")

    async def connect_handles(self, source_handle: str, target_node_id: str) -> Result[DependencyEdge]:
        """Handle a raw canvas connection expressed as handle ids."""
        parsed = parse_source_handle(source_handle)
        if parsed is None:
            self.notify("Invalid connection", f"Unrecognized handle: {source_handle}", True)
            return Rejected(RejectionReason.UNKNOWN_OPTION, f"Unrecognized handle: {source_handle}")
        parameter_id, option_id = parsed
        return await self.on_connect(parameter_id, option_id, target_node_id)

    async def on_disconnect(self, edge: DependencyEdge) -> Result[DependencyEdge]:
        """Handle deletion of a connection."""
        verdict = self.guard.can_remove(edge)
        if isinstance(verdict, Rejected):
            self.notify("Invalid deletion", str(verdict), True)
            return verdict

        try:
            await self.record_store.delete_dependency_edge(edge)
        except Exception as e:
            logger.error(f"Failed to delete {edge}: {e}")
            if self._mounted:
                self.notify("Error", "The dependency could not be deleted.", True)
            return Rejected(RejectionReason.PERSISTENCE_FAILURE, str(e))

        if not self._mounted:
            logger.debug(f"Discarding confirmed deletion of {edge}: editor closed")
            return Rejected(RejectionReason.DISCARDED, "Editor closed before confirmation")

        self.graph.remove_edge(edge)
        self.notify("Dependency deleted", f"{edge}", False)
        return Ok(edge)

    async def on_edges_delete(self, visual_edges: Iterable[VisualEdge]) -> List[Result[DependencyEdge]]:
        """Delete several selected canvas edges, one request each."""
        results = []
        for visual in visual_edges:
            results.append(await self.on_disconnect(visual.dependency))
        return results

    # --- Reconciliation ---

    def _on_graph_event(self, event: GraphEvent) -> None:
        if event.type == GraphEventType.LOADED:
            self._sync_canvas()
        elif event.type == GraphEventType.EDGE_ADDED and event.edge is not None:
            self.canvas.add_edge(event.edge)
        elif event.type == GraphEventType.EDGE_REMOVED and event.edge is not None:
            self.canvas.remove_edge(event.edge)

    def _sync_canvas(self) -> None:
        nodes = [
            VisualNode.from_parameter(parameter, self.graph.options_for(parameter.id))
            for parameter in self.graph.iter_parameters()
        ]
        self.canvas.replace(nodes, self.graph.iter_edges())
