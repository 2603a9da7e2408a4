"""Unit tests for the editor controller (validate, persist, mutate)."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from paramgraph.core.exceptions import PersistenceFailure
from paramgraph.core.graph import GraphStore
from paramgraph.core.result import Ok, Rejected, RejectionReason
from paramgraph.core.types import DependencyEdge, Parameter, ParameterOption
from paramgraph.editor.controller import EditorController
from paramgraph.storage.memory import MemoryRecordStore


def edge(parent, option, child):
    return DependencyEdge(parent_parameter_id=parent, parent_option_id=option, child_parameter_id=child)


@pytest.fixture
def record_store(parameters, options, edges, option_filters):
    return MemoryRecordStore(parameters, options, edges, option_filters)


@pytest.fixture
def notifier():
    return MagicMock()


@pytest.fixture
def controller(record_store, notifier):
    controller = EditorController(GraphStore(), record_store, notifier=notifier)
    asyncio.run(controller.refresh())
    return controller


class TestRefresh:
    def test_loads_graph_and_canvas(self, controller):
        assert controller.graph.edge_count == 2
        assert set(controller.canvas.nodes) == {"A", "B", "C"}
        assert controller.canvas.dependencies() == {edge("A", "a1", "B"), edge("B", "b1", "C")}

    def test_duplicates_surface_on_refresh(self, controller, record_store, notifier):
        record_store.edges.append(edge("A", "a1", "B"))
        report = asyncio.run(controller.refresh())

        assert report.duplicate_edges == [edge("A", "a1", "B")]
        assert controller.graph.edge_count == 2
        assert notifier.call_args.args[0] == "Duplicate dependencies"

    def test_result_discarded_after_close(self, controller):
        controller.close()
        assert asyncio.run(controller.refresh()) is None


class TestConnect:
    def test_accepted(self, controller, record_store, notifier):
        result = asyncio.run(controller.on_connect("A", "a1", "C"))

        assert result == Ok(edge("A", "a1", "C"))
        assert controller.graph.has_edge(edge("A", "a1", "C"))
        assert edge("A", "a1", "C") in record_store.edges
        assert edge("A", "a1", "C") in controller.canvas.dependencies()
        assert notifier.call_args.args[2] is False

    def test_cycle_rejected_before_persisting(self, controller):
        controller.record_store.create_dependency_edge = AsyncMock()
        result = asyncio.run(controller.on_connect("C", "c1", "A"))

        assert result.reason == RejectionReason.WOULD_CREATE_CYCLE
        controller.record_store.create_dependency_edge.assert_not_awaited()

    def test_self_connection(self, controller, notifier):
        result = asyncio.run(controller.on_connect("A", "a1", "A"))
        assert result.reason == RejectionReason.SELF_LOOP
        assert notifier.call_args.args[2] is True

    def test_persistence_failure_leaves_graph_untouched(self, controller):
        events = []
        controller.graph.subscribe(events.append)
        controller.record_store.create_dependency_edge = AsyncMock(
            side_effect=PersistenceFailure("create", edge("A", "a1", "C"))
        )

        result = asyncio.run(controller.on_connect("A", "a1", "C"))

        assert isinstance(result, Rejected)
        assert result.reason == RejectionReason.PERSISTENCE_FAILURE
        assert result.reason.is_retryable
        assert not controller.graph.has_edge(edge("A", "a1", "C"))
        assert events == []

    def test_retry_after_failure(self, controller, record_store):
        original = record_store.create_dependency_edge
        record_store.create_dependency_edge = AsyncMock(side_effect=[RuntimeError("timeout")])
        assert asyncio.run(controller.on_connect("A", "a1", "C")).is_rejected()

        record_store.create_dependency_edge = original
        assert asyncio.run(controller.on_connect("A", "a1", "C")).is_ok()

    def test_close_while_in_flight_discards(self, controller):
        async def slow_create(new_edge):
            controller.close()
            return new_edge

        controller.record_store.create_dependency_edge = slow_create
        result = asyncio.run(controller.on_connect("A", "a1", "C"))

        assert result.reason == RejectionReason.DISCARDED
        assert not controller.graph.has_edge(edge("A", "a1", "C"))

    def test_connect_handles(self, controller):
        assert asyncio.run(controller.connect_handles("A::a2", "C")).is_ok()
        assert controller.graph.has_edge(edge("A", "a2", "C"))

    def test_connect_malformed_handle(self, controller):
        result = asyncio.run(controller.connect_handles("A-a2", "C"))
        assert result.reason == RejectionReason.UNKNOWN_OPTION


def yield_on_create(record_store):
    """Make create_dependency_edge suspend once so concurrent gestures interleave."""
    create = record_store.create_dependency_edge

    async def yielding_create(new_edge):
        await asyncio.sleep(0)
        return await create(new_edge)

    record_store.create_dependency_edge = yielding_create


async def connect_concurrently(controller, *gestures):
    return await asyncio.gather(*(controller.on_connect(*g) for g in gestures))


class TestConcurrentConnects:
    def test_same_edge_twice_is_merged(self, controller, record_store, notifier):
        yield_on_create(record_store)

        results = asyncio.run(connect_concurrently(controller, ("A", "a2", "C"), ("A", "a2", "C")))

        assert [r.is_ok() for r in results] == [True, True]
        assert controller.graph.edge_count == 3
        assert record_store.edges.count(edge("A", "a2", "C")) == 2

        report = asyncio.run(controller.refresh())
        assert report.duplicate_edges == [edge("A", "a2", "C")]
        assert controller.graph.edge_count == 3

    def test_opposite_edges_cannot_both_land(self):
        record_store = MemoryRecordStore(
            [Parameter(id="X", slug="x", label="X"), Parameter(id="Y", slug="y", label="Y")],
            [
                ParameterOption(id="x1", parameter_id="X", label="x1"),
                ParameterOption(id="y1", parameter_id="Y", label="y1"),
            ],
        )
        controller = EditorController(GraphStore(), record_store, notifier=MagicMock())
        asyncio.run(controller.refresh())
        yield_on_create(record_store)

        results = asyncio.run(connect_concurrently(controller, ("X", "x1", "Y"), ("Y", "y1", "X")))

        assert sorted(r.is_ok() for r in results) == [False, True]
        rejected = next(r for r in results if r.is_rejected())
        assert rejected.reason == RejectionReason.WOULD_CREATE_CYCLE
        assert controller.graph.is_acyclic()
        assert controller.graph.edge_count == 1
        assert record_store.edges == [r.unwrap() for r in results if r.is_ok()]

    def test_child_deleted_while_in_flight(self, controller, record_store):
        create = record_store.create_dependency_edge

        async def create_after_deletion(new_edge):
            record_store.parameters = [p for p in record_store.parameters if p.id != "C"]
            await controller.refresh()
            return await create(new_edge)

        record_store.create_dependency_edge = create_after_deletion
        result = asyncio.run(controller.on_connect("A", "a2", "C"))

        assert result.reason == RejectionReason.UNKNOWN_PARAMETER
        assert not controller.graph.has_edge(edge("A", "a2", "C"))
        assert edge("A", "a2", "C") not in record_store.edges
        assert controller.graph.get_stats()["acyclic"] is True


class TestDisconnect:
    def test_removed(self, controller, record_store):
        result = asyncio.run(controller.on_disconnect(edge("B", "b1", "C")))

        assert result.is_ok()
        assert not controller.graph.has_edge(edge("B", "b1", "C"))
        assert edge("B", "b1", "C") not in record_store.edges
        assert record_store.option_filters == []
        assert "B::b1::C" not in controller.canvas.edges

    def test_missing_edge(self, controller):
        result = asyncio.run(controller.on_disconnect(edge("A", "a2", "B")))
        assert result.reason == RejectionReason.MISSING_EDGE

    def test_failure_keeps_edge(self, controller):
        controller.record_store.delete_dependency_edge = AsyncMock(side_effect=RuntimeError("down"))
        result = asyncio.run(controller.on_disconnect(edge("A", "a1", "B")))

        assert result.reason == RejectionReason.PERSISTENCE_FAILURE
        assert controller.graph.has_edge(edge("A", "a1", "B"))

    def test_edges_delete(self, controller):
        visuals = list(controller.canvas.edges.values())
        results = asyncio.run(controller.on_edges_delete(visuals))

        assert all(r.is_ok() for r in results)
        assert controller.graph.edge_count == 0
        assert controller.canvas.edges == {}


class TestLifecycle:
    def test_close_unsubscribes(self, controller):
        assert controller.graph.listener_count == 1
        controller.close()
        controller.close()
        assert controller.graph.listener_count == 0
        assert not controller.is_mounted
