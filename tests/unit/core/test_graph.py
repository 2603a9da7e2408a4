"""Unit tests for the in-memory graph store."""

from unittest.mock import MagicMock

import pytest

from paramgraph.core.graph import GraphStore
from paramgraph.core.types import (
    DependencyEdge, GraphEventType, OptionFilter, Parameter, ParameterOption, ParameterWithOptions,
)


def edge(parent, option, child):
    return DependencyEdge(parent_parameter_id=parent, parent_option_id=option, child_parameter_id=child)


class TestLoad:
    def test_indices_built(self, graph):
        assert graph.children("A", "a1") == {"B"}
        assert graph.children("A", "a2") == set()
        assert graph.parents("C") == {("B", "b1")}
        assert graph.successors("A") == {"B"}
        assert graph.roots() == ["A"]
        assert graph.is_root("A")
        assert not graph.is_root("B")

    def test_report_counts(self, parameters, options, edges):
        report = GraphStore().load(parameters, options, edges)
        assert report.parameter_count == 3
        assert report.option_count == 7
        assert report.edge_count == 2
        assert report.is_clean

    def test_load_replaces_previous_state(self, graph, parameters, options):
        graph.load(parameters, options, [])
        assert graph.edge_count == 0
        assert graph.children("A", "a1") == set()
        assert set(graph.roots()) == {"A", "B", "C"}

    def test_inert_edges_are_reported_and_ignored(self, parameters, options):
        bad = [
            edge("A", "a1", "A"),       # self loop
            edge("X", "x1", "B"),       # unknown parent
            edge("A", "a1", "Z"),       # unknown child
            edge("A", "gone", "B"),     # deleted option
            edge("A", "b1", "C"),       # option of another parameter
        ]
        store = GraphStore()
        report = store.load(parameters, options, bad)

        assert set(report.inert_edges) == {
            "self_loop", "unknown_parent", "unknown_child", "unknown_option", "foreign_option",
        }
        assert report.inert_count == 5
        assert store.edge_count == 0
        assert set(store.roots()) == {"A", "B", "C"}

    def test_duplicates_collapse(self, parameters, options):
        store = GraphStore()
        report = store.load(parameters, options, [edge("A", "a1", "B"), edge("A", "a1", "B")])
        assert store.edge_count == 1
        assert report.duplicate_edges == [edge("A", "a1", "B")]
        assert not report.is_clean

    def test_cycles_in_loaded_data_are_reported(self, parameters, options):
        store = GraphStore()
        report = store.load(parameters, options, [edge("A", "a1", "B"), edge("B", "b1", "A")])
        assert len(report.cycles) == 1
        assert set(report.cycles[0]) == {"A", "B"}
        assert not store.is_acyclic()

    def test_foreign_option_filter_ignored(self, parameters, options, edges):
        filters = [
            OptionFilter(edge=edge("A", "a1", "B"), child_option_id="b1"),
            OptionFilter(edge=edge("A", "a1", "B"), child_option_id="c1"),
        ]
        store = GraphStore()
        store.load(parameters, options, edges, filters)
        assert store.filters_for(edge("A", "a1", "B")) == {"b1"}

    def test_load_bundles(self, parameters, options, edges):
        bundles = [
            ParameterWithOptions(parameter=p, options=[o for o in options if o.parameter_id == p.id])
            for p in parameters
        ]
        store = GraphStore()
        store.load_bundles(bundles, edges)
        assert store.parameter_count == 3
        assert [o.id for o in store.options_for("C")] == ["c1", "c2", "c3"]


class TestMutation:
    def test_add_edge_updates_indices(self, graph):
        graph.add_edge(edge("A", "a2", "C"))
        assert graph.children("A", "a2") == {"C"}
        assert graph.parents("C") == {("B", "b1"), ("A", "a2")}
        assert graph.successors("A") == {"B", "C"}

    def test_add_existing_edge_is_noop(self, graph):
        listener = MagicMock()
        graph.subscribe(listener)
        graph.add_edge(edge("A", "a1", "B"))
        assert graph.edge_count == 2
        listener.assert_not_called()

    def test_add_inert_edge_ignored(self, graph):
        listener = MagicMock()
        graph.subscribe(listener)

        graph.add_edge(edge("A", "a2", "Z"))
        graph.add_edge(edge("A", "b1", "C"))

        assert graph.edge_count == 2
        assert graph.get_stats()["acyclic"] is True
        listener.assert_not_called()

    def test_remove_edge_keeps_arc_while_other_option_uses_it(self, graph):
        graph.add_edge(edge("A", "a2", "B"))
        graph.remove_edge(edge("A", "a1", "B"))
        assert graph.successors("A") == {"B"}
        graph.remove_edge(edge("A", "a2", "B"))
        assert graph.successors("A") == set()
        assert graph.is_root("B")

    def test_remove_edge_drops_filters(self, graph):
        graph.remove_edge(edge("B", "b1", "C"))
        assert graph.filters_for(edge("B", "b1", "C")) == set()

    def test_remove_missing_edge_is_noop(self, graph):
        graph.remove_edge(edge("A", "a2", "C"))
        assert graph.edge_count == 2

    def test_clear(self, graph):
        graph.clear()
        assert graph.parameter_count == 0
        assert graph.edge_count == 0


class TestSubscriptions:
    def test_events_delivered(self, graph):
        events = []
        graph.subscribe(events.append)

        graph.add_edge(edge("A", "a2", "C"))
        graph.remove_edge(edge("A", "a2", "C"))

        assert [e.type for e in events] == [GraphEventType.EDGE_ADDED, GraphEventType.EDGE_REMOVED]
        assert events[0].edge == edge("A", "a2", "C")

    def test_unsubscribe(self, graph):
        listener = MagicMock()
        unsubscribe = graph.subscribe(listener)
        assert graph.listener_count == 1

        unsubscribe()
        unsubscribe()
        graph.add_edge(edge("A", "a2", "C"))

        assert graph.listener_count == 0
        listener.assert_not_called()

    def test_failing_listener_does_not_block_others(self, graph):
        failing = MagicMock(side_effect=RuntimeError("boom"))
        healthy = MagicMock()
        graph.subscribe(failing)
        graph.subscribe(healthy)

        graph.add_edge(edge("A", "a2", "C"))

        healthy.assert_called_once()
        assert graph.has_edge(edge("A", "a2", "C"))


class TestQueries:
    def test_find_parameter_by_id_or_slug(self, graph):
        assert graph.find_parameter("B").slug == "tipo_de_muro"
        assert graph.find_parameter("tipo_ladrillo").id == "C"
        assert graph.find_parameter("nope") is None

    def test_owns_option(self, graph):
        assert graph.owns_option("A", "a1")
        assert not graph.owns_option("A", "b1")
        assert not graph.owns_option("A", "missing")

    def test_iter_edges_sorted(self, graph):
        assert [e.key for e in graph.iter_edges()] == [("A", "a1", "B"), ("B", "b1", "C")]

    def test_option_name_defaults_to_label(self):
        option = ParameterOption(id="o", parameter_id="p", label="Muros")
        assert option.name == "Muros"

    def test_parameter_identity_is_id(self):
        assert Parameter(id="p", slug="a", label="A") == Parameter(id="p", slug="b", label="B")

    def test_bundle_rejects_foreign_option(self):
        with pytest.raises(ValueError):
            ParameterWithOptions(
                parameter=Parameter(id="p", slug="p", label="P"),
                options=[ParameterOption(id="o", parameter_id="q", label="O")],
            )


class TestAnalysis:
    def test_stats(self, graph):
        stats = graph.get_stats()
        assert stats["total_parameters"] == 3
        assert stats["total_edges"] == 2
        assert stats["parameter_arcs"] == 2
        assert stats["roots"] == 1
        assert stats["filtered_edges"] == 1
        assert stats["acyclic"] is True

    def test_to_rustworkx(self, graph):
        rx_graph, idx_to_id = graph.to_rustworkx()
        assert rx_graph.num_nodes() == 3
        assert rx_graph.num_edges() == 2
        assert set(idx_to_id.values()) == {"A", "B", "C"}

    def test_to_dict(self, graph):
        data = graph.to_dict()
        assert len(data["edges"]) == 2
        assert {f["child_option_id"] for f in data["option_filters"]} == {"c1", "c2"}
