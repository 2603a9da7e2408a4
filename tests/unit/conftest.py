"""Shared fixtures: a small wall-construction parameter graph.

    tipo_tarea (A)  --Muros-->     tipo_de_muro (B)
    tipo_de_muro (B) --Portante--> tipo_ladrillo (C)   [allows c1, c2]
"""

import pytest

from paramgraph.core.graph import GraphStore
from paramgraph.core.types import DependencyEdge, OptionFilter, Parameter, ParameterOption


def edge(parent, option, child) -> DependencyEdge:
    return DependencyEdge(parent_parameter_id=parent, parent_option_id=option, child_parameter_id=child)


@pytest.fixture
def parameters():
    return [
        Parameter(id="A", slug="tipo_tarea", label="Tipo de tarea", expression_template="{value}"),
        Parameter(id="B", slug="tipo_de_muro", label="Tipo de muro", expression_template="de muro {value},"),
        Parameter(id="C", slug="tipo_ladrillo", label="Tipo de ladrillo", expression_template="con ladrillo {value}"),
    ]


@pytest.fixture
def options():
    return [
        ParameterOption(id="a1", parameter_id="A", label="Muros"),
        ParameterOption(id="a2", parameter_id="A", label="Pisos"),
        ParameterOption(id="b1", parameter_id="B", label="Portante"),
        ParameterOption(id="b2", parameter_id="B", label="Tabique"),
        ParameterOption(id="c1", parameter_id="C", label="King Kong"),
        ParameterOption(id="c2", parameter_id="C", label="Pandereta"),
        ParameterOption(id="c3", parameter_id="C", label="Mecano"),
    ]


@pytest.fixture
def edges():
    return [edge("A", "a1", "B"), edge("B", "b1", "C")]


@pytest.fixture
def option_filters():
    return [
        OptionFilter(edge=edge("B", "b1", "C"), child_option_id="c1"),
        OptionFilter(edge=edge("B", "b1", "C"), child_option_id="c2"),
    ]


@pytest.fixture
def graph(parameters, options, edges, option_filters):
    store = GraphStore()
    store.load(parameters, options, edges, option_filters)
    return store
