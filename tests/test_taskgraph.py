import networkx as nx
import pytest

from optsched.errors import InvalidGraphError
from optsched.samplegraphs import diamond, linear, random_dag
from optsched.taskgraph import TaskGraph, parse_weight


def test_dense_ids_follow_graph_order():
    g = TaskGraph.from_dict({"x": 1, "a": 2, "m": 3}, {("x", "m"): 4, ("a", "m"): 5})
    assert g.names == ["x", "a", "m"]
    assert g.id("m") == 2
    assert g.weights == [1, 2, 3]
    assert g.predecessors[2] == (0, 1)
    assert g.successors[0] == (2,)
    assert g.in_degree(2) == 2
    assert g.in_degree(0) == 0
    assert g.comm_cost(1, 2) == 5
    assert len(g) == 3


def test_unknown_name():
    g = TaskGraph.from_dict({"a": 1})
    with pytest.raises(KeyError):
        g.id("b")


@pytest.mark.parametrize(
    "value, expected",
    [(2, 2), (2.5, 2.5), ("2", 2), ('"7"', 7), ("2.5", 2.5), (" 3 ", 3)],
)
def test_parse_weight(value, expected):
    parsed = parse_weight(value)
    assert parsed == expected
    assert type(parsed) is type(expected)


def test_weight_attribute_is_case_insensitive():
    g = nx.DiGraph()
    g.add_node("a", Weight="2")
    g.add_node("b", WEIGHT=3)
    g.add_edge("a", "b", Weight="1")
    tg = TaskGraph(g)
    assert tg.weights == [2, 3]
    assert tg.comm_cost(0, 1) == 1


@pytest.mark.parametrize("weight", [None, "abc", -1, float("nan"), True])
def test_invalid_task_weight(weight):
    g = nx.DiGraph()
    if weight is None:
        g.add_node("a")
    else:
        g.add_node("a", weight=weight)
    with pytest.raises(InvalidGraphError):
        TaskGraph(g)


def test_missing_edge_weight():
    g = nx.DiGraph()
    g.add_node("a", weight=1)
    g.add_node("b", weight=1)
    g.add_edge("a", "b")
    with pytest.raises(InvalidGraphError):
        TaskGraph(g)


def test_undirected_graph():
    g = nx.Graph()
    g.add_node("a", weight=1)
    with pytest.raises(InvalidGraphError):
        TaskGraph(g)


def test_edge_to_unknown_task():
    with pytest.raises(InvalidGraphError):
        TaskGraph.from_dict({"a": 1}, {("a", "b"): 1})


def test_bottom_levels():
    g = diamond()
    # a(2) -> b(3) / c(3) -> d(2)
    assert g.bottom_levels == [7, 5, 5, 2]
    assert g.critical_path_length == 7
    assert g.total_weight == 10


def test_bottom_levels_linear():
    g = linear(4, weight=2)
    assert g.bottom_levels == [8, 6, 4, 2]


def test_bottom_levels_of_cycle(cyclic):
    with pytest.raises(InvalidGraphError):
        cyclic.bottom_levels


def test_random_dag_is_reproducible():
    a = random_dag(8, seed=3)
    b = random_dag(8, seed=3)
    assert a.weights == b.weights
    assert list(a.edges()) == list(b.edges())
    assert nx.is_directed_acyclic_graph(a.graph)
    assert all(1 <= w <= 10 for w in a.weights)
