import functools
import logging
from typing import Any, Hashable, Iterator, Mapping

import networkx as nx
import numpy as np

from optsched.errors import InvalidGraphError

logger = logging.getLogger(__name__)

Weight = int | float

WEIGHT = "weight"


def parse_weight(value: Any) -> Weight:
    """Convert an attribute value to a number, keeping integers integral.

    Graph description files carry attributes as strings, eg `"2"` or `"2.5"`.
    Raises `ValueError` on anything else.
    """
    if isinstance(value, bool):
        raise ValueError(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, np.number):
        return value.item()
    text = str(value).strip().strip('"')
    try:
        return int(text)
    except ValueError:
        return float(text)


def _weight(attrs: Mapping[str, Any], what: str) -> Weight:
    for key, value in attrs.items():
        if key.lower() == WEIGHT:
            try:
                weight = parse_weight(value)
            except ValueError:
                raise InvalidGraphError(f"{what} has non-numeric weight {value!r}")
            if not np.isfinite(weight) or weight < 0:
                raise InvalidGraphError(f"{what} has invalid weight {value!r}")
            return weight
    raise InvalidGraphError(f"{what} is missing a weight")


class TaskGraph:
    """Task graph with dense integer task ids

    Tasks are numbered once, in the node order of the wrapped graph, and all
    per-task lookups used by the search go through these ids.

    Parameters
    ----------
    graph: nx.DiGraph
        Nodes and edges must carry a numeric `weight` attribute (any case), the
        execution time of a task and the communication cost of an edge respectively
    """

    graph: nx.DiGraph
    names: list[Hashable]
    index: dict[Hashable, int]
    weights: list[Weight]
    predecessors: list[tuple[int, ...]]
    successors: list[tuple[int, ...]]

    def __init__(self, graph: nx.DiGraph):
        if not graph.is_directed():
            raise InvalidGraphError("task graph must be directed")
        self.graph = graph
        self.names = list(graph.nodes)
        self.index = {name: i for i, name in enumerate(self.names)}
        self.weights = [_weight(attrs, f"task {name!r}") for name, attrs in graph.nodes(data=True)]
        self._comm: dict[tuple[int, int], Weight] = {}
        for u, v, attrs in graph.edges(data=True):
            self._comm[self.index[u], self.index[v]] = _weight(attrs, f"edge {u!r} -> {v!r}")
        self.predecessors = [tuple(self.index[p] for p in graph.predecessors(n)) for n in self.names]
        self.successors = [tuple(self.index[s] for s in graph.successors(n)) for n in self.names]
        logger.debug(f"task graph with {len(self)} tasks and {len(self._comm)} edges")

    @classmethod
    def from_dict(
        cls,
        tasks: Mapping[Hashable, Weight],
        edges: Mapping[tuple[Hashable, Hashable], Weight] | None = None,
    ) -> "TaskGraph":
        """Build a task graph from plain mappings

        Params
        ------
        tasks: mapping of task name to execution weight, in graph task order
        edges: mapping of (source, target) to communication weight
        """
        g = nx.DiGraph()
        for name, weight in tasks.items():
            g.add_node(name, weight=weight)
        for (u, v), weight in (edges or {}).items():
            if u not in tasks or v not in tasks:
                raise InvalidGraphError(f"edge {u!r} -> {v!r} refers to an unknown task")
            g.add_edge(u, v, weight=weight)
        return cls(g)

    def __len__(self) -> int:
        return len(self.names)

    def __iter__(self) -> Iterator[int]:
        return iter(range(len(self.names)))

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} tasks={len(self)} edges={len(self._comm)}>"

    def id(self, name: Hashable) -> int:
        """Dense id of a task. Raises `KeyError` if not found."""
        return self.index[name]

    def name(self, task: int) -> Hashable:
        return self.names[task]

    def in_degree(self, task: int) -> int:
        return len(self.predecessors[task])

    def comm_cost(self, source: int, target: int) -> Weight:
        """Communication cost of the edge `source -> target`, paid across processors only"""
        return self._comm[source, target]

    def edges(self) -> Iterator[tuple[int, int, Weight]]:
        for (u, v), weight in self._comm.items():
            yield u, v, weight

    @functools.cached_property
    def bottom_levels(self) -> list[Weight]:
        """Longest sum of execution weights from each task down to a sink.

        Communication is excluded since it vanishes when tasks share a processor,
        which keeps this a lower bound on the remaining time after a task starts.
        """
        try:
            order = list(nx.topological_sort(self.graph))
        except nx.NetworkXUnfeasible:
            raise InvalidGraphError("task graph contains a cycle")
        levels: list[Weight] = [0] * len(self)
        for name in reversed(order):
            task = self.index[name]
            levels[task] = self.weights[task] + max((levels[s] for s in self.successors[task]), default=0)
        return levels

    @property
    def critical_path_length(self) -> Weight:
        return max(self.bottom_levels, default=0)

    @functools.cached_property
    def total_weight(self) -> Weight:
        if not self.weights:
            return 0
        return np.sum(self.weights).item()
