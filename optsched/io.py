"""
Reading task graphs from graph description (DOT) files and rendering schedules.

A task graph file looks like
```
digraph example {
  a [Weight=2];
  b [Weight=3];
  a -> b [Weight=1];
}
```
where node weights are execution times and edge weights communication costs.
"""

import logging
import textwrap
from typing import TYPE_CHECKING, Hashable, Iterable

import networkx as nx
import pydot

from optsched.errors import InvalidGraphError
from optsched.taskgraph import TaskGraph, Weight

if TYPE_CHECKING:
    from optsched.schedulers.schedule import Schedule

logger = logging.getLogger(__name__)


def format_weight(value: Weight) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_triples(triples: Iterable[tuple[Hashable, int, Weight]]) -> str:
    """Render as `(task,processor,start);` per triple, eg `(a,0,0);(b,0,3);`"""
    return "".join(f"({task},{processor},{format_weight(start)});" for task, processor, start in triples)


def parse_dot(text: str) -> TaskGraph:
    """Build a task graph from the contents of a DOT file

    Raises `InvalidGraphError` if the text does not parse, describes an
    undirected graph, repeats an edge, or misses a weight.
    """
    try:
        graphs = pydot.graph_from_dot_data(text)
    except Exception as e:
        raise InvalidGraphError(f"unable to parse graph description: {e}") from e
    if not graphs:
        raise InvalidGraphError("no graph found in graph description")
    if len(graphs) > 1:
        logger.warning(f"graph description holds {len(graphs)} graphs, using the first one")
    dot = graphs[0]
    if dot.get_type() != "digraph":
        raise InvalidGraphError(f"task graph must be a digraph, got {dot.get_type()}")

    # checked on the pydot edges, a strict graph would merge repeats on conversion
    seen = set()
    for edge in dot.get_edge_list():
        u, v = str(edge.get_source()).strip('"'), str(edge.get_destination()).strip('"')
        if (u, v) in seen:
            raise InvalidGraphError(f"edge {u!r} -> {v!r} is declared more than once")
        seen.add((u, v))

    multi = nx.nx_pydot.from_pydot(dot)

    g = nx.DiGraph()
    for name, attrs in multi.nodes(data=True):
        # pydot turns a trailing newline into a node named "\n"
        if not str(name).strip() or str(name) == "\\n":
            continue
        g.add_node(name, **attrs)
    g.add_edges_from(multi.edges(data=True))
    return TaskGraph(g)


def read_dot(path: str) -> TaskGraph:
    with open(path, encoding="utf-8") as f:
        text = f.read()
    logger.debug(f"read {len(text)} characters from {path}")
    return parse_dot(text)


def _quote(s: str) -> str:
    res = ['"']
    for c in s:
        if c == "\\":
            res.append("\\\\")
        elif c == '"':
            res.append('\\"')
        else:
            res.append(c)
    res.append('"')
    return "".join(res)


def to_dot(schedule: "Schedule", name: str = "schedule") -> str:
    """The scheduled graph as DOT, with `Start` and `Processor` on every task"""
    graph = schedule.graph
    out = []
    for task, processor, start in schedule:
        weight = graph.weights[graph.id(task)]
        out.append(
            f"{_quote(str(task))} [Weight={format_weight(weight)}, Start={format_weight(start)}, Processor={processor}];"
        )
    for u, v, comm in graph.edges():
        out.append(f"{_quote(str(graph.name(u)))} -> {_quote(str(graph.name(v)))} [Weight={format_weight(comm)}];")
    return f"digraph {_quote(name)} {{\n" + textwrap.indent("\n".join(out), "  ") + "\n}\n"


def write_dot(schedule: "Schedule", path: str, name: str = "schedule") -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(to_dot(schedule, name))
