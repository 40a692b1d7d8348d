import bisect
import itertools
import logging
from typing import Iterator

import networkx as nx

from optsched.errors import InvalidConfigurationError, InvalidGraphError
from optsched.taskgraph import TaskGraph, Weight

from .schedule import Schedule

logger = logging.getLogger(__name__)


def canonical_mappings(ntasks: int, processors: int) -> Iterator[tuple[int, ...]]:
    """Task -> processor mappings up to renaming of processors, ie, each task
    goes to a processor already used by an earlier task or to the next unused one"""

    def extend(prefix: tuple[int, ...], used: int) -> Iterator[tuple[int, ...]]:
        if len(prefix) == ntasks:
            yield prefix
            return
        for processor in range(min(used + 1, processors)):
            yield from extend(prefix + (processor,), max(used, processor + 1))

    yield from extend((), 0)


class Timeline:
    """Occupied (start, finish) intervals of one processor, sorted by start"""

    def __init__(self):
        self.intervals: list[tuple[Weight, Weight]] = []

    def end(self) -> Weight:
        return max((finish for _, finish in self.intervals), default=0)

    def earliest_start(self, ready: Weight, duration: Weight, insertion: bool) -> Weight:
        if not insertion:
            return max(ready, self.end())
        start = ready
        for s, f in self.intervals:
            if start + duration <= s:
                break
            start = max(start, f)
        return start

    def add(self, start: Weight, finish: Weight) -> None:
        bisect.insort(self.intervals, (start, finish))


class BruteForceScheduler:
    """Exhaustive reference scheduler for small graphs

    Tries every topological order with every canonical processor mapping and
    places each task at its earliest start. With `insertion` a task may fill
    an idle gap left earlier on its processor, otherwise it is appended.
    """

    def __init__(self, insertion: bool = True):
        self.insertion = insertion

    def _place(self, graph: TaskGraph, processors: int, order: list[int], mapping: tuple[int, ...]) -> list[tuple[int, int, Weight]]:
        timelines = [Timeline() for _ in range(processors)]
        placed: dict[int, tuple[int, Weight]] = {}
        entries = []
        for position, task in enumerate(order):
            processor = mapping[position]
            ready: Weight = 0
            for pred in graph.predecessors[task]:
                pred_processor, pred_start = placed[pred]
                finish = pred_start + graph.weights[pred]
                if pred_processor != processor:
                    finish += graph.comm_cost(pred, task)
                ready = max(ready, finish)
            start = timelines[processor].earliest_start(ready, graph.weights[task], self.insertion)
            timelines[processor].add(start, start + graph.weights[task])
            placed[task] = (processor, start)
            entries.append((task, processor, start))
        return entries

    def schedule(self, graph: TaskGraph, processors: int) -> Schedule:
        """Returns a minimum makespan schedule, entries in placement order"""
        if processors <= 0:
            raise InvalidConfigurationError(f"processor count must be positive, got {processors}")
        if len(graph) == 0:
            raise InvalidGraphError("task graph is empty")
        if not nx.is_directed_acyclic_graph(graph.graph):
            raise InvalidGraphError("task graph contains a cycle")

        best_makespan: Weight | None = None
        best_entries = None
        tried = 0
        for names in nx.all_topological_sorts(graph.graph):
            order = [graph.id(name) for name in names]
            for mapping in canonical_mappings(len(order), processors):
                entries = self._place(graph, processors, order, mapping)
                makespan = max(start + graph.weights[task] for task, _, start in entries)
                tried += 1
                if best_makespan is None or makespan < best_makespan:
                    best_makespan = makespan
                    best_entries = entries

        logger.debug(f"brute force tried {tried} schedules, best makespan {best_makespan}")
        if best_entries is None:
            raise RuntimeError("Brute force scheduler failed to find a schedule")
        return Schedule(graph, processors, [(graph.name(t), p, s) for t, p, s in best_entries])
