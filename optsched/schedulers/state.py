"""
Partial schedules, ie, states of the branch-and-bound search tree.

A partial schedule is an immutable snapshot of some prefix of scheduling
decisions. Extending it by one (task, processor) commitment yields a new
snapshot; the per-task states live in persistent vectors, so parent and child
share all slots the transition did not touch.
"""

import logging
from dataclasses import dataclass, replace
from typing import Hashable

from pyrsistent import PVector, pvector

from optsched.errors import InvalidConfigurationError, InvalidGraphError, PreconditionError
from optsched.io import format_triples
from optsched.taskgraph import TaskGraph, Weight

from .schedule import Schedule

logger = logging.getLogger(__name__)

SCHEDULED = -1

Triple = tuple[Hashable, int, Weight]


@dataclass(frozen=True)
class TaskState:
    remaining_predecessors: int  # SCHEDULED once the task itself is committed
    processor: int = 0
    start_time: Weight = 0

    @property
    def scheduled(self) -> bool:
        return self.remaining_predecessors == SCHEDULED

    @property
    def available(self) -> bool:
        return self.remaining_predecessors == 0


def _check_drains(graph: TaskGraph) -> None:
    """Raises `InvalidGraphError` if some task never becomes available"""
    remaining = [graph.in_degree(task) for task in graph]
    ready = [task for task in graph if remaining[task] == 0]
    drained = 0
    while ready:
        task = ready.pop()
        drained += 1
        for succ in graph.successors[task]:
            remaining[succ] -= 1
            if remaining[succ] == 0:
                ready.append(succ)
    if drained < len(graph):
        stuck = [graph.name(task) for task in graph if remaining[task] > 0]
        raise InvalidGraphError(f"task graph contains a cycle, tasks never available: {stuck}")


class PartialSchedule:
    graph: TaskGraph
    processors: int
    path: PVector  # of task ids, in commit order
    states: PVector  # of TaskState, indexed by task id
    ready: PVector  # finish time of the last task per processor
    occupancy: PVector  # number of tasks per processor
    unscheduled_weight: Weight
    cost: Weight  # makespan of the scheduled tasks
    path_bound: Weight
    lower_bound: Weight

    def __init__(
        self,
        graph: TaskGraph,
        processors: int,
        path: PVector,
        states: PVector,
        ready: PVector,
        occupancy: PVector,
        unscheduled_weight: Weight,
        cost: Weight,
        path_bound: Weight,
    ):
        self.graph = graph
        self.processors = processors
        self.path = path
        self.states = states
        self.ready = ready
        self.occupancy = occupancy
        self.unscheduled_weight = unscheduled_weight
        self.cost = cost
        self.path_bound = path_bound
        load_bound = (sum(ready) + unscheduled_weight) / processors
        self.lower_bound = max(cost, path_bound, load_bound)

    @classmethod
    def root(cls, graph: TaskGraph, processors: int = 1) -> "PartialSchedule":
        """Nothing scheduled yet, every task waits for all its predecessors.

        Raises `InvalidGraphError` for an empty or cyclic graph and
        `InvalidConfigurationError` for a non-positive processor count.
        """
        if processors <= 0:
            raise InvalidConfigurationError(f"processor count must be positive, got {processors}")
        if len(graph) == 0:
            raise InvalidGraphError("task graph is empty")
        _check_drains(graph)
        logger.debug(f"root schedule of {len(graph)} tasks on {processors} processors")
        return cls(
            graph=graph,
            processors=processors,
            path=pvector(),
            states=pvector(TaskState(graph.in_degree(task)) for task in graph),
            ready=pvector([0] * processors),
            occupancy=pvector([0] * processors),
            unscheduled_weight=graph.total_weight,
            cost=0,
            path_bound=graph.critical_path_length,
        )

    @classmethod
    def child(cls, parent: "PartialSchedule", task: int, processor: int) -> "PartialSchedule":
        """Commit `task` to `processor` after everything already on that processor.

        Raises `PreconditionError` unless the task is available in `parent` and
        the processor index is within range.
        """
        graph = parent.graph
        if not 0 <= task < len(graph):
            raise PreconditionError(f"unknown task id {task}")
        if not 0 <= processor < parent.processors:
            raise PreconditionError(
                f"processor {processor} out of range [0, {parent.processors})", task=graph.name(task)
            )
        state = parent.states[task]
        if not state.available:
            raise PreconditionError(
                f"task {graph.name(task)!r} is not available: expected 0 remaining predecessors, found {state.remaining_predecessors}",
                task=graph.name(task),
                expected=0,
                actual=state.remaining_predecessors,
            )

        start = parent.earliest_start(task, processor)
        finish = start + graph.weights[task]

        states = parent.states.evolver()
        states[task] = TaskState(SCHEDULED, processor, start)
        for succ in graph.successors[task]:
            succ_state = states[succ]
            states[succ] = replace(succ_state, remaining_predecessors=succ_state.remaining_predecessors - 1)

        return cls(
            graph=graph,
            processors=parent.processors,
            path=parent.path.append(task),
            states=states.persistent(),
            ready=parent.ready.set(processor, finish),
            occupancy=parent.occupancy.set(processor, parent.occupancy[processor] + 1),
            unscheduled_weight=parent.unscheduled_weight - graph.weights[task],
            cost=max(parent.cost, finish),
            path_bound=max(parent.path_bound, start + graph.bottom_levels[task]),
        )

    def extend(self, task: int, processor: int) -> "PartialSchedule":
        return PartialSchedule.child(self, task, processor)

    def earliest_start(self, task: int, processor: int) -> Weight:
        """Earliest start of `task` on `processor`, given its scheduled predecessors.

        Tasks are appended after the last task of the processor, never into an idle
        gap before it. Predecessors on other processors add the communication cost.
        """
        start = self.ready[processor]
        for pred in self.graph.predecessors[task]:
            pred_state = self.states[pred]
            if not pred_state.scheduled:
                continue
            finish = pred_state.start_time + self.graph.weights[pred]
            if pred_state.processor != processor:
                finish += self.graph.comm_cost(pred, task)
            start = max(start, finish)
        return start

    def available_tasks(self) -> list[int]:
        """Tasks whose direct predecessors are all scheduled, in graph task order"""
        return [task for task, state in enumerate(self.states) if state.available]

    def candidate_processors(self, symmetry: bool = True) -> list[int]:
        """Processors worth branching on.

        Empty processors are interchangeable, so with `symmetry` only the
        lowest-indexed one is offered, after every processor already in use.
        """
        if not symmetry:
            return list(range(self.processors))
        used = [p for p, count in enumerate(self.occupancy) if count > 0]
        empty = next((p for p, count in enumerate(self.occupancy) if count == 0), None)
        return used if empty is None else used + [empty]

    @property
    def depth(self) -> int:
        return len(self.path)

    @property
    def is_complete(self) -> bool:
        return len(self.path) == len(self.graph)

    @property
    def makespan(self) -> Weight:
        return self.cost

    def key(self) -> tuple[tuple[int, int, Weight], ...]:
        """Content key, equal for states reached by different decision orders"""
        return tuple(
            (task, state.processor, state.start_time) for task, state in enumerate(self.states) if state.scheduled
        )

    def assignments(self) -> list[Triple]:
        """(task name, processor, start time) per scheduled task, in commit order"""
        rv = []
        for task in self.path:
            state = self.states[task]
            rv.append((self.graph.name(task), state.processor, state.start_time))
        return rv

    def info(self) -> str:
        return format_triples(self.assignments())

    def to_schedule(self) -> Schedule:
        if not self.is_complete:
            raise ValueError(f"only {self.depth} of {len(self.graph)} tasks are scheduled")
        return Schedule(self.graph, self.processors, self.assignments())

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} depth={self.depth}/{len(self.graph)} cost={self.cost} bound={self.lower_bound}>"
