from typing import Hashable, Iterator

from optsched.io import format_triples, format_weight
from optsched.taskgraph import TaskGraph, Weight


class Schedule:
    """Complete assignment of every task to a processor and a start time

    Params
    ------
    graph: TaskGraph, the scheduled graph
    processors: int, number of processors available
    entries: list of (task name, processor, start time), in commit order
    """

    def __init__(self, graph: TaskGraph, processors: int, entries: list[tuple[Hashable, int, Weight]]):
        self.graph = graph
        self.processors = processors
        self.entries = list(entries)
        self._by_task = {task: (processor, start) for task, processor, start in self.entries}

    def __repr__(self) -> str:
        str = "============= Schedule =============\n"
        for processor, tasks in self.task_allocation.items():
            finish = max((self.finish_time(t) for t in tasks), default=0)
            str += f"Processor {processor} completes at {format_weight(finish)} ({format_weight(self.idle_time(processor))} idle):\n"
            str += " → ".join(f"{t} ({format_weight(self.start_time(t))})" for t in tasks) + "\n"
        str += f"Makespan: {format_weight(self.makespan)}\n"
        str += "====================================\n"
        return str

    def __iter__(self) -> Iterator[tuple[Hashable, int, Weight]]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def processor(self, task: Hashable) -> int:
        if task not in self._by_task:
            raise RuntimeError(f"Task {task} not in schedule")
        return self._by_task[task][0]

    def start_time(self, task: Hashable) -> Weight:
        if task not in self._by_task:
            raise RuntimeError(f"Task {task} not in schedule")
        return self._by_task[task][1]

    def finish_time(self, task: Hashable) -> Weight:
        return self.start_time(task) + self.graph.weights[self.graph.id(task)]

    @property
    def makespan(self) -> Weight:
        return max((self.finish_time(task) for task, _, _ in self.entries), default=0)

    @property
    def task_allocation(self) -> dict[int, list[Hashable]]:
        """Task names per processor, ordered by start time"""
        allocation: dict[int, list[Hashable]] = {p: [] for p in range(self.processors)}
        for task, processor, _ in sorted(self.entries, key=lambda e: (e[1], e[2], self.finish_time(e[0]))):
            allocation[processor].append(task)
        return allocation

    def idle_time(self, processor: int) -> Weight:
        tasks = self.task_allocation[processor]
        if not tasks:
            return 0
        end = max(self.finish_time(t) for t in tasks)
        return end - sum(self.graph.weights[self.graph.id(t)] for t in tasks)

    def info(self) -> str:
        return format_triples(self.entries)

    def validate(self) -> None:
        """Raises `ValueError` if the schedule is not feasible for its graph"""
        names = [task for task, _, _ in self.entries]
        if len(set(names)) != len(names):
            raise ValueError("task scheduled more than once")
        missing = set(self.graph.names) - set(names)
        if missing:
            raise ValueError(f"tasks not scheduled: {sorted(map(str, missing))}")
        for task, processor, start in self.entries:
            if not 0 <= processor < self.processors:
                raise ValueError(f"task {task!r} on unknown processor {processor}")
            if start < 0:
                raise ValueError(f"task {task!r} starts at negative time {start}")

        for u, v, comm in self.graph.edges():
            source, target = self.graph.name(u), self.graph.name(v)
            ready = self.finish_time(source)
            if self.processor(source) != self.processor(target):
                ready += comm
            if self.start_time(target) < ready:
                raise ValueError(
                    f"task {target!r} starts at {self.start_time(target)} before its input from {source!r} is ready at {ready}"
                )

        for processor, tasks in self.task_allocation.items():
            for prev, curr in zip(tasks, tasks[1:]):
                if self.start_time(curr) < self.finish_time(prev):
                    raise ValueError(f"tasks {prev!r} and {curr!r} overlap on processor {processor}")
