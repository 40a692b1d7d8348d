"""
Branch-and-bound search over partial schedules.

Every frontier node is expanded into one child per (available task, candidate
processor) pair. Complete children compete for the incumbent, ie, the best
schedule found so far; incomplete ones are kept only if their lower bound is
below the incumbent's makespan and their content was not visited before.
Workers share the frontier, the incumbent and the visited set under a single
condition variable.
"""

import itertools
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from typing import Any

import randomname
from pydantic import ValidationError
from sortedcontainers import SortedList

from optsched.config import SearchConfig
from optsched.errors import InvalidConfigurationError
from optsched.io import format_weight
from optsched.taskgraph import TaskGraph, Weight

from .schedule import Schedule
from .state import PartialSchedule

logger = logging.getLogger(__name__)


@dataclass
class SearchStats:
    expanded: int = 0
    generated: int = 0
    pruned: int = 0
    duplicates: int = 0
    complete: int = 0
    improvements: int = 0


@dataclass
class SearchResult:
    schedule: PartialSchedule
    optimal: bool
    stats: SearchStats
    elapsed: float
    lower_bound: Weight
    name: str = field(default_factory=randomname.get_name)

    @property
    def makespan(self) -> Weight:
        return self.schedule.cost

    def info(self) -> str:
        return self.schedule.info()

    def to_schedule(self) -> Schedule:
        return self.schedule.to_schedule()

    def __repr__(self) -> str:
        schedule = self.to_schedule()
        str = f"============= Search Report: {self.name} =============\n"
        str += f"Makespan: {format_weight(self.makespan)} ({'optimal' if self.optimal else 'possibly non-optimal'})\n"
        str += f"Lower bound: {format_weight(self.lower_bound)}\n"
        str += f"Elapsed: {self.elapsed:.3f}s, expanded {self.stats.expanded}, generated {self.stats.generated}, "
        str += f"pruned {self.stats.pruned}, duplicates {self.stats.duplicates}\n"
        for processor, tasks in schedule.task_allocation.items():
            finish = max((schedule.finish_time(t) for t in tasks), default=0)
            str += f"Processor {processor} completes at {format_weight(finish)} ({format_weight(schedule.idle_time(processor))} idle):\n"
            str += " → ".join(f"{t} (start: {format_weight(schedule.start_time(t))})" for t in tasks) + "\n"
        str += "================================================\n"
        return str


class DepthFirstFrontier:
    def __init__(self):
        self.stack: list[PartialSchedule] = []

    def __len__(self) -> int:
        return len(self.stack)

    def push_all(self, nodes: list[PartialSchedule]) -> None:
        # lowest bound on top, ties popped in generation order
        ordered = sorted(enumerate(nodes), key=lambda e: (e[1].lower_bound, e[0]), reverse=True)
        self.stack.extend(node for _, node in ordered)

    def pop(self) -> PartialSchedule:
        return self.stack.pop()


class BestFirstFrontier:
    def __init__(self):
        self.queue = SortedList()
        self.counter = itertools.count()

    def __len__(self) -> int:
        return len(self.queue)

    def push_all(self, nodes: list[PartialSchedule]) -> None:
        for node in nodes:
            # deeper nodes first on ties, reaching complete schedules sooner
            self.queue.add((node.lower_bound, -node.depth, next(self.counter), node))

    def pop(self) -> PartialSchedule:
        return self.queue.pop(0)[-1]


FRONTIERS = {
    "depthfirst": DepthFirstFrontier,
    "bestfirst": BestFirstFrontier,
}


def list_schedule(root: PartialSchedule, symmetry: bool = True) -> PartialSchedule:
    """Greedy complete schedule: highest bottom level first, onto the processor
    where it starts earliest. Used as the initial incumbent."""
    levels = root.graph.bottom_levels
    node = root
    while not node.is_complete:
        task = max(node.available_tasks(), key=lambda t: (levels[t], -t))
        processor = min(node.candidate_processors(symmetry), key=lambda p: (node.earliest_start(task, p), p))
        node = node.extend(task, processor)
    return node


class SearchTree:
    """Finds a minimum makespan schedule of `graph` on `config.processors` processors.

    Raises `InvalidConfigurationError` on out of range options, and the root
    construction raises `InvalidGraphError` on an empty or cyclic graph.
    """

    def __init__(self, graph: TaskGraph, config: SearchConfig | None = None):
        self.graph = graph
        self.config = config if config is not None else SearchConfig()
        if self.config.processors <= 0:
            raise InvalidConfigurationError(f"processor count must be positive, got {self.config.processors}")
        if self.config.workers <= 0:
            raise InvalidConfigurationError(f"worker count must be positive, got {self.config.workers}")
        if self.config.timeout is not None and self.config.timeout < 0:
            raise InvalidConfigurationError(f"timeout must not be negative, got {self.config.timeout}")
        self.root = PartialSchedule.root(graph, self.config.processors)

        self._cond = threading.Condition()
        self._cancelled = threading.Event()
        self._reset()

    def _reset(self) -> None:
        """Fresh per-run state. The cancel flag is kept, it is cleared when a run ends"""
        self._finished = False
        self._frontier: Any = None
        self._visited: set[tuple] = set()
        self._best: PartialSchedule | None = None
        self._busy = 0
        self._deadline: float | None = None
        self.stats = SearchStats()

    def cancel(self) -> None:
        """Stop the running search at the next expansion step, or the next one to
        start if none is running; the best schedule so far is reported"""
        logger.info("search cancelled")
        with self._cond:
            self._cancelled.set()
            self._cond.notify_all()

    @property
    def best(self) -> PartialSchedule | None:
        return self._best

    def _bound(self) -> float:
        return float("inf") if self._best is None else self._best.cost

    def _offer(self, node: PartialSchedule) -> None:
        """Candidate complete schedule, must be called with the lock held"""
        self.stats.complete += 1
        # re-read under the lock, another worker may have improved meanwhile
        if node.cost < self._bound():
            logger.debug(f"new incumbent with makespan {node.cost} after {self.stats.expanded} expansions")
            self._best = node
            self.stats.improvements += 1
            if self.config.early_exit and node.cost <= self.root.lower_bound:
                logger.debug(f"incumbent meets the lower bound {self.root.lower_bound}")
                self._finished = True
                self._cond.notify_all()

    def _expand(self, node: PartialSchedule) -> list[PartialSchedule]:
        children = []
        processors = node.candidate_processors(self.config.symmetry)
        for task in node.available_tasks():
            for processor in processors:
                children.append(node.extend(task, processor))
        return children

    def _admit(self, children: list[PartialSchedule]) -> list[PartialSchedule]:
        """Offers complete children, filters the rest. Lock must be held"""
        admitted = []
        self.stats.generated += len(children)
        for child in children:
            if child.is_complete:
                self._offer(child)
            elif child.lower_bound >= self._bound():
                self.stats.pruned += 1
            elif self.config.memoize:
                key = child.key()
                if key in self._visited:
                    self.stats.duplicates += 1
                else:
                    self._visited.add(key)
                    admitted.append(child)
            else:
                admitted.append(child)
        return admitted

    def _stopping(self) -> bool:
        if self._deadline is not None and time.monotonic() >= self._deadline and not self._cancelled.is_set():
            logger.info(f"search budget of {self.config.timeout}s exhausted")
            self._cancelled.set()
        return self._finished or self._cancelled.is_set()

    def _next(self) -> PartialSchedule | None:
        """Pops the next node worth expanding, or None once the search is over"""
        with self._cond:
            while True:
                if self._stopping():
                    self._cond.notify_all()
                    return None
                if len(self._frontier) == 0:
                    if self._busy == 0:
                        self._cond.notify_all()
                        return None
                    self._cond.wait(timeout=0.1)
                    continue
                node = self._frontier.pop()
                if node.lower_bound >= self._bound():
                    self.stats.pruned += 1
                    continue
                self._busy += 1
                return node

    def _work(self) -> None:
        try:
            while (node := self._next()) is not None:
                try:
                    children = self._expand(node)
                    with self._cond:
                        self.stats.expanded += 1
                        self._frontier.push_all(self._admit(children))
                finally:
                    with self._cond:
                        self._busy -= 1
                        self._cond.notify_all()
        except BaseException:
            with self._cond:
                self._cancelled.set()
                self._cond.notify_all()
            raise

    def search(self) -> SearchResult:
        """Runs the search from the root. Every call is a fresh run."""
        start = time.monotonic()
        with self._cond:
            self._reset()
            if self.config.timeout is not None:
                self._deadline = start + self.config.timeout
            self._frontier = FRONTIERS[self.config.strategy]()
        logger.info(
            f"searching {len(self.graph)} tasks on {self.config.processors} processors, "
            f"strategy {self.config.strategy}, {self.config.workers} workers, lower bound {self.root.lower_bound}"
        )

        try:
            with self._cond:
                if self.config.incumbent:
                    self._offer(list_schedule(self.root, self.config.symmetry))
                self._frontier.push_all([self.root])

            if self.config.workers == 1:
                self._work()
            else:
                with ThreadPoolExecutor(max_workers=self.config.workers, thread_name_prefix="optsched") as pool:
                    futures = [pool.submit(self._work) for _ in range(self.config.workers)]
                    for future in futures:
                        future.result()
            cancelled = self._cancelled.is_set()
        finally:
            self._cancelled.clear()

        if self._best is None:
            # cancelled before any complete schedule was reached
            self._best = list_schedule(self.root, self.config.symmetry)
        optimal = not cancelled or self._best.cost <= self.root.lower_bound
        elapsed = time.monotonic() - start
        logger.info(
            f"search finished in {elapsed:.3f}s with makespan {self._best.cost} "
            f"({'optimal' if optimal else 'possibly non-optimal'}), {self.stats.expanded} expansions"
        )
        logger.debug(f"{self.stats}")
        return SearchResult(
            schedule=self._best,
            optimal=optimal,
            stats=replace(self.stats),
            elapsed=elapsed,
            lower_bound=self.root.lower_bound,
        )


def search(graph: TaskGraph, processors: int, **options) -> SearchResult:
    """Minimum makespan schedule of `graph` on `processors` identical processors

    Params
    ------
    graph: TaskGraph, the tasks to schedule
    processors: int, number of processors
    options: further `SearchConfig` fields, eg `strategy`, `workers` or `timeout`

    Returns
    -------
    SearchResult, whose `optimal` flag is False only if the search was cut short
    """
    try:
        config = SearchConfig(processors=processors, **options)
    except ValidationError as e:
        raise InvalidConfigurationError(str(e)) from e
    return SearchTree(graph, config).search()
