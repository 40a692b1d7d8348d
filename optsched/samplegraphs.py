import numpy as np

from optsched.taskgraph import TaskGraph


def single(weight: int = 5) -> TaskGraph:
    """One task `t1`"""
    return TaskGraph.from_dict({"t1": weight})


def linear(ntasks: int = 5, weight: int = 2, comm: int = 1) -> TaskGraph:
    """Linear graph

    task-0 -> task-1 -> ... -> task-{ntasks-1}
    """
    tasks = {f"task-{i}": weight for i in range(ntasks)}
    edges = {(f"task-{i}", f"task-{i+1}"): comm for i in range(ntasks - 1)}
    return TaskGraph.from_dict(tasks, edges)


def independent(weights: list[int]) -> TaskGraph:
    """Tasks task-{i} with the given weights and no edges"""
    return TaskGraph.from_dict({f"task-{i}": w for i, w in enumerate(weights)})


def fork_join(nbranches: int = 3, weight: int = 2, comm: int = 1) -> TaskGraph:
    """Fork-join graph

    source -> branch-{i} -> sink for i in range(nbranches)
    """
    tasks = {"source": 1}
    tasks.update({f"branch-{i}": weight for i in range(nbranches)})
    tasks["sink"] = 1
    edges = {}
    for i in range(nbranches):
        edges["source", f"branch-{i}"] = comm
        edges[f"branch-{i}", "sink"] = comm
    return TaskGraph.from_dict(tasks, edges)


def diamond() -> TaskGraph:
    """a -> (b, c) -> d, where b and c gain from running in parallel only if the
    communication is cheap enough"""
    return TaskGraph.from_dict(
        {"a": 2, "b": 3, "c": 3, "d": 2},
        {("a", "b"): 1, ("a", "c"): 2, ("b", "d"): 1, ("c", "d"): 2},
    )


def random_dag(
    ntasks: int,
    density: float = 0.3,
    max_weight: int = 10,
    max_comm: int = 10,
    seed: int | None = None,
) -> TaskGraph:
    """Random DAG with edges only from lower to higher task index

    Params
    ------
    ntasks: int, number of tasks, named task-{i}
    density: float, probability of an edge between any ordered pair
    max_weight: int, task weights are drawn from [1, max_weight]
    max_comm: int, edge weights are drawn from [0, max_comm]
    seed: int, for reproducible graphs
    """
    rng = np.random.default_rng(seed)
    weights = rng.integers(1, max_weight, size=ntasks, endpoint=True)
    tasks = {f"task-{i}": int(w) for i, w in enumerate(weights)}
    edges = {}
    for i in range(ntasks):
        for j in range(i + 1, ntasks):
            if rng.random() < density:
                edges[f"task-{i}", f"task-{j}"] = int(rng.integers(0, max_comm, endpoint=True))
    return TaskGraph.from_dict(tasks, edges)
