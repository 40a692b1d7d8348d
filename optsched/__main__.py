"""
Entrypoint for computing an optimal schedule of a task graph

Example:
```
python -m optsched examples/g1.dot 2 --workers 4 --strategy bestfirst --output g1-out.dot
```

Prints the `(task,processor,start);` triples in commit order and the makespan.
"""

import copy
import logging
import logging.config

import fire

from optsched.config import logging_config
from optsched.errors import SchedulingError
from optsched.io import format_weight, read_dot, write_dot
from optsched.schedulers.search import search

logger = logging.getLogger("optsched.main")


def main(
    graph: str,
    processors: int = 1,
    workers: int = 1,
    strategy: str = "depthfirst",
    timeout: float | None = None,
    output: str | None = None,
    verbose: bool = False,
) -> None:
    config = copy.deepcopy(logging_config)
    if verbose:
        config["loggers"]["optsched"]["level"] = "DEBUG"
    logging.config.dictConfig(config)
    try:
        task_graph = read_dot(graph)
        result = search(task_graph, processors, workers=workers, strategy=strategy, timeout=timeout)
    except SchedulingError as e:
        logger.error(f"unable to schedule {graph}: {e}")
        raise SystemExit(1)
    if not result.optimal:
        logger.warning("search budget exhausted, schedule may not be optimal")
    print(result.info())
    print(f"makespan: {format_weight(result.makespan)}")
    if output is not None:
        write_dot(result.to_schedule(), output)
        logger.info(f"schedule written to {output}")


def cli() -> None:
    fire.Fire(main)


if __name__ == "__main__":
    cli()
