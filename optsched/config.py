from typing import Literal

from pydantic import BaseModel, Field

# NOTE only the command line driver applies this, library code merely creates loggers
logging_config = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s %(levelname)s %(name)s %(threadName)s %(message)s",
        },
    },
    "handlers": {
        "default": {
            "class": "logging.StreamHandler",
            "formatter": "default",
            "stream": "ext://sys.stderr",
        },
    },
    "loggers": {
        "optsched": {
            "level": "INFO",
            "handlers": ["default"],
            "propagate": False,
        },
    },
}


class SearchConfig(BaseModel):
    processors: int = Field(1, description="number of identical processors to schedule onto")
    strategy: Literal["depthfirst", "bestfirst"] = Field(
        "depthfirst",
        description="frontier order: depth first keeps memory at depth x branching, best first pops the lowest bound",
    )
    workers: int = Field(1, description="threads expanding the shared frontier")
    timeout: float | None = Field(
        None,
        description="wall clock budget in seconds, after which the best schedule so far is reported as non-optimal",
    )
    memoize: bool = Field(True, description="skip states already visited via another decision order")
    symmetry: bool = Field(True, description="consider only the lowest-indexed empty processor")
    early_exit: bool = Field(True, description="stop once a schedule meets the whole-problem lower bound")
    incumbent: bool = Field(True, description="seed the bound with a list schedule before searching")
