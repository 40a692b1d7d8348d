from optsched.errors import InvalidConfigurationError, InvalidGraphError, PreconditionError, SchedulingError
from optsched.taskgraph import TaskGraph
from optsched.version import __version__

__all__ = [
    "TaskGraph",
    "SchedulingError",
    "InvalidGraphError",
    "InvalidConfigurationError",
    "PreconditionError",
    "__version__",
]
