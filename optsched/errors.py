"""
Error taxonomy. Malformed input raises `InvalidGraphError` or
`InvalidConfigurationError` before any search starts; `PreconditionError`
signals misuse of the schedule transition function and is a bug when raised
from within the search.
"""


class SchedulingError(Exception):
    pass


class InvalidGraphError(SchedulingError, ValueError):
    """Task graph is empty, cyclic, or misses a required weight"""


class InvalidConfigurationError(SchedulingError, ValueError):
    """Processor count, worker count or another search option is out of range"""


class PreconditionError(SchedulingError, RuntimeError):
    """Attempt to schedule a task which is not currently available"""

    def __init__(self, message: str, task: str | None = None, expected: int | None = None, actual: int | None = None):
        super().__init__(message)
        self.task = task
        self.expected = expected
        self.actual = actual
