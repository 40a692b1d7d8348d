"""
Schedulers determine the task -> (processor, start time) assignment.

 - state: partial schedules, ie, the search states and their transition function
 - search: branch-and-bound over partial schedules, the optimal scheduler
 - bruteforce: exhaustive reference scheduler for small graphs
 - schedule: complete schedules as reported to the user
"""

from .bruteforce import BruteForceScheduler
from .schedule import Schedule
from .search import SearchResult, SearchTree, list_schedule, search
from .state import PartialSchedule, TaskState

__all__ = [
    "BruteForceScheduler",
    "PartialSchedule",
    "Schedule",
    "SearchResult",
    "SearchTree",
    "TaskState",
    "list_schedule",
    "search",
]
