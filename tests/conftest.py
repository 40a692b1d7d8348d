import pytest

from optsched.taskgraph import TaskGraph


@pytest.fixture(scope="function")
def chain():
    """a -> b, weights 3 and 2, communication cost 4"""
    return TaskGraph.from_dict({"a": 3, "b": 2}, {("a", "b"): 4})


@pytest.fixture(scope="function")
def pair():
    """Independent tasks a and b, weights 3 and 4"""
    return TaskGraph.from_dict({"a": 3, "b": 4})


@pytest.fixture(scope="function")
def cyclic():
    return TaskGraph.from_dict(
        {"a": 1, "b": 1, "c": 1},
        {("a", "b"): 1, ("b", "c"): 1, ("c", "b"): 1},
    )


@pytest.fixture(scope="function")
def g1_dot():
    return """digraph "g1" {
    a [Weight=2];
    b [Weight=3];
    a -> b [Weight=1];
    c [Weight=3];
    a -> c [Weight=2];
    d [Weight=2];
    b -> d [Weight=2];
    c -> d [Weight=1];
}
"""
