import pytest

from optsched.errors import InvalidGraphError
from optsched.io import format_triples, format_weight, parse_dot, read_dot, to_dot, write_dot
from optsched.schedulers.schedule import Schedule


def test_format_weight():
    assert format_weight(3) == "3"
    assert format_weight(3.0) == "3"
    assert format_weight(2.5) == "2.5"


def test_format_triples():
    assert format_triples([]) == ""
    assert format_triples([("t1", 0, 0)]) == "(t1,0,0);"
    assert format_triples([("a", 0, 0), ("b", 1, 7.0)]) == "(a,0,0);(b,1,7);"


def test_parse_dot(g1_dot):
    g = parse_dot(g1_dot)
    assert g.names == ["a", "b", "c", "d"]
    assert g.weights == [2, 3, 3, 2]
    assert g.comm_cost(g.id("a"), g.id("c")) == 2
    assert g.predecessors[g.id("d")] == (g.id("b"), g.id("c"))


def test_parse_quoted_dot():
    g = parse_dot('digraph { "a" [Weight="2.5"]; "b" [Weight="1"]; "a" -> "b" [Weight="3"]; }')
    assert g.names == ["a", "b"]
    assert g.weights == [2.5, 1]
    assert g.comm_cost(0, 1) == 3


def test_read_dot(tmp_path, g1_dot):
    path = tmp_path / "in.dot"
    path.write_text(g1_dot)
    g = read_dot(str(path))
    assert len(g) == 4


@pytest.mark.parametrize(
    "text",
    [
        "graph { a [Weight=1]; b [Weight=1]; a -- b [Weight=1]; }",
        "digraph { a [Weight=1]; b [Weight=1]; a -> b [Weight=1]; a -> b [Weight=2]; }",
        "strict digraph { a [Weight=2]; b [Weight=3]; a -> b [Weight=1]; a -> b [Weight=9]; }",
        'digraph { a [Weight=2]; b [Weight=3]; a -> b [Weight=1]; "a" -> "b" [Weight=9]; }',
        "digraph { a [Weight=1]; a -> b [Weight=1]; }",
        "digraph { a; }",
    ],
)
def test_invalid_dot(text):
    with pytest.raises(InvalidGraphError):
        parse_dot(text)


def test_write_dot(tmp_path, chain):
    schedule = Schedule(chain, 1, [("a", 0, 0), ("b", 0, 3)])
    text = to_dot(schedule, "out")
    assert text.startswith('digraph "out" {')
    assert '"a" [Weight=3, Start=0, Processor=0];' in text
    assert '"b" [Weight=2, Start=3, Processor=0];' in text
    assert '"a" -> "b" [Weight=4];' in text

    path = tmp_path / "out.dot"
    write_dot(schedule, str(path))
    # the output is itself a valid task graph
    g = read_dot(str(path))
    assert g.names == ["a", "b"]
    assert g.weights == [3, 2]
