import pytest

from optsched.__main__ import main


def test_main(tmp_path, capsys, g1_dot):
    path = tmp_path / "g1.dot"
    path.write_text(g1_dot)
    output = tmp_path / "out.dot"
    main(str(path), processors=2, output=str(output))
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith("(a,0,0);")
    assert lines[0].count(";") == 4
    # c follows a on 0, b runs on 1 after a transfer of 1, d joins b on 1
    assert lines[1] == "makespan: 8"
    assert "Processor=" in output.read_text()


def test_main_single_processor(tmp_path, capsys, g1_dot):
    path = tmp_path / "g1.dot"
    path.write_text(g1_dot)
    main(str(path), processors=1)
    assert capsys.readouterr().out.splitlines()[1] == "makespan: 10"


def test_main_invalid_graph(tmp_path):
    path = tmp_path / "cycle.dot"
    path.write_text("digraph { a [Weight=1]; b [Weight=1]; a -> b [Weight=1]; b -> a [Weight=1]; }")
    with pytest.raises(SystemExit) as e:
        main(str(path), processors=2)
    assert e.value.code == 1


def test_main_invalid_processors(tmp_path, g1_dot):
    path = tmp_path / "g1.dot"
    path.write_text(g1_dot)
    with pytest.raises(SystemExit):
        main(str(path), processors=0)
