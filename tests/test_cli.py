import os

from cli import main


def test_generate_then_batch(tmp_path, capsys):
    data = str(tmp_path / "data")
    res = str(tmp_path / "res")
    assert main(["--seed", "3", "generate", "--data-dir", data, "--sizes", "4", "--per-combo", "1"]) == 0
    names = sorted(os.listdir(data))
    assert names and all(n.startswith("instance_h4_w4_") for n in names)

    assert main(["--seed", "3", "batch", "--data-dir", data, "--res-dir", res, "--methods", "heuristic"]) == 0
    assert sorted(os.listdir(os.path.join(res, "heuristic"))) == names
    assert "errors=0" in capsys.readouterr().out


def test_solve_prints_a_solution_block(tmp_path, capsys):
    path = tmp_path / "g.txt"
    path.write_text("2,0\n0,2\n")
    assert main(["--seed", "1", "solve", str(path), "--method", "heuristic"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("method = heuristic\n")
    assert "isOptimal = true" in out
    assert "sol = [" in out


def test_solve_reports_bad_grids(tmp_path, capsys):
    path = tmp_path / "g.txt"
    path.write_text("0,0\n")
    assert main(["solve", str(path), "--method", "heuristic"]) == 2
    assert "no clue" in capsys.readouterr().err
