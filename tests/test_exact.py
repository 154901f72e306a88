import pytest

from models import FEASIBLE, INFEASIBLE, UNKNOWN, BackendError
from solver.backends import BackendOutcome, ExactBackend, get_backend
from solver.candidates import build_candidate_sets, partition_errors
from solver.exact import ip_solve, solve_exact
from solver.exact_cover import build_model


class _ScriptedBackend(ExactBackend):
    name = "scripted"

    def __init__(self, outcome=None, error=None):
        self.outcome = outcome
        self.error = error
        self.calls = 0

    def solve(self, model, *, time_limit=None):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.outcome


def _model(grid):
    return build_model(grid, build_candidate_sets(grid))


def test_model_has_one_row_per_clue_and_per_cell():
    model = _model([[2, 0], [0, 2]])
    assert model.num_variables == 4
    rows = model.rows()
    assert len(rows) == 2 + 4
    assert rows[0] == [0, 1]
    assert rows[1] == [2, 3]
    assert model.cell_rows[(0, 0)] == [0, 1]
    assert not model.has_empty_row()


def test_uncoverable_cell_gives_an_empty_row():
    model = _model([[1, 0], [0, 1]])
    assert model.has_empty_row()


def test_empty_row_is_infeasible_without_calling_the_backend():
    backend = _ScriptedBackend(BackendOutcome(FEASIBLE))
    res = ip_solve([[3, 0], [0, 0]], backend)
    assert not res.solved
    assert res.status == INFEASIBLE
    assert res.rects is None
    assert backend.calls == 0


def test_chosen_variables_become_rectangles_in_clue_order():
    model = _model([[2, 0], [0, 2]])
    res = solve_exact(model, _ScriptedBackend(BackendOutcome(FEASIBLE, [2, 0])))
    assert res.solved
    assert [r.as_tuple() for r in res.rects] == [(0, 0, 0, 1), (1, 0, 1, 1)]
    assert res.elapsed >= 0


def test_unknown_status_is_not_a_failure():
    model = _model([[2, 0], [0, 2]])
    res = solve_exact(model, _ScriptedBackend(BackendOutcome(UNKNOWN)))
    assert not res.solved
    assert res.status == UNKNOWN


def test_backend_error_propagates():
    model = _model([[2, 0], [0, 2]])
    with pytest.raises(BackendError):
        solve_exact(model, _ScriptedBackend(error=BackendError("solver crashed")))


def test_two_candidates_for_one_clue_is_a_backend_error():
    model = _model([[2, 0], [0, 2]])
    with pytest.raises(BackendError):
        solve_exact(model, _ScriptedBackend(BackendOutcome(FEASIBLE, [0, 1, 2])))


def test_unknown_method_is_rejected():
    with pytest.raises(ValueError):
        get_backend("simplex")


@pytest.mark.parametrize("method", ["cp_sat", "mip"])
def test_backends_solve_a_small_puzzle(method):
    pytest.importorskip("ortools")
    grid = [[0, 3, 0], [0, 0, 0], [2, 0, 4]]
    res = ip_solve(grid, get_backend(method), time_limit=10)
    assert res.solved
    assert res.status == FEASIBLE
    assert partition_errors(grid, res.rects) == []


@pytest.mark.parametrize("method", ["cp_sat", "mip"])
def test_backends_prove_infeasibility(method):
    pytest.importorskip("ortools")
    # three rectangles of area two cannot tile four cells
    res = ip_solve([[2, 2], [2, 0]], get_backend(method), time_limit=10)
    assert not res.solved
    assert res.status == INFEASIBLE


def test_isolated_solve_returns_the_child_result():
    pytest.importorskip("ortools")
    from solver.cp_isolate import run_exact_isolated

    grid = [[2, 0], [0, 2]]
    res = run_exact_isolated(grid, "cp_sat", 10)
    assert res.solved
    assert partition_errors(grid, res.rects) == []


def test_chosen_rectangles_are_the_candidates_themselves():
    grid = [[0, 3, 0], [0, 0, 0], [2, 0, 4]]
    model = _model(grid)
    chosen = [model.index[(k, 0)] for k in range(len(model.clue_rows))]
    res = solve_exact(model, _ScriptedBackend(BackendOutcome(FEASIBLE, chosen)))
    assert res.rects == [model.candidate_sets[k][0] for k in range(len(model.clue_rows))]
