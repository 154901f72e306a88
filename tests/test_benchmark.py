import random

import pytest

from benchmark import aggregate, param_clue_count, param_depth, param_size, run_sweep


def test_aggregate_empty_group():
    assert aggregate([]) == (0.0, 0.0)


def test_aggregate_ratio_and_mean():
    ratio, mean = aggregate([(True, 1.0), (False, 3.0), (True, 2.0), (True, 2.0)])
    assert ratio == pytest.approx(0.75)
    assert mean == pytest.approx(2.0)


def test_grouping_keys():
    grid = [[2, 0, 0], [0, 0, 4], [0, 3, 0]]
    assert param_size(grid, 2, 1) == 3
    assert param_depth(grid, 2, 1) == 2
    assert param_clue_count(grid, 2, 1) == 3


def test_sweep_groups_by_size_and_warms_up_once():
    seen = []

    def _solve(grid):
        seen.append(len(grid))
        return len(grid) == 4, 0.5

    opt, means = run_sweep(_solve, param_size, sizes=(4, 6), per_combo=2, max_merge_iter=1, rng=random.Random(0))
    # one warm-up on a 1x1 grid, then sizes 4 and 6 over depths, merges and repeats
    assert seen[0] == 1
    assert seen.count(4) == 2 * 2 * 2
    assert seen.count(6) == 3 * 2 * 2
    assert opt == {4: 1.0, 6: 0.0}
    assert means == {4: 0.5, 6: 0.5}


def test_heuristic_adapter_reports_optimality():
    from benchmark import heuristic_solve_fn

    solve = heuristic_solve_fn(random.Random(0), k_max=1000, init_t=10.0, lam=0.99)
    ok, elapsed = solve([[2, 0], [0, 2]])
    assert ok
    assert elapsed >= 0
