import random
import time

import pytest

from generation import generate_instance
from models import FEASIBLE, INFEASIBLE, UNKNOWN, HeuristicResult, InfeasibleInstance, Rect
from solver.annealing import energy, heuristic_solve, random_neighbor
from solver.candidates import build_candidate_sets, partition_errors
from solver.escalation import escalate


def test_energy_counts_squared_coverage():
    grid = [[2, 0], [0, 2]]
    sets = build_candidate_sets(grid)
    assert energy(2, 2, [0, 0], sets) == 4
    # (0,1) covered twice, (1,0) uncovered
    assert energy(2, 2, [0, 1], sets) == 1 + 4 + 0 + 1


def test_neighbor_changes_at_most_one_clue():
    grid = [[0, 3, 0], [0, 0, 0], [2, 0, 4]]
    sets = build_candidate_sets(grid)
    rng = random.Random(1)
    state = [0, 0, 0]
    for _ in range(50):
        nxt = random_neighbor(state, sets, rng)
        assert sum(a != b for a, b in zip(state, nxt)) <= 1
        assert all(0 <= l < len(sets[k]) for k, l in enumerate(nxt))


def test_single_clue_filling_the_grid_needs_no_iteration():
    res = heuristic_solve([[4, 0], [0, 0]], 100, 10.0, 0.9, rng=random.Random(0))
    assert res.is_optimal
    assert res.iterations == 0
    assert res.rects == [Rect(0, 0, 1, 1)]


def test_clue_without_candidate_is_infeasible():
    with pytest.raises(InfeasibleInstance) as exc:
        heuristic_solve([[5, 0], [0, 0]], 10, 1.0, 0.9)
    assert exc.value.clue_index == 0


def test_cooling_factor_must_be_below_one():
    with pytest.raises(ValueError):
        heuristic_solve([[4, 0], [0, 0]], 10, 1.0, 1.0)


def test_short_clue_total_is_never_reported_optimal():
    # one covered cell gives energy 1, below m * n, yet the grid is not tiled
    res = heuristic_solve([[1, 0], [0, 0]], 50, 1.0, 0.9, rng=random.Random(0))
    assert not res.is_optimal
    assert res.iterations == 50


def test_same_seed_same_search():
    grid = generate_instance(6, 6, 3, 1, 0.5, random.Random(11))
    a = heuristic_solve(grid, 300, 50.0, 0.99, rng=random.Random(5))
    b = heuristic_solve(grid, 300, 50.0, 0.99, rng=random.Random(5))
    assert (a.rects, a.energy, a.iterations) == (b.rects, b.energy, b.iterations)


def test_optimal_result_is_a_valid_partition():
    grid = [[0, 3, 0], [0, 0, 0], [2, 0, 4]]
    res = heuristic_solve(grid, 5000, 10.0, 0.999, rng=random.Random(2))
    assert res.is_optimal
    assert res.energy == 9
    assert partition_errors(grid, res.rects) == []


def _budget_solver(threshold):
    calls = []

    def _solve(grid, k_max, init_t, lam, rng=None, time_limit=None):
        calls.append((k_max, init_t))
        return HeuristicResult(k_max >= threshold, [], 0, k_max, 0.0)

    return _solve, calls


def test_escalation_grows_budget_until_optimal():
    fake, calls = _budget_solver(10000)
    res = escalate([[1]], k_max=1000, init_t=1000, lam=0.9, solve=fake)
    assert res.is_optimal
    assert calls == [(1000, 1000.0), (10000, 100000.0)]
    assert [r[2] for r in res.rounds] == [False, True]
    assert res.elapsed >= sum(r[3] for r in res.rounds) - 1e-9


def test_escalation_stops_past_the_ceiling():
    fake, calls = _budget_solver(10 ** 9)
    res = escalate([[1]], k_max=1000, init_t=1000, lam=0.9, k_ceiling=100000, solve=fake)
    assert not res.is_optimal
    assert [k for k, _ in calls] == [1000, 10000, 100000]


def test_escalation_gives_up_on_infeasible_instances():
    # areas add up, but the 3 fits nowhere on a 2x2 board
    res = escalate([[3, 0], [0, 1]], k_max=10, init_t=1.0, lam=0.9, rng=random.Random(0))
    assert not res.is_optimal
    assert len(res.rounds) == 1
    assert res.status == INFEASIBLE


def test_escalation_rejects_non_growing_budget():
    fake, _ = _budget_solver(0)
    with pytest.raises(ValueError):
        escalate([[1]], k_growth=1, solve=fake)


def test_escalation_solves_a_generated_instance():
    grid = generate_instance(4, 4, 2, 0, 0.5, random.Random(3))
    res = escalate(grid, rng=random.Random(3))
    assert res.is_optimal
    assert partition_errors(grid, res.rects) == []


def test_escalation_marks_optimal_rounds_feasible():
    fake, _ = _budget_solver(1000)
    res = escalate([[1]], k_max=1000, init_t=1000, lam=0.9, solve=fake)
    assert res.status == FEASIBLE


def test_exhausted_budget_is_unknown_not_infeasible():
    fake, _ = _budget_solver(10 ** 9)
    res = escalate([[1]], k_max=1000, init_t=1000, lam=0.9, k_ceiling=10000, solve=fake)
    assert not res.is_optimal
    assert res.status == UNKNOWN


def test_area_mismatch_skips_the_ladder():
    fake, calls = _budget_solver(0)
    res = escalate([[1, 0, 0], [0, 0, 0], [0, 0, 0]], solve=fake)
    assert calls == []
    assert res.rounds == []
    assert not res.is_optimal
    assert res.status == INFEASIBLE


def test_escalation_hands_rounds_the_remaining_time():
    limits = []

    def _slow(grid, k_max, init_t, lam, rng=None, time_limit=None):
        limits.append(time_limit)
        time.sleep(0.05)
        return HeuristicResult(False, [], 0, k_max, 0.05)

    res = escalate([[1]], k_max=10, init_t=1.0, lam=0.9, k_ceiling=10 ** 12,
                   time_limit=0.12, solve=_slow)
    assert not res.is_optimal
    assert 1 <= len(limits) <= 3
    assert all(0 < lim <= 0.12 for lim in limits)
    assert limits == sorted(limits, reverse=True)
    assert res.elapsed < 1.0


# Areas add up to 6, yet (0, 0) lies in no candidate once rectangles holding
# a second clue are dropped, so every non-empty candidate set leads nowhere.
COLLIDING = [[0, 1, 2], [1, 2, 0]]


def test_colliding_candidates_end_non_optimal():
    res = escalate(COLLIDING, k_max=100, init_t=1.0, lam=0.9, k_ceiling=10000,
                   rng=random.Random(0))
    assert not res.is_optimal
    assert [r[0] for r in res.rounds] == [100, 1000, 10000]
    assert res.status == UNKNOWN
