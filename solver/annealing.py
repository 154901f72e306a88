# solver/annealing.py
"""Simulated annealing over one-candidate-per-clue assignments.

The state holds, for every clue, the index of its chosen candidate. The energy
rasterises the chosen rectangles onto a coverage-count grid and sums the
squared counts. When the clue values add up to ``m * n`` that sum is at least
``m * n`` and reaches it exactly when every cell is covered once, so hitting
``m * n`` certifies a valid tiling.
"""
import math
import random
import time
from typing import List, Optional, Sequence

from config import CFG
from models import Grid, GridError, HeuristicResult, InfeasibleInstance, Rect
from progress import log_attempt_detail
from solver.candidates import build_candidate_sets, find_clues, grid_shape

Assignment = List[int]


def coverage_counts(m: int, n: int, state: Sequence[int], candidate_sets: Sequence[Sequence[Rect]]) -> List[List[int]]:
    counts = [[0] * n for _ in range(m)]
    for k, l in enumerate(state):
        r = candidate_sets[k][l]
        for i in range(r.row_min, r.row_max + 1):
            row = counts[i]
            for j in range(r.col_min, r.col_max + 1):
                row[j] += 1
    return counts


def energy(m: int, n: int, state: Sequence[int], candidate_sets: Sequence[Sequence[Rect]]) -> int:
    return sum(c * c for row in coverage_counts(m, n, state, candidate_sets) for c in row)


def random_state(candidate_sets: Sequence[Sequence[Rect]], rng: random.Random) -> Assignment:
    return [rng.randrange(len(cands)) for cands in candidate_sets]


def random_neighbor(state: Sequence[int], candidate_sets: Sequence[Sequence[Rect]], rng: random.Random) -> Assignment:
    """Copy of ``state`` with one uniformly drawn clue re-picked uniformly."""
    k = rng.randrange(len(state))
    new_state = list(state)
    new_state[k] = rng.randrange(len(candidate_sets[k]))
    return new_state


def heuristic_solve(
    grid: Grid,
    k_max: Optional[int] = None,
    init_t: Optional[float] = None,
    lam: Optional[float] = None,
    *,
    rng: Optional[random.Random] = None,
    time_limit: Optional[float] = None,
    candidate_sets: Optional[List[List[Rect]]] = None,
) -> HeuristicResult:
    """Run one annealing search from a fresh random state.

    Raises :class:`InfeasibleInstance` when a clue has no candidate. Running out
    of iterations (or of ``time_limit`` seconds) is a normal non-optimal result.
    """
    k_max = CFG.SA_K_MAX if k_max is None else int(k_max)
    init_t = CFG.SA_INIT_T if init_t is None else float(init_t)
    lam = CFG.SA_LAMBDA if lam is None else float(lam)
    if time_limit is None and CFG.SA_TIME_LIMIT > 0:
        time_limit = CFG.SA_TIME_LIMIT
    if not 0.0 < lam < 1.0:
        raise ValueError(f"cooling factor must lie in (0, 1), got {lam}")
    rng = rng or random.Random()

    start = time.perf_counter()
    m, n = grid_shape(grid)
    clues = find_clues(grid)
    if not clues:
        raise GridError("grid has no clue")
    if candidate_sets is None:
        candidate_sets = build_candidate_sets(grid, clues, exclude_foreign_clues=True)
    for k, cands in enumerate(candidate_sets):
        if not cands:
            raise InfeasibleInstance(k, clues[k])

    target = m * n
    # the lower bound only certifies a tiling when the clue areas fill the grid exactly
    area_matches = sum(c.value for c in clues) == target

    state = random_state(candidate_sets, rng)
    e = energy(m, n, state, candidate_sets)
    opt_state, e_opt = state, e
    t = init_t
    k = 0
    while k < k_max and not (area_matches and e <= target):
        if time_limit is not None and time.perf_counter() - start >= time_limit:
            break
        sk = random_neighbor(state, candidate_sets, rng)
        ek = energy(m, n, sk, candidate_sets)
        delta = ek - e
        if delta < 0 or (t > 0 and rng.random() < math.exp(-delta / t)):
            state, e = sk, ek
            if e < e_opt:
                opt_state, e_opt = state, e
        t *= lam
        k += 1

    is_optimal = area_matches and e_opt == target
    elapsed = time.perf_counter() - start
    log_attempt_detail(
        "Annealing finished",
        k_max=k_max,
        init_t=init_t,
        iterations=k,
        energy=e_opt,
        target=target,
        optimal=is_optimal,
        elapsed=f"{elapsed:.3f}s",
    )
    rects = [candidate_sets[i][l] for i, l in enumerate(opt_state)]
    return HeuristicResult(is_optimal, rects, e_opt, k, elapsed)


__all__ = [
    "Assignment",
    "coverage_counts",
    "energy",
    "random_state",
    "random_neighbor",
    "heuristic_solve",
]
