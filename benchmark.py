"""Parameter sweeps over generated instances, aggregated by a grouping key."""

from __future__ import annotations

import random
import time
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from config import CFG
from generation import generate_instance
from models import Grid
from progress import log_attempt_detail
from solver.annealing import heuristic_solve
from solver.backends import get_backend
from solver.exact import ip_solve

Outcome = Tuple[bool, float]  # (is_optimal, elapsed seconds)
SolveFn = Callable[[Grid], Outcome]
ParamFn = Callable[[Grid, int, int], int]


# grouping keys

def param_size(grid: Grid, depth: int, n_merge_iter: int) -> int:
    return len(grid)


def param_depth(grid: Grid, depth: int, n_merge_iter: int) -> int:
    return depth


def param_clue_count(grid: Grid, depth: int, n_merge_iter: int) -> int:
    return sum(1 for row in grid for v in row if v > 0)


# solve adapters

def exact_solve_fn(method: str, time_limit: Optional[float] = None) -> SolveFn:
    backend = get_backend(method)
    seconds = CFG.EXACT_TIME_LIMIT if time_limit is None else time_limit

    def _solve(grid: Grid) -> Outcome:
        res = ip_solve(grid, backend, time_limit=seconds)
        return res.solved, res.elapsed

    return _solve


def heuristic_solve_fn(rng: Optional[random.Random] = None, **kwargs) -> SolveFn:
    rng = rng or random.Random()

    def _solve(grid: Grid) -> Outcome:
        start = time.perf_counter()
        res = heuristic_solve(grid, rng=rng, **kwargs)
        return res.is_optimal, time.perf_counter() - start

    return _solve


def aggregate(results: Sequence[Outcome]) -> Tuple[float, float]:
    """Return (fraction solved optimally, mean solve time)."""
    if not results:
        return 0.0, 0.0
    n = len(results)
    return sum(1 for ok, _ in results if ok) / n, sum(t for _, t in results) / n


def run_sweep(
    solve_fn: SolveFn,
    param_fn: ParamFn,
    sizes: Sequence[int] = (4, 9, 16, 25, 50),
    *,
    per_combo: int = 5,
    max_merge_iter: int = 3,
    merge_prob: float = 0.5,
    rng: Optional[random.Random] = None,
) -> Tuple[Dict[int, float], Dict[int, float]]:
    """Generate and solve square instances, then aggregate by ``param_fn``.

    Sweeps every size, depth in ``1..size // 2`` and merge count in
    ``0..max_merge_iter``, ``per_combo`` instances each. Returns
    ``(optimal_ratio, mean_time)`` dictionaries keyed by the grouping value.
    """
    rng = rng or random.Random()
    results: Dict[int, List[Outcome]] = {}

    # the first call pays one-off import/warm-up costs
    solve_fn(generate_instance(1, 1, 1, 0, 0.0, rng))

    for size in sizes:
        for depth in range(1, size // 2 + 1):
            for it in range(max_merge_iter + 1):
                for _ in range(per_combo):
                    grid = generate_instance(size, size, depth, it, merge_prob, rng)
                    results.setdefault(param_fn(grid, depth, it), []).append(solve_fn(grid))

    opt_ratio: Dict[int, float] = {}
    means: Dict[int, float] = {}
    for key, outcomes in results.items():
        opt_ratio[key], means[key] = aggregate(outcomes)
    log_attempt_detail("Sweep finished", groups=len(results),
                       instances=sum(len(v) for v in results.values()))
    return opt_ratio, means


__all__ = [
    "param_size",
    "param_depth",
    "param_clue_count",
    "exact_solve_fn",
    "heuristic_solve_fn",
    "aggregate",
    "run_sweep",
]
