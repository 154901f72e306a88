# solver/escalation.py
import random
import time
from typing import Callable, Optional

from config import CFG
from models import FEASIBLE, INFEASIBLE, EscalationResult, Grid, HeuristicResult, InfeasibleInstance
from progress import log_attempt_detail
from solver.annealing import heuristic_solve
from solver.candidates import find_clues, grid_shape

HeuristicFn = Callable[..., HeuristicResult]


def escalate(
    grid: Grid,
    *,
    k_max: Optional[int] = None,
    init_t: Optional[float] = None,
    lam: Optional[float] = None,
    k_growth: Optional[int] = None,
    t_growth: Optional[float] = None,
    k_ceiling: Optional[int] = None,
    time_limit: Optional[float] = None,
    rng: Optional[random.Random] = None,
    solve: HeuristicFn = heuristic_solve,
) -> EscalationResult:
    """Retry the heuristic with growing budgets until it is optimal or the ceiling is passed.

    Every round starts a new search from a fresh random state; a stalled
    search is never resumed. Each round gets whatever is left of
    ``time_limit``, and no round starts once it is spent. The reported time
    covers all rounds.

    ``status`` is ``INFEASIBLE`` when no tiling can exist (the clue areas do
    not add up to the grid area, or a clue has no candidate) and ``UNKNOWN``
    when the budget ran out.
    """
    k = CFG.ESC_K_START if k_max is None else int(k_max)
    t = CFG.ESC_T_START if init_t is None else float(init_t)
    lam = CFG.SA_LAMBDA if lam is None else float(lam)
    k_growth = CFG.ESC_K_GROWTH if k_growth is None else int(k_growth)
    t_growth = CFG.ESC_T_GROWTH if t_growth is None else float(t_growth)
    k_ceiling = CFG.ESC_K_CEILING if k_ceiling is None else int(k_ceiling)
    if k_growth < 2:
        raise ValueError("k_growth must be at least 2")
    rng = rng or random.Random()

    start = time.perf_counter()
    result = EscalationResult(is_optimal=False, elapsed=0.0, rects=None)

    m, n = grid_shape(grid)
    area = sum(c.value for c in find_clues(grid))
    if area != m * n:
        log_attempt_detail("Escalation skipped", reason="area mismatch", clue_area=area, cells=m * n)
        result.status = INFEASIBLE
        result.elapsed = time.perf_counter() - start
        return result

    while not result.is_optimal and k <= k_ceiling:
        remaining = None
        if time_limit is not None:
            remaining = time_limit - (time.perf_counter() - start)
            if remaining <= 0:
                log_attempt_detail("Escalation stopped", reason="time limit", k_max=k)
                break
        round_start = time.perf_counter()
        try:
            res = solve(grid, k, t, lam, rng=rng, time_limit=remaining)
        except InfeasibleInstance as e:
            log_attempt_detail("Escalation stopped", reason="infeasible", detail=str(e))
            result.rounds.append((k, t, False, time.perf_counter() - round_start))
            result.status = INFEASIBLE
            break
        result.rounds.append((k, t, res.is_optimal, time.perf_counter() - round_start))
        result.is_optimal = res.is_optimal
        result.rects = res.rects
        log_attempt_detail("Escalation round", k_max=k, init_t=t, optimal=res.is_optimal,
                           energy=res.energy)
        k *= k_growth
        t *= t_growth

    if result.is_optimal:
        result.status = FEASIBLE
    result.elapsed = time.perf_counter() - start
    return result


__all__ = ["escalate"]
