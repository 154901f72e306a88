# solver/exact.py
import time
from typing import Dict, List, Optional

from models import FEASIBLE, INFEASIBLE, BackendError, ExactResult, Grid, GridError, Rect
from progress import log_attempt_detail, log_attempt_error
from solver.backends import ExactBackend
from solver.candidates import build_candidate_sets, find_clues
from solver.exact_cover import ExactCoverModel, build_model


def _rects_from_chosen(model: ExactCoverModel, chosen: List[int]) -> List[Rect]:
    by_clue: Dict[int, int] = {}
    for var in chosen:
        k, _ = model.variables[var]
        if k in by_clue:
            raise BackendError(f"backend activated two candidates for clue #{k}")
        by_clue[k] = var
    missing = [k for k in range(len(model.clue_rows)) if k not in by_clue]
    if missing:
        raise BackendError(f"backend left clue(s) {missing} without a rectangle")
    return [model.rect_for(by_clue[k]) for k in range(len(model.clue_rows))]


def solve_exact(
    model: ExactCoverModel,
    backend: ExactBackend,
    *,
    time_limit: Optional[float] = None,
) -> ExactResult:
    """Hand ``model`` to ``backend`` and interpret the terminal status.

    ``BackendError`` is logged and re-raised; it never reads as infeasible.
    """
    start = time.perf_counter()

    if model.has_empty_row():
        elapsed = time.perf_counter() - start
        log_attempt_detail("Exact model has an empty row", backend=backend.name,
                           variables=model.num_variables)
        return ExactResult(False, elapsed, None, INFEASIBLE)

    try:
        outcome = backend.solve(model, time_limit=time_limit)
    except BackendError as e:
        log_attempt_error("Exact backend error", backend=backend.name,
                          elapsed=f"{time.perf_counter() - start:.2f}s", error=str(e))
        raise

    rects = _rects_from_chosen(model, outcome.chosen) if outcome.status == FEASIBLE else None
    elapsed = time.perf_counter() - start
    log_attempt_detail(
        "Exact solve finished",
        backend=backend.name,
        status=outcome.status,
        variables=model.num_variables,
        elapsed=f"{elapsed:.3f}s",
        detail=outcome.detail,
    )
    return ExactResult(outcome.status == FEASIBLE, elapsed, rects, outcome.status)


def ip_solve(grid: Grid, backend: ExactBackend, *, time_limit: Optional[float] = None) -> ExactResult:
    """Candidate generation, model building and solving for one grid."""
    start = time.perf_counter()
    clues = find_clues(grid)
    if not clues:
        raise GridError("grid has no clue")
    candidate_sets = build_candidate_sets(grid, clues)
    model = build_model(grid, candidate_sets, clues)
    result = solve_exact(model, backend, time_limit=time_limit)
    # report the full pipeline time, model construction included
    result.elapsed = time.perf_counter() - start
    return result


__all__ = ["solve_exact", "ip_solve"]
