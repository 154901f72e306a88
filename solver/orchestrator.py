# Orchestrator: per-instance dispatch and the skip-on-exists batch driver
from __future__ import annotations

import os
import random
from typing import Any, Callable, Dict, List, Optional, Sequence

from config import CFG
from grid_io import read_grid, write_solution
from models import INFEASIBLE, BackendError, Grid, GridError, SolveRecord
from progress import (
    bump, log_attempt_detail, log_attempt_error, reset, set_attempt, set_done,
    set_phase, start_timer,
)
from solver.backends import BACKENDS, get_backend
from solver.candidates import find_clues, partition_errors
from solver.cp_isolate import run_exact_isolated
from solver.escalation import escalate
from solver.exact import ip_solve

HEURISTIC = "heuristic"


# ---------- single instance ----------

def _solve_with_heuristic(grid: Grid, method: str, *, time_limit: Optional[float], rng: Optional[random.Random]) -> SolveRecord:
    res = escalate(grid, time_limit=time_limit, rng=rng)
    return SolveRecord(
        method=method,
        instance="",
        is_optimal=res.is_optimal,
        solve_time=res.elapsed,
        rects=res.rects if res.is_optimal else None,
        status=res.status,
    )


def _solve_with_backend(grid: Grid, method: str, *, time_limit: Optional[float], rng: Optional[random.Random]) -> SolveRecord:
    seconds = CFG.EXACT_TIME_LIMIT if time_limit is None else float(time_limit)
    if CFG.ISOLATE_EXACT:
        res = run_exact_isolated(grid, method, seconds)
    else:
        res = ip_solve(grid, get_backend(method), time_limit=seconds)
    return SolveRecord(
        method=method,
        instance="",
        is_optimal=res.solved,
        solve_time=res.elapsed,
        rects=res.rects,
        status=res.status,
    )


SOLVERS: Dict[str, Callable[..., SolveRecord]] = {HEURISTIC: _solve_with_heuristic}
SOLVERS.update({name: _solve_with_backend for name in BACKENDS})


def solve_instance(
    grid: Grid,
    method: str,
    *,
    instance: str = "",
    time_limit: Optional[float] = None,
    rng: Optional[random.Random] = None,
) -> SolveRecord:
    """Solve one grid with a configured method.

    ``BackendError`` propagates; an unproven or infeasible instance comes back
    as ``is_optimal=False``.
    """
    try:
        solver_fn = SOLVERS[method]
    except KeyError:
        raise ValueError(f"unknown method {method!r} (known: {', '.join(sorted(SOLVERS))})") from None
    if not find_clues(grid):
        raise GridError("grid has no clue")

    record = solver_fn(grid, method, time_limit=time_limit, rng=rng)
    record.instance = instance
    if record.is_optimal and record.rects is not None:
        problems = partition_errors(grid, record.rects)
        if problems:
            raise BackendError(f"{method} returned an invalid partition: {problems[0]}")
    return record


# ---------- batch driver ----------

def result_path(res_dir: str, method: str, instance: str) -> str:
    return os.path.join(res_dir, method, instance)


def solve_dataset(
    data_dir: Optional[str] = None,
    res_dir: Optional[str] = None,
    methods: Optional[Sequence[str]] = None,
    *,
    time_limit: Optional[float] = None,
    rng: Optional[random.Random] = None,
) -> Dict[str, Any]:
    """Solve every ``*.txt`` instance in ``data_dir`` with each method.

    Results land in ``res_dir/<method>/<instance>``. A pair whose result file
    already exists is skipped, so re-running never re-solves. Backend errors
    and malformed grids are logged and reported in ``errors`` without writing
    a result file.
    """
    data_dir = data_dir or CFG.DATA_DIR
    res_dir = res_dir or CFG.RES_DIR
    methods = tuple(methods or CFG.METHODS)
    for method in methods:
        if method not in SOLVERS:
            raise ValueError(f"unknown method {method!r}")

    instances = sorted(f for f in os.listdir(data_dir) if f.endswith(".txt"))
    summary: Dict[str, Any] = {"solved": 0, "not_optimal": 0, "infeasible": 0, "skipped": 0, "errors": []}
    written: List[str] = []

    reset()
    start_timer()
    log_attempt_detail("Batch started", data_dir=data_dir, res_dir=res_dir,
                       methods=",".join(methods), instances=len(instances))

    for method in methods:
        set_phase(method)
        os.makedirs(os.path.join(res_dir, method), exist_ok=True)
        for name in instances:
            out_path = result_path(res_dir, method, name)
            if os.path.isfile(out_path):
                summary["skipped"] += 1
                bump("skipped")
                continue

            set_attempt(name)
            try:
                grid = read_grid(os.path.join(data_dir, name))
                record = solve_instance(grid, method, instance=name, time_limit=time_limit, rng=rng)
            except (GridError, BackendError) as e:
                summary["errors"].append((method, name, str(e)))
                bump("failed")
                log_attempt_error("Instance failed", method=method, instance=name,
                                  error=f"{type(e).__name__}: {e}")
                continue

            write_solution(out_path, grid, record)
            written.append(out_path)
            if record.is_optimal:
                summary["solved"] += 1
                bump("solved")
            else:
                summary["not_optimal"] += 1
                if record.status == INFEASIBLE:
                    summary["infeasible"] += 1
                bump("failed")
            log_attempt_detail("Instance done", method=method, instance=name,
                               optimal=record.is_optimal, status=record.status,
                               time=f"{record.solve_time:.3f}s")

    summary["written"] = written
    set_done(not summary["errors"], reason=f"{len(written)} written, {summary['skipped']} skipped")
    return summary


__all__ = ["HEURISTIC", "SOLVERS", "solve_instance", "result_path", "solve_dataset"]
