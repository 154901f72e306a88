# solver/backends.py
"""Exact backends able to decide an :class:`ExactCoverModel`.

Every backend answers ``solve(model, time_limit=...)`` with a
:class:`BackendOutcome`. Only an explicit infeasibility proof maps to
``INFEASIBLE``; running out of time maps to ``UNKNOWN``; everything else the
library reports (invalid model, abnormal termination, exceptions) is raised as
:class:`BackendError`.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Type

from config import CFG
from models import FEASIBLE, INFEASIBLE, UNKNOWN, BackendError
from solver.exact_cover import ExactCoverModel


@dataclass
class BackendOutcome:
    status: str
    chosen: List[int] = field(default_factory=list)  # active variable indices
    detail: Optional[str] = None


class ExactBackend(ABC):
    name: str = "base"

    @abstractmethod
    def solve(self, model: ExactCoverModel, *, time_limit: Optional[float] = None) -> BackendOutcome:
        ...


class CpSatBackend(ExactBackend):
    """OR-Tools CP-SAT with ``AddExactlyOne`` rows and a constant objective."""

    name = "cp_sat"

    def __init__(self, workers: Optional[int] = None, seed: Optional[int] = None):
        self.workers = int(CFG.WORKERS if workers is None else workers)
        self.seed = int(CFG.RANDOM_SEED if seed is None else seed)

    def solve(self, model: ExactCoverModel, *, time_limit: Optional[float] = None) -> BackendOutcome:
        from ortools.sat.python import cp_model as _cp

        try:
            m = _cp.CpModel()
            x = [m.NewBoolVar(f"x_{k}_{l}") for (k, l) in model.variables]
            for row in model.rows():
                m.AddExactlyOne([x[v] for v in row])
            m.Minimize(0)

            solver = _cp.CpSolver()
            if time_limit is not None and time_limit > 0:
                solver.parameters.max_time_in_seconds = float(time_limit)
            solver.parameters.max_memory_in_mb = int(CFG.MAX_MEMORY_MB)
            solver.parameters.num_search_workers = max(1, self.workers)
            solver.parameters.random_seed = self.seed
            solver.parameters.log_search_progress = False

            res = solver.Solve(m)
        except Exception as e:
            raise BackendError(f"CP-SAT failure: {type(e).__name__}: {e}") from e

        if res in (_cp.OPTIMAL, _cp.FEASIBLE):
            chosen = [v for v in range(len(x)) if solver.BooleanValue(x[v])]
            return BackendOutcome(FEASIBLE, chosen)
        if res == _cp.INFEASIBLE:
            return BackendOutcome(INFEASIBLE, detail="Proven infeasible")
        if res == _cp.UNKNOWN:
            return BackendOutcome(UNKNOWN, detail="Stopped before solution (timebox)")
        raise BackendError(f"CP-SAT returned status {solver.StatusName(res)}")


class MipBackend(ExactBackend):
    """OR-Tools linear solver wrapper (SCIP by default, CBC when configured)."""

    name = "mip"

    def __init__(self, solver_id: Optional[str] = None, workers: Optional[int] = None):
        self.solver_id = (solver_id or CFG.MIP_SOLVER_ID).strip().upper()
        self.workers = int(CFG.WORKERS if workers is None else workers)

    def solve(self, model: ExactCoverModel, *, time_limit: Optional[float] = None) -> BackendOutcome:
        from ortools.linear_solver import pywraplp

        solver = pywraplp.Solver.CreateSolver(self.solver_id)
        if solver is None:
            raise BackendError(f"MIP solver {self.solver_id!r} is not available in this OR-Tools build")

        try:
            x = [solver.BoolVar(f"x_{k}_{l}") for (k, l) in model.variables]
            for row in model.rows():
                solver.Add(solver.Sum([x[v] for v in row]) == 1)
            solver.Objective().SetMinimization()
            if time_limit is not None and time_limit > 0:
                solver.SetTimeLimit(int(time_limit * 1000))
            if self.workers > 1:
                solver.SetNumThreads(self.workers)
            res = solver.Solve()
        except Exception as e:
            raise BackendError(f"{self.solver_id} failure: {type(e).__name__}: {e}") from e

        if res in (pywraplp.Solver.OPTIMAL, pywraplp.Solver.FEASIBLE):
            chosen = [v for v in range(len(x)) if x[v].solution_value() > 0.5]
            return BackendOutcome(FEASIBLE, chosen)
        if res == pywraplp.Solver.INFEASIBLE:
            return BackendOutcome(INFEASIBLE, detail="Proven infeasible")
        if res == pywraplp.Solver.NOT_SOLVED:
            return BackendOutcome(UNKNOWN, detail="Stopped before solution (timebox)")
        raise BackendError(f"{self.solver_id} returned status {res}")


BACKENDS: Dict[str, Type[ExactBackend]] = {
    CpSatBackend.name: CpSatBackend,
    MipBackend.name: MipBackend,
}


def get_backend(method: str) -> ExactBackend:
    try:
        cls = BACKENDS[method]
    except KeyError:
        raise ValueError(f"unknown exact method {method!r} (known: {', '.join(sorted(BACKENDS))})") from None
    return cls()


__all__ = ["BackendOutcome", "ExactBackend", "CpSatBackend", "MipBackend", "BACKENDS", "get_backend"]
