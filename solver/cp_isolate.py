# solver/cp_isolate.py
import multiprocessing as mp
import queue
import time
import traceback
from typing import List

from config import CFG
from models import UNKNOWN, BackendError, ExactResult, Rect


# Worker must be top-level (picklable under spawn)
def _solve_worker(q, grid: List[List[int]], method: str, seconds: float):
    try:
        from solver.backends import get_backend  # import inside child
        from solver.exact import ip_solve
        res = ip_solve(grid, get_backend(method), time_limit=seconds)
        rects = [r.as_tuple() for r in res.rects] if res.rects else None
        q.put(("ok", res.solved, res.elapsed, rects, res.status))
    except BackendError as e:
        q.put(("backend", False, 0.0, None, str(e)))
    except MemoryError:
        q.put(("backend", False, 0.0, None, "Child ran out of memory"))
    except Exception as e:
        q.put(("exc", False, 0.0, None, f"{e}\n{traceback.format_exc()}"))


def run_exact_isolated(grid: List[List[int]], method: str, seconds: float) -> ExactResult:
    """Run ``ip_solve`` in a spawned child and kill it if it overruns.

    An overrun yields an ``UNKNOWN`` result (no conclusion). A crashed child or a
    backend failure raises :class:`BackendError`; other child exceptions are
    re-raised as ``RuntimeError`` with the child traceback.
    """
    ctx = mp.get_context("spawn")
    q = ctx.Queue()
    p = ctx.Process(target=_solve_worker, args=(q, grid, method, float(seconds)))
    p.daemon = True
    start = time.perf_counter()
    p.start()

    # Allow a small buffer beyond the solver's own time limit for teardown.
    # The queue is drained before joining so a child with a pending put can exit.
    deadline = start + float(seconds) + float(CFG.ISOLATE_GRACE)
    message = None
    while message is None:
        try:
            message = q.get(timeout=0.1)
        except queue.Empty:
            if not p.is_alive():
                try:
                    message = q.get(timeout=0.5)
                except queue.Empty:
                    raise BackendError(
                        f"No result from child process (exit code {p.exitcode})"
                    ) from None
            elif time.perf_counter() >= deadline:
                p.terminate()
                p.join(2.0)
                return ExactResult(False, time.perf_counter() - start, None, UNKNOWN)
    p.join(2.0)
    elapsed = time.perf_counter() - start
    tag, solved, _child_elapsed, rects, payload = message

    if tag == "ok":
        rect_list = [Rect(*t) for t in rects] if rects else None
        return ExactResult(bool(solved), elapsed, rect_list, payload)
    if tag == "backend":
        raise BackendError(payload)
    raise RuntimeError(f"exact solve failed in child: {payload}")


__all__ = ["run_exact_isolated"]
