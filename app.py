# app.py: JSON front door for the solver
from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

from flask import Flask, jsonify, request

from config import CFG
from grid_io import parse_grid
from models import BackendError, Grid, GridError
from progress import (
    reset as progress_reset,
    set_attempt,
    set_done,
    set_phase,
    snapshot as progress_snapshot,
    start_timer as progress_start,
)
from solver.orchestrator import SOLVERS, solve_instance

app = Flask(__name__)


@app.after_request
def _no_cache_progress(resp):
    if request.path == "/progress":
        resp.headers["Cache-Control"] = "no-store, max-age=0"
        resp.headers["Pragma"] = "no-cache"
        resp.headers["Expires"] = "0"
    return resp


def _grid_from_payload(payload: Dict[str, Any]) -> Grid:
    """Accept either ``{"grid": [[...], ...]}`` or ``{"text": "csv rows"}``."""
    raw = payload.get("grid")
    if isinstance(raw, list):
        lines: List[str] = []
        for row in raw:
            if not isinstance(row, list):
                raise GridError("grid must be a list of rows")
            lines.append(",".join(str(v).strip() for v in row))
        return parse_grid("\n".join(lines), ",")
    text = payload.get("text")
    if isinstance(text, str):
        return parse_grid(text, payload.get("delimiter") or None)
    raise GridError("request must carry 'grid' (list of rows) or 'text'")


def _error(status: int, kind: str, message: str, t0: float):
    return jsonify({
        "ok": False,
        "error": kind,
        "message": message,
        "elapsed": time.perf_counter() - t0,
    }), status


@app.route("/solve", methods=["POST"])
def solve():
    t0 = time.perf_counter()
    payload = request.get_json(silent=True) or {}
    if not payload and request.form:
        payload = request.form.to_dict()

    method = str(payload.get("method") or CFG.METHODS[0])
    if method not in SOLVERS:
        return _error(400, "bad_method", f"unknown method {method!r}; known: {sorted(SOLVERS)}", t0)

    try:
        grid = _grid_from_payload(payload)
    except GridError as e:
        return _error(400, "bad_grid", str(e), t0)

    time_limit: Optional[float] = None
    if payload.get("time_limit") not in (None, ""):
        try:
            time_limit = float(payload["time_limit"])
        except (TypeError, ValueError):
            return _error(400, "bad_time_limit", "time_limit must be a number", t0)

    progress_reset()
    progress_start()
    set_phase(method)
    set_attempt("request")
    try:
        record = solve_instance(grid, method, instance="request", time_limit=time_limit)
    except BackendError as e:
        set_done(False, reason=str(e))
        return _error(502, "backend_error", str(e), t0)
    set_done(record.is_optimal)

    return jsonify({
        "ok": True,
        "method": method,
        "is_optimal": record.is_optimal,
        "status": record.status,
        "solve_time": record.solve_time,
        "rects": [list(r.as_tuple()) for r in record.rects] if record.rects else None,
        "elapsed": time.perf_counter() - t0,
    })


@app.route("/progress")
def progress():
    return jsonify(progress_snapshot())


if __name__ == "__main__":
    app.run(debug=False)
