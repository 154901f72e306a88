from __future__ import annotations

import json
import logging
import os
import threading
import time
from pathlib import Path
from typing import Any, Dict, Optional

# ------------------------------
# Thread-safe global progress state
# ------------------------------

PROGRESS_LOCK = threading.Lock()


def _state_file_path() -> Path:
    configured = os.environ.get("PROGRESS_STATE_FILE")
    if configured:
        return Path(configured)
    return Path(__file__).resolve().parent / "logs" / "progress_state.json"


def _log_file_path() -> Path:
    configured = os.environ.get("RP_ATTEMPT_LOG")
    if configured:
        return Path(configured)
    return Path(__file__).resolve().parent / "logs" / "solver_attempts.log"


STATE_FILE = _state_file_path()
STATE_FILE_TMP = STATE_FILE.with_name(STATE_FILE.name + ".tmp")
_LAST_STATE_MTIME: float = 0.0


def _init_logger() -> logging.Logger:
    logger = logging.getLogger("rectpart.attempt_log")
    if logger.handlers:
        return logger

    log_path = _log_file_path()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, encoding="utf-8")
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
    except OSError:
        # Progress tracking must not break the solver when the log dir is read-only.
        logger.handlers.clear()
    return logger


ATTEMPT_LOGGER = _init_logger()


def _log_enabled() -> bool:
    return bool(ATTEMPT_LOGGER.handlers)


def _fmt_seconds(seconds: Optional[float]) -> Optional[str]:
    if seconds is None:
        return None
    try:
        return f"{float(seconds):.2f}s"
    except (TypeError, ValueError):
        return None


def _emit_log(event: str, *, level: int = logging.INFO, **fields: Any) -> None:
    if not _log_enabled():
        return
    extras = [
        f"{key}={value}"
        for key, value in fields.items()
        if value is not None and value != ""
    ]
    if extras:
        ATTEMPT_LOGGER.log(level, "%s | %s", event, " ".join(extras))
    else:
        ATTEMPT_LOGGER.log(level, "%s", event)


def log_attempt_detail(event: str, **fields: Any) -> None:
    """Write one ``event | key=value ...`` line to the attempt log."""
    _emit_log(event, **fields)


def log_attempt_error(event: str, **fields: Any) -> None:
    _emit_log(event, level=logging.ERROR, **fields)


LOG_STATE: Dict[str, Any] = {
    "run_start": None,
    "phase": "",
    "phase_start": None,
    "attempt": "",
    "attempt_start": None,
}

# Single source of truth for progress consumers (HTTP endpoint, CLI)
PROGRESS: Dict[str, Any] = {
    "status": "Idle",          # Idle | Solving | Solved | Error
    "phase": "",               # method, e.g. cp_sat | mip | heuristic
    "attempt": "",             # instance name
    "solved": 0,               # instances solved optimally in this run
    "skipped": 0,              # instances skipped (already solved)
    "failed": 0,               # instances without a proven solution
    "elapsed_start": None,
    "elapsed": 0.0,
    "message": "",
    "done": False,
    "ok": None,
    "run_id": 0,
}


def _now() -> float:
    return time.monotonic()


def _persist_locked() -> None:
    global _LAST_STATE_MTIME
    try:
        STATE_FILE.parent.mkdir(parents=True, exist_ok=True)
        with STATE_FILE_TMP.open("w", encoding="utf-8") as fh:
            json.dump(PROGRESS, fh, ensure_ascii=False, separators=(",", ":"))
        STATE_FILE_TMP.replace(STATE_FILE)
        _LAST_STATE_MTIME = STATE_FILE.stat().st_mtime
    except OSError:
        pass


def _load_persisted_locked(force: bool = False) -> None:
    global _LAST_STATE_MTIME
    try:
        stat = STATE_FILE.stat()
    except OSError:
        return
    if not force and stat.st_mtime <= _LAST_STATE_MTIME:
        return
    try:
        with STATE_FILE.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, ValueError):
        return
    if not isinstance(data, dict):
        return
    for key in PROGRESS.keys():
        if key in data:
            PROGRESS[key] = data[key]
    _LAST_STATE_MTIME = stat.st_mtime


def _finalize_attempt_locked(now: float, *, reason: Optional[str] = None) -> None:
    attempt = LOG_STATE.get("attempt")
    if not attempt:
        return
    start = LOG_STATE.get("attempt_start")
    duration = max(0.0, now - start) if isinstance(start, (int, float)) else None
    _emit_log(
        "Attempt finished",
        phase=LOG_STATE.get("phase") or "",
        attempt=attempt,
        duration=_fmt_seconds(duration),
        reason=reason,
    )
    LOG_STATE["attempt"] = ""
    LOG_STATE["attempt_start"] = None


def _touch_elapsed_locked() -> None:
    t0 = PROGRESS.get("elapsed_start")
    if LOG_STATE.get("run_start") is not None and t0 is not None:
        PROGRESS["elapsed"] = _now() - float(LOG_STATE["run_start"])


def reset() -> None:
    with PROGRESS_LOCK:
        _finalize_attempt_locked(_now(), reason="reset")
        PROGRESS.update({
            "status": "Idle",
            "phase": "",
            "attempt": "",
            "solved": 0,
            "skipped": 0,
            "failed": 0,
            "elapsed_start": None,
            "elapsed": 0.0,
            "message": "",
            "done": False,
            "ok": None,
            "run_id": int(PROGRESS.get("run_id") or 0) + 1,
        })
        LOG_STATE.update({
            "run_start": None,
            "phase": "",
            "phase_start": None,
            "attempt": "",
            "attempt_start": None,
        })
        _emit_log("Progress reset")
        _persist_locked()


def start_timer() -> None:
    with PROGRESS_LOCK:
        now = _now()
        LOG_STATE["run_start"] = now
        PROGRESS["elapsed_start"] = time.time()
        PROGRESS["elapsed"] = 0.0
        PROGRESS["status"] = "Solving"
        _emit_log("Run timer started")
        _persist_locked()


def set_phase(v: Any) -> None:
    with PROGRESS_LOCK:
        phase = "" if v is None else str(v)
        prev = LOG_STATE.get("phase") or ""
        PROGRESS["phase"] = phase
        if phase != prev:
            now = _now()
            _finalize_attempt_locked(now, reason="phase_change")
            if prev and LOG_STATE.get("phase_start") is not None:
                _emit_log("Phase finished", phase=prev,
                          duration=_fmt_seconds(now - LOG_STATE["phase_start"]))
            LOG_STATE["phase"] = phase
            LOG_STATE["phase_start"] = now
            if phase:
                _emit_log("Phase started", phase=phase)
        _persist_locked()


def set_attempt(v: Any) -> None:
    with PROGRESS_LOCK:
        attempt = "" if v is None else str(v)
        PROGRESS["attempt"] = attempt
        if attempt != (LOG_STATE.get("attempt") or ""):
            now = _now()
            _finalize_attempt_locked(now, reason="switch")
            LOG_STATE["attempt"] = attempt
            if attempt:
                LOG_STATE["attempt_start"] = now
                _emit_log("Attempt started", phase=LOG_STATE.get("phase") or "", attempt=attempt)
        _touch_elapsed_locked()
        _persist_locked()


def bump(counter: str, by: int = 1) -> None:
    if counter not in ("solved", "skipped", "failed"):
        raise KeyError(counter)
    with PROGRESS_LOCK:
        PROGRESS[counter] = int(PROGRESS.get(counter) or 0) + int(by)
        _persist_locked()


def set_done(ok: Optional[bool] = None, *, reason: Any = None) -> None:
    """Mark the run complete; ``ok`` picks the final status when given."""

    with PROGRESS_LOCK:
        now = _now()
        _touch_elapsed_locked()
        if ok is not None:
            PROGRESS["status"] = "Solved" if ok else "Error"
            PROGRESS["ok"] = bool(ok)
        elif PROGRESS.get("status") in ("", "Idle", "Solving", None):
            PROGRESS["status"] = "Solved"
            PROGRESS["ok"] = True
        if reason is not None:
            PROGRESS["message"] = str(reason)
        PROGRESS["done"] = True
        _finalize_attempt_locked(now, reason="run_complete")
        run_start = LOG_STATE.get("run_start")
        total = max(0.0, now - run_start) if isinstance(run_start, (int, float)) else None
        LOG_STATE["run_start"] = None
        LOG_STATE["phase_start"] = None
        _emit_log(
            "Run finished",
            status=PROGRESS.get("status"),
            ok=PROGRESS.get("ok"),
            duration=_fmt_seconds(total),
            solved=PROGRESS.get("solved"),
            skipped=PROGRESS.get("skipped"),
            failed=PROGRESS.get("failed"),
            message=PROGRESS.get("message"),
        )
        _persist_locked()


def snapshot() -> Dict[str, Any]:
    with PROGRESS_LOCK:
        _load_persisted_locked()
        _touch_elapsed_locked()
        return dict(PROGRESS)


with PROGRESS_LOCK:
    _load_persisted_locked(force=True)
