"""Reading and writing grids and solution blocks."""

from __future__ import annotations

import os
import re
from typing import List, Optional, Tuple

from config import CFG
from models import Grid, GridError, Rect, SolveRecord

_TUPLE_RE = re.compile(r"\(\s*(-?\d+)\s*,\s*(-?\d+)\s*,\s*(-?\d+)\s*,\s*(-?\d+)\s*\)")
_KV_RE = re.compile(r"^\s*(\w+)\s*=\s*(.*?)\s*$")


def parse_grid(text: str, delimiter: Optional[str] = None) -> Grid:
    """Parse delimiter-separated rows of non-negative integers.

    Rejects ragged rows, negative or non-integer tokens, empty input and
    grids without any clue, naming the offending line and column.
    """
    delimiter = delimiter or CFG.DELIMITER
    lines = text.splitlines()
    while lines and not lines[-1].strip():
        lines.pop()
    if not lines:
        raise GridError("empty grid")

    grid: Grid = []
    width: Optional[int] = None
    for lineno, line in enumerate(lines, start=1):
        if not line.strip():
            raise GridError(f"line {lineno}: blank row inside grid")
        tokens = [tok.strip() for tok in line.split(delimiter)]
        row: List[int] = []
        for col, tok in enumerate(tokens, start=1):
            if not (tok.isascii() and tok.isdigit()):
                if tok.startswith("-") and tok[1:].isdigit():
                    raise GridError(f"line {lineno}, column {col}: negative value {tok!r}")
                raise GridError(f"line {lineno}, column {col}: not a non-negative integer: {tok!r}")
            row.append(int(tok))
        if width is None:
            width = len(row)
        elif len(row) != width:
            raise GridError(f"line {lineno}: expected {width} values, got {len(row)}")
        grid.append(row)

    if not any(v > 0 for row in grid for v in row):
        raise GridError("grid has no clue")
    return grid


def read_grid(path: str, delimiter: Optional[str] = None) -> Grid:
    with open(path, "r", encoding="utf-8") as fh:
        try:
            return parse_grid(fh.read(), delimiter)
        except GridError as e:
            raise GridError(f"{path}: {e}") from None


def write_grid(grid: Grid, path: str, delimiter: Optional[str] = None) -> str:
    delimiter = delimiter or CFG.DELIMITER
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        for row in grid:
            fh.write(delimiter.join(str(v) for v in row) + "\n")
    return path


def format_solution(grid: Grid, record: SolveRecord) -> str:
    """Text block: metadata, the grid, and 1-based inclusive rectangles in clue order."""
    out = [
        f"method = {record.method}",
        f"solveTime = {record.solve_time:.6f}",
        f"isOptimal = {'true' if record.is_optimal else 'false'}",
    ]
    if record.status:
        out.append(f"status = {record.status}")
    if record.error:
        out.append(f"error = {record.error.splitlines()[0]}")
    out.append("grid = [")
    for row in grid:
        out.append(" ".join(str(v) for v in row) + " ;")
    out.append("]")
    if record.rects:
        out.append("sol = [")
        for r in record.rects:
            out.append("({}, {}, {}, {}),".format(*r.to_one_based()))
        out.append("]")
    return "\n".join(out) + "\n"


def write_solution(path: str, grid: Grid, record: SolveRecord) -> str:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(format_solution(grid, record))
    return path


def parse_solution(text: str, instance: str = "") -> Tuple[Grid, SolveRecord]:
    fields = {}
    grid: Grid = []
    rects: List[Rect] = []
    block = None
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        if block is not None:
            if stripped == "]":
                block = None
            elif block == "grid":
                grid.append([int(tok) for tok in stripped.rstrip(";").split()])
            else:
                m = _TUPLE_RE.search(stripped)
                if m:
                    rects.append(Rect.from_one_based(tuple(int(g) for g in m.groups())))
            continue
        if stripped in ("grid = [", "sol = ["):
            block = stripped.split()[0]
            continue
        kv = _KV_RE.match(stripped)
        if kv:
            fields[kv.group(1)] = kv.group(2)

    if "solveTime" not in fields or "isOptimal" not in fields:
        raise ValueError("solution block lacks solveTime/isOptimal")
    record = SolveRecord(
        method=fields.get("method", ""),
        instance=instance,
        is_optimal=fields["isOptimal"].lower() == "true",
        solve_time=float(fields["solveTime"]),
        rects=rects or None,
        error=fields.get("error"),
        status=fields.get("status"),
    )
    return grid, record


def read_solution(path: str) -> Tuple[Grid, SolveRecord]:
    with open(path, "r", encoding="utf-8") as fh:
        return parse_solution(fh.read(), os.path.basename(path))


__all__ = [
    "parse_grid",
    "read_grid",
    "write_grid",
    "format_solution",
    "write_solution",
    "parse_solution",
    "read_solution",
]
