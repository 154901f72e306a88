# solver/candidates.py
import math
from typing import List, Optional, Sequence, Tuple

from models import Clue, Grid, GridError, Rect


def divisor_pairs(v: int) -> List[Tuple[int, int]]:
    """Return ``(d, v // d)`` pairs found by trial division up to ``ceil(sqrt(v))``.

    The trivial pair ``(1, v)`` always comes first.
    """
    if v <= 0:
        return []
    pairs = [(1, v)]
    for d in range(2, math.ceil(math.sqrt(v)) + 1):
        if v % d == 0:
            pairs.append((d, v // d))
    return pairs


def orientations(v: int) -> List[Tuple[int, int]]:
    """All ``(height, width)`` shapes of area ``v``, each exactly once."""
    pairs = divisor_pairs(v)
    seen = set()
    out: List[Tuple[int, int]] = []
    for h, w in pairs + [(w, h) for h, w in pairs]:
        if (h, w) in seen:
            continue
        seen.add((h, w))
        out.append((h, w))
    return out


def grid_shape(grid: Grid) -> Tuple[int, int]:
    m = len(grid)
    n = len(grid[0]) if m else 0
    if m == 0 or n == 0:
        raise GridError("grid must have at least one row and one column")
    return m, n


def find_clues(grid: Grid) -> List[Clue]:
    """Row-major scan of the positive cells; the order defines clue indices."""
    clues: List[Clue] = []
    for i, row in enumerate(grid):
        for j, v in enumerate(row):
            if v > 0:
                clues.append(Clue(i, j, int(v)))
    return clues


def _holds_foreign_clue(grid: Grid, rect: Rect, clue: Clue) -> bool:
    for i in range(rect.row_min, rect.row_max + 1):
        row = grid[i]
        for j in range(rect.col_min, rect.col_max + 1):
            if row[j] > 0 and (i, j) != (clue.row, clue.col):
                return True
    return False


def generate_candidates(
    grid: Grid,
    clue: Clue,
    *,
    exclude_foreign_clues: bool = False,
) -> List[Rect]:
    """Enumerate every rectangle of area ``clue.value`` that fits the grid and holds the clue.

    With ``exclude_foreign_clues`` the whole interior is scanned and any
    rectangle swallowing another clue is dropped. The exact-cover path does not
    need this since the per-cell constraint already forbids it.
    """
    m, n = grid_shape(grid)
    out: List[Rect] = []
    for h, w in orientations(clue.value):
        if h > m or w > n:
            continue
        # top-left corners keeping the clue inside and the rectangle on the board
        for i1 in range(max(0, clue.row - h + 1), min(clue.row, m - h) + 1):
            for j1 in range(max(0, clue.col - w + 1), min(clue.col, n - w) + 1):
                rect = Rect(i1, j1, i1 + h - 1, j1 + w - 1)
                if exclude_foreign_clues and _holds_foreign_clue(grid, rect, clue):
                    continue
                out.append(rect)
    return out


def build_candidate_sets(
    grid: Grid,
    clues: Optional[Sequence[Clue]] = None,
    *,
    exclude_foreign_clues: bool = False,
) -> List[List[Rect]]:
    if clues is None:
        clues = find_clues(grid)
    return [
        generate_candidates(grid, clue, exclude_foreign_clues=exclude_foreign_clues)
        for clue in clues
    ]


def partition_errors(grid: Grid, rects: Sequence[Rect]) -> List[str]:
    """Problems preventing ``rects`` (one per clue, scan order) from solving ``grid``."""
    m, n = grid_shape(grid)
    clues = find_clues(grid)
    problems: List[str] = []
    if len(rects) != len(clues):
        return [f"expected {len(clues)} rectangles, got {len(rects)}"]
    counts = [[0] * n for _ in range(m)]
    for k, (clue, r) in enumerate(zip(clues, rects)):
        if r.row_min < 0 or r.col_min < 0 or r.row_max >= m or r.col_max >= n:
            problems.append(f"rectangle #{k} {r.as_tuple()} leaves the grid")
            continue
        if not r.contains(clue.row, clue.col):
            problems.append(f"rectangle #{k} misses its clue at ({clue.row}, {clue.col})")
        if r.area != clue.value:
            problems.append(f"rectangle #{k} has area {r.area}, clue says {clue.value}")
        for i, j in r.cells():
            counts[i][j] += 1
    for i in range(m):
        for j in range(n):
            if counts[i][j] != 1:
                problems.append(f"cell ({i}, {j}) covered {counts[i][j]} times")
    return problems


__all__ = [
    "partition_errors",
    "divisor_pairs",
    "orientations",
    "grid_shape",
    "find_clues",
    "generate_candidates",
    "build_candidate_sets",
]
