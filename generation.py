"""Instance generation by recursive rectangle splitting."""

from __future__ import annotations

import os
import random
from typing import List, Optional, Sequence

from config import CFG
from grid_io import write_grid
from models import Grid, Rect
from progress import log_attempt_detail


def rectangle_split(rect: Rect, depth: int, rng: random.Random) -> List[Rect]:
    """Split ``rect`` recursively ``depth`` times; pieces of area <= 3 stay whole."""
    H, W = rect.height, rect.width
    if depth <= 0 or H * W <= 3:
        return [rect]

    if H == 1:
        split_rows = False
    elif W == 1:
        split_rows = True
    else:
        split_rows = (H + W) * rng.random() < H

    # cut offsets avoid one-wide slivers once the side is at least 4
    if split_rows:
        span = H - 3
        cut = rect.row_min + (rng.randint(1, span) if span >= 1 else 0)
        first = Rect(rect.row_min, rect.col_min, cut, rect.col_max)
        second = Rect(cut + 1, rect.col_min, rect.row_max, rect.col_max)
    else:
        span = W - 3
        cut = rect.col_min + (rng.randint(1, span) if span >= 1 else 0)
        first = Rect(rect.row_min, rect.col_min, rect.row_max, cut)
        second = Rect(rect.row_min, cut + 1, rect.row_max, rect.col_max)
    return rectangle_split(first, depth - 1, rng) + rectangle_split(second, depth - 1, rng)


def _mergeable(a: Rect, b: Rect) -> Optional[Rect]:
    if a.row_min == b.row_min and a.row_max == b.row_max and (
        b.col_min - a.col_max == 1 or a.col_min - b.col_max == 1
    ):
        return Rect(a.row_min, min(a.col_min, b.col_min), a.row_max, max(a.col_max, b.col_max))
    if a.col_min == b.col_min and a.col_max == b.col_max and (
        b.row_min - a.row_max == 1 or a.row_min - b.row_max == 1
    ):
        return Rect(min(a.row_min, b.row_min), a.col_min, max(a.row_max, b.row_max), a.col_max)
    return None


def merge_rectangles(rects: Sequence[Rect], n_iter: int, merge_prob: float, rng: random.Random) -> List[Rect]:
    """Randomly fuse aligned neighbours; each rectangle takes part in at most one merge per pass."""
    current = list(rects)
    for _ in range(n_iter):
        removed = set()
        added: List[Rect] = []
        for a in current:
            for b in current:
                if a == b or a in removed or b in removed:
                    continue
                merged = _mergeable(a, b)
                if merged is not None and rng.random() < merge_prob:
                    removed.update((a, b))
                    added.append(merged)
        current = [r for r in current if r not in removed] + added
    return current


def generate_instance(
    m: int,
    n: int,
    depth: int,
    n_merge_iter: int = 0,
    merge_prob: float = 0.5,
    rng: Optional[random.Random] = None,
) -> Grid:
    """Build an ``m x n`` grid that is solvable by construction."""
    if m < 1 or n < 1:
        raise ValueError("grid dimensions must be positive")
    rng = rng or random.Random()
    pieces = merge_rectangles(rectangle_split(Rect(0, 0, m - 1, n - 1), depth, rng), n_merge_iter, merge_prob, rng)
    grid = [[0] * n for _ in range(m)]
    for r in pieces:
        i = rng.randint(r.row_min, r.row_max)
        j = rng.randint(r.col_min, r.col_max)
        grid[i][j] = r.area
    return grid


def instance_name(m: int, n: int, depth: int, n_merge_iter: int, index: int) -> str:
    return f"instance_h{m}_w{n}_d{depth}_it{n_merge_iter}_{index}.txt"


def generate_dataset(
    data_dir: Optional[str] = None,
    sizes: Optional[Sequence[int]] = None,
    *,
    per_combo: Optional[int] = None,
    max_merge_iter: Optional[int] = None,
    merge_prob: Optional[float] = None,
    rng: Optional[random.Random] = None,
) -> List[str]:
    """Write square instances for every size/depth/merge combination.

    Files that already exist are left untouched. Returns the paths written.
    """
    data_dir = data_dir or CFG.DATA_DIR
    sizes = tuple(sizes or CFG.GEN_SIZES)
    per_combo = CFG.GEN_PER_COMBO if per_combo is None else int(per_combo)
    max_merge_iter = CFG.GEN_MERGE_ITERS if max_merge_iter is None else int(max_merge_iter)
    merge_prob = CFG.GEN_MERGE_PROB if merge_prob is None else float(merge_prob)
    rng = rng or random.Random()

    os.makedirs(data_dir, exist_ok=True)
    written: List[str] = []
    for size in sizes:
        for depth in range(1, size // 2 + 1):
            for it in range(max_merge_iter + 1):
                for idx in range(1, per_combo + 1):
                    path = os.path.join(data_dir, instance_name(size, size, depth, it, idx))
                    if os.path.isfile(path):
                        continue
                    write_grid(generate_instance(size, size, depth, it, merge_prob, rng), path)
                    written.append(path)
    log_attempt_detail("Dataset generated", data_dir=data_dir, written=len(written))
    return written


__all__ = [
    "rectangle_split",
    "merge_rectangles",
    "generate_instance",
    "instance_name",
    "generate_dataset",
]
