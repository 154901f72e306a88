import random

from generation import (
    generate_dataset,
    generate_instance,
    instance_name,
    merge_rectangles,
    rectangle_split,
)
from models import Rect


def _tiles(rects, m, n):
    cells = [c for r in rects for c in r.cells()]
    return len(cells) == m * n and set(cells) == {(i, j) for i in range(m) for j in range(n)}


def test_split_tiles_the_rectangle():
    for seed in range(20):
        pieces = rectangle_split(Rect(0, 0, 8, 5), 4, random.Random(seed))
        assert _tiles(pieces, 9, 6)


def test_split_stops_at_depth_zero_and_small_areas():
    rng = random.Random(0)
    assert rectangle_split(Rect(0, 0, 4, 4), 0, rng) == [Rect(0, 0, 4, 4)]
    assert rectangle_split(Rect(0, 0, 0, 2), 5, rng) == [Rect(0, 0, 0, 2)]


def test_merge_keeps_a_tiling():
    rng = random.Random(4)
    pieces = rectangle_split(Rect(0, 0, 9, 9), 5, rng)
    merged = merge_rectangles(pieces, 3, 1.0, rng)
    assert _tiles(merged, 10, 10)
    assert len(merged) <= len(pieces)


def test_instance_clues_fill_the_grid():
    for seed in range(10):
        grid = generate_instance(7, 5, 3, 2, 0.5, random.Random(seed))
        assert len(grid) == 7 and all(len(row) == 5 for row in grid)
        assert sum(v for row in grid for v in row) == 35


def test_dataset_generation_skips_existing_files(tmp_path):
    data = tmp_path / "data"
    first = generate_dataset(str(data), [4], per_combo=2, max_merge_iter=0, rng=random.Random(1))
    assert len(first) == 2 * 2
    assert (data / instance_name(4, 4, 2, 0, 2)).is_file()
    second = generate_dataset(str(data), [4], per_combo=2, max_merge_iter=0, rng=random.Random(1))
    assert second == []
