# solver/exact_cover.py
"""Solver-agnostic exact-cover formulation.

One binary variable per ``(clue, candidate)`` pair. Two families of
equality rows, each requiring exactly one active variable:

* one row per clue, over that clue's candidates;
* one row per grid cell, over every candidate (of any clue) covering it.

There is no objective; any feasible point is a solution.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from models import Clue, Grid, Rect
from solver.candidates import find_clues, grid_shape

VarKey = Tuple[int, int]  # (clue index, candidate index)


@dataclass
class ExactCoverModel:
    m: int
    n: int
    clues: List[Clue]
    candidate_sets: List[List[Rect]]
    variables: List[VarKey] = field(default_factory=list)
    index: Dict[VarKey, int] = field(default_factory=dict)
    clue_rows: List[List[int]] = field(default_factory=list)
    cell_rows: Dict[Tuple[int, int], List[int]] = field(default_factory=dict)

    @property
    def num_variables(self) -> int:
        return len(self.variables)

    def rows(self) -> List[List[int]]:
        """All exactly-one rows, clue rows first, cells in row-major order."""
        return list(self.clue_rows) + [self.cell_rows[(i, j)] for i in range(self.m) for j in range(self.n)]

    def has_empty_row(self) -> bool:
        return any(not row for row in self.rows())

    def rect_for(self, var: int) -> Rect:
        k, l = self.variables[var]
        return self.candidate_sets[k][l]


def build_model(
    grid: Grid,
    candidate_sets: Sequence[Sequence[Rect]],
    clues: Sequence[Clue] = (),
) -> ExactCoverModel:
    m, n = grid_shape(grid)
    clue_list = list(clues) or find_clues(grid)
    model = ExactCoverModel(
        m=m,
        n=n,
        clues=clue_list,
        candidate_sets=[list(c) for c in candidate_sets],
    )
    model.cell_rows = {(i, j): [] for i in range(m) for j in range(n)}

    for k, cands in enumerate(model.candidate_sets):
        row: List[int] = []
        for l, rect in enumerate(cands):
            var = len(model.variables)
            model.variables.append((k, l))
            model.index[(k, l)] = var
            row.append(var)
            for cell in rect.cells():
                model.cell_rows[cell].append(var)
        model.clue_rows.append(row)

    return model


__all__ = ["ExactCoverModel", "VarKey", "build_model"]
