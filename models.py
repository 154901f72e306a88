from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

Grid = List[List[int]]

# Terminal statuses reported by exact backends.
FEASIBLE = "feasible"
INFEASIBLE = "infeasible"
UNKNOWN = "unknown"


class PuzzleError(Exception):
    """Base class for engine errors."""


class GridError(PuzzleError, ValueError):
    """Malformed grid input, rejected before it reaches the solvers."""


class InfeasibleInstance(PuzzleError):
    """At least one clue has no candidate rectangle."""

    def __init__(self, clue_index: int, clue: "Clue"):
        super().__init__(
            f"clue #{clue_index} (value {clue.value} at row {clue.row}, col {clue.col}) "
            "has no candidate rectangle"
        )
        self.clue_index = clue_index
        self.clue = clue


class BackendError(PuzzleError):
    """Exact backend failure (crash, unavailable solver, invalid model, odd status)."""


@dataclass(frozen=True)
class Clue:
    row: int
    col: int
    value: int


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle with inclusive, 0-based bounds."""

    row_min: int
    col_min: int
    row_max: int
    col_max: int

    @property
    def height(self) -> int:
        return self.row_max - self.row_min + 1

    @property
    def width(self) -> int:
        return self.col_max - self.col_min + 1

    @property
    def area(self) -> int:
        return self.height * self.width

    def contains(self, row: int, col: int) -> bool:
        return self.row_min <= row <= self.row_max and self.col_min <= col <= self.col_max

    def cells(self) -> Iterator[Tuple[int, int]]:
        for i in range(self.row_min, self.row_max + 1):
            for j in range(self.col_min, self.col_max + 1):
                yield i, j

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.row_min, self.col_min, self.row_max, self.col_max)

    def to_one_based(self) -> Tuple[int, int, int, int]:
        return (self.row_min + 1, self.col_min + 1, self.row_max + 1, self.col_max + 1)

    @classmethod
    def from_one_based(cls, t: Tuple[int, int, int, int]) -> "Rect":
        i1, j1, i2, j2 = (int(v) for v in t)
        return cls(i1 - 1, j1 - 1, i2 - 1, j2 - 1)


@dataclass
class ExactResult:
    solved: bool
    elapsed: float
    rects: Optional[List[Rect]]
    status: str


@dataclass
class HeuristicResult:
    is_optimal: bool
    rects: List[Rect]
    energy: int
    iterations: int
    elapsed: float


@dataclass
class EscalationResult:
    is_optimal: bool
    elapsed: float
    rects: Optional[List[Rect]]
    rounds: List[Tuple[int, float, bool, float]] = field(default_factory=list)  # (k_max, init_t, optimal, seconds)
    status: str = UNKNOWN


@dataclass
class SolveRecord:
    method: str
    instance: str
    is_optimal: bool
    solve_time: float
    rects: Optional[List[Rect]] = None
    error: Optional[str] = None
    status: Optional[str] = None  # FEASIBLE, INFEASIBLE or UNKNOWN
