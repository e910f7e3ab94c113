"""Board positions, win detection and memoized minimax scoring for PerfectXO."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Tuple

from .cache import ScoreCache

Mark = str  # "X" or "O"
Grid = Tuple[Tuple[str, ...], ...]

EMPTY = "E"
MARKS: Tuple[Mark, Mark] = ("X", "O")
# Line state for a full line holding both marks
MIXED = "D"

WIN_SCORE = 100
DRAW_SCORE = 0


def opponent(mark: Mark) -> Mark:
    if mark not in MARKS:
        raise ValueError(f"Unknown mark {mark!r}")
    return "O" if mark == "X" else "X"


class Outcome(str, Enum):
    COMPUTER_WINS = "computer"
    HUMAN_WINS = "human"
    DRAW = "draw"
    ONGOING = "ongoing"


@dataclass(frozen=True)
class Position:
    """Immutable snapshot of the grid plus whose turn produces the next move.

    ``cells`` is indexed ``cells[y][x]``: ``y`` is the row, ``x`` the column.
    The computer is the maximizing side, the human the minimizing one.
    """

    cells: Grid
    computer_symbol: Mark = "X"
    computer_to_move: bool = False
    cache: ScoreCache = field(default_factory=ScoreCache, compare=False, repr=False)

    def __post_init__(self) -> None:
        grid = tuple(tuple(row) for row in self.cells)
        if not grid or any(len(row) != len(grid) for row in grid):
            raise ValueError("Board must be a non-empty square grid")
        for row in grid:
            for cell in row:
                if cell != EMPTY and cell not in MARKS:
                    raise ValueError(f"Unknown cell value {cell!r}")
        if self.computer_symbol not in MARKS:
            raise ValueError(f"Computer symbol must be one of {MARKS}")
        object.__setattr__(self, "cells", grid)

    @classmethod
    def initial(
        cls,
        size: int = 3,
        computer_symbol: Mark = "X",
        computer_first: bool = False,
        cache: Optional[ScoreCache] = None,
    ) -> "Position":
        if size < 1:
            raise ValueError("Board size must be positive")
        return cls(
            cells=tuple((EMPTY,) * size for _ in range(size)),
            computer_symbol=computer_symbol,
            computer_to_move=computer_first,
            cache=cache if cache is not None else ScoreCache(),
        )

    # ---- basic queries ----

    @property
    def size(self) -> int:
        return len(self.cells)

    @property
    def human_symbol(self) -> Mark:
        return opponent(self.computer_symbol)

    @property
    def symbol_to_move(self) -> Mark:
        return self.computer_symbol if self.computer_to_move else self.human_symbol

    def empty_cells(self) -> Iterator[Tuple[int, int]]:
        """Yield ``(x, y)`` of every empty cell in row-major order."""
        for y, row in enumerate(self.cells):
            for x, cell in enumerate(row):
                if cell == EMPTY:
                    yield x, y

    # ---- move generation ----

    def clone_with_move(self, x: int, y: int, symbol: Mark) -> "Position":
        """Return a new position with ``symbol`` placed at ``(x, y)`` and the turn flipped."""
        if not (0 <= x < self.size and 0 <= y < self.size):
            raise ValueError(f"Cell ({x}, {y}) is outside the board")
        if self.cells[y][x] != EMPTY:
            raise ValueError("Cell already occupied")
        if symbol not in MARKS:
            raise ValueError(f"Unknown mark {symbol!r}")

        row = self.cells[y][:x] + (symbol,) + self.cells[y][x + 1 :]
        return Position(
            cells=self.cells[:y] + (row,) + self.cells[y + 1 :],
            computer_symbol=self.computer_symbol,
            computer_to_move=not self.computer_to_move,
            cache=self.cache,
        )

    def get_child_boards(self) -> List["Position"]:
        """Every position reachable by the side to move filling one empty cell."""
        mark = self.symbol_to_move
        return [self.clone_with_move(x, y, mark) for x, y in self.empty_cells()]

    def changed_cell(self, other: "Position") -> Tuple[int, int]:
        """Coordinates of the single cell where ``other`` differs from this position."""
        diff = [
            (x, y)
            for y in range(self.size)
            for x in range(self.size)
            if self.cells[y][x] != other.cells[y][x]
        ]
        if len(diff) != 1:
            raise ValueError("Positions differ by more than one move")
        return diff[0]

    # ---- lines & outcome ----

    def rows(self) -> List[Tuple[str, ...]]:
        return list(self.cells)

    def columns(self) -> List[Tuple[str, ...]]:
        return [tuple(row[x] for row in self.cells) for x in range(self.size)]

    def diagonals(self) -> List[Tuple[str, ...]]:
        n = self.size
        return [
            tuple(self.cells[i][i] for i in range(n)),
            tuple(self.cells[i][n - i - 1] for i in range(n)),
        ]

    def lines(self) -> List[Tuple[str, ...]]:
        return self.rows() + self.columns() + self.diagonals()

    @staticmethod
    def line_state(line: Sequence[str]) -> str:
        """``EMPTY`` if the line has a gap, the mark if one mark fills it, else ``MIXED``."""
        if EMPTY in line:
            return EMPTY
        if all(cell == line[0] for cell in line):
            return line[0]
        return MIXED

    def winner(self) -> Optional[Mark]:
        for line in self.lines():
            state = self.line_state(line)
            if state in MARKS:
                return state
        return None

    def get_outcome(self) -> Outcome:
        complete = True
        for line in self.lines():
            state = self.line_state(line)
            if state in MARKS:
                if state == self.computer_symbol:
                    return Outcome.COMPUTER_WINS
                return Outcome.HUMAN_WINS
            if state == EMPTY:
                complete = False
        return Outcome.DRAW if complete else Outcome.ONGOING

    # ---- scoring ----

    def encode(self) -> str:
        """Canonical grid encoding: cells joined by ``,`` and rows by ``;``."""
        return ";".join(",".join(row) for row in self.cells)

    def cache_key(self) -> Tuple[str, Mark, bool]:
        return self.encode(), self.computer_symbol, self.computer_to_move

    def get_score(self) -> int:
        return self.cache.get_or_compute(self.cache_key(), self.compute_score)

    def compute_score(self) -> int:
        outcome = self.get_outcome()
        # A finished game has no moves left, so the remaining-move term is zero.
        if outcome is Outcome.COMPUTER_WINS:
            return WIN_SCORE
        if outcome is Outcome.HUMAN_WINS:
            return -WIN_SCORE
        if outcome is Outcome.DRAW:
            return DRAW_SCORE

        scores = [child.get_score() for child in self.get_child_boards()]
        return max(scores) if self.computer_to_move else min(scores)

    def select_best_move(self) -> Optional["Position"]:
        """The computer's reply: first child in row-major order matching this score."""
        if not self.computer_to_move:
            return None
        if self.get_outcome() is not Outcome.ONGOING:
            return None

        target = self.get_score()
        for child in self.get_child_boards():
            if child.get_score() == target:
                return child
        return None
