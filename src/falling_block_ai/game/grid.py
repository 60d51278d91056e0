from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

import numpy as np

from .pieces import TetrominoType, piece_cells


Coordinate = Tuple[int, int]


class GameGrid:
    """Discrete 2D board, row 0 at the top.

    The grid uses 0 for empty cells and positive integers for filled cells.
    Integer values correspond to tetromino indices for optional coloring; the
    search code only ever looks at occupancy.
    """

    def __init__(self, width: int = 10, height: int = 20) -> None:
        self.width = int(width)
        self.height = int(height)
        self.grid = np.zeros((self.height, self.width), dtype=np.int8)

    @classmethod
    def from_array(cls, cells: np.ndarray | Sequence[Sequence[int]]) -> "GameGrid":
        array = np.asarray(cells, dtype=np.int8)
        if array.ndim != 2:
            raise ValueError(f"expected a 2D array of cells, got shape {array.shape}")
        height, width = array.shape
        new_grid = cls(width, height)
        new_grid.grid = array.copy()
        return new_grid

    @classmethod
    def from_rows(cls, rows: Sequence[str], filled: str = "#") -> "GameGrid":
        """Build a grid from text rows, top row first (e.g. ``"#..#......"``)."""
        return cls.from_array([[1 if ch == filled else 0 for ch in row] for row in rows])

    def reset(self) -> None:
        self.grid.fill(0)

    def is_inside(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def is_occupied(self, x: int, y: int) -> bool:
        return bool(self.grid[y, x] != 0)

    def can_place(self, cells: Iterable[Coordinate]) -> bool:
        for x, y in cells:
            if not self.is_inside(x, y):
                return False
            if self.grid[y, x] != 0:
                return False
        return True

    def is_occupied_or_out_of_bounds(self, kind: TetrominoType, rotation: int, x: int, y: int) -> bool:
        """Collision test shared by drop simulation and rotation checks."""
        return not self.can_place(piece_cells(kind, rotation, x, y))

    def place(self, kind: TetrominoType, rotation: int, x: int, y: int, value: int | None = None) -> int:
        """Mark the piece's cells and return how many were written.

        Cells above or below the visible rows are dropped, so pieces that are
        still partially above the board can be locked. A cell left or right
        of the board is an error.
        """
        marker = int(kind) if value is None else int(value)
        cells = list(piece_cells(kind, rotation, x, y))
        for cx, _ in cells:
            if not 0 <= cx < self.width:
                raise ValueError(f"column {cx} outside board of width {self.width}")
        written = 0
        for cx, cy in cells:
            if 0 <= cy < self.height:
                self.grid[cy, cx] = marker
                written += 1
        return written

    def detect_full_rows(self) -> List[int]:
        return [int(row) for row in np.flatnonzero(np.all(self.grid != 0, axis=1))]

    def collapse(self, row: int) -> None:
        """Remove `row`, shift every row above it down one and add an empty top row."""
        if not 0 <= row < self.height:
            raise IndexError(f"row {row} outside board of height {self.height}")
        if row > 0:
            self.grid[1 : row + 1] = self.grid[0:row].copy()
        self.grid[0] = 0

    def clear_full_rows(self) -> int:
        # Bottom-up scan; the same index is re-checked after each collapse.
        cleared = 0
        row = self.height - 1
        while row >= 0:
            if np.all(self.grid[row] != 0):
                self.collapse(row)
                cleared += 1
            else:
                row -= 1
        return cleared

    def column_heights(self) -> np.ndarray:
        occupied = self.grid != 0
        top = np.argmax(occupied, axis=0)
        return np.where(occupied.any(axis=0), self.height - top, 0).astype(np.int64)

    def get_max_height(self) -> int:
        return int(self.column_heights().max(initial=0))

    def occupancy(self) -> np.ndarray:
        return (self.grid != 0).astype(np.int8)

    def clone_state(self) -> np.ndarray:
        return self.grid.copy()

    def copy(self) -> "GameGrid":
        """Create an independent copy of the current grid"""
        new_grid = GameGrid(self.width, self.height)
        new_grid.grid = self.grid.copy()
        return new_grid

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GameGrid):
            return NotImplemented
        return self.grid.shape == other.grid.shape and bool(np.array_equal(self.grid, other.grid))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"GameGrid(width={self.width}, height={self.height})"


def clear_full_rows(grid: GameGrid) -> Tuple[GameGrid, int]:
    """Pure variant of `GameGrid.clear_full_rows`: returns (new_grid, cleared)."""
    new_grid = grid.copy()
    cleared = new_grid.clear_full_rows()
    return new_grid, cleared


def format_grid(grid: GameGrid) -> str:
    return "\n".join("".join("█" if cell else "·" for cell in row) for row in grid.grid)
