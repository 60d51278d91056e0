from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from falling_block_ai.game.grid import GameGrid, clear_full_rows
from falling_block_ai.game.pieces import NUM_ROTATIONS, Piece, TetrominoType, piece_size


@dataclass(frozen=True, eq=False)
class Move:
    """A fully dropped placement and the board it produces (lines not cleared)."""

    kind: TetrominoType
    rotation: int
    column: int
    landing_row: int
    board: GameGrid

    @property
    def piece(self) -> Piece:
        return Piece(self.kind, self.rotation, self.column, self.landing_row)

    def key(self) -> tuple[int, int]:
        return self.rotation, self.column

    def __repr__(self) -> str:
        return (f"Move(kind={self.kind.name}, rotation={self.rotation}, "
                f"column={self.column}, landing_row={self.landing_row})")


def drop_row(kind: TetrominoType, rotation: int, x: int, grid: GameGrid) -> Optional[int]:
    """Row where the piece comes to rest when dropped from row 0, or None if blocked at spawn."""
    if grid.is_occupied_or_out_of_bounds(kind, rotation, x, 0):
        return None
    y = 0
    while not grid.is_occupied_or_out_of_bounds(kind, rotation, x, y + 1):
        y += 1
    return y


def enumerate_moves(kind: TetrominoType, grid: GameGrid) -> List[Move]:
    """Every reachable resting placement, one per (rotation, column)."""
    kind = TetrominoType(kind)
    moves: List[Move] = []
    last_column = grid.width - piece_size(kind)
    for rotation in range(NUM_ROTATIONS):
        for x in range(last_column + 1):
            y = drop_row(kind, rotation, x, grid)
            if y is None:
                continue
            board = grid.copy()
            board.place(kind, rotation, x, y)
            moves.append(Move(kind, rotation, x, y, board))
    return moves


def apply_move(grid: GameGrid, move: Move) -> GameGrid:
    """Return a copy of `grid` with the move's cells marked; nothing is cleared."""
    board = grid.copy()
    board.place(move.kind, move.rotation, move.column, move.landing_row)
    return board


__all__ = ["Move", "drop_row", "enumerate_moves", "apply_move", "clear_full_rows"]
