from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

import numpy as np

from .grid import GameGrid
from .pieces import Piece, TetrominoType
from .randomizers import BagRandomizer, PieceSource
from .rules import ScoringRules

if TYPE_CHECKING:
    from falling_block_ai.ai.moves import Move


@dataclass
class GameConfig:
    width: int = 10
    height: int = 20
    random_seed: Optional[int] = None
    max_pieces: Optional[int] = None

    def __post_init__(self) -> None:
        if self.width < 4 or self.height < 4:
            raise ValueError(f"board must be at least 4x4, got {self.width}x{self.height}")


@dataclass
class PlacementResult:
    lines_cleared: int
    points: int
    game_over: bool


class GameSession:
    """Headless game state at placement granularity.

    Owns the board, the piece source and the counters; nothing here is
    process-wide, so any number of sessions can run side by side.
    """

    def __init__(self, config: Optional[GameConfig] = None, rules: Optional[ScoringRules] = None,
                 randomizer: Optional[PieceSource] = None) -> None:
        self.config = config or GameConfig()
        self.rules = rules or ScoringRules()
        self._custom_randomizer = randomizer is not None
        self.randomizer: PieceSource = randomizer or BagRandomizer(self.config.random_seed)
        self.spawn_rng = random.Random(self.config.random_seed)
        self.grid = GameGrid(self.config.width, self.config.height)
        self.score = 0
        self.lines_cleared_total = 0
        self.pieces_placed = 0
        self.game_over = False
        self.current_piece: Optional[Piece] = None
        self.next_piece: Optional[Piece] = None
        self._spawn_pair()

    def reset(self, seed: Optional[int] = None) -> None:
        if seed is not None:
            self.config.random_seed = seed
            self.spawn_rng = random.Random(seed)
            if not self._custom_randomizer:
                self.randomizer = BagRandomizer(seed)
        elif not self._custom_randomizer:
            self.randomizer = BagRandomizer(self.spawn_rng)
        self.grid.reset()
        self.score = 0
        self.lines_cleared_total = 0
        self.pieces_placed = 0
        self.game_over = False
        self._spawn_pair()

    def _spawn(self) -> Piece:
        kind = TetrominoType(self.randomizer.next_piece())
        size = Piece(kind).size
        x = self.spawn_rng.randint(0, self.grid.width - size)
        return Piece(kind=kind, rotation=0, x=x, y=0)

    def _spawn_pair(self) -> None:
        self.current_piece = self._spawn()
        self.next_piece = self._spawn()

    def _advance(self) -> None:
        self.current_piece = self.next_piece
        self.next_piece = self._spawn()

    def apply(self, move: Optional["Move"]) -> PlacementResult:
        """Lock `move` on the live board; None means no legal move was found."""
        if self.game_over:
            return PlacementResult(0, 0, True)
        if move is None:
            self.game_over = True
            return PlacementResult(0, 0, True)
        if self.current_piece is None:
            raise RuntimeError("session has no current piece; call reset() first")
        if TetrominoType(move.kind) != self.current_piece.kind:
            raise ValueError(
                f"move is for {TetrominoType(move.kind).name}, current piece is {self.current_piece.kind.name}"
            )
        if self.grid.is_occupied_or_out_of_bounds(move.kind, move.rotation, move.column, move.landing_row):
            raise ValueError(f"{move!r} collides with the live board")

        self.grid.place(move.kind, move.rotation, move.column, move.landing_row)
        lines = self.grid.clear_full_rows()
        points = self.rules.score_for_lines(lines)
        self.score += points
        self.lines_cleared_total += lines
        self.pieces_placed += 1
        self._advance()
        if self.config.max_pieces is not None and self.pieces_placed >= self.config.max_pieces:
            self.game_over = True
        return PlacementResult(lines, points, self.game_over)

    def get_state(self) -> np.ndarray:
        # Overlay current piece on a copy of the grid for observation
        state = self.grid.clone_state()
        if self.current_piece is not None and not self.game_over:
            for x, y in self.current_piece.cells():
                if self.grid.is_inside(x, y):
                    # Use negative to indicate falling piece overlay
                    state[y, x] = -int(self.current_piece.kind)
        return state

    def get_game_stats(self) -> dict:
        return {
            "final_score": self.score,
            "pieces_placed": self.pieces_placed,
            "lines_cleared": self.lines_cleared_total,
            "max_height": self.grid.get_max_height(),
            "avg_score_per_piece": self.score / max(1, self.pieces_placed),
            "avg_lines_per_piece": self.lines_cleared_total / max(1, self.pieces_placed),
        }
