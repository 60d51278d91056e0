from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional, Sequence

import numpy as np

from falling_block_ai.game.grid import GameGrid
from falling_block_ai.game.pieces import TetrominoType
from falling_block_ai.game.randomizers import PieceSource, UniformRandomizer

from .heuristic import DEFAULT_WEIGHTS, as_weights, score
from .moves import Move, enumerate_moves


logger = logging.getLogger(__name__)

SEARCH_MODES = ("greedy", "beam")


@dataclass
class SearchConfig:
    """How the engine picks a move."""
    mode: str = "greedy"
    beam_width: int = 5
    depth: int = 2
    seed: Optional[int] = None  # lookahead piece draws
    _lookahead: Optional[UniformRandomizer] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.mode not in SEARCH_MODES:
            raise ValueError(f"unknown search mode {self.mode!r} (expected one of {SEARCH_MODES})")
        if self.beam_width < 1:
            raise ValueError(f"beam_width must be >= 1, got {self.beam_width}")
        if self.depth < 1:
            raise ValueError(f"depth must be >= 1, got {self.depth}")

    def lookahead_source(self) -> UniformRandomizer:
        """Uniform source for lookahead pieces, seeded once and reused by every decision."""
        if self._lookahead is None:
            self._lookahead = UniformRandomizer(self.seed)
        return self._lookahead


class BeamState(NamedTuple):
    board: GameGrid
    first_move: Optional[Move]
    score: float


def choose_greedy(kind: TetrominoType, grid: GameGrid, weights: Sequence[float] | np.ndarray) -> Optional[Move]:
    """Best single-ply move; ties keep the earliest move. None means top-out."""
    w = as_weights(weights)
    best_move: Optional[Move] = None
    best_score = float("-inf")
    for move in enumerate_moves(kind, grid):
        s = score(move.board, move.landing_row, w)
        if s > best_score:
            best_score, best_move = s, move
    return best_move


def beam_search(
    kind: TetrominoType,
    grid: GameGrid,
    weights: Sequence[float] | np.ndarray,
    beam_width: int = 5,
    depth: int = 2,
    piece_source: Optional[PieceSource] = None,
) -> Optional[Move]:
    """Multi-ply lookahead that only ever returns the first real decision.

    Level 0 expands the actual piece; deeper levels draw pieces from
    `piece_source` (uniform by default). Each candidate is scored on its own
    board, and only the best `beam_width` candidates survive a level. Unlike
    chaining `apply_move`, which never clears, full rows are cleared before a
    surviving board is expanded again, so deeper pieces land on the board
    the live game would show.
    """
    w = as_weights(weights)
    if beam_width < 1 or depth < 1:
        raise ValueError(f"beam_width and depth must be >= 1, got {beam_width} and {depth}")
    source = piece_source if piece_source is not None else UniformRandomizer()

    frontier: List[BeamState] = [BeamState(grid.copy(), None, 0.0)]
    for level in range(depth):
        piece = TetrominoType(kind) if level == 0 else source.next_piece()
        candidates: List[BeamState] = []
        for state in frontier:
            board = state.board
            if level > 0:
                board = board.copy()
                board.clear_full_rows()
            for move in enumerate_moves(piece, board):
                s = score(move.board, move.landing_row, w)
                first = move if level == 0 else state.first_move
                candidates.append(BeamState(move.board, first, s))

        if not candidates:
            logger.debug("beam frontier emptied at level %d/%d", level, depth)
            break
        # sorted() is stable, so equal scores keep enumeration order
        frontier = sorted(candidates, key=lambda c: c.score, reverse=True)[:beam_width]

    return frontier[0].first_move


def choose_move(
    kind: TetrominoType,
    grid: GameGrid,
    weights: Sequence[float] | np.ndarray | None = None,
    config: Optional[SearchConfig] = None,
    piece_source: Optional[PieceSource] = None,
) -> Optional[Move]:
    config = config or SearchConfig()
    w = DEFAULT_WEIGHTS if weights is None else weights
    if config.mode == "greedy":
        return choose_greedy(kind, grid, w)
    if piece_source is None:
        piece_source = config.lookahead_source()
    return beam_search(kind, grid, w, config.beam_width, config.depth, piece_source)
