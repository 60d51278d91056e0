"""Game module for the falling-block AI.

Exports the board model and supporting classes:
- GameGrid: Grid representation, collision test and line clearing
- Piece: Tetromino instance (type, rotation, anchor)
- TetrominoType: Enum of available piece types
- BagRandomizer / UniformRandomizer: Piece sources
- ScoringRules: Live scoring configuration
- GameSession: Headless placement-level game state
"""

from .grid import GameGrid, clear_full_rows, format_grid
from .pieces import Piece, TetrominoType, piece_cells, piece_offsets, piece_size
from .randomizers import BagRandomizer, PieceSource, UniformRandomizer, make_randomizer
from .rules import ScoringRules
from .core import GameConfig, GameSession, PlacementResult

__all__ = [
    "GameGrid",
    "clear_full_rows",
    "format_grid",
    "Piece",
    "TetrominoType",
    "piece_cells",
    "piece_offsets",
    "piece_size",
    "BagRandomizer",
    "PieceSource",
    "UniformRandomizer",
    "make_randomizer",
    "ScoringRules",
    "GameConfig",
    "GameSession",
    "PlacementResult",
]
