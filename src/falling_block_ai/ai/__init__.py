"""Move search and heuristic decision making.

Exports:
- enumerate_moves / apply_move / clear_full_rows: placement generation
- score / compute_features: the 8-feature linear heuristic
- choose_move / choose_greedy / beam_search: decision procedures
"""

from falling_block_ai.game.grid import clear_full_rows

from .engine import BeamState, SearchConfig, beam_search, choose_greedy, choose_move
from .heuristic import (
    DEFAULT_WEIGHTS,
    FEATURE_NAMES,
    NUM_FEATURES,
    InvalidWeightVectorError,
    as_weights,
    compute_features,
    feature_dict,
    score,
)
from .moves import Move, apply_move, drop_row, enumerate_moves

__all__ = [
    "BeamState",
    "SearchConfig",
    "beam_search",
    "choose_greedy",
    "choose_move",
    "DEFAULT_WEIGHTS",
    "FEATURE_NAMES",
    "NUM_FEATURES",
    "InvalidWeightVectorError",
    "as_weights",
    "compute_features",
    "feature_dict",
    "score",
    "Move",
    "apply_move",
    "clear_full_rows",
    "drop_row",
    "enumerate_moves",
]
