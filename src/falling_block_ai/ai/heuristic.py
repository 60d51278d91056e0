"""Hand-crafted board evaluation.

The score of a board is the dot product of an 8-element feature vector with a
weight vector. Feature order is fixed:

    0 aggregate_height   sum of column heights
    1 complete_lines     rows with every column occupied
    2 holes              empty cells with an occupied cell above them
    3 bumpiness          sum of |h[x] - h[x+1]|
    4 landing_height     row index where the last piece landed (0 if unknown)
    5 row_transitions    occupancy changes left to right, walls count as filled
    6 col_transitions    occupancy changes top to bottom, ceiling and floor filled
    7 well_depth         sum of max(0, min(left, right) - h), walls infinitely tall

Landing height is the literal landing row for live play and training alike.
"""

from __future__ import annotations

from typing import Dict, Sequence

import numpy as np

from falling_block_ai.game.grid import GameGrid


FEATURE_NAMES = (
    "aggregate_height",
    "complete_lines",
    "holes",
    "bumpiness",
    "landing_height",
    "row_transitions",
    "col_transitions",
    "well_depth",
)
NUM_FEATURES = len(FEATURE_NAMES)

# Weights tuned by the genetic trainer for the shipped agent.
DEFAULT_WEIGHTS = np.array([
    -0.8370186515007799,
    0.07800828639044773,
    -0.9199195588777043,
    -0.16993362833562325,
    -0.03245026652201599,
    -0.9140805670540637,
    0.03862784738965987,
    -0.6946664883532104,
], dtype=np.float64)


class InvalidWeightVectorError(ValueError):
    """Raised when a weight vector does not have exactly one entry per feature."""


def as_weights(weights: Sequence[float] | np.ndarray) -> np.ndarray:
    array = np.asarray(weights, dtype=np.float64)
    if array.ndim != 1 or array.shape[0] != NUM_FEATURES:
        raise InvalidWeightVectorError(
            f"expected {NUM_FEATURES} weights, got shape {array.shape}"
        )
    return array


def _transitions(occupied: np.ndarray, axis: int) -> int:
    # Pad both ends of the scan axis with filled cells.
    pad = [(0, 0), (0, 0)]
    pad[axis] = (1, 1)
    padded = np.pad(occupied, pad, mode="constant", constant_values=1)
    return int(np.count_nonzero(np.diff(padded, axis=axis)))


def compute_features(grid: GameGrid, landing_row: int | None = 0) -> np.ndarray:
    occupied = (grid.grid != 0).astype(np.int8)
    heights = grid.column_heights()

    aggregate_height = int(heights.sum())
    complete_lines = int(np.count_nonzero(occupied.all(axis=1)))
    covered = np.maximum.accumulate(occupied, axis=0)
    holes = int(np.count_nonzero(covered & (1 - occupied)))
    bumpiness = int(np.abs(np.diff(heights)).sum())
    landing_height = int(landing_row or 0)
    row_transitions = _transitions(occupied, axis=1)
    col_transitions = _transitions(occupied, axis=0)

    well_depth = 0
    width = grid.width
    for x in range(width):
        left = heights[x - 1] if x > 0 else None
        right = heights[x + 1] if x < width - 1 else None
        neighbours = [h for h in (left, right) if h is not None]
        if not neighbours:
            continue
        well_depth += max(0, int(min(neighbours)) - int(heights[x]))

    return np.array([
        aggregate_height,
        complete_lines,
        holes,
        bumpiness,
        landing_height,
        row_transitions,
        col_transitions,
        well_depth,
    ], dtype=np.float64)


def feature_dict(grid: GameGrid, landing_row: int | None = 0) -> Dict[str, float]:
    return dict(zip(FEATURE_NAMES, compute_features(grid, landing_row).tolist()))


def score(grid: GameGrid, landing_row: int | None, weights: Sequence[float] | np.ndarray) -> float:
    """Higher is better."""
    w = as_weights(weights)
    return float(np.dot(compute_features(grid, landing_row), w))
