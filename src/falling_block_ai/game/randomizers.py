from __future__ import annotations

import random
from typing import List, Optional, Protocol, Union

from .pieces import TetrominoType


SeedLike = Union[int, random.Random, None]


def _as_rng(seed: SeedLike) -> random.Random:
    if isinstance(seed, random.Random):
        return seed
    return random.Random(seed)


class PieceSource(Protocol):
    def next_piece(self) -> TetrominoType: ...


class UniformRandomizer:
    """Independent uniform draw per piece, no memory between draws."""

    def __init__(self, seed: SeedLike = None) -> None:
        self.rng = _as_rng(seed)
        self._kinds = list(TetrominoType)

    def next_piece(self) -> TetrominoType:
        return self.rng.choice(self._kinds)


class BagRandomizer:
    """Stateful bag: draws without replacement, refills once empty.

    Live play uses four copies of each tetromino per bag.
    """

    def __init__(self, seed: SeedLike = None, copies: int = 4) -> None:
        if copies < 1:
            raise ValueError(f"copies must be >= 1, got {copies}")
        self.rng = _as_rng(seed)
        self.copies = int(copies)
        self.bag: List[TetrominoType] = []

    def refill(self) -> None:
        self.bag = [kind for kind in TetrominoType for _ in range(self.copies)]

    def next_piece(self) -> TetrominoType:
        if not self.bag:
            self.refill()
        return self.bag.pop(self.rng.randrange(len(self.bag)))

    def remaining(self) -> int:
        return len(self.bag)


def make_randomizer(name: str, seed: Optional[int] = None) -> PieceSource:
    if name == "bag":
        return BagRandomizer(seed)
    if name == "uniform":
        return UniformRandomizer(seed)
    raise ValueError(f"unknown randomizer {name!r} (expected 'bag' or 'uniform')")
