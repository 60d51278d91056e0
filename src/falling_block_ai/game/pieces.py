from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Dict, Iterator, Tuple


Offset = Tuple[int, int]


class TetrominoType(IntEnum):
    I = 1
    J = 2
    L = 3
    O = 4
    S = 5
    T = 6
    Z = 7


# One 16-bit mask per rotation; bit 0x8000 is the top-left cell of a 4x4 box.
ROTATION_MASKS: Dict[TetrominoType, Tuple[int, int, int, int]] = {
    TetrominoType.I: (0x0F00, 0x2222, 0x00F0, 0x4444),
    TetrominoType.J: (0x44C0, 0x8E00, 0x6440, 0x0E20),
    TetrominoType.L: (0x4460, 0x0E80, 0xC440, 0x2E00),
    TetrominoType.O: (0xCC00, 0xCC00, 0xCC00, 0xCC00),
    TetrominoType.S: (0x06C0, 0x8C40, 0x6C00, 0x4620),
    TetrominoType.T: (0x0E40, 0x4C40, 0x4E00, 0x4640),
    TetrominoType.Z: (0x0C60, 0x4C80, 0xC600, 0x2640),
}

PIECE_SIZES: Dict[TetrominoType, int] = {
    TetrominoType.I: 4,
    TetrominoType.J: 3,
    TetrominoType.L: 3,
    TetrominoType.O: 2,
    TetrominoType.S: 3,
    TetrominoType.T: 3,
    TetrominoType.Z: 3,
}

NUM_ROTATIONS = 4


def _decode_mask(mask: int) -> Tuple[Offset, ...]:
    """Raster-scan a 4x4 mask (row-major, MSB first) into (dx, dy) offsets."""
    offsets = []
    bit = 0x8000
    for index in range(16):
        if mask & bit:
            offsets.append((index % 4, index // 4))
        bit >>= 1
    return tuple(offsets)


PIECE_OFFSETS: Dict[TetrominoType, Tuple[Tuple[Offset, ...], ...]] = {
    kind: tuple(_decode_mask(mask) for mask in masks)
    for kind, masks in ROTATION_MASKS.items()
}


def piece_size(kind: TetrominoType) -> int:
    return PIECE_SIZES[TetrominoType(kind)]


def piece_offsets(kind: TetrominoType, rotation: int) -> Tuple[Offset, ...]:
    return PIECE_OFFSETS[TetrominoType(kind)][rotation % NUM_ROTATIONS]


def piece_cells(kind: TetrominoType, rotation: int, x: int, y: int) -> Iterator[Tuple[int, int]]:
    """Yield the absolute (column, row) cells of a piece anchored at (x, y)."""
    for dx, dy in piece_offsets(kind, rotation):
        yield x + dx, y + dy


@dataclass(frozen=True)
class Piece:
    kind: TetrominoType
    rotation: int = 0  # 0..3
    x: int = 0
    y: int = 0

    @property
    def size(self) -> int:
        return piece_size(self.kind)

    def cells(self) -> Iterator[Tuple[int, int]]:
        return piece_cells(self.kind, self.rotation, self.x, self.y)

    def rotated(self, delta: int) -> "Piece":
        return replace(self, rotation=(self.rotation + delta) % NUM_ROTATIONS)

    def moved(self, dx: int, dy: int) -> "Piece":
        return replace(self, x=self.x + dx, y=self.y + dy)
