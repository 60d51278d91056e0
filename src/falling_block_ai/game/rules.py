from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ScoringRules:
    """Live-play points: a flat bonus per placement, doubling per extra line."""

    line_clear_base: int = 100
    placement_score: int = 10

    def score_for_lines(self, lines: int) -> int:
        if lines <= 0:
            return self.placement_score
        return self.line_clear_base * 2 ** (lines - 1)
