from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from falling_block_ai.ai.heuristic import feature_dict
from falling_block_ai.ai.moves import Move, enumerate_moves
from falling_block_ai.game import GameConfig, GameSession, TetrominoType
from falling_block_ai.game.pieces import NUM_ROTATIONS


def encode_action(rotation: int, column: int, width: int) -> int:
    return rotation * width + column


def decode_action(action: int, width: int) -> Tuple[int, int]:
    return int(action) // width, int(action) % width


def legal_moves(session: GameSession) -> Dict[int, Move]:
    """Legal placements for the current piece keyed by flat action index."""
    if session.game_over or session.current_piece is None:
        return {}
    width = session.grid.width
    return {
        encode_action(m.rotation, m.column, width): m
        for m in enumerate_moves(session.current_piece.kind, session.grid)
    }


def _compute_action_mask(session: GameSession) -> np.ndarray:
    mask = np.zeros((NUM_ROTATIONS * session.grid.width,), dtype=np.bool_)
    for idx in legal_moves(session):
        mask[idx] = True
    return mask


class FallingBlockEnv(gym.Env):
    """One step = one full placement (rotation, column) of the current piece."""

    metadata = {"render_modes": ["rgb_array"], "render_fps": 30}

    def __init__(self, config: Optional[GameConfig] = None, render_mode: Optional[str] = None,
                 reward_weights: Optional[Dict[str, float]] = None,
                 invalid_action_penalty: float = -1.0,
                 step_penalty: float = 0.0,
                 terminal_penalty: float = -10.0,
                 max_episode_steps: int = 10000) -> None:
        super().__init__()
        self.session = GameSession(config)
        self.render_mode = render_mode
        self.max_episode_steps = int(max_episode_steps)

        # Reward shaping parameters
        self.invalid_action_penalty = float(invalid_action_penalty)
        self.step_penalty = float(step_penalty)
        self.terminal_penalty = float(terminal_penalty)
        self.reward_weights: Dict[str, float] = {
            # Positive components
            "lines": 10.0,           # reward per line cleared
            "lines_sq": 5.0,         # extra for multiple lines (quadratic)
            # Negative components (penalize increases)
            "holes": 0.5,
            "bumpiness": 0.05,
            "height": 0.1,
        }
        if reward_weights:
            self.reward_weights.update({k: float(v) for k, v in reward_weights.items()})

        height = self.session.grid.height
        width = self.session.grid.width
        n_kinds = len(TetrominoType) + 1  # 0 = none

        self.observation_space = spaces.Dict(
            {
                "grid": spaces.Box(low=0, high=1, shape=(height, width), dtype=np.int8),
                "piece": spaces.Discrete(n_kinds),
                "next_piece": spaces.Discrete(n_kinds),
            }
        )
        # Action: rotation * width + column
        self.action_space = spaces.Discrete(NUM_ROTATIONS * width)

        self._last_obs: Optional[Dict[str, Any]] = None
        self._legal: Dict[int, Move] = {}
        self._steps = 0

    @property
    def game(self) -> GameSession:
        return self.session

    def get_action_mask(self) -> np.ndarray:
        return _compute_action_mask(self.session)

    def _get_obs(self) -> Dict[str, Any]:
        current = self.session.current_piece
        upcoming = self.session.next_piece
        return {
            "grid": self.session.grid.occupancy(),
            "piece": int(current.kind) if current is not None and not self.session.game_over else 0,
            "next_piece": int(upcoming.kind) if upcoming is not None and not self.session.game_over else 0,
        }

    def _get_info(self) -> Dict[str, Any]:
        return {
            "action_mask": self.get_action_mask(),
            "score": self.session.score,
            "lines_cleared": self.session.lines_cleared_total,
            "pieces_placed": self.session.pieces_placed,
        }

    def _refresh_legal(self) -> None:
        self._legal = legal_moves(self.session)
        if not self._legal and not self.session.game_over:
            # nothing fits: the session is topped out
            self.session.apply(None)

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        super().reset(seed=seed)
        self.session.reset(seed)
        self._steps = 0
        self._refresh_legal()
        obs = self._get_obs()
        self._last_obs = obs
        return obs, self._get_info()

    def step(self, action: int):
        reward_components: Dict[str, float] = {}
        move = self._legal.get(int(action))
        lines = 0
        points = 0

        if move is None:
            reward_components["invalid"] = self.invalid_action_penalty
        else:
            before = feature_dict(self.session.grid)
            max_height_before = self.session.grid.get_max_height()
            result = self.session.apply(move)
            after = feature_dict(self.session.grid)
            lines, points = result.lines_cleared, result.points
            reward_components["lines"] = self.reward_weights["lines"] * float(lines)
            reward_components["lines_sq"] = self.reward_weights["lines_sq"] * float(lines * lines)
            reward_components["holes"] = -self.reward_weights["holes"] * float(
                max(0.0, after["holes"] - before["holes"]))
            reward_components["bumpiness"] = -self.reward_weights["bumpiness"] * float(
                max(0.0, after["bumpiness"] - before["bumpiness"]))
            reward_components["height"] = -self.reward_weights["height"] * float(
                max(0, self.session.grid.get_max_height() - max_height_before))
            self._refresh_legal()

        reward_components["step"] = self.step_penalty
        terminated = bool(self.session.game_over)
        self._steps += 1
        truncated = self._steps >= self.max_episode_steps and not terminated
        if terminated:
            reward_components["terminal"] = self.terminal_penalty

        reward = float(sum(reward_components.values()))
        obs = self._get_obs()
        info = self._get_info()
        info["reward_components"] = reward_components
        info["lines"] = lines
        info["engine_score_delta"] = float(points)
        self._last_obs = obs
        return obs, reward, terminated, truncated, info

    def render(self) -> Optional[np.ndarray]:
        if self.render_mode == "rgb_array":
            # Create a simple RGB image from the grid
            grid = self._last_obs["grid"] if self._last_obs is not None else self.session.grid.occupancy()
            cell = 12
            h, w = grid.shape
            img = np.zeros((h * cell, w * cell, 3), dtype=np.uint8)
            for y in range(h):
                for x in range(w):
                    color = (70, 200, 120) if grid[y, x] else (30, 30, 36)
                    img[y * cell : (y + 1) * cell, x * cell : (x + 1) * cell, :] = color
            return img
        return None

    def close(self) -> None:
        pass
