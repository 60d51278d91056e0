from __future__ import annotations

import argparse
import logging
from typing import Dict, List, Optional, Sequence

import gymnasium as gym
import numpy as np

import falling_block_ai.env  # ensure registration
from falling_block_ai.ai.engine import SearchConfig, choose_move
from falling_block_ai.ai.heuristic import DEFAULT_WEIGHTS, as_weights
from falling_block_ai.env.placement_env import encode_action


logger = logging.getLogger(__name__)


def build_env(max_episode_steps: int = 10000) -> gym.Env:
    return gym.make("FallingBlock-10x20-v0", max_episode_steps=max_episode_steps)


def run_episode(env: gym.Env, weights: np.ndarray, search: SearchConfig, seed: Optional[int] = None) -> Dict[str, float]:
    """Play one episode with the heuristic agent and return the final session stats."""
    obs, info = env.reset(seed=seed)
    session = env.unwrapped.session
    total_reward = 0.0
    done = False
    while not done:
        move = choose_move(session.current_piece.kind, session.grid, weights, search)
        if move is None:
            # Unreachable in practice: the env tops out as soon as no move exists.
            break
        action = encode_action(move.rotation, move.column, session.grid.width)
        obs, reward, terminated, truncated, info = env.step(action)
        total_reward += float(reward)
        done = terminated or truncated
    stats = session.get_game_stats()
    stats["return"] = total_reward
    return stats


def evaluate(weights: Sequence[float] | np.ndarray, episodes: int = 5, search: Optional[SearchConfig] = None,
             seed: int = 0, max_episode_steps: int = 10000) -> List[Dict[str, float]]:
    w = as_weights(weights)
    search = search or SearchConfig()
    env = build_env(max_episode_steps)
    try:
        results = []
        for ep in range(episodes):
            stats = run_episode(env, w, search, seed=seed + ep)
            logger.info("episode %d: %s", ep, stats)
            results.append(stats)
        return results
    finally:
        env.close()


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Play headless games with the heuristic agent")
    p.add_argument("--mode", choices=["greedy", "beam"], default="greedy")
    p.add_argument("--beam-width", type=int, default=5)
    p.add_argument("--depth", type=int, default=2)
    p.add_argument("--episodes", type=int, default=5)
    p.add_argument("--steps", type=int, default=1000, help="placements per episode before truncation")
    p.add_argument("--seed", type=int, default=0)
    p.add_argument("--weights", type=float, nargs=8, default=None, metavar="W",
                   help="8 heuristic weights (defaults to the tuned vector)")
    return p


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    weights = DEFAULT_WEIGHTS if args.weights is None else np.array(args.weights)
    search = SearchConfig(mode=args.mode, beam_width=args.beam_width, depth=args.depth, seed=args.seed)
    results = evaluate(weights, args.episodes, search, args.seed, args.steps)

    lines = [r["lines_cleared"] for r in results]
    scores = [r["final_score"] for r in results]
    print(f"{args.episodes} episodes ({args.mode}): "
          f"lines mean={np.mean(lines):.1f} max={max(lines)}  "
          f"score mean={np.mean(scores):.1f} max={max(scores)}")


if __name__ == "__main__":  # pragma: no cover
    main()
