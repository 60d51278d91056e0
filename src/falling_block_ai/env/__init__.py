"""Gymnasium environments for the falling-block AI."""

from __future__ import annotations

from gymnasium.envs.registration import register

# Register the placement-level environment (one action = one locked piece)
register(
    id="FallingBlock-10x20-v0",
    entry_point="falling_block_ai.env.placement_env:FallingBlockEnv",
)

__all__ = ["FallingBlock-10x20-v0"]
