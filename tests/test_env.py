import unittest

import gymnasium as gym
import numpy as np

import falling_block_ai.env  # noqa: F401
from falling_block_ai.ai.moves import enumerate_moves
from falling_block_ai.env.placement_env import FallingBlockEnv, decode_action, encode_action
from falling_block_ai.env.wrappers import ResampleInvalidActionWrapper
from falling_block_ai.rl.eval_agent import evaluate
from falling_block_ai.ai.engine import SearchConfig
from falling_block_ai.ai.heuristic import DEFAULT_WEIGHTS


class TestFallingBlockEnv(unittest.TestCase):
    def setUp(self):
        self.env = FallingBlockEnv()
        self.obs, self.info = self.env.reset(seed=0)

    def test_observation_layout(self):
        self.assertEqual(self.obs["grid"].shape, (20, 10))
        self.assertEqual(self.obs["grid"].dtype, np.int8)
        self.assertIn(self.obs["piece"], range(1, 8))
        self.assertTrue(self.env.observation_space.contains(self.obs))

    def test_action_mask_matches_move_generator(self):
        session = self.env.session
        moves = enumerate_moves(session.current_piece.kind, session.grid)
        mask = self.info["action_mask"]
        self.assertEqual(mask.shape, (40,))
        self.assertEqual(int(mask.sum()), len(moves))
        for m in moves:
            self.assertTrue(mask[encode_action(m.rotation, m.column, 10)])

    def test_action_codec(self):
        self.assertEqual(decode_action(encode_action(3, 7, 10), 10), (3, 7))

    def test_invalid_action_is_penalised(self):
        # column 9 is never a legal anchor: every piece is at least 2 wide
        obs, reward, terminated, truncated, info = self.env.step(encode_action(0, 9, 10))
        self.assertEqual(info["reward_components"]["invalid"], -1.0)
        self.assertEqual(info["pieces_placed"], 0)
        self.assertFalse(terminated)

    def test_valid_action_places_a_piece(self):
        action = int(np.flatnonzero(self.info["action_mask"])[0])
        obs, reward, terminated, truncated, info = self.env.step(action)
        self.assertEqual(info["pieces_placed"], 1)
        self.assertEqual(int(obs["grid"].sum()), 4)
        self.assertNotIn("invalid", info["reward_components"])

    def test_rgb_render(self):
        env = FallingBlockEnv(render_mode="rgb_array")
        env.reset(seed=1)
        frame = env.render()
        self.assertEqual(frame.shape, (20 * 12, 10 * 12, 3))


class TestRegisteredEnv(unittest.TestCase):
    def test_make_and_resample(self):
        env = ResampleInvalidActionWrapper(gym.make("FallingBlock-10x20-v0"))
        env.reset(seed=4)
        _, _, _, _, info = env.step(encode_action(0, 9, 10))
        self.assertEqual(info["pieces_placed"], 1)
        env.close()

    def test_heuristic_agent_plays_episodes(self):
        results = evaluate(DEFAULT_WEIGHTS, episodes=1, search=SearchConfig(), seed=0, max_episode_steps=25)
        self.assertEqual(len(results), 1)
        self.assertGreater(results[0]["pieces_placed"], 0)
        self.assertLessEqual(results[0]["pieces_placed"], 25)

    def test_beam_agent_plays(self):
        search = SearchConfig(mode="beam", beam_width=2, depth=2, seed=0)
        results = evaluate(DEFAULT_WEIGHTS, episodes=1, search=search, seed=1, max_episode_steps=5)
        self.assertEqual(results[0]["pieces_placed"], 5)


if __name__ == "__main__":
    unittest.main()
