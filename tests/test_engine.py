import unittest
from unittest import mock

import numpy as np

from falling_block_ai.ai.engine import SearchConfig, beam_search, choose_greedy, choose_move
from falling_block_ai.ai.heuristic import DEFAULT_WEIGHTS, score
from falling_block_ai.ai.moves import enumerate_moves
from falling_block_ai.game.grid import GameGrid
from falling_block_ai.game.pieces import TetrominoType
from falling_block_ai.game.randomizers import UniformRandomizer


class FixedSource:
    """Piece source that always hands out the same tetromino."""

    def __init__(self, kind):
        self.kind = kind
        self.calls = 0

    def next_piece(self):
        self.calls += 1
        return self.kind


def sample_board() -> GameGrid:
    grid = GameGrid()
    grid.grid[19, :] = [1, 1, 1, 0, 1, 1, 1, 1, 0, 1]
    grid.grid[18, :] = [1, 0, 0, 0, 1, 1, 0, 1, 0, 0]
    grid.grid[17, :] = [1, 0, 0, 0, 0, 1, 0, 0, 0, 0]
    return grid


def as_key(move):
    return move.rotation, move.column, move.landing_row


class TestGreedy(unittest.TestCase):
    def test_picks_the_highest_score(self):
        grid = sample_board()
        for kind in TetrominoType:
            move = choose_greedy(kind, grid, DEFAULT_WEIGHTS)
            best = max(score(m.board, m.landing_row, DEFAULT_WEIGHTS) for m in enumerate_moves(kind, grid))
            self.assertEqual(score(move.board, move.landing_row, DEFAULT_WEIGHTS), best)

    def test_ties_keep_first_enumerated_move(self):
        move = choose_greedy(TetrominoType.T, sample_board(), np.zeros(8))
        first = enumerate_moves(TetrominoType.T, sample_board())[0]
        self.assertEqual(as_key(move), as_key(first))

    def test_no_move_on_full_board(self):
        grid = GameGrid()
        grid.grid[:, :] = 1
        self.assertIsNone(choose_greedy(TetrominoType.O, grid, DEFAULT_WEIGHTS))


class TestBeamSearch(unittest.TestCase):
    def test_width_one_depth_one_matches_greedy(self):
        boards = [GameGrid(), sample_board()]
        rng = np.random.default_rng(7)
        weight_sets = [DEFAULT_WEIGHTS, rng.uniform(-1, 1, 8), np.zeros(8)]
        for grid in boards:
            for weights in weight_sets:
                for kind in TetrominoType:
                    greedy = choose_greedy(kind, grid, weights)
                    beam = beam_search(kind, grid, weights, beam_width=1, depth=1)
                    self.assertEqual(as_key(beam), as_key(greedy))

    def test_returns_a_move_for_the_real_piece(self):
        grid = sample_board()
        source = FixedSource(TetrominoType.I)
        move = beam_search(TetrominoType.S, grid, DEFAULT_WEIGHTS, beam_width=5, depth=3, piece_source=source)
        self.assertEqual(move.kind, TetrominoType.S)
        self.assertIn(move.key(), {m.key() for m in enumerate_moves(TetrominoType.S, grid)})
        self.assertEqual(source.calls, 2)

    def test_does_not_mutate_the_input_board(self):
        grid = sample_board()
        snapshot = grid.copy()
        beam_search(TetrominoType.L, grid, DEFAULT_WEIGHTS, piece_source=UniformRandomizer(1))
        self.assertEqual(grid, snapshot)

    def test_degenerate_frontier_falls_back_to_best_so_far(self):
        # Two half-filled rows with a well on the right: any O fits on top,
        # after which no I orientation fits anywhere.
        grid = GameGrid.from_rows(["....", "....", "###.", "###."])
        move = beam_search(TetrominoType.O, grid, DEFAULT_WEIGHTS, beam_width=10, depth=2,
                           piece_source=FixedSource(TetrominoType.I))
        greedy = choose_greedy(TetrominoType.O, grid, DEFAULT_WEIGHTS)
        self.assertIsNotNone(move)
        self.assertEqual(as_key(move), as_key(greedy))

    def test_full_rows_are_cleared_before_the_next_level(self):
        # Only a vertical I in column 2 fits; it completes the bottom three rows.
        grid = GameGrid.from_rows(["....", "##.#", "##.#", "##.#"])
        with mock.patch("falling_block_ai.ai.engine.enumerate_moves", wraps=enumerate_moves) as spy:
            move = beam_search(TetrominoType.I, grid, DEFAULT_WEIGHTS, beam_width=3, depth=2,
                               piece_source=FixedSource(TetrominoType.O))
        self.assertEqual(move.key(), (1, 0))
        self.assertEqual(spy.call_count, 2)
        kind, board = spy.call_args_list[1].args
        self.assertEqual(kind, TetrominoType.O)
        self.assertEqual(board, GameGrid.from_rows(["....", "....", "....", "..#."]))
        self.assertEqual(move.board.detect_full_rows(), [1, 2, 3])

    def test_no_move_when_nothing_fits_at_first_level(self):
        grid = GameGrid()
        grid.grid[:, :] = 1
        self.assertIsNone(beam_search(TetrominoType.T, grid, DEFAULT_WEIGHTS))


class TestChooseMove(unittest.TestCase):
    def test_dispatches_on_mode(self):
        grid = sample_board()
        greedy = choose_move(TetrominoType.J, grid, DEFAULT_WEIGHTS, SearchConfig(mode="greedy"))
        beam = choose_move(TetrominoType.J, grid, DEFAULT_WEIGHTS, SearchConfig(mode="beam", beam_width=1, depth=1))
        self.assertEqual(as_key(greedy), as_key(beam))

    def test_default_weights_are_used_when_omitted(self):
        grid = sample_board()
        self.assertEqual(as_key(choose_move(TetrominoType.Z, grid)),
                         as_key(choose_greedy(TetrominoType.Z, grid, DEFAULT_WEIGHTS)))

    def test_lookahead_draws_continue_across_decisions(self):
        config = SearchConfig(mode="beam", beam_width=2, depth=2, seed=0)
        grid = GameGrid()
        for _ in range(12):
            # empty board: every call draws exactly one lookahead piece
            choose_move(TetrominoType.T, grid, DEFAULT_WEIGHTS, config)
        reference = UniformRandomizer(0)
        drawn = [reference.next_piece() for _ in range(12)]
        self.assertGreater(len(set(drawn)), 1)
        self.assertIs(config.lookahead_source(), config.lookahead_source())
        self.assertEqual(config.lookahead_source().next_piece(), reference.next_piece())

    def test_invalid_config_is_rejected(self):
        with self.assertRaises(ValueError):
            SearchConfig(mode="mcts")
        with self.assertRaises(ValueError):
            SearchConfig(mode="beam", beam_width=0)
        with self.assertRaises(ValueError):
            SearchConfig(mode="beam", depth=0)


if __name__ == "__main__":
    unittest.main()
