import random
import unittest
from unittest import mock

import chess

from llmchess_opponent.decisions import DecisionResult, TaskKind
from llmchess_opponent.difficulty import DIFFICULTY_SETTINGS, Difficulty
from llmchess_opponent.move_selector import choose_move, select_local_move, select_move
from llmchess_opponent.remote_adapter import RemoteDecisionAdapter
from llmchess_opponent.search import score_move
from llmchess_opponent.transport import RelayResponse

FOOLS_MATE = "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"
STALEMATE = "7k/5Q2/6K1/8/8/8/8/8 b - - 0 1"
ONLY_MOVE = "k7/8/8/8/8/8/8/1R5K b - - 0 1"
BACK_RANK = "6k1/5ppp/8/8/8/8/8/R5K1 w - - 0 1"
QUEEN_ENDING = "8/8/8/8/8/7k/1Q6/7K w - - 0 1"


class ScriptedTransport:
    def __init__(self, replies):
        self.replies = list(replies)
        self.sent = []

    def send(self, request):
        self.sent.append(request)
        return RelayResponse(self.replies.pop(0), True)


class LocalSelectionTests(unittest.TestCase):
    def test_no_move_in_terminal_positions(self):
        for fen in (FOOLS_MATE, STALEMATE):
            for level in Difficulty:
                with self.subTest(fen=fen, level=level):
                    self.assertIsNone(select_move(fen, level))

    def test_forced_move_skips_randomness(self):
        rng = mock.Mock(spec=random.Random)
        rng.random.return_value = 0.0
        for level in Difficulty:
            with self.subTest(level=level):
                self.assertEqual(select_move(ONLY_MOVE, level, rng=rng), chess.Move.from_uci("a8a7"))
        rng.random.assert_not_called()

    def test_forced_move_is_flagged(self):
        result = choose_move(ONLY_MOVE, "beginner")
        self.assertTrue(result.meta.get("forced"))

    def test_master_maximizes_for_white(self):
        board = chess.Board("4k3/8/3p4/4N3/8/8/8/4K3 w - - 0 1")
        move = select_move(board, Difficulty.MASTER)
        scores = {mv: score_move(board, mv, 4) for mv in board.legal_moves}
        self.assertEqual(scores[move], max(scores.values()))
        first_best = next(mv for mv in board.legal_moves if scores[mv] == max(scores.values()))
        self.assertEqual(move, first_best)

    def test_master_minimizes_for_black(self):
        board = chess.Board("4k3/8/8/3n4/4P3/8/8/4K3 b - - 0 1")
        move = select_move(board, Difficulty.MASTER)
        scores = {mv: score_move(board, mv, 4) for mv in board.legal_moves}
        self.assertEqual(scores[move], min(scores.values()))

    def test_finds_mate_in_one(self):
        self.assertEqual(select_move(BACK_RANK, Difficulty.MASTER), chess.Move.from_uci("a1a8"))

    def test_queen_ending_keeps_decisive_advantage(self):
        """No root move mates within the master horizon here, so only the winning margin is checked.

        Mate preference is covered by test_finds_mate_in_one.
        """
        board = chess.Board(QUEEN_ENDING)
        move = select_move(board, Difficulty.MASTER)
        self.assertIn(move, board.legal_moves)
        self.assertGreater(score_move(board, move, 4), 500)

    def test_opening_move_from_start(self):
        board = chess.Board()
        move = select_move(board, Difficulty.MASTER)
        self.assertIn(move, board.legal_moves)
        self.assertIn(board.piece_type_at(move.from_square), (chess.PAWN, chess.KNIGHT))
        self.assertEqual(board.fen(), chess.STARTING_FEN)

    def test_random_move_chance(self):
        board = chess.Board()
        rng = random.Random(7)
        settings = DIFFICULTY_SETTINGS[Difficulty.BEGINNER]
        for _ in range(20):
            self.assertIn(select_local_move(board, settings, rng), board.legal_moves)

    def test_random_branch_skips_search(self):
        board = chess.Board()
        moves = list(board.legal_moves)
        rng = mock.Mock(spec=random.Random)
        rng.random.return_value = 0.0
        rng.choice.return_value = moves[3]
        with mock.patch("llmchess_opponent.move_selector.score_move") as scorer:
            move = select_local_move(board, DIFFICULTY_SETTINGS[Difficulty.BEGINNER], rng)
        self.assertEqual(move, moves[3])
        rng.choice.assert_called_once_with(moves)
        scorer.assert_not_called()
        rng.uniform.assert_not_called()

    def test_noise_can_flip_a_near_tie(self):
        board = chess.Board()
        moves = list(board.legal_moves)
        scores = {mv: -100 for mv in moves}
        scores[moves[0]] = 5
        scores[moves[1]] = 0
        settings = DIFFICULTY_SETTINGS[Difficulty.INTERMEDIATE]
        spread = settings.evaluation_noise * 10

        def fake_score(b, mv, depth):
            self.assertEqual(depth, settings.depth)
            return scores[mv]

        rng = mock.Mock(spec=random.Random)
        rng.random.return_value = 0.99
        with mock.patch("llmchess_opponent.move_selector.score_move", side_effect=fake_score):
            rng.uniform.side_effect = [0.0] * len(moves)
            self.assertEqual(select_local_move(board, settings, rng), moves[0])
            rng.uniform.reset_mock()
            rng.uniform.side_effect = [-spread, spread] + [0.0] * (len(moves) - 2)
            self.assertEqual(select_local_move(board, settings, rng), moves[1])
        self.assertEqual(rng.uniform.call_count, len(moves))
        for call in rng.uniform.call_args_list:
            self.assertEqual(call.args, (-spread, spread))

    def test_noise_drawn_once_per_root_move(self):
        board = chess.Board("4k3/8/3p4/4N3/8/8/8/4K3 w - - 0 1")
        rng = mock.Mock(spec=random.Random)
        rng.random.return_value = 0.99
        rng.uniform.return_value = 0.0
        move = select_local_move(board, DIFFICULTY_SETTINGS[Difficulty.INTERMEDIATE], rng)
        self.assertIn(move, board.legal_moves)
        self.assertEqual(rng.uniform.call_count, board.legal_moves.count())

    def test_master_draws_no_noise(self):
        board = chess.Board("4k3/8/3p4/4N3/8/8/8/4K3 w - - 0 1")
        rng = mock.Mock(spec=random.Random)
        select_local_move(board, DIFFICULTY_SETTINGS[Difficulty.MASTER], rng)
        rng.random.assert_not_called()
        rng.uniform.assert_not_called()

    def test_same_seed_same_move(self):
        a = select_move(chess.Board(), "beginner", rng=random.Random(42))
        b = select_move(chess.Board(), "beginner", rng=random.Random(42))
        self.assertEqual(a, b)


class RemoteSelectionTests(unittest.TestCase):
    def test_malformed_replies_fall_back_to_local(self):
        transport = ScriptedTransport(["no idea", "still thinking"])
        adapter = RemoteDecisionAdapter(transport, max_attempts=2)
        board = chess.Board()
        result = choose_move(board, "beginner", remote_enabled=True, adapter=adapter, rng=random.Random(1))
        self.assertEqual(result.source, "local")
        self.assertIn(result.move, board.legal_moves)
        self.assertEqual(len(transport.sent), 2)

    def test_retry_move_is_returned(self):
        transport = ScriptedTransport(["Move: e2e5", "Explanation: solid. Move: d2d4"])
        adapter = RemoteDecisionAdapter(transport)
        move = select_move(chess.STARTING_FEN, "master", remote_enabled=True, adapter=adapter)
        self.assertEqual(move, chess.Move.from_uci("d2d4"))

    def test_remote_disabled_never_calls_adapter(self):
        adapter = mock.Mock()
        select_move(chess.Board(), "beginner", remote_enabled=False, adapter=adapter, rng=random.Random(3))
        adapter.decide.assert_not_called()

    def test_illegal_result_from_adapter_is_rechecked(self):
        adapter = mock.Mock()
        adapter.decide.return_value = DecisionResult(TaskKind.MOVE, "remote", move=chess.Move.from_uci("e2e5"))
        board = chess.Board()
        result = choose_move(board, "beginner", remote_enabled=True, adapter=adapter, rng=random.Random(5))
        self.assertEqual(result.source, "local")
        self.assertIn(result.move, board.legal_moves)

    def test_forced_move_skips_remote(self):
        adapter = mock.Mock()
        self.assertEqual(select_move(ONLY_MOVE, "master", remote_enabled=True, adapter=adapter).uci(), "a8a7")
        adapter.decide.assert_not_called()


if __name__ == "__main__":
    unittest.main()
