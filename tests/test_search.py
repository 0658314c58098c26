import math
import unittest

import chess

from llmchess_opponent.evaluation import MATE_SCORE, evaluate, is_terminal
from llmchess_opponent.search import score_move, search


def plain_minimax(board: chess.Board, depth: int, maximizing: bool) -> int:
    if depth == 0 or is_terminal(board):
        return evaluate(board)
    scores = []
    for mv in list(board.legal_moves):
        board.push(mv)
        scores.append(plain_minimax(board, depth - 1, not maximizing))
        board.pop()
    return max(scores) if maximizing else min(scores)


class SearchTests(unittest.TestCase):
    def test_depth_zero_is_static_eval(self):
        board = chess.Board("4k3/8/3p4/4N3/8/8/8/4K3 w - - 0 1")
        self.assertEqual(search(board, 0, -math.inf, math.inf, True), evaluate(board))

    def test_terminal_position_short_circuits(self):
        board = chess.Board("R5k1/5ppp/8/8/8/8/8/6K1 b - - 1 1")
        self.assertEqual(search(board, 3, -math.inf, math.inf, False), MATE_SCORE)

    def test_board_is_restored_after_search(self):
        board = chess.Board("r1bqkbnr/pppp1ppp/2n5/4p3/4P3/5N2/PPPP1PPP/RNBQKB1R w KQkq - 2 3")
        fen_before = board.fen()
        stack_before = len(board.move_stack)
        search(board, 2, -math.inf, math.inf, True)
        self.assertEqual(board.fen(), fen_before)
        self.assertEqual(len(board.move_stack), stack_before)

    def test_pruning_matches_plain_minimax(self):
        for fen, depth in (
            ("4k3/8/3p4/4N3/8/8/8/4K3 w - - 0 1", 3),
            ("4k3/8/8/3n4/4P3/8/8/4K3 b - - 0 1", 3),
            ("6k1/5ppp/8/8/8/8/5PPP/R5K1 w - - 0 1", 2),
        ):
            board = chess.Board(fen)
            maximizing = board.turn == chess.WHITE
            with self.subTest(fen=fen):
                self.assertEqual(
                    search(board, depth, -math.inf, math.inf, maximizing),
                    plain_minimax(board, depth, maximizing),
                )

    def test_mating_move_scores_mate(self):
        board = chess.Board("6k1/5ppp/8/8/8/8/8/R5K1 w - - 0 1")
        self.assertEqual(score_move(board, chess.Move.from_uci("a1a8"), 2), MATE_SCORE)
        self.assertEqual(board.fen(), "6k1/5ppp/8/8/8/8/8/R5K1 w - - 0 1")


if __name__ == "__main__":
    unittest.main()
