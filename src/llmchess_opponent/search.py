"""
Depth-limited minimax with alpha-beta pruning over a python-chess Board.

The board passed in is owned by the caller's search for the duration of the
call: every pushed move is popped again before the next sibling is tried, so
the board leaves exactly as it came in. No move ordering, no transposition
table.
"""
from __future__ import annotations

import math

import chess

from .evaluation import evaluate, is_terminal


def search(board: chess.Board, depth: int, alpha: float = -math.inf, beta: float = math.inf,
           maximizing: bool = True) -> int:
    """Return the minimax value of `board` searched `depth` plies deep (White-positive)."""
    if depth <= 0 or is_terminal(board):
        return evaluate(board)

    if maximizing:
        best = -math.inf
        for move in list(board.legal_moves):
            board.push(move)
            try:
                score = search(board, depth - 1, alpha, beta, False)
            finally:
                board.pop()
            best = max(best, score)
            alpha = max(alpha, score)
            if beta <= alpha:
                break  # beta cutoff
        return best

    best = math.inf
    for move in list(board.legal_moves):
        board.push(move)
        try:
            score = search(board, depth - 1, alpha, beta, True)
        finally:
            board.pop()
        best = min(best, score)
        beta = min(beta, score)
        if beta <= alpha:
            break  # alpha cutoff
    return best


def score_move(board: chess.Board, move: chess.Move, depth: int) -> int:
    """Value of playing `move` now, searching the remaining `depth - 1` plies."""
    board.push(move)
    try:
        return search(board, depth - 1, -math.inf, math.inf, board.turn == chess.WHITE)
    finally:
        board.pop()
