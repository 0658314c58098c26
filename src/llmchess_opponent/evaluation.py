"""
Static evaluation: material plus piece-square tables, in centipawns from White's view.

Tables are written rank 8 first (row 0 = 8th rank) as seen from White; black
pieces read the same table mirrored vertically.
"""
from __future__ import annotations

import chess

MATE_SCORE = 100_000

PIECE_VALUES = {
    chess.PAWN: 100,
    chess.KNIGHT: 320,
    chess.BISHOP: 330,
    chess.ROOK: 500,
    chess.QUEEN: 900,
    chess.KING: 0,
}

PIECE_SQUARE_TABLES = {
    chess.PAWN: (
        (0, 0, 0, 0, 0, 0, 0, 0),
        (50, 50, 50, 50, 50, 50, 50, 50),
        (10, 10, 20, 30, 30, 20, 10, 10),
        (5, 5, 10, 25, 25, 10, 5, 5),
        (0, 0, 0, 20, 20, 0, 0, 0),
        (5, -5, -10, 0, 0, -10, -5, 5),
        (5, 10, 10, -20, -20, 10, 10, 5),
        (0, 0, 0, 0, 0, 0, 0, 0),
    ),
    chess.KNIGHT: (
        (-50, -40, -30, -30, -30, -30, -40, -50),
        (-40, -20, 0, 0, 0, 0, -20, -40),
        (-30, 0, 10, 15, 15, 10, 0, -30),
        (-30, 5, 15, 20, 20, 15, 5, -30),
        (-30, 0, 15, 20, 20, 15, 0, -30),
        (-30, 5, 10, 15, 15, 10, 5, -30),
        (-40, -20, 0, 5, 5, 0, -20, -40),
        (-50, -40, -30, -30, -30, -30, -40, -50),
    ),
    chess.BISHOP: (
        (-20, -10, -10, -10, -10, -10, -10, -20),
        (-10, 0, 0, 0, 0, 0, 0, -10),
        (-10, 0, 10, 10, 10, 10, 0, -10),
        (-10, 5, 5, 10, 10, 5, 5, -10),
        (-10, 0, 5, 10, 10, 5, 0, -10),
        (-10, 5, 5, 5, 5, 5, 5, -10),
        (-10, 0, 5, 0, 0, 5, 0, -10),
        (-20, -10, -10, -10, -10, -10, -10, -20),
    ),
    chess.ROOK: (
        (0, 0, 0, 0, 0, 0, 0, 0),
        (5, 10, 10, 10, 10, 10, 10, 5),
        (-5, 0, 0, 0, 0, 0, 0, -5),
        (-5, 0, 0, 0, 0, 0, 0, -5),
        (-5, 0, 0, 0, 0, 0, 0, -5),
        (-5, 0, 0, 0, 0, 0, 0, -5),
        (-5, 0, 0, 0, 0, 0, 0, -5),
        (0, 0, 0, 5, 5, 0, 0, 0),
    ),
    chess.QUEEN: (
        (-20, -10, -10, -5, -5, -10, -10, -20),
        (-10, 0, 0, 0, 0, 0, 0, -10),
        (-10, 0, 5, 5, 5, 5, 0, -10),
        (-5, 0, 5, 5, 5, 5, 0, -5),
        (0, 0, 5, 5, 5, 5, 0, -5),
        (-10, 5, 5, 5, 5, 5, 0, -10),
        (-10, 0, 5, 0, 0, 0, 0, -10),
        (-20, -10, -10, -5, -5, -10, -10, -20),
    ),
    # middlegame king: stay behind the pawns
    chess.KING: (
        (-30, -40, -40, -50, -50, -40, -40, -30),
        (-30, -40, -40, -50, -50, -40, -40, -30),
        (-30, -40, -40, -50, -50, -40, -40, -30),
        (-30, -40, -40, -50, -50, -40, -40, -30),
        (-20, -30, -30, -40, -40, -30, -30, -20),
        (-10, -20, -20, -20, -20, -20, -20, -10),
        (20, 20, 0, 0, 0, 0, 20, 20),
        (20, 30, 10, 0, 0, 10, 30, 20),
    ),
}


def is_draw(board: chess.Board) -> bool:
    """Stalemate, dead position, fifty-move rule or threefold repetition."""
    return (
        board.is_stalemate()
        or board.is_insufficient_material()
        or board.is_fifty_moves()
        or board.is_repetition(3)
    )


def is_terminal(board: chess.Board) -> bool:
    return board.is_checkmate() or is_draw(board)


def piece_square_bonus(piece: chess.Piece, square: chess.Square) -> int:
    rank = chess.square_rank(square)
    row = 7 - rank if piece.color == chess.WHITE else rank
    return PIECE_SQUARE_TABLES[piece.piece_type][row][chess.square_file(square)]


def evaluate(board: chess.Board) -> int:
    """Score the position; positive favours White, ±MATE_SCORE for checkmate, 0 for draws."""
    if board.is_checkmate():
        # side to move is mated
        return -MATE_SCORE if board.turn == chess.WHITE else MATE_SCORE
    if is_draw(board):
        return 0

    score = 0
    for square, piece in board.piece_map().items():
        value = PIECE_VALUES[piece.piece_type] + piece_square_bonus(piece, square)
        score += value if piece.color == chess.WHITE else -value
    return score
