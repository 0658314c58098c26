"""
Offline commentary used when the remote source is disabled or unavailable.

- local_analysis(): game-state notes plus an evaluation summary worded for the difficulty.
- local_chat_reply(): keyword-driven replies (hints, analysis, greetings) with stock lines as a last resort.
"""
from __future__ import annotations

import random
from typing import Optional

import chess

from .difficulty import Difficulty, parse_difficulty
from .evaluation import evaluate
from .move_selector import select_move
from .move_validator import board_from_position

STOCK_REPLIES = {
    Difficulty.BEGINNER: (
        "I'm still learning chess. What's your next move?",
        "Chess is fun! I'm enjoying our game.",
        "I'm trying to improve my chess skills. Any tips?",
        "I'm thinking about my next move carefully.",
        "Chess is a great game for developing strategic thinking!",
    ),
    Difficulty.INTERMEDIATE: (
        "I'm analyzing the position. It's getting interesting.",
        "That's a thought-provoking position. I'm considering my options.",
        "Chess requires patience and calculation. I'm working on both.",
        "I see several possibilities here. Let me think...",
        "The middlegame is where strategy really comes into play.",
    ),
    Difficulty.ADVANCED: (
        "I'm calculating several variations. This position has depth.",
        "The pawn structure is defining the character of this position.",
        "I'm looking for tactical opportunities while maintaining strategic pressure.",
        "Piece coordination is crucial in this type of position.",
        "I'm evaluating the long-term implications of each potential move.",
    ),
    Difficulty.MASTER: (
        "This position requires precise calculation. I'm analyzing all critical lines.",
        "The dynamic and static elements of this position are in an interesting balance.",
        "I'm considering the transformation of advantages across different potential variations.",
        "The strategic complexity here offers multiple valid approaches.",
        "I'm evaluating this position both tactically and positionally to find the optimal continuation.",
    ),
}


def _leader(score: int) -> str:
    return "White" if score > 0 else "Black"


def game_state_note(board: chess.Board) -> Optional[str]:
    if board.is_checkmate():
        return "The game is over. It's checkmate!"
    if board.is_stalemate():
        return "The game is a draw due to stalemate. Neither player can make a move."
    if board.is_repetition(3):
        return "The game is a draw due to threefold repetition. The same position has occurred three times."
    if board.is_insufficient_material():
        return "The game is a draw due to insufficient material. Neither player has enough pieces to checkmate."
    if board.is_fifty_moves():
        return "The game is a draw by the fifty-move rule."
    if board.is_check():
        side = "White" if board.turn == chess.WHITE else "Black"
        return f"{side} is in check. You need to address this threat."
    return None


def local_analysis(position: str | chess.Board, difficulty: Difficulty | str = Difficulty.INTERMEDIATE,
                   rng: Optional[random.Random] = None) -> str:
    board = board_from_position(position)
    difficulty = parse_difficulty(difficulty)
    note = game_state_note(board)
    if note:
        return note

    score = evaluate(board)
    mag = abs(score)
    if difficulty == Difficulty.BEGINNER:
        if mag < 100:
            message = "The position looks fairly even."
        elif mag < 300:
            message = f"{_leader(score)} has a slight advantage."
        elif mag < 900:
            message = f"{_leader(score)} has a clear advantage."
        else:
            message = f"{_leader(score)} is winning."
        return message + " Remember to develop your pieces and control the center."

    if difficulty == Difficulty.INTERMEDIATE:
        if mag < 100:
            message = "The position is approximately equal."
        elif mag < 300:
            message = f"{_leader(score)} has a small advantage ({mag / 100:.1f} pawns)."
        elif mag < 900:
            message = f"{_leader(score)} has a significant advantage ({mag / 100:.1f} pawns)."
        else:
            message = f"{_leader(score)} has a winning position."
        return message + " Consider your piece coordination and potential tactical opportunities."

    if mag < 50:
        message = "The position is balanced with equal chances."
    elif mag < 200:
        message = f"{_leader(score)} has a slight edge ({mag / 100:.2f} pawns)."
    elif mag < 500:
        message = f"{_leader(score)} has a clear advantage ({mag / 100:.2f} pawns)."
    elif mag < 900:
        message = f"{_leader(score)} has a decisive advantage ({mag / 100:.2f} pawns)."
    else:
        message = f"{_leader(score)} has a technically winning position."

    best = select_move(board, difficulty, remote_enabled=False, rng=rng)
    if best:
        message += f" I recommend considering the move {best.uci()}."
    return message


def describe_hint(board: chess.Board, move: chess.Move, difficulty: Difficulty) -> str:
    piece = board.piece_at(move.from_square)
    target = board.piece_at(move.to_square)
    piece_name = chess.piece_name(piece.piece_type) if piece else "piece"
    notation = f"{chess.square_name(move.from_square)}-{chess.square_name(move.to_square)}"
    if move.promotion:
        notation += "=" + chess.piece_symbol(move.promotion).upper()

    if target:
        description = f"capturing the {chess.piece_name(target.piece_type)} with your {piece_name}"
    elif move.promotion:
        description = f"advancing your pawn to promote to a {chess.piece_name(move.promotion)}"
    else:
        description = (f"moving your {piece_name} from {chess.square_name(move.from_square)} "
                       f"to {chess.square_name(move.to_square)}")

    if difficulty == Difficulty.BEGINNER:
        return f"I suggest {description} ({notation}). This looks like a good move to me."
    if difficulty == Difficulty.INTERMEDIATE:
        return f"You might want to consider {description} ({notation}). This move helps improve your position."
    return f"A strong move would be {description} ({notation}). This improves your piece coordination and creates threats."


def local_chat_reply(position: str | chess.Board, message: str,
                     difficulty: Difficulty | str = Difficulty.INTERMEDIATE,
                     rng: Optional[random.Random] = None) -> str:
    rng = rng or random.Random()
    board = board_from_position(position)
    difficulty = parse_difficulty(difficulty)
    lowered = (message or "").lower()

    if "hint" in lowered or "help" in lowered or "what should i do" in lowered:
        best = select_move(board, difficulty, remote_enabled=False, rng=rng)
        if not best:
            return "I don't see any good moves in this position. The game might be over."
        return describe_hint(board, best, difficulty)

    if "analysis" in lowered or "evaluate" in lowered or "how is the position" in lowered:
        return local_analysis(board, difficulty, rng=rng)

    words = set(lowered.replace("!", " ").replace("?", " ").replace(",", " ").split())
    if words & {"hello", "hi", "hey"}:
        return "Hello! I'm your chess assistant. How can I help you with your game?"
    if "thank" in lowered:
        return "You're welcome! Let me know if you need more help with your game."
    if "good move" in lowered or "nice move" in lowered:
        return "Thank you! I'm trying my best to play good chess. Your moves are challenging too!"

    return rng.choice(STOCK_REPLIES[difficulty])
