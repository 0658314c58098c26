"""
Move selection entry point.

select_move() picks between the remote (LLM) source and the local
minimax search. Remote failures never reach the caller: they are logged and
the local search answers instead. Randomness (random-move chance and root-move
noise) comes from the difficulty policy and an injectable random.Random.
"""
from __future__ import annotations

import logging
import random
from typing import Optional

import chess

from .decisions import SOURCE_LOCAL, DecisionRequest, DecisionResult, TaskKind
from .difficulty import DIFFICULTY_SETTINGS, Difficulty, DifficultySettings, parse_difficulty
from .errors import IllegalMoveError, RemoteDecisionError
from .move_validator import board_from_position
from .remote_adapter import RemoteDecisionAdapter
from .search import score_move

log = logging.getLogger("move_selector")


def _noise(settings: DifficultySettings, rng: random.Random) -> float:
    spread = settings.evaluation_noise * 10
    return rng.uniform(-spread, spread) if spread else 0.0


def select_local_move(board: chess.Board, settings: DifficultySettings,
                      rng: Optional[random.Random] = None) -> Optional[chess.Move]:
    """Minimax pick over the root moves of `board`, honouring random-move chance and noise.

    `board` is searched in place (push/pop) and comes back unchanged.
    """
    rng = rng or random.Random()
    moves = list(board.legal_moves)
    if not moves:
        return None
    if len(moves) == 1:
        return moves[0]

    if settings.random_move_chance > 0 and rng.random() < settings.random_move_chance:
        mv = rng.choice(moves)
        log.debug("Random move %s (chance %.2f)", mv.uci(), settings.random_move_chance)
        return mv

    white_to_move = board.turn == chess.WHITE
    best_move = None
    best_score = None
    for mv in moves:
        score = score_move(board, mv, settings.depth) + _noise(settings, rng)
        # strict comparison: ties keep the earliest move in generation order
        if best_score is None or (score > best_score if white_to_move else score < best_score):
            best_score = score
            best_move = mv
    log.debug("Local search picked %s (score %.1f, depth %d)", best_move.uci(), best_score, settings.depth)
    return best_move


def choose_move(position: str | chess.Board, difficulty: Difficulty | str = Difficulty.INTERMEDIATE,
                remote_enabled: bool = False, adapter: Optional[RemoteDecisionAdapter] = None,
                rng: Optional[random.Random] = None) -> Optional[DecisionResult]:
    """Like select_move() but reports which source produced the move. None when no move exists."""
    board = board_from_position(position)
    difficulty = parse_difficulty(difficulty)
    settings = DIFFICULTY_SETTINGS[difficulty]

    moves = list(board.legal_moves)
    if not moves:
        return None
    if len(moves) == 1:
        return DecisionResult(task_kind=TaskKind.MOVE, source=SOURCE_LOCAL, move=moves[0], meta={"forced": True})

    if remote_enabled and adapter is not None:
        request = DecisionRequest(position=board.fen(), difficulty=difficulty, task_kind=TaskKind.MOVE)
        try:
            result = adapter.decide(request)
            if result.move is None or result.move not in board.legal_moves:
                raise IllegalMoveError(result.move.uci() if result.move else "", board.fen())
            return result
        except RemoteDecisionError as e:
            log.warning("Remote move failed, falling back to local search: %s", e)

    move = select_local_move(board, settings, rng)
    return DecisionResult(task_kind=TaskKind.MOVE, source=SOURCE_LOCAL, move=move)


def select_move(position: str | chess.Board, difficulty: Difficulty | str = Difficulty.INTERMEDIATE,
                remote_enabled: bool = False, adapter: Optional[RemoteDecisionAdapter] = None,
                rng: Optional[random.Random] = None) -> Optional[chess.Move]:
    """Return a legal move for `position`, or None if the position is checkmate/stalemate."""
    result = choose_move(position, difficulty, remote_enabled=remote_enabled, adapter=adapter, rng=rng)
    return result.move if result else None
