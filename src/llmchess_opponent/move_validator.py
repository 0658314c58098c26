"""
Move extraction/validation helpers for LLM replies.

Replies are untrusted free text. The extraction rule is fixed:
- prefer a labelled "Move: e2e4" token;
- otherwise take the first whole-word token shaped like long algebraic (UCI) notation;
- otherwise reject. No SAN, no salvage, no guessing.
Candidates are then re-validated against the legal move set of the position.
"""
from __future__ import annotations

import re

import chess

from .errors import IllegalMoveError, InvalidPositionError, MalformedResponseError

UCI_RE = re.compile(r"^[a-h][1-8][a-h][1-8][qrbn]?$", re.I)
LABELED_MOVE_RE = re.compile(r"\bmove\s*:\s*\**\s*([a-h][1-8][a-h][1-8][qrbn]?)\b", re.I)
BARE_MOVE_RE = re.compile(r"\b([a-h][1-8][a-h][1-8][qrbn]?)\b", re.I)


def _strip_code_fence(text: str) -> str:
    """Remove simple ``` fences if present."""
    text = text.strip()
    if text.startswith("```") and text.endswith("```"):
        inner = text.split("\n", 1)
        if len(inner) == 2:
            return inner[1].rsplit("\n", 1)[0].strip()
    return text


def board_from_position(position: str | chess.Board) -> chess.Board:
    """Decode a FEN (or copy a Board) into a private Board the caller may mutate."""
    if isinstance(position, chess.Board):
        return position.copy()
    try:
        return chess.Board(fen=position)
    except (TypeError, ValueError) as e:
        raise InvalidPositionError(f"undecodable position {position!r}: {e}") from e


def extract_move_token(raw_text: str) -> str:
    """Return the lowercase move token found in `raw_text` or raise MalformedResponseError."""
    text = _strip_code_fence(raw_text or "")
    if not text:
        raise MalformedResponseError(raw_text or "", reason="empty_reply")
    m = LABELED_MOVE_RE.search(text) or BARE_MOVE_RE.search(text)
    if not m:
        raise MalformedResponseError(raw_text, reason="no_move_token")
    return m.group(1).lower()


def validate_move(token: str, board: chess.Board) -> chess.Move:
    """Parse `token` and confirm it is legal on `board` (which also covers escaping check)."""
    if not UCI_RE.fullmatch(token):
        raise MalformedResponseError(token, reason="bad_uci_format")
    try:
        mv = chess.Move.from_uci(token.lower())
    except ValueError:
        # e.g. "e4e4": well-shaped but not a move at all
        raise IllegalMoveError(token, board.fen()) from None
    if mv not in board.legal_moves:
        raise IllegalMoveError(token, board.fen())
    return mv


__all__ = [
    "board_from_position",
    "extract_move_token",
    "validate_move",
]
