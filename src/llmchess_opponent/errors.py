"""
Exception taxonomy for move decisions.

Everything under RemoteDecisionError is recoverable: the remote adapter retries
IllegalMoveError / MalformedResponseError / TransportError and escalates to
RetryExhaustedError, which the move selector turns into a local fallback.
InvalidPositionError is a caller bug and is never retried.
"""
from __future__ import annotations


class ChessOpponentError(Exception):
    """Base class for all errors raised by this package."""


class InvalidPositionError(ChessOpponentError, ValueError):
    """The caller handed us a position that cannot be decoded."""


class NoLegalMovesError(ChessOpponentError):
    """Terminal position (checkmate or stalemate). A normal signal, not a failure."""


class RemoteDecisionError(ChessOpponentError):
    """Anything that went wrong on the remote (LLM) decision path."""


class IllegalMoveError(RemoteDecisionError):
    def __init__(self, token: str, fen: str = ""):
        super().__init__(f"illegal move {token!r}" + (f" for {fen}" if fen else ""))
        self.token = token
        self.fen = fen


class MalformedResponseError(RemoteDecisionError):
    def __init__(self, raw: str = "", reason: str = "no_move_token"):
        super().__init__(reason)
        self.raw = raw
        self.reason = reason


class TransportError(RemoteDecisionError):
    """Network failure, timeout or an unsuccessful relay response."""


class RetryExhaustedError(RemoteDecisionError):
    def __init__(self, attempts: int, last_error: Exception | None = None):
        super().__init__(f"no valid result after {attempts} attempt(s): {last_error}")
        self.attempts = attempts
        self.last_error = last_error
