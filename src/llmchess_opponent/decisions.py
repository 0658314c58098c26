"""
Request/result value types shared by the move selector, the remote adapter and the opponent facade.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import chess

from .difficulty import Difficulty, parse_difficulty
from .errors import IllegalMoveError, MalformedResponseError
from .prompting import ChatMessage

SOURCE_LOCAL = "local"
SOURCE_REMOTE = "remote"


class TaskKind(str, Enum):
    MOVE = "move"
    ANALYSIS = "analysis"
    CHAT = "chat"


@dataclass(frozen=True)
class DecisionRequest:
    position: str  # FEN
    difficulty: Difficulty
    task_kind: TaskKind = TaskKind.MOVE
    user_message: Optional[str] = None
    history: List[ChatMessage] = field(default_factory=list)

    def __post_init__(self):
        object.__setattr__(self, "difficulty", parse_difficulty(self.difficulty))
        object.__setattr__(self, "task_kind", TaskKind(self.task_kind))


@dataclass
class DecisionResult:
    task_kind: TaskKind
    source: str
    move: Optional[chess.Move] = None
    text: Optional[str] = None
    attempts: int = 0
    meta: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_kind": self.task_kind.value,
            "source": self.source,
            "move": self.move.uci() if self.move else None,
            "text": self.text,
            "attempts": self.attempts,
        }


@dataclass
class RetryState:
    """Bookkeeping for one remote decision; lives only as long as its request."""

    attempt: int = 0
    last_error: Optional[Exception] = None
    last_token: Optional[str] = None
    raw_replies: List[str] = field(default_factory=list)
    # last reply the model got wrong; survives later transport failures
    rejected_token: Optional[str] = None
    rejected_reason: Optional[str] = None

    def record(self, error: Exception, token: Optional[str] = None) -> None:
        self.last_error = error
        self.last_token = token
        if isinstance(error, IllegalMoveError):
            self.rejected_token, self.rejected_reason = token, "illegal move"
        elif isinstance(error, MalformedResponseError):
            self.rejected_token, self.rejected_reason = token, "no move in the required format"
