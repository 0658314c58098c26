"""
AIOpponent: the per-game facade around move selection, analysis and chat.

- choose(board)/close() match the other opponents' interface so a game loop can drive it.
- Each decision is tagged with a generation number; reset() (new game, takeback)
  bumps the generation and any decision still in flight is discarded on return.
- remote_enabled is read once at the start of each call; set_remote_enabled() is last-writer-wins.
"""
from __future__ import annotations

import logging
import random
import threading
from typing import List, Optional

import chess

from .commentary import local_analysis, local_chat_reply
from .decisions import SOURCE_LOCAL, SOURCE_REMOTE, DecisionRequest, DecisionResult, TaskKind
from .difficulty import Difficulty, parse_difficulty
from .errors import RemoteDecisionError
from .move_selector import choose_move
from .prompting import ChatMessage
from .remote_adapter import RemoteDecisionAdapter

log = logging.getLogger("opponent")


class AIOpponent:
    def __init__(self, difficulty: Difficulty | str = Difficulty.INTERMEDIATE,
                 adapter: Optional[RemoteDecisionAdapter] = None, remote_enabled: bool = False,
                 rng: Optional[random.Random] = None, name: Optional[str] = None):
        self.difficulty = parse_difficulty(difficulty)
        self.adapter = adapter
        self.remote_enabled = remote_enabled
        self.rng = rng or random.Random()
        self.name = name or f"AI ({self.difficulty.value})"
        self._lock = threading.Lock()
        self._generation = 0

    # -- generation bookkeeping -------------------------------------------
    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def reset(self) -> int:
        """Invalidate every decision currently in flight. Returns the new generation."""
        with self._lock:
            self._generation += 1
            log.debug("Opponent reset; generation now %d", self._generation)
            return self._generation

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def set_remote_enabled(self, enabled: bool) -> None:
        self.remote_enabled = bool(enabled)

    def _remote_active(self) -> bool:
        return self.remote_enabled and self.adapter is not None

    # -- moves ------------------------------------------------------------
    def choose_move(self, position: str | chess.Board) -> Optional[DecisionResult]:
        """Pick a move; None when the position has no moves or the decision went stale."""
        generation = self.generation
        remote = self._remote_active()
        result = choose_move(position, self.difficulty, remote_enabled=remote, adapter=self.adapter, rng=self.rng)
        if not self._is_current(generation):
            log.info("Discarding stale decision from generation %d", generation)
            return None
        if result:
            log.debug("Decision %s from %s", result.move.uci() if result.move else None, result.source)
        return result

    def choose(self, board: chess.Board) -> chess.Move:
        result = self.choose_move(board)
        return result.move if result and result.move else chess.Move.null()

    # -- text -------------------------------------------------------------
    def _remote_text(self, request: DecisionRequest, ignore_toggle: bool = False) -> Optional[str]:
        if self.adapter is None or not (ignore_toggle or self.remote_enabled):
            return None
        try:
            return self.adapter.decide(request).text
        except RemoteDecisionError as e:
            log.warning("Remote %s failed, using local reply: %s", request.task_kind.value, e)
            return None

    def analyze(self, position: str | chess.Board) -> Optional[DecisionResult]:
        generation = self.generation
        fen = position.fen() if isinstance(position, chess.Board) else position
        request = DecisionRequest(position=fen, difficulty=self.difficulty, task_kind=TaskKind.ANALYSIS)
        text = self._remote_text(request)
        source = SOURCE_REMOTE if text is not None else SOURCE_LOCAL
        if text is None:
            text = local_analysis(position, self.difficulty, rng=self.rng)
        if not self._is_current(generation):
            return None
        return DecisionResult(task_kind=TaskKind.ANALYSIS, source=source, text=text)

    def chat(self, position: str | chess.Board, message: str,
             history: Optional[List[ChatMessage]] = None) -> Optional[DecisionResult]:
        """Reply to a player's chat message. Chat goes to the remote source whenever an adapter is configured."""
        generation = self.generation
        fen = position.fen() if isinstance(position, chess.Board) else position
        request = DecisionRequest(position=fen, difficulty=self.difficulty, task_kind=TaskKind.CHAT,
                                  user_message=message, history=list(history or []))
        text = self._remote_text(request, ignore_toggle=True)
        source = SOURCE_REMOTE if text is not None else SOURCE_LOCAL
        if text is None:
            text = local_chat_reply(position, message, self.difficulty, rng=self.rng)
        if not self._is_current(generation):
            return None
        return DecisionResult(task_kind=TaskKind.CHAT, source=source, text=text)

    def close(self):
        closer = getattr(getattr(self.adapter, "transport", None), "close", None)
        if callable(closer):
            closer()
