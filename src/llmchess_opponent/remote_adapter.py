"""
Remote decision adapter: turns a DecisionRequest into a relay call and the
relay's free text back into a validated result.

Move requests run a bounded retry loop. Each failed attempt (no move token,
illegal move, transport failure) is recorded in a RetryState; the next prompt
names the rejected token and restates the output format. After `max_attempts`
the adapter raises RetryExhaustedError chained to the last failure.
"""
from __future__ import annotations

import logging

import chess

from .decisions import SOURCE_REMOTE, DecisionRequest, DecisionResult, RetryState, TaskKind
from .difficulty import DIFFICULTY_SETTINGS, chat_temperature, parse_difficulty
from .errors import (
    MalformedResponseError,
    NoLegalMovesError,
    RemoteDecisionError,
    RetryExhaustedError,
    TransportError,
)
from .move_validator import board_from_position, extract_move_token, validate_move
from .prompting import (
    TEXT_RETRY_PREFIX,
    build_analysis_prompt,
    build_chat_prompt,
    build_move_prompt,
    build_move_retry_prompt,
    sanitize_message,
)
from .transport import RelayRequest, RelayResponse, RelayTransport

MAX_RETRIES = 3

log = logging.getLogger("remote_adapter")


class RemoteDecisionAdapter:
    def __init__(self, transport: RelayTransport, max_attempts: int = MAX_RETRIES):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.transport = transport
        self.max_attempts = max_attempts

    def decide(self, request: DecisionRequest) -> DecisionResult:
        if request.task_kind == TaskKind.MOVE:
            return self._decide_move(request)
        return self._decide_text(request)

    # -- transport ---------------------------------------------------------
    def _send(self, relay_request: RelayRequest) -> str:
        response: RelayResponse = self.transport.send(relay_request)
        if not response.success:
            raise TransportError(response.error_message or "relay reported failure")
        return response.result_text

    # -- moves -------------------------------------------------------------
    def _decide_move(self, request: DecisionRequest) -> DecisionResult:
        board = board_from_position(request.position)
        if not board.legal_moves:
            raise NoLegalMovesError(board.fen())
        fen = board.fen()
        settings = DIFFICULTY_SETTINGS[request.difficulty]
        base_prompt = build_move_prompt(fen, request.difficulty.value)
        state = RetryState()

        while state.attempt < self.max_attempts:
            state.attempt += 1
            prompt = base_prompt
            if state.rejected_reason:
                prompt = build_move_retry_prompt(base_prompt, state.rejected_token, state.rejected_reason)
            relay_request = RelayRequest(
                instruction_text=prompt,
                temperature=settings.move_temperature,
                task_kind=TaskKind.MOVE,
                position_token=fen,
                difficulty=request.difficulty.value,
            )
            token = None
            try:
                raw = self._send(relay_request)
                state.raw_replies.append(raw)
                log.debug("Remote move reply (attempt %d): %r", state.attempt, raw)
                token = extract_move_token(raw)
                move = validate_move(token, board)
            except RemoteDecisionError as e:
                state.record(e, token)
                log.info("Remote move attempt %d/%d rejected: %s", state.attempt, self.max_attempts, e)
                continue
            return DecisionResult(
                task_kind=TaskKind.MOVE,
                source=SOURCE_REMOTE,
                move=move,
                attempts=state.attempt,
                meta={"raw": state.raw_replies[-1], "token": token},
            )

        raise RetryExhaustedError(state.attempt, state.last_error) from state.last_error

    # -- analysis / chat ---------------------------------------------------
    def _decide_text(self, request: DecisionRequest) -> DecisionResult:
        fen = board_from_position(request.position).fen()
        difficulty = request.difficulty.value
        if request.task_kind == TaskKind.ANALYSIS:
            base_prompt = build_analysis_prompt(fen, difficulty)
            temperature = DIFFICULTY_SETTINGS[request.difficulty].analysis_temperature
            user_message = None
        else:
            message = request.user_message or ""
            base_prompt = build_chat_prompt(fen, difficulty, message, request.history)
            temperature = chat_temperature(message)
            user_message = sanitize_message(message)
        state = RetryState()

        while state.attempt < self.max_attempts:
            state.attempt += 1
            prompt = TEXT_RETRY_PREFIX + base_prompt if state.rejected_reason else base_prompt
            relay_request = RelayRequest(
                instruction_text=prompt,
                temperature=temperature,
                task_kind=request.task_kind,
                position_token=fen,
                difficulty=difficulty,
                user_message=user_message,
            )
            try:
                raw = self._send(relay_request)
                if not raw.strip():
                    raise MalformedResponseError(raw, reason="empty_reply")
            except RemoteDecisionError as e:
                state.record(e)
                log.info("Remote %s attempt %d/%d failed: %s", request.task_kind.value, state.attempt, self.max_attempts, e)
                continue
            # opaque to us; handed to the UI untouched
            return DecisionResult(task_kind=request.task_kind, source=SOURCE_REMOTE, text=raw, attempts=state.attempt)

        raise RetryExhaustedError(state.attempt, state.last_error) from state.last_error


def move_request(position: str | chess.Board, difficulty) -> DecisionRequest:
    """Convenience for callers holding a Board rather than a FEN."""
    fen = position.fen() if isinstance(position, chess.Board) else position
    return DecisionRequest(position=fen, difficulty=parse_difficulty(difficulty), task_kind=TaskKind.MOVE)
