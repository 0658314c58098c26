import unittest

import chess

from llmchess_opponent.decisions import DecisionRequest, RetryState, TaskKind
from llmchess_opponent.difficulty import Difficulty
from llmchess_opponent.errors import (
    IllegalMoveError,
    MalformedResponseError,
    NoLegalMovesError,
    RetryExhaustedError,
    TransportError,
)
from llmchess_opponent.remote_adapter import MAX_RETRIES, RemoteDecisionAdapter, move_request
from llmchess_opponent.transport import RelayResponse

START = chess.STARTING_FEN
FOOLS_MATE = "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"


class FakeTransport:
    """Replays scripted replies; an Exception instance in the script is raised instead."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.requests = []

    def send(self, request):
        self.requests.append(request)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, RelayResponse):
            return reply
        return RelayResponse(reply, True)

    def close(self):
        pass


class MoveDecisionTests(unittest.TestCase):
    def test_first_reply_accepted(self):
        transport = FakeTransport(["Explanation: center. Move: e2e4"])
        result = RemoteDecisionAdapter(transport).decide(move_request(START, "intermediate"))
        self.assertEqual(result.move, chess.Move.from_uci("e2e4"))
        self.assertEqual(result.attempts, 1)
        self.assertEqual(result.source, "remote")
        req = transport.requests[0]
        self.assertEqual(req.task_kind, TaskKind.MOVE)
        self.assertEqual(req.position_token, START)
        self.assertEqual(req.temperature, 0.7)

    def test_illegal_then_legal(self):
        transport = FakeTransport(["Move: e2e5", "Move: e2e4"])
        result = RemoteDecisionAdapter(transport).decide(move_request(START, "beginner"))
        self.assertEqual(result.move.uci(), "e2e4")
        self.assertEqual(result.attempts, 2)
        second = transport.requests[1].instruction_text
        self.assertIn('"e2e5"', second)
        self.assertIn("illegal move", second)

    def test_malformed_replies_exhaust_retries(self):
        transport = FakeTransport(["I like the knight", "Nf3!", "just develop"])
        with self.assertRaises(RetryExhaustedError) as ctx:
            RemoteDecisionAdapter(transport).decide(move_request(START, "master"))
        self.assertEqual(len(transport.requests), MAX_RETRIES)
        self.assertEqual(ctx.exception.attempts, MAX_RETRIES)
        self.assertIsInstance(ctx.exception.last_error, MalformedResponseError)
        self.assertIn("(no move found)", transport.requests[1].instruction_text)

    def test_attempt_budget_is_configurable(self):
        transport = FakeTransport(["nothing", "still nothing", "Move: e2e4"])
        with self.assertRaises(RetryExhaustedError):
            RemoteDecisionAdapter(transport, max_attempts=2).decide(move_request(START, "master"))
        self.assertEqual(len(transport.requests), 2)

    def test_transport_error_is_retried_with_base_prompt(self):
        transport = FakeTransport([TransportError("timeout"), "Move: g1f3"])
        result = RemoteDecisionAdapter(transport).decide(move_request(START, "advanced"))
        self.assertEqual(result.move.uci(), "g1f3")
        self.assertEqual(transport.requests[0].instruction_text, transport.requests[1].instruction_text)

    def test_rejected_token_survives_transport_error(self):
        transport = FakeTransport(["Move: e2e5", TransportError("timeout"), "Move: e2e4"])
        result = RemoteDecisionAdapter(transport).decide(move_request(START, "intermediate"))
        self.assertEqual(result.move.uci(), "e2e4")
        self.assertEqual(result.attempts, 3)
        for req in transport.requests[1:]:
            self.assertIn('"e2e5"', req.instruction_text)
            self.assertIn("illegal move", req.instruction_text)

    def test_unsuccessful_response_counts_as_transport_failure(self):
        transport = FakeTransport([RelayResponse("", False, "upstream 500")] * 3)
        with self.assertRaises(RetryExhaustedError) as ctx:
            RemoteDecisionAdapter(transport).decide(move_request(START, "beginner"))
        self.assertIsInstance(ctx.exception.last_error, TransportError)

    def test_illegal_exhaustion_keeps_last_error(self):
        transport = FakeTransport(["Move: e2e5"] * 3)
        with self.assertRaises(RetryExhaustedError) as ctx:
            RemoteDecisionAdapter(transport).decide(move_request(START, "beginner"))
        self.assertIsInstance(ctx.exception.last_error, IllegalMoveError)
        self.assertIs(ctx.exception.__cause__, ctx.exception.last_error)

    def test_no_legal_moves_skips_transport(self):
        transport = FakeTransport([])
        with self.assertRaises(NoLegalMovesError):
            RemoteDecisionAdapter(transport).decide(move_request(FOOLS_MATE, "master"))
        self.assertEqual(transport.requests, [])

    def test_master_runs_cold(self):
        transport = FakeTransport(["Move: d2d4"])
        RemoteDecisionAdapter(transport).decide(move_request(chess.Board(), Difficulty.MASTER))
        self.assertEqual(transport.requests[0].temperature, 0.2)
        self.assertEqual(transport.requests[0].difficulty, "master")

    def test_invalid_budget(self):
        with self.assertRaises(ValueError):
            RemoteDecisionAdapter(FakeTransport([]), max_attempts=0)


class TextDecisionTests(unittest.TestCase):
    def test_analysis_passes_text_through(self):
        reply = "  White is slightly better thanks to the e4 pawn.  "
        transport = FakeTransport([reply])
        request = DecisionRequest(START, "beginner", TaskKind.ANALYSIS)
        result = RemoteDecisionAdapter(transport).decide(request)
        self.assertEqual(result.text, reply)
        self.assertIsNone(result.move)
        self.assertEqual(transport.requests[0].temperature, 0.8)
        self.assertIsNone(transport.requests[0].user_message)

    def test_chat_sanitizes_message(self):
        transport = FakeTransport(["Try developing your knights."])
        request = DecisionRequest(START, "intermediate", TaskKind.CHAT, user_message='any "hint"\nplease?')
        RemoteDecisionAdapter(transport).decide(request)
        sent = transport.requests[0]
        self.assertEqual(sent.user_message, 'any \\"hint\\" please?')
        self.assertEqual(sent.temperature, 0.5)
        self.assertEqual(sent.task_kind, TaskKind.CHAT)

    def test_empty_text_is_retried(self):
        transport = FakeTransport(["   ", "Nice move!"])
        request = DecisionRequest(START, "master", TaskKind.CHAT, user_message="hello")
        result = RemoteDecisionAdapter(transport).decide(request)
        self.assertEqual(result.text, "Nice move!")
        self.assertEqual(result.attempts, 2)
        self.assertTrue(transport.requests[1].instruction_text.startswith("Your previous response was empty"))


class RetryStateTests(unittest.TestCase):
    def test_transport_failure_keeps_rejected_token(self):
        state = RetryState()
        state.record(IllegalMoveError("e2e5"), "e2e5")
        state.record(TransportError("timeout"))
        self.assertIsInstance(state.last_error, TransportError)
        self.assertIsNone(state.last_token)
        self.assertEqual((state.rejected_token, state.rejected_reason), ("e2e5", "illegal move"))

    def test_malformed_reply_has_no_token(self):
        state = RetryState()
        state.record(MalformedResponseError("chatter"))
        self.assertIsNone(state.rejected_token)
        self.assertEqual(state.rejected_reason, "no move in the required format")


if __name__ == "__main__":
    unittest.main()
