"""
Flask relay between browser/game clients and the hosted text model.

Endpoints:
- POST    /api/relay  -> forward {prompt, temperature, requestType, fen, message?} upstream, reply {content, success}
- OPTIONS /api/relay  -> CORS preflight

Only origins in the allow-list may POST. The relay does not interpret replies;
parsing and legality checks belong to the caller's remote adapter.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, Optional

from flask import Flask, jsonify, request

from .config import SETTINGS
from .transport import RelayRequest, RelayResponse

log = logging.getLogger("relay")

CompleteFn = Callable[..., str]


def _truncate(text: str, limit: int = 200) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def create_app(complete_fn: Optional[CompleteFn] = None, allowed_origins: Optional[Iterable[str]] = None,
               model: Optional[str] = None, timeout_s: Optional[float] = None) -> Flask:
    if complete_fn is None:
        from .llm_client import complete as complete_fn
    origins = set(SETTINGS.allowed_origins if allowed_origins is None else allowed_origins)
    timeout_s = timeout_s or SETTINGS.relay_timeout_s

    app = Flask(__name__)

    def _cors_headers(origin: str) -> dict:
        return {
            "Access-Control-Allow-Origin": origin if origin in origins else "null",
            "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Api-Key",
            "Access-Control-Allow-Methods": "OPTIONS, POST",
        }

    def _reply(response: RelayResponse, status: int, origin: str):
        return jsonify(response.to_payload()), status, _cors_headers(origin)

    @app.route("/api/relay", methods=["POST", "OPTIONS"])
    def relay():
        origin = request.headers.get("Origin", "")
        if request.method == "OPTIONS":
            return "", 204, _cors_headers(origin)
        if origin not in origins:
            log.warning("Blocked request from disallowed origin: %r", origin)
            return _reply(RelayResponse("", False, "Forbidden: Origin not allowed"), 403, origin)

        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return _reply(RelayResponse("", False, "JSON body required"), 400, origin)
        try:
            relay_request = RelayRequest.from_payload(data)
        except (TypeError, ValueError) as e:
            return _reply(RelayResponse("", False, str(e)), 400, origin)
        if not relay_request.instruction_text.strip():
            return _reply(RelayResponse("", False, "prompt is required"), 400, origin)

        log.info("Relay request type=%s difficulty=%s temp=%.2f",
                 relay_request.task_kind.value, relay_request.difficulty or "-", relay_request.temperature)
        log.debug("FEN: %s | message: %s", relay_request.position_token, relay_request.user_message or "N/A")
        t0 = time.time()
        try:
            text = complete_fn(relay_request.instruction_text, temperature=relay_request.temperature,
                               model=model, timeout=timeout_s)
        except Exception as e:  # upstream failures become a 500 with the reason attached
            log.exception("Upstream completion failed")
            return _reply(RelayResponse("", False, str(e) or type(e).__name__), 500, origin)
        log.info("Relay reply in %d ms: %s", int((time.time() - t0) * 1000), _truncate(text or ""))
        return _reply(RelayResponse(text or "", True), 200, origin)

    @app.errorhandler(405)
    def method_not_allowed(_e):
        origin = request.headers.get("Origin", "")
        return _reply(RelayResponse("", False, "Method not allowed"), 405, origin)

    return app
