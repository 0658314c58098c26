"""
Transport contract between the remote adapter and the relay.

- RelayRequest / RelayResponse: the narrow text-in/text-out wire contract.
- HttpRelayTransport: POSTs to a relay service (see relay.py) with a bounded timeout.
- DirectTransport: calls the upstream gateway in-process via llm_client (no relay hop).

Every failure on this boundary surfaces as TransportError so the adapter can
treat it like any other bad attempt.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol

import requests

from .config import SETTINGS
from .decisions import TaskKind
from .errors import TransportError

log = logging.getLogger("transport")


@dataclass(frozen=True)
class RelayRequest:
    instruction_text: str
    temperature: float
    task_kind: TaskKind
    position_token: str
    difficulty: str = ""
    user_message: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "prompt": self.instruction_text,
            "temperature": self.temperature,
            "requestType": self.task_kind.value,
            "fen": self.position_token,
            "difficulty": self.difficulty,
        }
        if self.user_message is not None:
            payload["message"] = self.user_message
        return payload

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "RelayRequest":
        try:
            kind = TaskKind(str(data.get("requestType") or "move").lower())
        except ValueError as e:
            raise ValueError(f"unknown requestType {data.get('requestType')!r}") from e
        return cls(
            instruction_text=str(data.get("prompt") or ""),
            temperature=float(data.get("temperature", 0.7)),
            task_kind=kind,
            position_token=str(data.get("fen") or ""),
            difficulty=str(data.get("difficulty") or ""),
            user_message=data.get("message"),
        )


@dataclass(frozen=True)
class RelayResponse:
    result_text: str
    success: bool
    error_message: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        if self.success:
            return {"content": self.result_text, "success": True}
        return {"success": False, "error": self.error_message or "unknown error"}

    @classmethod
    def from_payload(cls, data: Any) -> "RelayResponse":
        if not isinstance(data, dict):
            raise TransportError(f"relay returned non-object payload: {type(data).__name__}")
        return cls(
            result_text=str(data.get("content") or ""),
            success=bool(data.get("success")),
            error_message=data.get("error"),
        )


class RelayTransport(Protocol):
    def send(self, request: RelayRequest) -> RelayResponse: ...


class HttpRelayTransport:
    """Relay client over HTTP. One POST per attempt; retrying is the adapter's job."""

    def __init__(self, url: str | None = None, timeout_s: float | None = None,
                 session: requests.Session | None = None, origin: str | None = None):
        self.url = url or SETTINGS.relay_url
        if not self.url:
            raise ValueError("Relay URL is required; set LLMCHESS_RELAY_URL or pass url=")
        self.timeout_s = timeout_s or SETTINGS.relay_timeout_s
        self.session = session or requests.Session()
        self.headers = {"Content-Type": "application/json"}
        if origin:
            self.headers["Origin"] = origin

    def send(self, request: RelayRequest) -> RelayResponse:
        log.debug("POST %s type=%s temp=%.2f", self.url, request.task_kind.value, request.temperature)
        try:
            rsp = self.session.post(self.url, json=request.to_payload(), headers=self.headers, timeout=self.timeout_s)
        except requests.Timeout as e:
            raise TransportError(f"relay timed out after {self.timeout_s}s") from e
        except requests.RequestException as e:
            raise TransportError(f"relay unreachable: {e}") from e
        try:
            data = rsp.json()
        except ValueError as e:
            raise TransportError(f"relay returned HTTP {rsp.status_code} with a non-JSON body") from e
        response = RelayResponse.from_payload(data)
        if not rsp.ok and response.success:
            raise TransportError(f"relay returned HTTP {rsp.status_code}")
        return response

    def close(self):
        self.session.close()


class DirectTransport:
    """In-process transport: one upstream try per send, retrying is the adapter's job."""

    def __init__(self, complete_fn: Callable[..., str] | None = None, model: str | None = None,
                 timeout_s: float | None = None):
        if complete_fn is None:
            from .llm_client import complete as complete_fn
        self.complete_fn = complete_fn
        self.model = model
        self.timeout_s = timeout_s or SETTINGS.relay_timeout_s

    def send(self, request: RelayRequest) -> RelayResponse:
        try:
            text = self.complete_fn(request.instruction_text, temperature=request.temperature,
                                    model=self.model, timeout=self.timeout_s, retries=0)
        except Exception as e:  # upstream SDK errors are opaque here
            raise TransportError(f"upstream call failed: {e}") from e
        return RelayResponse(result_text=text or "", success=True)

    def close(self):
        return


def transport_from_settings(model: str | None = None, relay_url: str | None = None) -> RelayTransport:
    """Relay over HTTP when a relay URL is configured (or passed), otherwise call the gateway directly."""
    url = SETTINGS.relay_url if relay_url is None else relay_url
    if url:
        return HttpRelayTransport(url, SETTINGS.relay_timeout_s)
    return DirectTransport(model=model, timeout_s=SETTINGS.relay_timeout_s)
