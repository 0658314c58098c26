from __future__ import annotations
"""
LLM client facade over an OpenAI-compatible gateway (configurable base URL).

The relay is the only caller: it hands over a fully rendered prompt and a
temperature and gets raw text back. The SDK client is created on first use so
importing this module never requires credentials.
"""
from functools import lru_cache
from typing import Optional
import logging
import random
import time

from openai import OpenAI

from .config import SETTINGS

log = logging.getLogger("llm_client")


@lru_cache(maxsize=1)
def _client() -> OpenAI:
    return OpenAI(api_key=SETTINGS.llm_api_key or "missing-key", base_url=SETTINGS.api_base or None)


class UpstreamError(RuntimeError):
    """The gateway could not produce any text."""


def complete(prompt: str, temperature: float = 0.7, model: Optional[str] = None,
             timeout: Optional[float] = None, retries: Optional[int] = None) -> str:
    """Send a single-turn prompt and return the stripped reply text."""
    model = model or SETTINGS.model
    if not model:
        raise ValueError("Model is required; set LLMCHESS_MODEL in settings.yml or the environment.")
    timeout = timeout or SETTINGS.relay_timeout_s
    retries = SETTINGS.upstream_retries if retries is None else retries
    delay = 0.5
    last_exc: Exception | None = None
    for attempt in range(retries + 1):
        try:
            rsp = _client().chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
                timeout=timeout,
            )
            text = _extract_text(rsp)
            if text:
                return text.strip()
            last_exc = UpstreamError("empty completion")
        except Exception as e:  # SDK raises a zoo of transport/status errors
            last_exc = e
            if attempt >= retries:
                log.exception("Completion request failed after %d attempts", attempt + 1)
                break
            sleep_s = delay * (2 ** attempt) * (0.8 + 0.4 * random.random())
            time.sleep(min(sleep_s, 10.0))
    raise UpstreamError(str(last_exc) if last_exc else "no completion") from last_exc


def _extract_text(rsp) -> str:
    if not getattr(rsp, "choices", None):
        return ""
    msg = rsp.choices[0].message
    content = getattr(msg, "content", None)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for c in content:
            if isinstance(c, dict):
                if c.get("type") == "text" and isinstance(c.get("text"), str):
                    parts.append(c["text"])
                continue
            t = getattr(c, "text", None)
            if isinstance(t, str):
                parts.append(t)
        return "\n".join(parts)
    return ""
