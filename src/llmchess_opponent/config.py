"""
Configuration and environment loading for the chess opponent.

- Loads settings.yml (YAML) from repo root if present; falls back to environment variables.
- Exposes SETTINGS with keys used across the project (gateway credentials, relay endpoint, retry/timeouts).
"""
from dataclasses import dataclass
import logging
import os
from typing import Any, Callable

import yaml
from dotenv import load_dotenv

load_dotenv()

log = logging.getLogger("config")


def _repo_root() -> str:
    # this file: src/llmchess_opponent/config.py → repo root is two levels up
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))


def _load_yaml(path: str) -> dict:
    if not os.path.isfile(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError):
        log.exception("Failed to read %s; using environment only", path)
        return {}
    return data if isinstance(data, dict) else {}


_cfg = _load_yaml(os.path.join(_repo_root(), "settings.yml"))


def _get(name: str, default: Any, cast: Callable[[Any], Any] | None = None) -> Any:
    if name in _cfg:
        val = _cfg[name]
        return cast(val) if cast else val
    env = os.environ.get(name)
    if env is not None:
        return cast(env) if cast else env
    return default


def _as_bool(val: Any) -> bool:
    if isinstance(val, bool):
        return val
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


def _as_origins(val: Any) -> tuple[str, ...]:
    if isinstance(val, (list, tuple)):
        items = val
    else:
        items = str(val).split(",")
    return tuple(o.strip() for o in items if str(o).strip())


@dataclass(frozen=True)
class Settings:
    # Upstream gateway (OpenAI-compatible wire format)
    llm_api_key: str
    api_base: str
    model: str

    # Relay endpoint used by the remote adapter; empty means call the gateway in-process
    relay_url: str
    relay_timeout_s: float
    allowed_origins: tuple[str, ...]

    # Decision knobs
    remote_max_attempts: int
    upstream_retries: int
    use_remote: bool


SETTINGS = Settings(
    llm_api_key=_get("LLMCHESS_LLM_API_KEY", _get("AI_GATEWAY_API_KEY", "")),
    api_base=_get("LLMCHESS_LLM_BASE_URL", _get("AI_GATEWAY_BASE_URL", "https://ai-gateway.vercel.sh/v1")),
    model=_get("LLMCHESS_MODEL", "google/gemini-2.0-flash"),
    relay_url=_get("LLMCHESS_RELAY_URL", ""),
    relay_timeout_s=float(_get("LLMCHESS_RELAY_TIMEOUT_S", 30.0, cast=float)),
    allowed_origins=_get("LLMCHESS_ALLOWED_ORIGINS", ("http://localhost:3000",), cast=_as_origins),
    remote_max_attempts=int(_get("LLMCHESS_REMOTE_MAX_ATTEMPTS", 3, cast=int)),
    upstream_retries=int(_get("LLMCHESS_UPSTREAM_RETRIES", 1, cast=int)),
    use_remote=_get("LLMCHESS_USE_REMOTE", False, cast=_as_bool),
)
