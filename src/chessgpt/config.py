"""
Configuration and environment loading for ChessGPT.

- Loads settings.yml (YAML) from the repo root, or the path in CHESSGPT_SETTINGS, if present.
- Falls back to environment variables (a local .env is loaded first), then to defaults.
- Exposes SETTINGS with the keys used across the project (API credentials, sampling, auto-play knobs).
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Callable

import yaml
from dotenv import load_dotenv

load_dotenv()


def _repo_root() -> str:
    # this file: src/chessgpt/config.py → repo root is two levels up
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))


def _load_yaml(path: str) -> dict:
    if not os.path.isfile(path):
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return data if isinstance(data, dict) else {}


def _settings_path() -> str:
    return os.environ.get("CHESSGPT_SETTINGS") or os.path.join(_repo_root(), "settings.yml")


@dataclass(frozen=True)
class Settings:
    # Auth / endpoint
    openai_api_key: str
    api_base: str
    organization: str

    # Sampling parameters for move requests
    temperature: float
    max_tokens: int
    request_timeout_s: float

    # Auto-play
    autoplay_delay_s: float
    autoplay_max_retries: int

    # Web server
    session_ttl_s: int
    host: str
    port: int
    log_level: str


def load_settings(path: str | None = None) -> Settings:
    """Build Settings with precedence YAML > environment > defaults."""
    cfg = _load_yaml(path or _settings_path())

    def _get(name: str, default: Any, cast: Callable[[Any], Any] | None = None) -> Any:
        if name in cfg and cfg[name] is not None:
            val = cfg[name]
            return cast(val) if cast else val
        env = os.environ.get(name)
        if env is not None:
            return cast(env) if cast else env
        return default

    return Settings(
        openai_api_key=_get("CHESSGPT_OPENAI_API_KEY", _get("OPENAI_API_KEY", "")),
        api_base=_get("CHESSGPT_OPENAI_BASE_URL", ""),
        organization=_get("CHESSGPT_OPENAI_ORGANIZATION", ""),
        temperature=_get("CHESSGPT_TEMPERATURE", 1.0, cast=float),
        max_tokens=_get("CHESSGPT_MAX_TOKENS", 10, cast=int),
        request_timeout_s=_get("CHESSGPT_REQUEST_TIMEOUT_S", 30.0, cast=float),
        autoplay_delay_s=_get("CHESSGPT_AUTOPLAY_DELAY_S", 0.2, cast=float),
        autoplay_max_retries=_get("CHESSGPT_AUTOPLAY_MAX_RETRIES", 3, cast=int),
        session_ttl_s=_get("CHESSGPT_SESSION_TTL_S", 3600, cast=int),
        host=_get("CHESSGPT_HOST", "127.0.0.1"),
        port=_get("CHESSGPT_PORT", 8000, cast=int),
        log_level=str(_get("CHESSGPT_LOG_LEVEL", "INFO")).upper(),
    )


SETTINGS = load_settings()
