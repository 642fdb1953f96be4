from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    """
    Runtime configuration, read from the environment on every ``get_settings()`` call.

    Storage:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'sqlite'
    - SQLITE_DB_PATH: database file for the sqlite backend (default './data/todos.db')

    HTTP:
    - CORS_ALLOW_ORIGINS: '*' (default) or a comma-separated origin list
    - ENABLE_BASIC_AUTH: 'true' to take the caller identity from HTTP Basic Auth
    - BASIC_AUTH_USERNAME / BASIC_AUTH_PASSWORD: the accepted credentials

    Generation API:
    - GOOGLE_GENERATIVE_AI_API_KEY: API key; AI endpoints answer 500 without it
    - GEMINI_MODEL: model name (default 'gemini-2.5-flash')
    - GEMINI_BASE_URL: REST base URL of the Generative Language API
    - LLM_TIMEOUT_SECONDS: time budget for one generation call (default 30)

    Misc:
    - TODO_TIMEZONE: IANA zone used to read due timestamps (default 'Asia/Seoul')
    - LOG_LEVEL: logging level name (default 'INFO')
    """

    persistence_backend: str
    sqlite_db_path: str
    cors_allow_origins: List[str]
    enable_basic_auth: bool
    basic_auth_username: Optional[str]
    basic_auth_password: Optional[str]
    google_api_key: Optional[str]
    gemini_model: str
    gemini_base_url: str
    llm_timeout_seconds: float
    timezone: str
    log_level: str


def _env(name: str, default: str) -> str:
    """Environment value with surrounding whitespace removed; unset or blank gives ``default``."""
    value = (os.getenv(name) or "").strip()
    return value or default


def _env_optional(name: str) -> Optional[str]:
    return (os.getenv(name) or "").strip() or None


def _parse_bool(value: str, default: bool = False) -> bool:
    v = value.lower()
    if v in _TRUTHY:
        return True
    if v in _FALSY:
        return False
    return default


def _parse_float(value: str, default: float) -> float:
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_origins(value: str) -> List[str]:
    if value == "*":
        return ["*"]
    return [origin.strip() for origin in value.split(",") if origin.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Build Settings from the current environment (no caching, so tests can monkeypatch)."""
    backend = _env("PERSISTENCE_BACKEND", "memory").lower()
    if backend not in ("memory", "sqlite"):
        backend = "memory"

    basic_auth = _parse_bool(_env("ENABLE_BASIC_AUTH", "false"))

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=_env("SQLITE_DB_PATH", "./data/todos.db"),
        cors_allow_origins=_parse_origins(_env("CORS_ALLOW_ORIGINS", "*")),
        enable_basic_auth=basic_auth,
        basic_auth_username=os.getenv("BASIC_AUTH_USERNAME") if basic_auth else None,
        basic_auth_password=os.getenv("BASIC_AUTH_PASSWORD") if basic_auth else None,
        google_api_key=_env_optional("GOOGLE_GENERATIVE_AI_API_KEY"),
        gemini_model=_env("GEMINI_MODEL", "gemini-2.5-flash"),
        gemini_base_url=_env(
            "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
        ).rstrip("/"),
        llm_timeout_seconds=_parse_float(_env("LLM_TIMEOUT_SECONDS", "30"), 30.0),
        timezone=_env("TODO_TIMEZONE", "Asia/Seoul"),
        log_level=_env("LOG_LEVEL", "INFO").upper(),
    )
