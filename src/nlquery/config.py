"""Runtime configuration resolved from the environment.

Priority for every value:
1. Explicit argument (CLI option or keyword)
2. ``NLQUERY_*`` environment variable
3. Built-in default
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Any

from sqlalchemy.engine import URL

from nlquery.exceptions import ConfigurationError

ENV_PREFIX = "NLQUERY_"

DEFAULT_DATABASE_URL = "sqlite:///./nlquery.db"
DEFAULT_LLM_BASE_URL = "http://localhost:11434/v1"
DEFAULT_LLM_MODEL = "llama3.1"
# Local OpenAI-compatible servers ignore the key but the SDK insists on one.
PLACEHOLDER_API_KEY = "not-needed"


def _env(name: str) -> str | None:
    value = os.getenv(ENV_PREFIX + name)
    return value if value not in (None, "") else None


def _env_int(name: str, default: int) -> int:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{ENV_PREFIX}{name} must be an integer, got '{raw}'", {"variable": ENV_PREFIX + name}
        ) from e


def _env_float(name: str, default: float) -> float:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{ENV_PREFIX}{name} must be a number, got '{raw}'", {"variable": ENV_PREFIX + name}
        ) from e


def get_database_url(url: str | None = None) -> str:
    """Resolve the database URL.

    Priority:
    1. Explicit URL argument
    2. NLQUERY_DATABASE_URL
    3. NLQUERY_DB_HOST / _PORT / _USER / _PASSWORD / _NAME (+ NLQUERY_DB_DRIVER)
    4. Default: sqlite:///./nlquery.db
    """
    if url:
        return url
    if env_url := _env("DATABASE_URL"):
        return env_url
    if host := _env("DB_HOST"):
        port = _env_int("DB_PORT", 0) or None
        if port is not None and not 0 < port < 65536:
            raise ConfigurationError(
                f"{ENV_PREFIX}DB_PORT must be a TCP port, got {port}",
                {"variable": ENV_PREFIX + "DB_PORT"},
            )
        built = URL.create(
            drivername=_env("DB_DRIVER") or "postgresql+psycopg",
            username=_env("DB_USER"),
            password=_env("DB_PASSWORD"),
            host=host,
            port=port,
            database=_env("DB_NAME"),
        )
        return built.render_as_string(hide_password=False)
    return DEFAULT_DATABASE_URL


@dataclass(frozen=True)
class Settings:
    """Immutable settings shared by every session of an agent."""

    database_url: str = DEFAULT_DATABASE_URL
    schema_file: str | None = None
    tables: tuple[str, ...] = ()

    llm_base_url: str = DEFAULT_LLM_BASE_URL
    llm_model: str = DEFAULT_LLM_MODEL
    llm_api_key: str = field(default=PLACEHOLDER_API_KEY, repr=False)
    llm_timeout: float = 30.0
    llm_temperature: float = 0.0

    turn_timeout: float = 90.0
    retry_attempts: int = 3

    default_limit: int = 20
    max_limit: int = 100
    sample_rows: int = 10
    memory_window: int = 40
    session_idle_timeout: float = 1800.0
    max_workers: int = 4

    echo_sql: bool = False

    def __post_init__(self) -> None:
        if self.max_limit < 1:
            raise ConfigurationError("max_limit must be at least 1", {"setting": "max_limit"})
        if not 1 <= self.default_limit <= self.max_limit:
            raise ConfigurationError(
                f"default_limit must be within [1, {self.max_limit}], got {self.default_limit}",
                {"setting": "default_limit"},
            )
        for name in ("turn_timeout", "llm_timeout"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive", {"setting": name})
        if self.retry_attempts < 1:
            raise ConfigurationError(
                "retry_attempts must be at least 1", {"setting": "retry_attempts"}
            )

    @classmethod
    def from_env(cls, **overrides: Any) -> Settings:
        """Build settings from ``NLQUERY_*`` variables.

        Keyword overrides that are ``None`` are ignored so CLI options can be
        passed through unconditionally.
        """
        tables = _env("TABLES")
        values: dict[str, Any] = {
            "database_url": get_database_url(),
            "schema_file": _env("SCHEMA_FILE"),
            "tables": tuple(t.strip() for t in tables.split(",") if t.strip()) if tables else (),
            "llm_base_url": _env("LLM_BASE_URL") or DEFAULT_LLM_BASE_URL,
            "llm_model": _env("LLM_MODEL") or DEFAULT_LLM_MODEL,
            "llm_api_key": _env("LLM_API_KEY")
            or os.getenv("OPENAI_API_KEY")
            or PLACEHOLDER_API_KEY,
            "llm_timeout": _env_float("LLM_TIMEOUT", 30.0),
            "turn_timeout": _env_float("TURN_TIMEOUT", 90.0),
            "retry_attempts": _env_int("RETRY_ATTEMPTS", 3),
            "default_limit": _env_int("DEFAULT_LIMIT", 20),
            "max_limit": _env_int("MAX_LIMIT", 100),
            "sample_rows": _env_int("SAMPLE_ROWS", 10),
            "memory_window": _env_int("MEMORY_WINDOW", 40),
            "session_idle_timeout": _env_float("SESSION_IDLE_TIMEOUT", 1800.0),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def with_overrides(self, **overrides: Any) -> Settings:
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
