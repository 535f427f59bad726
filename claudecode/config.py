"""Environment-driven settings for the session manager."""

import logging
import os
from datetime import timedelta

from pydantic import BaseModel

logger = logging.getLogger(__name__)

ENV_PREFIX = "CLAUDECODE_"


class Settings(BaseModel):
    """Limits and defaults for chat sessions."""

    max_sessions: int = 10
    session_timeout_minutes: int = 30
    flush_interval_ms: int = 100
    default_model: str = "sonnet"
    max_turns: int = 3
    cleanup_interval_seconds: int = 60
    log_level: str = "INFO"

    @property
    def session_timeout(self) -> timedelta:
        return timedelta(minutes=self.session_timeout_minutes)

    @property
    def flush_interval(self) -> float:
        """Flush interval in seconds."""
        return self.flush_interval_ms / 1000


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(f"{ENV_PREFIX}{name}")
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid value for {ENV_PREFIX}{name}: {raw!r}, using {default}")
        return default


def load_settings() -> Settings:
    """Build Settings from the environment.

    Variables are prefixed with ``CLAUDECODE_`` (for example
    ``CLAUDECODE_MAX_SESSIONS``), except ``LOG_LEVEL`` which is shared with
    the rest of the process.
    """
    defaults = Settings()
    return Settings(
        max_sessions=_env_int("MAX_SESSIONS", defaults.max_sessions),
        session_timeout_minutes=_env_int(
            "SESSION_TIMEOUT_MINUTES", defaults.session_timeout_minutes
        ),
        flush_interval_ms=_env_int("FLUSH_INTERVAL_MS", defaults.flush_interval_ms),
        default_model=os.getenv(f"{ENV_PREFIX}DEFAULT_MODEL") or defaults.default_model,
        max_turns=_env_int("MAX_TURNS", defaults.max_turns),
        cleanup_interval_seconds=_env_int(
            "CLEANUP_INTERVAL_SECONDS", defaults.cleanup_interval_seconds
        ),
        log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
    )
