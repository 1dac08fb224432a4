"""
Configuration helpers for the flat-file MVC backend.

Routers, repositories and the app factory read configuration through
get_settings() instead of fetching os.environ directly.
"""

from dataclasses import dataclass
from functools import lru_cache
import os

CHAIN_MODES = ("sequential", "fanout")
LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    host: str
    port: int
    data_dir: str
    middleware_chain: str
    log_level: str


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _choice(value: str | None, choices: tuple[str, ...], default: str) -> str:
        candidate = (value or "").strip().lower()
        return candidate if candidate in choices else default

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        host=os.getenv("HOST", "127.0.0.1"),
        port=_int(os.getenv("PORT", "8080"), 8080),
        data_dir=os.getenv("DATA_DIR", "./database"),
        middleware_chain=_choice(os.getenv("MIDDLEWARE_CHAIN"), CHAIN_MODES, "sequential"),
        log_level=_choice(os.getenv("LOG_LEVEL"), LOG_LEVELS, "info").upper(),
    )
