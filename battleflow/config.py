"""
Configuration - Environment-driven settings and logging setup.

Environment variables:
    BATTLEFLOW_ENV             development / production (default: development)
    BATTLEFLOW_LOG_LEVEL       logging level name (default: INFO)
    BATTLEFLOW_HISTORY_LIMIT   keep only the last N actions per store (default: unbounded)
    BATTLEFLOW_HOST            API bind host (default: 127.0.0.1)
    BATTLEFLOW_PORT            API bind port (default: 8000)
    ALLOWED_ORIGINS            comma-separated CORS origins (default: *)
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class Settings:
    env: str = "development"
    log_level: str = "INFO"
    history_limit: int | None = None
    host: str = "127.0.0.1"
    port: int = 8000
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> Settings:
        """
        Read settings from the environment.

        Raises ValueError when BATTLEFLOW_HISTORY_LIMIT is not a positive integer.
        """
        return cls(
            env=os.getenv("BATTLEFLOW_ENV", "development"),
            log_level=os.getenv("BATTLEFLOW_LOG_LEVEL", "INFO").upper(),
            history_limit=_parse_history_limit(os.getenv("BATTLEFLOW_HISTORY_LIMIT")),
            host=os.getenv("BATTLEFLOW_HOST", "127.0.0.1"),
            port=int(os.getenv("BATTLEFLOW_PORT", "8000")),
            allowed_origins=os.getenv("ALLOWED_ORIGINS", "*").split(","),
        )


def _parse_history_limit(raw: str | None) -> int | None:
    if not raw:
        return None
    try:
        limit = int(raw)
    except ValueError:
        raise ValueError(f"BATTLEFLOW_HISTORY_LIMIT must be an integer, got {raw!r}") from None
    if limit <= 0:
        raise ValueError(f"BATTLEFLOW_HISTORY_LIMIT must be positive, got {limit}")
    return limit


def configure_logging(level: str = "INFO") -> None:
    """Set up root logging for command-line use."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
