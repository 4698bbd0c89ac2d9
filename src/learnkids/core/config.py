"""Runtime settings for the LearnKids server.

Settings come from environment variables so the same image runs locally and
on a container platform without code changes::

    PORT=8080 LEARNKIDS_SESSION_IDLE_SECONDS=600 python -m learnkids

Numeric variables that fail to parse (or are not positive) fall back to their
defaults and a warning is logged.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from .. import __version__

__all__ = ["DEFAULT_DATA_DIR", "ServerSettings"]

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR: Final = Path(__file__).resolve().parents[1] / "data"

_ENV_PREFIX: Final = "LEARNKIDS_"


def _env_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("ignoring non-numeric %s", name, extra={"value": raw})
        return default
    if value <= 0 or value != value:
        logger.warning("ignoring non-positive %s", name, extra={"value": raw})
        return default
    return value


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("ignoring non-integer %s", name, extra={"value": raw})
        return default
    if value <= 0:
        logger.warning("ignoring non-positive %s", name, extra={"value": raw})
        return default
    return value


@dataclass(frozen=True)
class ServerSettings:
    """Configuration for one server process."""

    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    app_name: str = "learningkids-server"
    app_version: str = __version__
    data_dir: Path = field(default=DEFAULT_DATA_DIR)
    stream_path: str = "/mcp"
    message_path: str = "/mcp/messages"
    session_idle_seconds: float = 3600.0
    keepalive_seconds: float = 15.0
    max_submission_length: int = 5000

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ServerSettings:
        env = os.environ if environ is None else environ
        data_dir_raw = env.get(f"{_ENV_PREFIX}DATA_DIR", "").strip()
        return cls(
            host=env.get("BIND", "").strip() or cls.host,
            port=_env_int(env, "PORT", cls.port),
            log_level=(env.get("LOG_LEVEL", "").strip() or cls.log_level).upper(),
            app_name=env.get("APP_NAME", "").strip() or cls.app_name,
            app_version=env.get("APP_VERSION", "").strip() or cls.app_version,
            data_dir=Path(data_dir_raw) if data_dir_raw else DEFAULT_DATA_DIR,
            session_idle_seconds=_env_float(env, f"{_ENV_PREFIX}SESSION_IDLE_SECONDS", cls.session_idle_seconds),
            keepalive_seconds=_env_float(env, f"{_ENV_PREFIX}KEEPALIVE_SECONDS", cls.keepalive_seconds),
            max_submission_length=_env_int(env, f"{_ENV_PREFIX}MAX_SUBMISSION_LENGTH", cls.max_submission_length),
        )
