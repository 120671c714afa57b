import logging
import os
from pathlib import Path

from rxprobe.utilities.env.parsing import _env_optional_float

DEFAULT_LOG_INTERVAL_SECONDS = 1.0


class LoggingConfiguration:
    @classmethod
    def log_level(cls) -> int:
        name = os.environ.get("LOG_LEVEL", "INFO").strip().upper()
        level = logging.getLevelName(name)
        if not isinstance(level, int):
            raise ValueError("LOG_LEVEL must be a logging level name such as 'DEBUG' or 'INFO'")
        return level

    @classmethod
    def log_dir(cls) -> Path | None:
        raw = os.environ.get("RXPROBE_LOG_DIR", "").strip()
        return Path(raw).expanduser() if raw else None

    @classmethod
    def log_rules(cls) -> str:
        return os.environ.get("RXPROBE_LOG_RULES", "").strip()

    @classmethod
    def log_default_interval_s(cls) -> float | None:
        raw = os.environ.get("RXPROBE_LOG_DEFAULT_INTERVAL")
        if raw is not None and raw.strip().lower() == "none":
            return None
        value = _env_optional_float("RXPROBE_LOG_DEFAULT_INTERVAL", minimum=0.0)
        return DEFAULT_LOG_INTERVAL_SECONDS if value is None else value
