from __future__ import annotations

import logging
import re
import threading
import time
from dataclasses import dataclass
from functools import cache
from typing import Callable, Sequence

from rxprobe.utilities.env import Configuration

DEFAULT_FALLBACK_LEVEL: int | None = None

_RULE_PATTERN = re.compile(
    r"^(?P<key>[^=]+)="
    r"(?P<interval>none|\d+(?:\.\d+)?)"
    r"(?::(?P<level>[A-Za-z]+))?"
    r"(?::(?P<fallback>[A-Za-z]+|none))?$"
)


@dataclass(frozen=True)
class LogRule:
    """How often a sampled log key may emit at its primary level."""

    interval_seconds: float | None
    level: int | None
    fallback_level: int | None


class LoggingController:
    """Samples per-event probe logs so busy sources do not flood test output."""

    def __init__(
        self,
        *,
        default_interval: float | None,
        default_fallback_level: int | None,
        rules: dict[str, LogRule],
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._default_interval = default_interval
        self._default_fallback_level = default_fallback_level
        self._rules = rules
        self._monotonic = monotonic
        self._lock = threading.Lock()
        self._next_emit: dict[str, float] = {}
        self._suppressed: dict[str, int] = {}

    def _rule_for(self, key: str) -> LogRule:
        if key in self._rules:
            return self._rules[key]
        return LogRule(
            interval_seconds=self._default_interval,
            level=None,
            fallback_level=self._default_fallback_level,
        )

    def suppressed_count(self, key: str) -> int:
        with self._lock:
            return self._suppressed.get(key, 0)

    def log(
        self,
        *,
        key: str,
        logger: logging.Logger,
        level: int,
        msg: str,
        args: Sequence[object] | None = None,
        fallback_level: int | None = None,
    ) -> bool:
        """
        Emit ``msg`` under ``key`` if its sampling window has elapsed.

        Suppressed records are counted and, when a fallback level is
        configured, logged at that level instead. Returns ``True`` when the
        record went out at its primary level.
        """

        rule = self._rule_for(key)
        primary_level = rule.level or level
        suppressed_level = (
            rule.fallback_level
            if rule.fallback_level is not None
            else fallback_level
        )

        interval = rule.interval_seconds
        if interval is None:
            logger.log(primary_level, msg, *(args or ()))
            return True

        now = self._monotonic()

        with self._lock:
            next_emit = self._next_emit.get(key, 0.0)
            if now >= next_emit:
                self._next_emit[key] = now + interval
                skipped = self._suppressed.pop(key, 0)
            else:
                self._suppressed[key] = self._suppressed.get(key, 0) + 1
                skipped = None

        if skipped is not None:
            if skipped:
                logger.log(
                    primary_level,
                    msg + " (%d similar suppressed)",
                    *(args or ()),
                    skipped,
                )
            else:
                logger.log(primary_level, msg, *(args or ()))
            return True

        if suppressed_level is not None:
            logger.log(suppressed_level, msg, *(args or ()))
        return False


def _parse_level(name: str | None) -> int | None:
    if not name:
        return None
    resolved = getattr(logging, name.upper(), None)
    if isinstance(resolved, int):
        return resolved
    raise ValueError(f"Unknown log level {name!r}")


def _parse_interval(value: str) -> float | None:
    if value.lower() == "none":
        return None
    return float(value)


def parse_rules(raw_rules: str) -> dict[str, LogRule]:
    rules: dict[str, LogRule] = {}
    for chunk in filter(None, (part.strip() for part in raw_rules.split(","))):
        match = _RULE_PATTERN.match(chunk)
        if not match:
            raise ValueError(
                "Invalid RXPROBE_LOG_RULES entry. Expected 'key=interval[:LEVEL[:FALLBACK]]'."
            )
        key = match.group("key").strip()
        interval = _parse_interval(match.group("interval"))
        level = _parse_level(match.group("level"))
        fallback_raw = match.group("fallback")
        fallback_level = (
            None
            if fallback_raw is None or fallback_raw.lower() == "none"
            else _parse_level(fallback_raw)
        )
        rules[key] = LogRule(interval, level, fallback_level)
    return rules


@cache
def get_logging_controller() -> LoggingController:
    """Return the shared logging controller instance.

    Built once per process from the environment; later changes to
    ``RXPROBE_LOG_RULES`` or ``RXPROBE_LOG_DEFAULT_INTERVAL`` only take effect
    after :func:`reset_logging_controller`.
    """

    return LoggingController(
        default_interval=Configuration.log_default_interval_s(),
        default_fallback_level=DEFAULT_FALLBACK_LEVEL,
        rules=parse_rules(Configuration.log_rules()),
    )


def reset_logging_controller() -> None:
    """Drop the cached controller so the next lookup rereads the environment."""

    get_logging_controller.cache_clear()
