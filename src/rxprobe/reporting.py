"""Failure reporting for probe assertions.

A probe never raises on a failed assertion. It hands the outcome to a
reporter, a callable taking ``(failed, message, location)``, and the
reporter decides how the host test framework finds out.
"""

from __future__ import annotations

import sys
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from rxprobe.utilities.logging import get_logger

logger = get_logger(__name__)

_PACKAGE_ROOT = Path(__file__).resolve().parent


@dataclass(frozen=True)
class SourceLocation:
    filename: str
    lineno: int
    function: str = "<unknown>"

    def __str__(self) -> str:
        return f"{self.filename}:{self.lineno}"


@dataclass(frozen=True)
class AssertionFailure:
    message: str
    location: SourceLocation

    def __str__(self) -> str:
        return f"{self.location}: {self.message}"


class FailureReporter(Protocol):
    def __call__(
        self, failed: bool, message: str, location: SourceLocation
    ) -> None: ...


def _is_internal(filename: str) -> bool:
    try:
        path = Path(filename).resolve()
    except (OSError, ValueError):
        return False
    return path.is_relative_to(_PACKAGE_ROOT)


def caller_location() -> SourceLocation:
    """Return the innermost stack frame that lives outside this package."""

    frame = sys._getframe(1)
    while frame is not None and _is_internal(frame.f_code.co_filename):
        frame = frame.f_back
    if frame is None:
        return SourceLocation(filename="<unknown>", lineno=0)
    return SourceLocation(
        filename=frame.f_code.co_filename,
        lineno=frame.f_lineno,
        function=frame.f_code.co_name,
    )


class RaisingReporter:
    """Surface each failure immediately as an ``AssertionError``."""

    def __call__(
        self, failed: bool, message: str, location: SourceLocation
    ) -> None:
        if failed:
            raise AssertionError(str(AssertionFailure(message, location)))


class CollectingReporter:
    """Record failures and keep going so a whole assertion chain is evaluated."""

    def __init__(self, *, log_failures: bool = False) -> None:
        self._log_failures = log_failures
        self._lock = threading.Lock()
        self._failures: list[AssertionFailure] = []

    def __call__(
        self, failed: bool, message: str, location: SourceLocation
    ) -> None:
        if not failed:
            return
        failure = AssertionFailure(message, location)
        with self._lock:
            self._failures.append(failure)
        if self._log_failures:
            logger.error("Stream assertion failed at %s", failure)

    @property
    def failures(self) -> list[AssertionFailure]:
        with self._lock:
            return list(self._failures)

    def clear(self) -> None:
        with self._lock:
            self._failures.clear()

    def summary(self) -> str:
        failures = self.failures
        lines = [f"{len(failures)} stream probe assertion(s) failed:"]
        lines.extend(f"  {failure}" for failure in failures)
        return "\n".join(lines)

    def raise_if_failed(self) -> None:
        if self.failures:
            raise AssertionError(self.summary())
