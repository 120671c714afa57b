"""Recording observer with fluent assertions for ``reactivex`` streams."""

from __future__ import annotations

import logging
import threading
import weakref
from dataclasses import dataclass
from types import TracebackType
from typing import Any, Callable, Generic, Iterable, TypeVar

import reactivex
from reactivex import operators as ops
from reactivex.abc import DisposableBase

from rxprobe.reporting import (CollectingReporter, FailureReporter,
                               SourceLocation, caller_location)
from rxprobe.utilities.env import Configuration
from rxprobe.utilities.logging import get_logger
from rxprobe.utilities.logging_control import get_logging_controller
from rxprobe.waiting import OneShotSignal

logger = get_logger(__name__)

T = TypeVar("T")

ON_NEXT_LOG_KEY = "rxprobe.on_next"


@dataclass
class _PendingWaiter:
    signal: OneShotSignal
    threshold: int = 0


def _subscribe(
    probe_ref: weakref.ReferenceType[StreamProbe[Any]],
    source: reactivex.Observable[Any],
) -> DisposableBase:
    # Callbacks only hold a weak reference so the subscription never keeps
    # the probe alive.
    def _on_next(value: Any) -> None:
        probe = probe_ref()
        if probe is not None:
            probe._record_value(value)

    def _on_error(error: Exception) -> None:
        probe = probe_ref()
        if probe is not None:
            probe._record_error(error)

    def _on_completed() -> None:
        probe = probe_ref()
        if probe is not None:
            probe._record_completion()

    def _on_disposed() -> None:
        probe = probe_ref()
        if probe is not None:
            probe._record_disposal()

    return source.pipe(ops.finally_action(_on_disposed)).subscribe(
        _on_next,
        _on_error,
        _on_completed,
    )


class StreamProbe(Generic[T]):
    """Subscribe to ``source`` and record everything it emits.

    Recording starts at construction. Delivery callbacks may run on any
    thread; every read and write of recorded state goes through one lock.
    Assertions never raise themselves: each outcome is handed to
    ``reporter`` (a logging :class:`CollectingReporter` when none is given,
    reachable as :attr:`reporter`) and the probe is returned so checks can
    be chained::

        observe(source).await_(timeout=1).assert_no_error().assert_values(1, 2).dispose()

    Only one outstanding wait of each kind is supported. Starting a new
    ``await_`` (or ``await_count``) replaces the pending one.
    """

    def __init__(
        self,
        source: reactivex.Observable[T],
        reporter: FailureReporter | None = None,
    ) -> None:
        self._reporter: FailureReporter = (
            reporter if reporter is not None else CollectingReporter(log_failures=True)
        )
        self._lock = threading.RLock()
        self._values: list[T] = []
        self._error: BaseException | None = None
        self._completed = False
        self._disposed = False
        self._count_waiter: _PendingWaiter | None = None
        self._completion_waiter: _PendingWaiter | None = None
        self._subscription: DisposableBase | None = None
        # Settings are resolved before subscribing; delivery callbacks never parse them.
        self._log_controller = get_logging_controller()

        logger.debug("Subscribing probe %#x to %r", id(self), source)
        self._subscription = _subscribe(weakref.ref(self), source)

    @property
    def reporter(self) -> FailureReporter:
        return self._reporter

    @classmethod
    def create(
        cls,
        source: reactivex.Observable[T],
        reporter: FailureReporter | None = None,
    ) -> StreamProbe[T]:
        return cls(source, reporter)

    def __enter__(self) -> StreamProbe[T]:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.dispose()

    def __repr__(self) -> str:
        with self._lock:
            return (
                f"{type(self).__name__}(values={len(self._values)}, "
                f"error={self._error!r}, completed={self._completed}, "
                f"disposed={self._disposed})"
            )

    # Recorded state

    @property
    def values(self) -> list[T]:
        with self._lock:
            return list(self._values)

    @property
    def value_count(self) -> int:
        with self._lock:
            return len(self._values)

    @property
    def error(self) -> BaseException | None:
        with self._lock:
            return self._error

    @property
    def is_completed(self) -> bool:
        with self._lock:
            return self._completed

    @property
    def is_disposed(self) -> bool:
        with self._lock:
            return self._disposed

    def _terminated(self) -> bool:
        return self._completed or self._error is not None

    # Delivery callbacks

    def _record_value(self, value: T) -> None:
        with self._lock:
            if self._terminated():
                dropped = True
            else:
                dropped = False
                self._values.append(value)
                count = len(self._values)
                waiter = self._count_waiter
                if waiter is not None and count >= waiter.threshold:
                    waiter.signal.signal()

        if dropped:
            logger.warning("Probe %#x dropped %r delivered after a terminal event", id(self), value)
            return
        self._log_controller.log(
            key=ON_NEXT_LOG_KEY,
            logger=logger,
            level=logging.DEBUG,
            msg="Probe %#x recorded value #%d",
            args=(id(self), count),
        )

    def _record_error(self, error: BaseException) -> None:
        with self._lock:
            duplicate = self._terminated()
            if not duplicate:
                self._error = error
                self._release_waiters()

        if duplicate:
            logger.warning("Probe %#x ignored error after a terminal event: %r", id(self), error)
        else:
            logger.debug("Probe %#x recorded error %r", id(self), error)

    def _record_completion(self) -> None:
        with self._lock:
            duplicate = self._terminated()
            if not duplicate:
                self._completed = True
                self._release_waiters()

        if duplicate:
            logger.warning("Probe %#x ignored completion after a terminal event", id(self))
        else:
            logger.debug("Probe %#x recorded completion", id(self))

    def _record_disposal(self) -> None:
        with self._lock:
            self._disposed = True
        logger.debug("Probe %#x subscription disposed", id(self))

    def _release_waiters(self) -> None:
        # No more values can arrive once the stream has terminated.
        for waiter in (self._completion_waiter, self._count_waiter):
            if waiter is not None:
                waiter.signal.signal()

    def dispose(self) -> None:
        """Tear down the subscription. Safe to call more than once."""

        with self._lock:
            subscription = self._subscription
        if subscription is None:
            return
        subscription.dispose()

    # Waiting

    def await_(self, timeout: float | None = None) -> StreamProbe[T]:
        """Block until the stream terminates or ``timeout`` seconds pass.

        A timeout is silent; follow up with assertions to learn whether the
        stream actually finished.
        """

        with self._lock:
            if self._terminated():
                return self
            waiter = _PendingWaiter(OneShotSignal())
            self._completion_waiter = waiter

        self._block("await_", waiter, timeout)
        with self._lock:
            if self._completion_waiter is waiter:
                self._completion_waiter = None
        return self

    def await_count(self, count: int, timeout: float | None = None) -> StreamProbe[T]:
        """Block until at least ``count`` values were recorded, the stream
        terminates, or ``timeout`` seconds pass."""

        with self._lock:
            if self._terminated() or len(self._values) >= count:
                return self
            waiter = _PendingWaiter(OneShotSignal(), threshold=count)
            self._count_waiter = waiter

        self._block("await_count", waiter, timeout)
        with self._lock:
            if self._count_waiter is waiter:
                self._count_waiter = None
        return self

    def _block(self, operation: str, waiter: _PendingWaiter, timeout: float | None) -> None:
        resolved = timeout if timeout is not None else Configuration.await_timeout_s()
        if not waiter.signal.wait(resolved):
            logger.debug(
                "Probe %#x %s timed out after %ss with %d value(s)",
                id(self),
                operation,
                resolved,
                self.value_count,
            )

    # Assertions

    def _report(
        self,
        failed: bool,
        description: str,
        message: str,
        location: SourceLocation | None,
    ) -> None:
        text = f"{description} - {message}" if message else description
        self._reporter(failed, text, location or caller_location())

    def assert_value_count(
        self,
        expected: int,
        message: str = "",
        location: SourceLocation | None = None,
    ) -> StreamProbe[T]:
        """Assert exactly ``expected`` values were received."""

        actual = self.value_count
        self._report(
            actual != expected,
            f"assert_value_count: expected {expected} value(s), received {actual}",
            message,
            location,
        )
        return self

    def assert_no_values(
        self,
        message: str = "",
        location: SourceLocation | None = None,
    ) -> StreamProbe[T]:
        values = self.values
        self._report(
            bool(values),
            f"assert_no_values: expected no values, received {values!r}",
            message,
            location,
        )
        return self

    def assert_error(
        self,
        message: str = "",
        location: SourceLocation | None = None,
    ) -> StreamProbe[T]:
        self._report(
            self.error is None,
            "assert_error: expected an error, but none was received",
            message,
            location,
        )
        return self

    def assert_no_error(
        self,
        message: str = "",
        location: SourceLocation | None = None,
    ) -> StreamProbe[T]:
        error = self.error
        self._report(
            error is not None,
            f"assert_no_error: expected no error, received {error!r}",
            message,
            location,
        )
        return self

    def assert_error_message(
        self,
        expected: str,
        message: str = "",
        location: SourceLocation | None = None,
    ) -> StreamProbe[T]:
        """Assert an error was received and ``str(error)`` equals ``expected``."""

        error = self.error
        actual = None if error is None else str(error)
        self._report(
            actual != expected,
            f"assert_error_message: expected {expected!r}, received {actual!r}",
            message,
            location,
        )
        return self

    def assert_values(
        self,
        *expected: T,
        message: str = "",
        location: SourceLocation | None = None,
    ) -> StreamProbe[T]:
        """Assert the received values are exactly ``expected``, in order."""

        values = self.values
        self._report(
            values != list(expected),
            f"assert_values: expected {list(expected)!r}, received {values!r}",
            message,
            location,
        )
        return self

    def assert_value(
        self,
        index: int,
        expected: T,
        message: str = "",
        location: SourceLocation | None = None,
    ) -> StreamProbe[T]:
        """Assert the value received at ``index`` equals ``expected``.

        An index outside ``0 <= index < value_count`` is reported as a single
        failure and the value comparison is skipped.
        """

        values = self.values
        in_range = 0 <= index < len(values)
        self._report(
            not in_range,
            f"assert_value: index {index} out of range for {len(values)} value(s)",
            message,
            location,
        )
        if not in_range:
            return self
        actual = values[index]
        self._report(
            actual != expected,
            f"assert_value: expected {expected!r} at index {index}, received {actual!r}",
            message,
            location,
        )
        return self

    def assert_value_set(
        self,
        expected: Iterable[T],
        message: str = "",
        location: SourceLocation | None = None,
    ) -> StreamProbe[T]:
        """Assert every item of ``expected`` was received, in any order.

        Extra values are not flagged; pair with :meth:`assert_value_count`
        to check for an exact set.
        """

        values = self.values
        resolved = location or caller_location()
        for item in dict.fromkeys(expected):
            self._report(
                item not in values,
                f"assert_value_set: {item!r} not found in {values!r}",
                message,
                resolved,
            )
        return self


def observe(
    source: reactivex.Observable[T],
    reporter: FailureReporter | None = None,
) -> StreamProbe[T]:
    """Return a probe recording ``source``."""

    return StreamProbe.create(source, reporter)


def to_probe(
    reporter: FailureReporter | None = None,
) -> Callable[[reactivex.Observable[T]], StreamProbe[T]]:
    """Operator form of :func:`observe` for ``source.pipe(to_probe())``."""

    def _to_probe(source: reactivex.Observable[T]) -> StreamProbe[T]:
        return StreamProbe.create(source, reporter)

    return _to_probe
