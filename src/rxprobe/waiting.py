"""One-shot blocking handoff used by the probe's wait operations."""

from __future__ import annotations

import threading


class OneShotSignal:
    """A signal that fires at most once and wakes a single waiter.

    Extra calls to :meth:`signal` are no-ops. ``wait`` with ``timeout=None``
    blocks until the signal fires.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def is_set(self) -> bool:
        return self._event.is_set()

    def signal(self) -> None:
        self._event.set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until signalled or ``timeout`` seconds pass; return whether it fired."""

        return self._event.wait(timeout)
