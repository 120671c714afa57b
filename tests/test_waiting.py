import threading
import time

from rxprobe.waiting import OneShotSignal


class TestOneShotSignal:
    """Validate the blocking handoff behind the probe's waits."""

    def test_wait_times_out_when_never_signalled(self) -> None:
        signal = OneShotSignal()

        started = time.monotonic()
        fired = signal.wait(0.05)

        assert fired is False
        assert time.monotonic() - started >= 0.04
        assert signal.is_set is False

    def test_wait_returns_when_signalled_from_another_thread(self) -> None:
        """Ensure a signal from a producer thread wakes the blocked waiter."""

        signal = OneShotSignal()
        timer = threading.Timer(0.05, signal.signal)
        timer.start()

        assert signal.wait(5) is True
        timer.join()

    def test_extra_signals_are_harmless(self) -> None:
        """Confirm repeated signals neither raise nor reset the signal."""

        signal = OneShotSignal()

        signal.signal()
        signal.signal()

        assert signal.is_set is True
        assert signal.wait(0) is True
