import logging

import pytest

from rxprobe.utilities import logging_control


class StubLogger:
    def __init__(self) -> None:
        self.records: list[tuple[int, str, tuple[object, ...]]] = []

    def log(self, level: int, msg: str, *args: object) -> None:
        self.records.append((level, msg, tuple(args)))


@pytest.fixture(autouse=True)
def reset_logging_controller_cache() -> None:
    logging_control.reset_logging_controller()
    yield
    logging_control.reset_logging_controller()


def _controller(now: list[float], **kwargs: object) -> logging_control.LoggingController:
    return logging_control.LoggingController(
        default_interval=kwargs.pop("default_interval", 1.0),  # type: ignore[arg-type]
        default_fallback_level=kwargs.pop("default_fallback_level", None),  # type: ignore[arg-type]
        rules=kwargs.pop("rules", {}),  # type: ignore[arg-type]
        monotonic=lambda: now[0],
    )


def test_logging_controller_applies_interval() -> None:
    """Verify per-key intervals throttle busy delivery logs between windows."""
    now = [0.0]
    controller = _controller(now)
    logger = StubLogger()

    assert controller.log(key="rxprobe.on_next", logger=logger, level=logging.DEBUG, msg="value %d", args=(1,)) is True
    assert controller.log(key="rxprobe.on_next", logger=logger, level=logging.DEBUG, msg="value %d", args=(2,)) is False
    assert controller.log(key="rxprobe.on_next", logger=logger, level=logging.DEBUG, msg="value %d", args=(3,)) is False

    assert len(logger.records) == 1
    assert controller.suppressed_count("rxprobe.on_next") == 2

    now[0] = 1.0
    emitted = controller.log(key="rxprobe.on_next", logger=logger, level=logging.DEBUG, msg="value %d", args=(4,))

    assert emitted is True
    assert logger.records[-1] == (logging.DEBUG, "value %d (%d similar suppressed)", (4, 2))
    assert controller.suppressed_count("rxprobe.on_next") == 0


def test_logging_controller_uses_fallback_level_when_suppressed() -> None:
    """Confirm suppressed records still go out at the fallback level when one is given."""
    now = [0.0]
    controller = _controller(now)
    logger = StubLogger()

    controller.log(key="k", logger=logger, level=logging.INFO, msg="m", fallback_level=logging.DEBUG)
    emitted = controller.log(key="k", logger=logger, level=logging.INFO, msg="m", fallback_level=logging.DEBUG)

    assert emitted is False
    assert [record[0] for record in logger.records] == [logging.INFO, logging.DEBUG]


def test_logging_controller_keys_are_independent() -> None:
    now = [0.0]
    controller = _controller(now)
    logger = StubLogger()

    assert controller.log(key="a", logger=logger, level=logging.INFO, msg="a") is True
    assert controller.log(key="b", logger=logger, level=logging.INFO, msg="b") is True


def test_logging_controller_respects_rule_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    """Confirm rule overrides adjust levels and disable sampling for chosen keys."""
    monkeypatch.setenv("RXPROBE_LOG_RULES", "rxprobe.on_next=none:WARNING:none")
    controller = logging_control.get_logging_controller()
    logger = StubLogger()

    for _ in range(2):
        emitted = controller.log(key="rxprobe.on_next", logger=logger, level=logging.DEBUG, msg="m")
        assert emitted is True

    assert [record[0] for record in logger.records] == [logging.WARNING, logging.WARNING]


def test_logging_controller_disables_sampling_by_default_interval(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RXPROBE_LOG_DEFAULT_INTERVAL", "none")
    controller = logging_control.get_logging_controller()
    logger = StubLogger()

    for _ in range(3):
        controller.log(key="k", logger=logger, level=logging.DEBUG, msg="m")

    assert len(logger.records) == 3


def test_logging_controller_is_cached_until_reset(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure environment changes only apply once the cached controller is dropped."""
    first = logging_control.get_logging_controller()
    monkeypatch.setenv("RXPROBE_LOG_RULES", "k=none:ERROR")

    assert logging_control.get_logging_controller() is first

    logging_control.reset_logging_controller()
    controller = logging_control.get_logging_controller()
    logger = StubLogger()
    controller.log(key="k", logger=logger, level=logging.DEBUG, msg="m")

    assert controller is not first
    assert logger.records == [(logging.ERROR, "m", ())]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("k=0.5", logging_control.LogRule(0.5, None, None)),
        ("k=2:INFO", logging_control.LogRule(2.0, logging.INFO, None)),
        ("k=none:ERROR:DEBUG", logging_control.LogRule(None, logging.ERROR, logging.DEBUG)),
    ],
)
def test_parse_rules(raw: str, expected: logging_control.LogRule) -> None:
    assert logging_control.parse_rules(raw) == {"k": expected}


@pytest.mark.parametrize("raw", ["nonsense", "k=soon", "k=1:LOUD"])
def test_parse_rules_rejects_invalid_entries(raw: str) -> None:
    """Ensure malformed rules fail loudly instead of silently muting logs."""
    with pytest.raises(ValueError):
        logging_control.parse_rules(raw)
