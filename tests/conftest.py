import pytest
from hypothesis import HealthCheck, settings

from helpers.schedulers import shutdown_schedulers
from rxprobe.utilities.logging_control import reset_logging_controller

pytest_plugins = ["pytester", "rxprobe.pytest_plugin"]

settings.register_profile(
    "default",
    suppress_health_check=[HealthCheck.function_scoped_fixture],
    deadline=None,
)
settings.load_profile("default")


@pytest.fixture(autouse=True)
def default_probe_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep probe configuration deterministic regardless of the caller's shell."""

    for name in (
        "RXPROBE_AWAIT_TIMEOUT_S",
        "RXPROBE_FAILURE_MODE",
        "RXPROBE_LOG_RULES",
        "RXPROBE_LOG_DEFAULT_INTERVAL",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_logging_controller()
    yield
    reset_logging_controller()


@pytest.fixture(scope="session", autouse=True)
def background_schedulers() -> None:
    yield
    shutdown_schedulers()
