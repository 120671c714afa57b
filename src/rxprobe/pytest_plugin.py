"""pytest integration for stream probes.

Enable with ``pytest_plugins = ["rxprobe.pytest_plugin"]`` in the root
``conftest.py``; tests then request the ``stream_probe`` fixture.
"""

from __future__ import annotations

from typing import Any, Callable, Generator

import pytest
import reactivex

from rxprobe.probe import StreamProbe
from rxprobe.reporting import CollectingReporter, RaisingReporter
from rxprobe.utilities.env import Configuration, FailureMode
from rxprobe.utilities.logging import get_logger

logger = get_logger(__name__)

_COLLECTOR_KEY = pytest.StashKey[CollectingReporter]()

ProbeFactory = Callable[[reactivex.Observable[Any]], StreamProbe[Any]]


@pytest.fixture()
def stream_probe(request: pytest.FixtureRequest) -> Generator[ProbeFactory, None, None]:
    """Build probes sharing one per-test reporter; dispose them at teardown."""

    mode = Configuration.failure_mode()
    reporter: CollectingReporter | RaisingReporter
    if mode is FailureMode.DEFERRED:
        reporter = CollectingReporter()
        request.node.stash[_COLLECTOR_KEY] = reporter
    else:
        reporter = RaisingReporter()

    probes: list[StreamProbe[Any]] = []

    def _factory(source: reactivex.Observable[Any]) -> StreamProbe[Any]:
        probe = StreamProbe.create(source, reporter)
        probes.append(probe)
        return probe

    yield _factory

    for probe in probes:
        probe.dispose()
    logger.debug("Disposed %d probe(s) for %s", len(probes), request.node.nodeid)


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(
    item: pytest.Item, call: pytest.CallInfo[None]
) -> Generator[None, Any, None]:
    outcome = yield
    report = outcome.get_result()
    if report.when != "call" or not report.passed:
        return
    collector = item.stash.get(_COLLECTOR_KEY, None)
    if collector is None or not collector.failures:
        return
    report.outcome = "failed"
    report.longrepr = collector.summary()
