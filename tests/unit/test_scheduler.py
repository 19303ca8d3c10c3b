"""Tests for PeriodicSync."""

import threading
import time

import pytest

from notion_mirror.core.cache.scheduler import PeriodicSync
from notion_mirror.core.cache.sync_cache import SyncInProgressError


class StubCache:
    """Counts synchronize() calls; raises the queued errors first."""

    def __init__(self, *errors: Exception) -> None:
        self.errors = list(errors)
        self.calls = 0
        self.called = threading.Event()

    def synchronize(self) -> int:
        self.calls += 1
        self.called.set()
        if self.errors:
            raise self.errors.pop(0)
        return 7


def test_interval_must_be_positive() -> None:
    with pytest.raises(ValueError, match="positive"):
        PeriodicSync(StubCache(), 0)  # type: ignore[arg-type]


def test_run_once_returns_page_count() -> None:
    assert PeriodicSync(StubCache(), 60).run_once() == 7  # type: ignore[arg-type]


def test_run_once_isolates_failures() -> None:
    cache = StubCache(RuntimeError("network down"))
    scheduler = PeriodicSync(cache, 60)  # type: ignore[arg-type]

    assert scheduler.run_once() is None
    assert scheduler.run_once() == 7
    assert cache.calls == 2


def test_run_once_skips_when_sync_in_progress() -> None:
    scheduler = PeriodicSync(StubCache(SyncInProgressError("busy")), 60)  # type: ignore[arg-type]

    assert scheduler.run_once() is None


def test_start_runs_immediately_and_stop_ends_thread() -> None:
    cache = StubCache()
    scheduler = PeriodicSync(cache, 3600)  # type: ignore[arg-type]

    scheduler.start()
    try:
        assert cache.called.wait(5)
        assert scheduler.running
    finally:
        scheduler.stop(timeout=5)

    assert not scheduler.running
    assert cache.calls == 1


def test_start_twice_raises() -> None:
    scheduler = PeriodicSync(StubCache(), 3600)  # type: ignore[arg-type]
    scheduler.start()
    try:
        with pytest.raises(RuntimeError, match="already started"):
            scheduler.start()
    finally:
        scheduler.stop(timeout=5)


def test_loop_keeps_running_after_failure() -> None:
    cache = StubCache(RuntimeError("first run fails"))
    scheduler = PeriodicSync(cache, 0.01)  # type: ignore[arg-type]

    scheduler.start()
    try:
        for _ in range(500):
            if cache.calls >= 2:
                break
            time.sleep(0.01)
    finally:
        scheduler.stop(timeout=5)

    assert cache.calls >= 2


class BlockingCache:
    """synchronize() waits until released."""

    def __init__(self) -> None:
        self.entered = threading.Event()
        self.release = threading.Event()

    def synchronize(self) -> int:
        self.entered.set()
        self.release.wait(10)
        return 1


def test_stop_timeout_keeps_run_in_flight_visible() -> None:
    """A timed-out stop leaves the scheduler running so start() cannot double up."""
    cache = BlockingCache()
    scheduler = PeriodicSync(cache, 3600)  # type: ignore[arg-type]
    scheduler.start()
    assert cache.entered.wait(5)

    scheduler.stop(timeout=0.05)

    assert scheduler.running
    with pytest.raises(RuntimeError, match="already started"):
        scheduler.start()

    cache.release.set()
    scheduler.stop(timeout=5)
    assert not scheduler.running
