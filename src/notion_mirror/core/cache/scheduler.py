"""Periodic background sync."""

import threading

from loguru import logger

from notion_mirror.core.cache.sync_cache import SyncCache, SyncInProgressError


class PeriodicSync:
    """Run ``cache.synchronize()`` now and then every ``interval`` seconds.

    Each run is isolated: a failure is logged and the next run still happens.
    """

    def __init__(self, cache: SyncCache, interval: float) -> None:
        if interval <= 0:
            msg = f"interval must be positive, got {interval!r}"
            raise ValueError(msg)
        self._cache = cache
        self.interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> int | None:
        """Synchronize once; return the page count, or None if the run failed or was skipped."""
        try:
            return self._cache.synchronize()
        except SyncInProgressError:
            logger.info("Sync already running, skipping this run")
        except Exception:
            logger.exception("Scheduled sync failed")
        return None

    def _loop(self) -> None:
        while not self._stop.is_set():
            self.run_once()
            if self._stop.wait(self.interval):
                break

    def start(self) -> None:
        if self.running:
            msg = "PeriodicSync already started"
            raise RuntimeError(msg)
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="notion-sync", daemon=True)
        self._thread.start()
        logger.info("Periodic sync scheduled every {:.0f}s", self.interval)

    def stop(self, timeout: float | None = None) -> None:
        """Cancel future runs and wait for a run in progress to finish."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            # A run still in flight keeps the thread; start() refuses until it ends.
            if not self._thread.is_alive():
                self._thread = None

