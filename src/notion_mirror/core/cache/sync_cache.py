"""In-memory page snapshot, refreshed by crawling Notion."""

import threading
from collections.abc import Callable, Iterable
from pathlib import Path

from loguru import logger

from notion_mirror.config import EXCLUDED_TITLE_MARKER, RATE_LIMIT_DELAY
from notion_mirror.core.cache.store import SnapshotStore, StorageError
from notion_mirror.core.crawler import TreeCrawler, utc_now
from notion_mirror.core.remote.reader import RemoteTreeReader
from notion_mirror.models.page import Document
from notion_mirror.protocols import ApiProtocol, StoreProtocol


def find_page(pages: Iterable[Document], page: str) -> Document | None:
    """Look a page up by id (with or without dashes) or exact title."""
    wanted = page.replace("-", "")
    for doc in pages:
        if doc.id.replace("-", "") == wanted or doc.title == page:
            return doc
    return None


class SyncInProgressError(RuntimeError):
    """synchronize() was called while another synchronize() was running."""


class SyncCache:
    """Owns the current snapshot; ``synchronize()`` is the only way to change it.

    The snapshot is an immutable tuple swapped by reference, so ``get()`` never
    blocks and never sees a half-built snapshot.
    """

    def __init__(
        self,
        crawler: TreeCrawler,
        store: StoreProtocol,
        root_page_id: str,
        *,
        clock: Callable[[], str] = utc_now,
    ) -> None:
        self._crawler = crawler
        self._store = store
        self.root_page_id = root_page_id
        self._clock = clock
        self._pages: tuple[Document, ...] = ()
        self.last_synced_at: str | None = None
        self._sync_lock = threading.Lock()

    def load(self) -> bool:
        """Load the stored snapshot. Returns False (empty cache) if none is usable."""
        try:
            stored = self._store.load()
        except StorageError:
            logger.exception("Failed to load snapshot, starting with an empty cache")
            return False
        if stored is None:
            logger.info("No stored snapshot, starting with an empty cache")
            return False
        self._pages = stored.pages
        self.last_synced_at = stored.last_synced_at
        logger.info("Loaded {} pages (synced: {})", len(self._pages), self.last_synced_at)
        return True

    def get(self) -> tuple[Document, ...]:
        return self._pages

    def synchronize(self) -> int:
        """Crawl the tree, swap in the new snapshot, persist it. Returns the page count.

        A crawl failure propagates and leaves the current snapshot in place. A
        write failure is logged; the new snapshot stays in memory regardless.

        Raises:
            SyncInProgressError: another synchronize() is running.
        """
        if not self._sync_lock.acquire(blocking=False):
            msg = "A sync is already running"
            raise SyncInProgressError(msg)
        try:
            logger.info("Starting Notion sync from {}", self.root_page_id)
            previous = {page.id: page for page in self._pages}
            pages = tuple(self._crawler.crawl(self.root_page_id, previous))

            synced_at = self._clock()
            self._pages = pages
            self.last_synced_at = synced_at

            try:
                self._store.save(pages, synced_at)
            except StorageError:
                logger.exception("Failed to save snapshot, keeping it in memory only")

            logger.info("Sync complete: {} pages cached", len(pages))
            return len(pages)
        finally:
            self._sync_lock.release()

    def find(self, page: str) -> Document | None:
        return find_page(self._pages, page)


def create_sync_cache(
    api: ApiProtocol,
    *,
    root_page_id: str,
    cache_file: str | Path,
    trust_parent_timestamps: bool = False,
    exclusion_marker: str = EXCLUDED_TITLE_MARKER,
    delay: float = RATE_LIMIT_DELAY,
) -> SyncCache:
    """Wire reader, crawler and store into a SyncCache (not loaded yet)."""
    reader = RemoteTreeReader(api, delay=delay)
    crawler = TreeCrawler(
        reader,
        exclusion_marker=exclusion_marker,
        trust_parent_timestamps=trust_parent_timestamps,
    )
    return SyncCache(crawler, SnapshotStore(cache_file), root_page_id)
