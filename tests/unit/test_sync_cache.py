"""Tests for SyncCache."""

from collections.abc import Mapping
from pathlib import Path

import pytest

from notion_mirror.api import NotionApiError
from notion_mirror.core.cache.store import SnapshotStore
from notion_mirror.core.cache.sync_cache import (
    SyncCache,
    SyncInProgressError,
    create_sync_cache,
    find_page,
)
from notion_mirror.core.crawler import TreeCrawler
from notion_mirror.core.remote.reader import RemoteTreeReader
from notion_mirror.models.page import Document, SnapshotFile
from tests.unit.fakes import FakeNotion, FakeStore, make_doc

SYNCED_AT = "2024-06-01T00:00:00+00:00"


def _cache(notion: FakeNotion, store: FakeStore) -> SyncCache:
    crawler = TreeCrawler(RemoteTreeReader(notion, delay=0), clock=lambda: SYNCED_AT)
    return SyncCache(crawler, store, "root", clock=lambda: SYNCED_AT)


def test_new_cache_is_empty(workspace: FakeNotion) -> None:
    cache = _cache(workspace, FakeStore())

    assert cache.get() == ()
    assert cache.last_synced_at is None


def test_load_uses_stored_snapshot(workspace: FakeNotion, sample_pages: list[Document]) -> None:
    store = FakeStore(SnapshotFile(pages=tuple(sample_pages), last_synced_at="earlier"))
    cache = _cache(workspace, store)

    assert cache.load() is True
    assert cache.get() == tuple(sample_pages)
    assert cache.last_synced_at == "earlier"


def test_load_without_snapshot_keeps_empty_cache(workspace: FakeNotion) -> None:
    cache = _cache(workspace, FakeStore())

    assert cache.load() is False
    assert cache.get() == ()


def test_load_of_unreadable_snapshot_keeps_empty_cache(workspace: FakeNotion) -> None:
    store = FakeStore()
    store.fail_load = True
    cache = _cache(workspace, store)

    assert cache.load() is False
    assert cache.get() == ()


def test_synchronize_swaps_and_persists(workspace: FakeNotion) -> None:
    store = FakeStore()
    cache = _cache(workspace, store)

    count = cache.synchronize()

    assert count == 4
    assert [p.id for p in cache.get()] == ["root", "team", "oncall", "vacation"]
    assert cache.last_synced_at == SYNCED_AT
    assert len(store.saves) == 1
    assert store.saves[0] == (cache.get(), SYNCED_AT)


def test_synchronize_uses_loaded_snapshot_for_reuse(workspace: FakeNotion) -> None:
    store = FakeStore()
    _cache(workspace, store).synchronize()
    workspace.calls.clear()

    restarted = _cache(workspace, store)
    restarted.load()
    restarted.synchronize()

    assert workspace.block_calls == 0


def test_failed_crawl_keeps_current_snapshot(
    workspace: FakeNotion, sample_pages: list[Document]
) -> None:
    store = FakeStore(SnapshotFile(pages=tuple(sample_pages), last_synced_at="earlier"))
    cache = _cache(workspace, store)
    cache.load()
    workspace.failing.add("pages/vacation")

    with pytest.raises(NotionApiError):
        cache.synchronize()

    assert cache.get() == tuple(sample_pages)
    assert cache.last_synced_at == "earlier"
    assert store.saves == []


def test_failed_save_keeps_new_snapshot_in_memory(workspace: FakeNotion) -> None:
    store = FakeStore()
    store.fail_save = True
    cache = _cache(workspace, store)

    assert cache.synchronize() == 4
    assert len(cache.get()) == 4


def test_lock_is_released_after_failure(workspace: FakeNotion) -> None:
    cache = _cache(workspace, FakeStore())
    workspace.failing.add("pages/root")
    with pytest.raises(NotionApiError):
        cache.synchronize()

    workspace.failing.clear()

    assert cache.synchronize() == 4


class ReentrantCrawler:
    """Crawler that tries to start a second sync while the first is running."""

    def __init__(self) -> None:
        self.cache: SyncCache | None = None
        self.inner_error: Exception | None = None

    def crawl(self, root_id: str, previous: Mapping[str, Document]) -> list[Document]:
        assert self.cache is not None
        try:
            self.cache.synchronize()
        except SyncInProgressError as e:
            self.inner_error = e
        return [make_doc(root_id, "Root")]


def test_concurrent_synchronize_is_rejected() -> None:
    crawler = ReentrantCrawler()
    cache = SyncCache(crawler, FakeStore(), "root")  # type: ignore[arg-type]
    crawler.cache = cache

    assert cache.synchronize() == 1
    assert isinstance(crawler.inner_error, SyncInProgressError)


def test_find_matches_id_with_or_without_dashes(sample_pages: list[Document]) -> None:
    pages = [make_doc("1234-abcd", "Dashed"), *sample_pages]

    assert find_page(pages, "1234abcd") is pages[0]
    assert find_page(pages, "1234-abcd") is pages[0]
    assert find_page(pages, "Lunch menu") is pages[3]
    assert find_page(pages, "lunch menu") is None


def test_cache_find(workspace: FakeNotion) -> None:
    cache = _cache(workspace, FakeStore())
    cache.synchronize()

    found = cache.find("Vacation policy")

    assert found is not None
    assert found.id == "vacation"


def test_create_sync_cache_wires_real_store(workspace: FakeNotion, tmp_path: Path) -> None:
    path = tmp_path / "cache.json"
    cache = create_sync_cache(workspace, root_page_id="root", cache_file=path, delay=0)

    cache.synchronize()

    stored = SnapshotStore(path).load()
    assert stored is not None
    assert [p.id for p in stored.pages] == ["root", "team", "oncall", "vacation"]


def test_create_sync_cache_passes_exclusion_marker(workspace: FakeNotion, tmp_path: Path) -> None:
    cache = create_sync_cache(
        workspace,
        root_page_id="root",
        cache_file=tmp_path / "cache.json",
        exclusion_marker="Team",
        delay=0,
    )

    cache.synchronize()

    assert [p.id for p in cache.get()] == ["root", "vacation"]
