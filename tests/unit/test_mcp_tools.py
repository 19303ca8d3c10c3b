"""Tests for MCP tool core functions."""

import pytest

from notion_mirror.core.cache.sync_cache import SyncCache
from notion_mirror.core.crawler import TreeCrawler
from notion_mirror.core.remote.reader import RemoteTreeReader
from notion_mirror.mcp.server import (
    notion_list_pages,
    notion_read_page,
    notion_search,
    notion_sync,
)
from notion_mirror.models.page import Document, SnapshotFile
from tests.unit.fakes import FakeNotion, FakeStore


@pytest.fixture
def loaded_cache(sample_pages: list[Document]) -> SyncCache:
    store = FakeStore(SnapshotFile(pages=tuple(sample_pages), last_synced_at="2024-02-01"))
    crawler = TreeCrawler(RemoteTreeReader(FakeNotion(), delay=0))
    cache = SyncCache(crawler, store, "root")
    cache.load()
    return cache


def _live_cache(notion: FakeNotion) -> SyncCache:
    crawler = TreeCrawler(RemoteTreeReader(notion, delay=0))
    return SyncCache(crawler, FakeStore(), "root")


def test_notion_search_returns_results_with_metadata(loaded_cache: SyncCache) -> None:
    result = notion_search(loaded_cache, query="deploy")

    assert result["count"] == 1
    assert result["last_synced_at"] == "2024-02-01"
    first = result["results"][0]
    assert first["page_id"] == "p1"
    assert first["title"] == "Deploy guide"
    assert first["url"] == "https://www.notion.so/p1"
    assert "deploy" in first["snippet"]
    assert first["score"] > 0


def test_notion_search_rejects_empty_query(loaded_cache: SyncCache) -> None:
    result = notion_search(loaded_cache, query="  ")

    assert "error" in result
    assert result["results"] == []


def test_notion_search_clamps_limit() -> None:
    pages = tuple(
        Document(
            id=f"p{i}",
            title=f"Note {i}",
            url="u",
            content="common",
            last_synced_at="",
            last_edited_at="",
        )
        for i in range(30)
    )
    crawler = TreeCrawler(RemoteTreeReader(FakeNotion(), delay=0))
    cache = SyncCache(crawler, FakeStore(SnapshotFile(pages=pages)), "root")
    cache.load()

    assert notion_search(cache, query="common", limit=100)["count"] == 20
    assert notion_search(cache, query="common", limit=0)["count"] == 1


def test_notion_list_pages_returns_all_pages(loaded_cache: SyncCache) -> None:
    result = notion_list_pages(loaded_cache)

    assert result["count"] == 3
    assert [p["title"] for p in result["pages"]] == [
        "Deploy guide",
        "Vacation policy",
        "Lunch menu",
    ]


def test_notion_read_page_by_id_or_title(loaded_cache: SyncCache) -> None:
    by_id = notion_read_page(loaded_cache, page="p2")
    by_title = notion_read_page(loaded_cache, page="Vacation policy")

    assert by_id == by_title
    assert "연차 신청 방법" in by_id["content"]


def test_notion_read_page_not_found(loaded_cache: SyncCache) -> None:
    result = notion_read_page(loaded_cache, page="nope")

    assert result["error"] == "Page 'nope' not found in cache."


def test_notion_sync_reports_count(workspace: FakeNotion) -> None:
    cache = _live_cache(workspace)

    result = notion_sync(cache)

    assert result["success"] is True
    assert result["count"] == 4
    assert notion_search(cache, query="rotation")["results"][0]["page_id"] == "oncall"


def test_notion_sync_reports_failure(workspace: FakeNotion) -> None:
    workspace.failing.add("pages/root")

    result = notion_sync(_live_cache(workspace))

    assert "Sync failed" in result["error"]
