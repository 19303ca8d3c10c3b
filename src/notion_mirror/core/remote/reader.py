"""Read pages and blocks from the Notion API, one rate-limited call at a time."""

import time
from collections.abc import Callable, Sequence
from typing import Any

from loguru import logger

from notion_mirror.config import NOTION_PAGE_SIZE, RATE_LIMIT_DELAY
from notion_mirror.models.block import (
    TRANSPARENT_CONTAINERS,
    Block,
    BlockKind,
    rich_text_to_plain,
)
from notion_mirror.models.page import UNTITLED, PageMeta
from notion_mirror.protocols import ApiProtocol


def _title_from_properties(properties: Any) -> str:
    if not isinstance(properties, dict):
        return UNTITLED
    for prop in properties.values():
        if isinstance(prop, dict) and prop.get("type") == "title":
            return rich_text_to_plain(prop.get("title")) or UNTITLED
    return UNTITLED


class RemoteTreeReader:
    """Fetch page metadata and block children.

    Every remote call is followed by a fixed delay so that a whole crawl stays
    under the API's request-rate ceiling. Errors from the API are not caught.
    """

    def __init__(
        self,
        api: ApiProtocol,
        *,
        delay: float = RATE_LIMIT_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._api = api
        self._delay = delay
        self._sleep = sleep
        self.meta_requests = 0
        self.block_requests = 0

    def _call(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            return self._api.call(path, params)
        finally:
            if self._delay > 0:
                self._sleep(self._delay)

    def fetch_meta(self, page_id: str) -> PageMeta:
        """Return the page title ("Untitled" if missing) and last_edited_time ("" if missing)."""
        self.meta_requests += 1
        page = self._call(f"pages/{page_id}")
        if "properties" not in page:
            return PageMeta()
        return PageMeta(
            title=_title_from_properties(page["properties"]),
            last_edited=str(page.get("last_edited_time") or ""),
        )

    def fetch_blocks(self, block_id: str) -> list[Block]:
        """Return all direct children of a page or block, following pagination."""
        blocks: list[Block] = []
        cursor: str | None = None
        while True:
            params: dict[str, Any] = {"page_size": NOTION_PAGE_SIZE}
            if cursor:
                params["start_cursor"] = cursor
            self.block_requests += 1
            response = self._call(f"blocks/{block_id}/children", params)
            results = response.get("results") or []
            blocks.extend(Block.from_api(raw) for raw in results if isinstance(raw, dict))
            cursor = response.get("next_cursor") if response.get("has_more") else None
            if not cursor:
                break
        logger.debug("Fetched {} blocks under {}", len(blocks), block_id)
        return blocks

    def find_child_page_ids(self, blocks: Sequence[Block]) -> list[str]:
        """Collect child page ids, descending into layout/grouping blocks that have children."""
        ids: list[str] = []
        for block in blocks:
            if block.kind is BlockKind.CHILD_PAGE:
                ids.append(block.id)
            elif block.has_children and block.kind in TRANSPARENT_CONTAINERS:
                ids.extend(self.find_child_page_ids(self.fetch_blocks(block.id)))
        return ids
