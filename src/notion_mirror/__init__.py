"""Mirror a Notion page tree into a local snapshot and search it."""

from notion_mirror.api import NotionApi, NotionApiError
from notion_mirror.core.cache.sync_cache import SyncCache, create_sync_cache
from notion_mirror.core.search.relevance import search_pages
from notion_mirror.protocols import ApiProtocol, ReaderProtocol, StoreProtocol

__all__ = [
    "ApiProtocol",
    "NotionApi",
    "NotionApiError",
    "ReaderProtocol",
    "StoreProtocol",
    "SyncCache",
    "create_sync_cache",
    "search_pages",
]
