"""MCP server exposing search over the mirrored Notion pages."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from loguru import logger
from mcp.server.fastmcp import Context, FastMCP

from notion_mirror.api import NotionApi
from notion_mirror.config import resolve_cache_file, resolve_root_page_id, resolve_sync_interval
from notion_mirror.core.cache.scheduler import PeriodicSync
from notion_mirror.core.cache.sync_cache import SyncCache, SyncInProgressError, create_sync_cache
from notion_mirror.core.search.relevance import MAX_RESULTS, search_pages

# --- Core functions (testable without MCP context) ---


def notion_search(cache: SyncCache, *, query: str, limit: int = MAX_RESULTS) -> dict[str, Any]:
    """Search cached Notion pages by keywords.

    Args:
        query: Free-text question or keywords.
        limit: Max results (1-20, default 5).
    """
    if not query.strip():
        return {"error": "No search query provided.", "results": [], "count": 0}

    limit = max(1, min(limit, 20))
    results = search_pages(query, cache.get(), limit=limit)
    return {
        "results": [
            {
                "page_id": r.document.id,
                "title": r.document.title,
                "url": r.document.url,
                "score": r.score,
                "snippet": r.snippet,
                "last_edited": r.document.last_edited_at,
            }
            for r in results
        ],
        "count": len(results),
        "last_synced_at": cache.last_synced_at,
    }


def notion_list_pages(cache: SyncCache) -> dict[str, Any]:
    """List all cached pages in crawl order."""
    pages = cache.get()
    return {
        "pages": [
            {"page_id": p.id, "title": p.title, "url": p.url, "chars": len(p.content)}
            for p in pages
        ],
        "count": len(pages),
        "last_synced_at": cache.last_synced_at,
    }


def notion_read_page(cache: SyncCache, *, page: str) -> dict[str, Any]:
    """Return the full cached text of a page, looked up by id or exact title."""
    doc = cache.find(page)
    if doc is None:
        return {"error": f"Page '{page}' not found in cache."}
    return {
        "page_id": doc.id,
        "title": doc.title,
        "url": doc.url,
        "content": doc.content,
        "last_edited": doc.last_edited_at,
        "last_synced": doc.last_synced_at,
    }


def notion_sync(cache: SyncCache) -> dict[str, Any]:
    """Run a sync now and report the number of cached pages."""
    try:
        count = cache.synchronize()
    except SyncInProgressError as e:
        return {"error": str(e)}
    except RuntimeError as e:
        logger.exception("Manual sync failed")
        return {"error": f"Sync failed: {e}"}
    return {"success": True, "count": count, "last_synced_at": cache.last_synced_at}


# --- MCP Server Setup ---


@dataclass
class ServerContext:
    """Shared resources for the MCP server lifetime."""

    cache: SyncCache
    scheduler: PeriodicSync


@asynccontextmanager
async def server_lifespan(_server: FastMCP) -> AsyncIterator[ServerContext]:
    """Load the cached snapshot and start periodic sync; stop it on shutdown."""
    api = NotionApi()
    cache = create_sync_cache(
        api, root_page_id=resolve_root_page_id(), cache_file=resolve_cache_file()
    )
    cache.load()
    scheduler = PeriodicSync(cache, resolve_sync_interval())
    scheduler.start()
    try:
        yield ServerContext(cache=cache, scheduler=scheduler)
    finally:
        scheduler.stop(timeout=5)


mcp_server = FastMCP(
    "notion-mirror",
    instructions="""\
Search a local mirror of a Notion workspace.

1. Use notion_search_tool with the user's question or its key terms.
2. Read promising hits in full with notion_read_page_tool (by page_id).
3. Cite pages by their url.

The mirror refreshes itself periodically; notion_sync_tool forces a refresh
and can take minutes on large workspaces.
""",
    lifespan=server_lifespan,
)


def _ctx(mcp_ctx: Context) -> ServerContext:
    return mcp_ctx.request_context.lifespan_context  # type: ignore[return-value]


# --- MCP Tool Wrappers ---


@mcp_server.tool()
async def notion_search_tool(ctx: Context, query: str, limit: int = MAX_RESULTS) -> dict[str, Any]:
    """Search the mirrored Notion pages by keywords.

    Results are ranked by keyword frequency, with title matches weighted
    higher. Each result has a snippet around the best match; use
    notion_read_page_tool for the full text.

    Args:
        query: Free-text question or keywords.
        limit: Max results (1-20, default 5).
    """
    return notion_search(_ctx(ctx).cache, query=query, limit=limit)


@mcp_server.tool()
async def notion_list_pages_tool(ctx: Context) -> dict[str, Any]:
    """List every page in the mirror with its id, title and url."""
    return notion_list_pages(_ctx(ctx).cache)


@mcp_server.tool()
async def notion_read_page_tool(ctx: Context, page: str) -> dict[str, Any]:
    """Read the full plain text of one mirrored page.

    Args:
        page: Page id (from search results) or exact page title.
    """
    return notion_read_page(_ctx(ctx).cache, page=page)


@mcp_server.tool()
async def notion_sync_tool(ctx: Context) -> dict[str, Any]:
    """Re-crawl Notion now. Unchanged pages are reused, so this is cheap when little changed."""
    return await asyncio.to_thread(notion_sync, _ctx(ctx).cache)


def run_mcp_server() -> None:
    mcp_server.run(transport="stdio")
