"""CLI for notion-mirror (sync, search, read, MCP server)."""

import json as json_mod
import time
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from notion_mirror.api import NotionApi
from notion_mirror.config import resolve_cache_file, resolve_root_page_id, resolve_sync_interval
from notion_mirror.core.cache.scheduler import PeriodicSync
from notion_mirror.core.cache.store import SnapshotStore, StorageError
from notion_mirror.core.cache.sync_cache import SyncCache, create_sync_cache, find_page
from notion_mirror.core.search.relevance import MAX_RESULTS, search_pages
from notion_mirror.logging_config import configure_logging
from notion_mirror.models.page import Document

app = typer.Typer(help="Notion mirror: sync a Notion page tree locally and search it.")

CacheFileOption = Annotated[
    Path | None,
    typer.Option("--cache-file", "-c", help="Snapshot file (default: data dir/notion-cache.json)"),
]
RootPageOption = Annotated[
    str | None,
    typer.Option("--root-page", "-r", help="Root page id (default: $NOTION_ROOT_PAGE_ID)"),
]
TrustOption = Annotated[
    bool,
    typer.Option(
        "--trust-timestamps",
        help="Reuse whole subtrees of unchanged pages without checking children",
    ),
]
ApiCacheOption = Annotated[
    bool,
    typer.Option(
        "--api-cache",
        help="Cache API responses and use the cache. Returns stale data, but prevents "
        "ratelimits while developing",
    ),
]


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    configure_logging(verbose=verbose)


def build_cache(
    *,
    cache_file: Path | None,
    root_page: str | None,
    trust_timestamps: bool = False,
    api_cache: bool = False,
) -> SyncCache:
    """Create and load a SyncCache from CLI options and configuration."""
    cache = create_sync_cache(
        NotionApi(from_cache=api_cache),
        root_page_id=root_page or resolve_root_page_id(),
        cache_file=cache_file or resolve_cache_file(),
        trust_parent_timestamps=trust_timestamps,
    )
    cache.load()
    return cache


def _build_cache_or_exit(
    *,
    cache_file: Path | None,
    root_page: str | None,
    trust_timestamps: bool = False,
    api_cache: bool = False,
) -> SyncCache:
    try:
        return build_cache(
            cache_file=cache_file,
            root_page=root_page,
            trust_timestamps=trust_timestamps,
            api_cache=api_cache,
        )
    except RuntimeError as e:
        logger.error("{}", e)
        raise typer.Exit(1) from e


def _load_pages(cache_file: Path | None) -> tuple[Document, ...]:
    """Read the snapshot for read-only commands, exiting if there is none."""
    path = cache_file or resolve_cache_file()
    try:
        stored = SnapshotStore(path).load()
    except StorageError as e:
        logger.error("{}", e)
        raise typer.Exit(1) from e
    if stored is None:
        logger.error("Snapshot not found: {}. Run 'sync' first.", path)
        raise typer.Exit(1)
    return stored.pages


@app.command()
def sync(
    cache_file: CacheFileOption = None,
    root_page: RootPageOption = None,
    trust_timestamps: TrustOption = False,
    api_cache: ApiCacheOption = False,
) -> None:
    """Crawl the Notion tree and refresh the local snapshot."""
    cache = _build_cache_or_exit(
        cache_file=cache_file,
        root_page=root_page,
        trust_timestamps=trust_timestamps,
        api_cache=api_cache,
    )
    try:
        count = cache.synchronize()
    except RuntimeError as e:
        logger.error("Sync failed: {}", e)
        raise typer.Exit(1) from e
    typer.echo(f"Synced {count} pages")


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query"),
    limit: int = typer.Option(MAX_RESULTS, "--limit", "-n", min=1, help="Max results"),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
    cache_file: CacheFileOption = None,
) -> None:
    """Search the cached pages."""
    results = search_pages(query, _load_pages(cache_file), limit=limit)

    if output_json:
        data = {
            "results": [
                {
                    "page_id": r.document.id,
                    "title": r.document.title,
                    "url": r.document.url,
                    "score": r.score,
                    "snippet": r.snippet,
                }
                for r in results
            ],
            "count": len(results),
        }
        typer.echo(json_mod.dumps(data, indent=2, ensure_ascii=False))
        return

    typer.echo(f"Found {len(results)} results:\n")
    for r in results:
        typer.echo(f"  [{r.score}] {r.document.title}")
        typer.echo(f"    {r.snippet}")
        typer.echo(f"    {r.document.url}")
        typer.echo()


@app.command()
def pages(
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
    cache_file: CacheFileOption = None,
) -> None:
    """List all cached pages in crawl order."""
    docs = _load_pages(cache_file)
    if output_json:
        data = {
            "pages": [
                {"page_id": d.id, "title": d.title, "url": d.url, "last_edited": d.last_edited_at}
                for d in docs
            ],
            "count": len(docs),
        }
        typer.echo(json_mod.dumps(data, indent=2, ensure_ascii=False))
        return

    typer.echo(f"{len(docs)} pages:\n")
    for d in docs:
        typer.echo(f"  {d.title} - {len(d.content)} chars  [id={d.id}]")


@app.command()
def show(
    page: str = typer.Argument(..., help="Page id or exact title"),
    cache_file: CacheFileOption = None,
) -> None:
    """Print the cached text of one page."""
    doc = find_page(_load_pages(cache_file), page)
    if doc is None:
        typer.echo(f"Page '{page}' not found.")
        raise typer.Exit(1)
    typer.echo(f"# {doc.title}\n{doc.url}\n")
    typer.echo(doc.content)


@app.command()
def watch(
    interval: Annotated[
        float | None,
        typer.Option("--interval", "-i", help="Seconds between syncs (default: 1 day)"),
    ] = None,
    cache_file: CacheFileOption = None,
    root_page: RootPageOption = None,
    trust_timestamps: TrustOption = False,
) -> None:
    """Sync now, then keep syncing periodically until interrupted."""
    cache = _build_cache_or_exit(
        cache_file=cache_file, root_page=root_page, trust_timestamps=trust_timestamps
    )
    try:
        scheduler = PeriodicSync(cache, interval or resolve_sync_interval())
    except (RuntimeError, ValueError) as e:
        logger.error("{}", e)
        raise typer.Exit(1) from e

    scheduler.start()
    try:
        while scheduler.running:
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Stopping periodic sync")
    finally:
        scheduler.stop()


@app.command()
def serve() -> None:
    """Start the MCP server (stdio transport)."""
    from notion_mirror.mcp.server import run_mcp_server

    run_mcp_server()
