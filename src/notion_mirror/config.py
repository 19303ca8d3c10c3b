"""Configuration constants for notion-mirror."""

import os
from pathlib import Path

# API token location. NOTION_TOKEN wins; otherwise the first file found is used.
NOTION_TOKEN_ENV = "NOTION_TOKEN"
NOTION_TOKEN_FILES: list[Path] = [
    Path("~/.config/notion-mirror-token.txt").expanduser(),
    Path("~/.config/secret/notion-mirror-token.txt").expanduser(),
    Path(f"/run/user/{os.getuid()}/notion-token"),
]

# Page the crawl starts from.
NOTION_ROOT_PAGE_ENV = "NOTION_ROOT_PAGE_ID"

NOTION_API_BASE = "https://api.notion.com/v1/"
NOTION_API_VERSION = "2022-06-28"
NOTION_PAGE_SIZE = 100

# Seconds to wait after every remote call; Notion allows ~3 requests/second.
RATE_LIMIT_DELAY: float = 0.35

# Pages whose title contains this marker (archived/superseded) are skipped with their subtree.
EXCLUDED_TITLE_MARKER = "이전"

# Directory with the snapshot file. First directory which is found is used.
DATA_DIR_ENV = "NOTION_MIRROR_DIR"
DATA_DIRECTORIES: list[Path] = [
    Path("~/.local/share/notion-mirror").expanduser(),
    Path("~/.notion-mirror").expanduser(),
    Path("./data"),
]
CACHE_FILENAME = "notion-cache.json"

# Seconds between scheduled syncs.
SYNC_INTERVAL_ENV = "NOTION_SYNC_INTERVAL"
DEFAULT_SYNC_INTERVAL = 24 * 60 * 60

# Cache directory, used only when --api-cache is passed.
API_CACHE_PREFIX: str = "/tmp/notion-mirror-cache/cache-"


def resolve_data_directory() -> Path:
    """Return the data directory: env override, first existing candidate, else the first one."""
    env_dir = os.environ.get(DATA_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser()
    for candidate in DATA_DIRECTORIES:
        if candidate.is_dir():
            return candidate
    return DATA_DIRECTORIES[0]


def resolve_cache_file() -> Path:
    return resolve_data_directory() / CACHE_FILENAME


def resolve_root_page_id() -> str:
    """Return the configured root page id or raise if none is set."""
    root = os.environ.get(NOTION_ROOT_PAGE_ENV, "").strip()
    if not root:
        msg = f"No root page configured, set {NOTION_ROOT_PAGE_ENV} or pass --root-page"
        raise RuntimeError(msg)
    return root


def resolve_sync_interval() -> float:
    raw = os.environ.get(SYNC_INTERVAL_ENV)
    if not raw:
        return DEFAULT_SYNC_INTERVAL
    try:
        interval = float(raw)
    except ValueError:
        msg = f"{SYNC_INTERVAL_ENV} must be a number of seconds, got {raw!r}"
        raise RuntimeError(msg) from None
    if interval <= 0:
        msg = f"{SYNC_INTERVAL_ENV} must be positive, got {raw!r}"
        raise RuntimeError(msg)
    return interval
