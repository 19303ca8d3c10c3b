"""Notion API client with optional response caching."""

import hashlib
import json
import os
from pathlib import Path
from typing import Any

import requests
from loguru import logger

from notion_mirror.config import (
    API_CACHE_PREFIX,
    NOTION_API_BASE,
    NOTION_API_VERSION,
    NOTION_TOKEN_ENV,
    NOTION_TOKEN_FILES,
)


class NotionApiError(RuntimeError):
    """A remote call failed: network, auth, rate limit, not found or bad payload."""

    def __init__(self, message: str, *, status: int | None = None, code: str | None = None):
        super().__init__(message)
        self.status = status
        self.code = code


def _read_token() -> tuple[str, str]:
    """Return (token, where it came from)."""
    env_token = os.environ.get(NOTION_TOKEN_ENV, "").strip()
    if env_token:
        return env_token, f"${NOTION_TOKEN_ENV}"
    for token_path in NOTION_TOKEN_FILES:
        try:
            return token_path.read_text(encoding="utf-8").strip(), str(token_path)
        except FileNotFoundError:
            pass
    msg = (
        f"Cannot find notion token, set ${NOTION_TOKEN_ENV} "
        f"or create one of {NOTION_TOKEN_FILES!r}"
    )
    raise RuntimeError(msg)


class NotionApi:
    """Read-only Notion API with caching."""

    def __init__(self, *, from_cache: bool = False, timeout: float = 30.0) -> None:
        self.from_cache = from_cache
        self.timeout = timeout
        self.sess = requests.Session()

        self.api_token, token_source = _read_token()
        self.sess.headers.update(
            {
                "Authorization": f"Bearer {self.api_token}",
                "Notion-Version": NOTION_API_VERSION,
            }
        )

        self.api_cache_prefix: str | None = API_CACHE_PREFIX
        if not self.from_cache:
            self.api_cache_prefix = None

        logger.debug(
            "API ready: token from {!r}, from_cache {!r}, api_cache_prefix {!r}",
            token_source,
            self.from_cache,
            self.api_cache_prefix,
        )

        if self.api_cache_prefix:
            Path(self.api_cache_prefix).parent.mkdir(parents=True, exist_ok=True)

    def _cache_name(self, path: str, params: dict[str, Any] | None) -> str | None:
        if not self.api_cache_prefix:
            return None
        name_last = path
        if params:
            params_str = json.dumps(params, sort_keys=True, separators=(",", ":"))
            if len(params_str) > 64:
                params_str = hashlib.sha1(params_str.encode("utf-8")).hexdigest()
            name_last += "--" + params_str
        return self.api_cache_prefix + name_last.replace("/", "--")

    def call(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """GET a Notion endpoint (relative to the v1 base), return json."""
        cache_name = self._cache_name(path, params)
        if cache_name and Path(cache_name).exists():
            logger.debug("Filled from cache: {!r}", cache_name)
            with open(cache_name, encoding="utf-8") as f:
                return json.load(f)  # type: ignore[no-any-return]

        logger.debug("Making request: {!r} {}", path, repr(params)[:48])
        try:
            r = self.sess.get(NOTION_API_BASE + path, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            msg = f"API call failed: {path!r} -> {e}"
            raise NotionApiError(msg) from e

        try:
            rv: dict[str, Any] = r.json()
        except ValueError:
            rv = {}

        if r.status_code >= 400:
            code = rv.get("code")
            msg = (
                f"API call failed: {path!r} -> HTTP {r.status_code} "
                f"({code!r}, {rv.get('message')!r})"
            )
            raise NotionApiError(msg, status=r.status_code, code=code)
        if not rv:
            msg = f"API call failed: {path!r} -> empty or non-json body"
            raise NotionApiError(msg, status=r.status_code)

        if cache_name:
            with open(cache_name, "w", encoding="utf-8") as f:
                f.write(r.text)

        return rv
