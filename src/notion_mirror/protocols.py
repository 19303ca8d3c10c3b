"""Protocols for dependency injection in the mirror."""

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from notion_mirror.models.block import Block
from notion_mirror.models.page import Document, PageMeta, SnapshotFile


@runtime_checkable
class ApiProtocol(Protocol):
    """Protocol for Notion API clients."""

    def call(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Invoke a read endpoint and return the JSON response."""
        ...


@runtime_checkable
class ReaderProtocol(Protocol):
    """Protocol for the page-tree reader used by the crawler."""

    def fetch_meta(self, page_id: str) -> PageMeta:
        """Return title and last-edited timestamp of a page."""
        ...

    def fetch_blocks(self, block_id: str) -> list[Block]:
        """Return all direct child blocks of a page or block."""
        ...

    def find_child_page_ids(self, blocks: Sequence[Block]) -> list[str]:
        """Return child page ids referenced by blocks, including nested ones."""
        ...


@runtime_checkable
class StoreProtocol(Protocol):
    """Protocol for durable snapshot storage."""

    def load(self) -> SnapshotFile | None:
        """Read the stored snapshot, None if nothing is stored."""
        ...

    def save(self, pages: Sequence[Document], synced_at: str) -> None:
        """Replace the stored snapshot."""
        ...
