"""Domain models for the mirrored pages."""

from dataclasses import dataclass
from typing import Any

UNTITLED = "Untitled"


def page_url(page_id: str) -> str:
    return f"https://www.notion.so/{page_id.replace('-', '')}"


@dataclass(frozen=True)
class PageMeta:
    """Title and last-edited timestamp of a remote page."""

    title: str = UNTITLED
    last_edited: str = ""


@dataclass(frozen=True)
class Document:
    """One cached page: its own blocks flattened to plain text.

    ``child_ids`` lists the child pages found the last time the page's blocks
    were fetched; None means they are not known.
    """

    id: str
    title: str
    url: str
    content: str
    last_synced_at: str
    last_edited_at: str
    child_ids: tuple[str, ...] | None = None

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "content": self.content,
            "lastSyncedAt": self.last_synced_at,
            "lastEditedAt": self.last_edited_at,
            "childIds": list(self.child_ids) if self.child_ids is not None else None,
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "Document":
        """Inverse of to_json. Raises KeyError/TypeError on malformed records."""
        child_ids = data.get("childIds")
        return cls(
            id=str(data["id"]),
            title=str(data["title"]),
            url=str(data.get("url") or page_url(str(data["id"]))),
            content=str(data["content"]),
            last_synced_at=str(data.get("lastSyncedAt") or ""),
            last_edited_at=str(data.get("lastEditedAt") or ""),
            child_ids=tuple(str(c) for c in child_ids) if child_ids is not None else None,
        )


@dataclass(frozen=True)
class SnapshotFile:
    """Contents of the durable snapshot file."""

    pages: tuple[Document, ...]
    last_synced_at: str | None = None


@dataclass(frozen=True)
class SearchResult:
    """A ranked search hit with a content snippet."""

    document: Document
    score: int
    snippet: str
