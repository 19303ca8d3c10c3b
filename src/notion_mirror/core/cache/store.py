"""Single-file JSON storage for the page snapshot."""

import json
import os
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from loguru import logger

from notion_mirror.models.page import Document, SnapshotFile


class StorageError(RuntimeError):
    """The snapshot file could not be read or written."""


class SnapshotStore:
    """Read and write ``{"pages": [...], "lastSyncedAt": ...}``.

    Writes go to a temporary sibling first and are renamed into place, so the
    file on disk is always either the old or the new snapshot.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> SnapshotFile | None:
        """Return the stored snapshot, None if the file does not exist.

        Raises:
            StorageError: file unreadable, not json, or not shaped like a snapshot.
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            msg = f"Cannot read snapshot {str(self.path)!r}: {e}"
            raise StorageError(msg) from e

        try:
            data: Any = json.loads(raw)
            pages = tuple(Document.from_json(p) for p in data["pages"])
            synced_at = data.get("lastSyncedAt")
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            msg = f"Malformed snapshot {str(self.path)!r}: {e!r}"
            raise StorageError(msg) from e

        return SnapshotFile(pages=pages, last_synced_at=str(synced_at) if synced_at else None)

    def save(self, pages: Sequence[Document], synced_at: str) -> None:
        """Replace the snapshot file.

        Raises:
            StorageError: the file could not be written.
        """
        contents = json.dumps(
            {"pages": [p.to_json() for p in pages], "lastSyncedAt": synced_at},
            ensure_ascii=False,
            indent=2,
        )
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(contents + "\n")
            os.replace(tmp_path, self.path)
        except OSError as e:
            msg = f"Cannot write snapshot {str(self.path)!r}: {e}"
            raise StorageError(msg) from e
        logger.debug("Saved {} pages to {}", len(pages), self.path)
