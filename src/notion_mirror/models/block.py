"""Content blocks as returned by the Notion block-children endpoint."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class BlockKind(StrEnum):
    """Block types the mirror knows about. Anything else is UNKNOWN."""

    PARAGRAPH = "paragraph"
    HEADING_1 = "heading_1"
    HEADING_2 = "heading_2"
    HEADING_3 = "heading_3"
    BULLETED_LIST_ITEM = "bulleted_list_item"
    NUMBERED_LIST_ITEM = "numbered_list_item"
    TO_DO = "to_do"
    TOGGLE = "toggle"
    QUOTE = "quote"
    CODE = "code"
    CALLOUT = "callout"
    DIVIDER = "divider"
    TABLE_ROW = "table_row"
    TABLE = "table"
    COLUMN_LIST = "column_list"
    COLUMN = "column"
    SYNCED_BLOCK = "synced_block"
    CHILD_PAGE = "child_page"
    UNKNOWN = "unknown"


# Blocks that may hide child pages somewhere underneath them.
TRANSPARENT_CONTAINERS: frozenset[BlockKind] = frozenset(
    {
        BlockKind.COLUMN_LIST,
        BlockKind.COLUMN,
        BlockKind.CALLOUT,
        BlockKind.TOGGLE,
        BlockKind.BULLETED_LIST_ITEM,
        BlockKind.NUMBERED_LIST_ITEM,
        BlockKind.QUOTE,
        BlockKind.SYNCED_BLOCK,
    }
)


def rich_text_to_plain(rich_text: Any) -> str | None:
    """Concatenate plain_text of a rich text array. None if it is not a list."""
    if not isinstance(rich_text, list):
        return None
    return "".join(
        str(run.get("plain_text") or "") for run in rich_text if isinstance(run, dict)
    )


@dataclass(frozen=True)
class Block:
    """A single block, flattened to what the mirror needs.

    ``text`` is None when the payload carries no rich text at all, which is
    different from an empty paragraph (``""``).
    """

    id: str
    kind: BlockKind
    text: str | None = None
    has_children: bool = False
    checked: bool = False
    cells: tuple[str, ...] | None = None
    raw_type: str = ""

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> "Block":
        """Build a Block from a raw API object; never raises on odd shapes."""
        raw_type = str(raw.get("type") or "")
        try:
            kind = BlockKind(raw_type)
        except ValueError:
            kind = BlockKind.UNKNOWN

        data = raw.get(raw_type)
        if not isinstance(data, dict):
            data = {}

        cells: tuple[str, ...] | None = None
        raw_cells = data.get("cells")
        if kind is BlockKind.TABLE_ROW and isinstance(raw_cells, list):
            cells = tuple(rich_text_to_plain(cell) or "" for cell in raw_cells)

        return cls(
            id=str(raw.get("id") or ""),
            kind=kind,
            text=rich_text_to_plain(data.get("rich_text")),
            has_children=bool(raw.get("has_children")),
            checked=bool(data.get("checked")),
            cells=cells,
            raw_type=raw_type,
        )
