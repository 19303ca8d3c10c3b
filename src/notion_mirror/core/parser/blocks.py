"""Flatten Notion blocks into plain text."""

from collections.abc import Iterable

from notion_mirror.models.block import Block, BlockKind

_PREFIXES: dict[BlockKind, str] = {
    BlockKind.PARAGRAPH: "",
    BlockKind.CALLOUT: "",
    BlockKind.UNKNOWN: "",
    BlockKind.HEADING_1: "# ",
    BlockKind.HEADING_2: "## ",
    BlockKind.HEADING_3: "### ",
    BlockKind.BULLETED_LIST_ITEM: "- ",
    # Literal marker, real numbering is not reconstructed.
    BlockKind.NUMBERED_LIST_ITEM: "1. ",
    BlockKind.TOGGLE: "> ",
    BlockKind.QUOTE: "> ",
}


def _block_to_line(block: Block) -> str:
    kind = block.kind
    if kind is BlockKind.DIVIDER:
        return "---"
    if kind is BlockKind.TABLE_ROW:
        return " | ".join(block.cells) if block.cells is not None else ""
    if block.text is None:
        # Child pages, layout containers and malformed payloads.
        return ""
    if kind is BlockKind.TO_DO:
        return f"[{'x' if block.checked else ' '}] {block.text}"
    if kind is BlockKind.CODE:
        return f"```\n{block.text}\n```"
    prefix = _PREFIXES.get(kind)
    if prefix is None:
        return ""
    return prefix + block.text


def parse_blocks(blocks: Iterable[Block]) -> str:
    """Render blocks one line each, dropping blocks that render empty."""
    lines = (_block_to_line(block) for block in blocks)
    return "\n".join(line for line in lines if line)
