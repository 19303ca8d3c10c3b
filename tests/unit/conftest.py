"""Shared test fixtures."""

from pathlib import Path

import pytest

from notion_mirror.core.cache.store import SnapshotStore
from notion_mirror.models.page import Document
from tests.unit.fakes import FakeNotion, child_page, make_doc, paragraph, text_block


@pytest.fixture
def workspace() -> FakeNotion:
    """Root with two children; the first has a grandchild nested in a toggle."""
    notion = FakeNotion()
    notion.add_page(
        "root",
        "Handbook",
        blocks=[
            text_block("heading_1", "Welcome"),
            paragraph("Start here."),
            child_page("team"),
            child_page("vacation"),
        ],
    )
    notion.add_page(
        "team",
        "Team",
        blocks=[
            paragraph("Who is who."),
            text_block("toggle", "Archive", block_id="toggle1", has_children=True),
        ],
    )
    notion.children["toggle1"] = [child_page("oncall")]
    notion.add_page("oncall", "On-call rota", blocks=[paragraph("Rotation is weekly.")])
    notion.add_page(
        "vacation",
        "Vacation policy",
        blocks=[paragraph("연차 신청 방법은 아래와 같습니다."), paragraph("Ask your lead.")],
    )
    return notion


@pytest.fixture
def sample_pages() -> list[Document]:
    return [
        make_doc("p1", "Deploy guide", "How to deploy the api service.\nRun make deploy."),
        make_doc("p2", "Vacation policy", "연차 신청 방법\n연차 신청 방법\n연차 신청 방법"),
        make_doc("p3", "Lunch menu", "Pasta on monday, rice on tuesday."),
    ]


@pytest.fixture
def snapshot_file(tmp_path: Path, sample_pages: list[Document]) -> Path:
    """A snapshot file on disk holding sample_pages."""
    path = tmp_path / "data" / "notion-cache.json"
    SnapshotStore(path).save(sample_pages, "2024-02-01T00:00:00+00:00")
    return path
