"""Keyword search over the cached pages.

A linear scan with term-frequency scoring: good enough for a few hundred
pages, and it needs no index to keep in sync with the snapshot.
"""

import re
from collections.abc import Iterable

from notion_mirror.models.page import Document, SearchResult

STOP_WORDS: frozenset[str] = frozenset(
    {
        # Korean particles
        "이", "가", "을", "를", "의", "에", "에서", "로", "으로", "와", "과",
        "은", "는", "도", "만", "까지", "부터", "에게", "한테", "께",
        # English function words
        "the", "a", "an", "is", "are", "was", "were", "be", "been",
        "in", "on", "at", "to", "for", "of", "with", "and", "or", "not",
        "it", "this", "that", "what", "how", "when", "where", "who",
    }
)  # fmt: skip

MAX_RESULTS = 5
TITLE_WEIGHT = 3
EXACT_PHRASE_BONUS = 5
TERM_FREQUENCY_CAP = 10

SNIPPET_WINDOW = 200
SNIPPET_STEP = 50
SNIPPET_LEAD = 20

# ASCII word characters and Hangul only; other scripts and accented letters are stripped.
_NON_WORD = re.compile(r"[^\w\sㄱ-ㅎㅏ-ㅣ가-힣]", re.ASCII)


def tokenize(text: str) -> list[str]:
    """Lowercase, strip punctuation, drop 1-char tokens and stop words."""
    cleaned = _NON_WORD.sub(" ", text.lower())
    return [t for t in cleaned.split() if len(t) > 1 and t not in STOP_WORDS]


def score_document(document: Document, tokens: list[str], query_lower: str) -> int:
    title_lower = document.title.lower()
    content_lower = document.content.lower()

    score = 0
    for token in tokens:
        if token in title_lower:
            score += TITLE_WEIGHT
        # Capped so one repeated word cannot dominate.
        score += min(content_lower.count(token), TERM_FREQUENCY_CAP)

    if len(query_lower) > 3:
        if query_lower in content_lower:
            score += EXACT_PHRASE_BONUS
        if query_lower in title_lower:
            score += EXACT_PHRASE_BONUS * 2
    return score


def extract_snippet(content: str, tokens: list[str]) -> str:
    """Return the stretch of content that mentions the most distinct tokens."""
    lower = content.lower()
    best_pos = 0
    best_score = 0
    for i in range(0, len(lower), SNIPPET_STEP):
        window = lower[i : i + SNIPPET_WINDOW]
        score = sum(1 for t in set(tokens) if t in window)
        if score > best_score:
            best_score = score
            best_pos = i

    start = max(0, best_pos - SNIPPET_LEAD)
    end = min(len(content), best_pos + SNIPPET_WINDOW)
    snippet = content[start:end].replace("\n", " ").strip()
    if start > 0:
        snippet = "..." + snippet
    if end < len(content):
        snippet = snippet + "..."
    return snippet


def search_pages(
    query: str,
    pages: Iterable[Document],
    *,
    limit: int = MAX_RESULTS,
) -> list[SearchResult]:
    """Rank pages against a free-text query.

    Returns at most ``limit`` results with a positive score, best first; ties
    keep snapshot order.

    Raises:
        ValueError: limit is smaller than 1.
    """
    if limit < 1:
        msg = f"limit must be at least 1, got {limit!r}"
        raise ValueError(msg)
    tokens = tokenize(query)
    if not tokens:
        return []

    query_lower = query.lower()
    scored = [
        (page, score)
        for page in pages
        if (score := score_document(page, tokens, query_lower)) > 0
    ]
    scored.sort(key=lambda item: item[1], reverse=True)

    return [
        SearchResult(document=page, score=score, snippet=extract_snippet(page.content, tokens))
        for page, score in scored[:limit]
    ]
