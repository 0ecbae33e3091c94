"""Fuzzy matching over request url/name.

Match criterion: every query character appears in the text in order
(case-insensitive). Contiguous matches score higher than scattered ones and
earlier matches score higher than later ones. Scores are in (0, 1].
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

# [LAW:one-source-of-truth] Field weights and cutoff for ranked search.
URL_WEIGHT = 0.6
NAME_WEIGHT = 0.4
MIN_SCORE = 0.05


def _subsequence_span(query: str, text: str, start: int) -> int | None:
    """Length of the greedy in-order match of query in text beginning at start."""
    pos = start
    for ch in query:
        pos = text.find(ch, pos)
        if pos < 0:
            return None
        pos += 1
    return pos - start


def fuzzy_score(query: str, text: str) -> float | None:
    """Score text against query, or None when the query does not match."""
    q = query.lower()
    t = text.lower()
    if not q:
        return 1.0
    if len(q) > len(t):
        return None

    idx = t.find(q)
    if idx >= 0:
        # Substring: 0.5..1.0, decaying with how far into the text it starts.
        return 1.0 - min(idx, 100) / 200.0

    best: int | None = None
    start = t.find(q[0])
    while start >= 0:
        span = _subsequence_span(q, t, start)
        if span is None:
            break
        if best is None or span < best:
            best = span
        start = t.find(q[0], start + 1)
    if best is None:
        return None
    score = 0.5 * len(q) / best
    return score if score >= MIN_SCORE else None


def matches(query: str, text: str) -> bool:
    return fuzzy_score(query, text) is not None


@dataclass(frozen=True)
class FuzzyHit:
    position: int
    score: float


class FuzzyIndex:
    """Prepared lowercase url/name pairs for a fixed request sequence.

    The index stores positions, not records, so it stays valid while the
    records at those positions are replaced copy-on-write.
    """

    def __init__(self, entries: Sequence[tuple[str, str]]):
        self._entries = tuple((url.lower(), name.lower()) for url, name in entries)

    def __len__(self) -> int:
        return len(self._entries)

    def search(self, query: str) -> list[FuzzyHit]:
        """Positions matching query, best first; ties keep insertion order."""
        hits: list[FuzzyHit] = []
        for position, (url, name) in enumerate(self._entries):
            url_score = fuzzy_score(query, url)
            name_score = fuzzy_score(query, name)
            if url_score is None and name_score is None:
                continue
            score = URL_WEIGHT * (url_score or 0.0) + NAME_WEIGHT * (name_score or 0.0)
            hits.append(FuzzyHit(position, score))
        hits.sort(key=lambda hit: (-hit.score, hit.position))
        return hits
