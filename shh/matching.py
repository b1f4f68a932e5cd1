"""Fuzzy subsequence scoring and deterministic ranking of catalog records.

``rank(snapshot, query)`` is called on every keystroke of the picker's
search box. It is a pure function of its inputs: the same snapshot and query
always produce the same index list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from shh.catalog import CatalogSnapshot

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Scoring weights
# ---------------------------------------------------------------------------

SCORE_MATCH = 16
BONUS_CONSECUTIVE = 12
BONUS_FIRST_CHAR = 8
BONUS_BOUNDARY = 8
PENALTY_GAP_OPEN = 3
PENALTY_GAP_EXTENSION = 1
PENALTY_LEADING = 1
MAX_LEADING_PENALTY = 8

SEPARATORS = frozenset(" ._-@/:")

_NEG_INF = float("-inf")


@dataclass(frozen=True, slots=True)
class MatchResult:
    """A scored hit: *index* points into the snapshot that was ranked."""

    index: int
    score: int


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def _is_subsequence(needle: str, haystack: str) -> bool:
    """Check if needle chars appear in order within haystack."""
    it = iter(haystack)
    return all(ch in it for ch in needle)


def _position_bonus(text: str, pos: int) -> int:
    if pos == 0:
        return BONUS_FIRST_CHAR
    if text[pos - 1] in SEPARATORS:
        return BONUS_BOUNDARY
    return 0


def fuzzy_score(query: str, text: str) -> int | None:
    """Score *query* as a subsequence of *text*; ``None`` if it is not one.

    Both arguments are compared as given; callers lower-case them. The best
    alignment over all placements of the query characters is taken, so a
    contiguous run always outscores the same characters spread apart.
    """
    if not query:
        return 0
    if not _is_subsequence(query, text):
        return None

    n = len(text)
    bonuses = [_position_bonus(text, j) for j in range(n)]

    # prev[j]: best score with the previous query char matched exactly at j.
    prev = [_NEG_INF] * n
    first = query[0]
    for j, ch in enumerate(text):
        if ch == first:
            leading = min(j * PENALTY_LEADING, MAX_LEADING_PENALTY)
            prev[j] = SCORE_MATCH + bonuses[j] - leading

    for qc in query[1:]:
        cur = [_NEG_INF] * n
        # gap_best: best prev[j'] for j' <= j - 2, already charged for the gap.
        gap_best = _NEG_INF
        for j in range(1, n):
            if j >= 2:
                gap_best = max(
                    gap_best - PENALTY_GAP_EXTENSION,
                    prev[j - 2] - PENALTY_GAP_OPEN,
                )
            if text[j] != qc:
                continue
            best = max(prev[j - 1] + BONUS_CONSECUTIVE, gap_best)
            if best != _NEG_INF:
                cur[j] = best + SCORE_MATCH + bonuses[j]
        prev = cur

    best_total = max(prev)
    if best_total == _NEG_INF:
        return None
    return int(best_total)


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------


def _sort_key(snapshot: CatalogSnapshot, result: MatchResult) -> tuple:
    record = snapshot[result.index]
    used = record.last_used_at
    recency = -used.timestamp() if used is not None else 0.0
    return (
        -result.score,
        used is None,
        recency,
        record.host,
        result.index,
    )


def match(snapshot: CatalogSnapshot, query: str) -> list[MatchResult]:
    """Return scored matches for *query*, best first.

    An empty (or blank) query matches everything with score 0, in snapshot
    order. Otherwise records whose ``host + " " + note`` does not contain the
    query as a case-insensitive subsequence are left out.
    """
    q = query.strip().lower()
    if not q:
        return [MatchResult(index=i, score=0) for i in range(len(snapshot))]

    results: list[MatchResult] = []
    for idx in range(len(snapshot)):
        score = fuzzy_score(q, snapshot.haystack(idx))
        if score is not None:
            results.append(MatchResult(index=idx, score=score))

    results.sort(key=lambda r: _sort_key(snapshot, r))
    logger.debug("query %r matched %d/%d hosts", q, len(results), len(snapshot))
    return results


def rank(snapshot: CatalogSnapshot, query: str) -> list[int]:
    """Return snapshot indices ordered by relevance to *query*."""
    return [r.index for r in match(snapshot, query)]
