"""Match quoted passages against earlier comment bodies.

Two policies live here:

- exact: the cleaned quote lines must appear as a contiguous, in-order run of
  trimmed lines in the candidate body. This is what the resolver trusts.
- fuzzy: a relevance score over normalized text (emphasis markers stripped,
  whitespace collapsed, lowercased). Used to choose between several exact
  candidates and to suggest the most likely source of arbitrary text.
"""

import logging
import re
from datetime import timedelta
from typing import Iterable, Sequence

from quotegraph.models import Comment

LOG = logging.getLogger("quotegraph.core.quote_matcher")

QUOTE_LINE_RE = re.compile(r"^ {0,3}>")
_MARKER_RE = re.compile(r"^\s*> ?")
_NESTED_MARKERS_RE = re.compile(r"^\s*(?:> ?)+")
_EMPHASIS_RE = re.compile(r"[*_`]")

MIN_SCORE = 0.1
LENGTH_SLACK = 10
LENGTH_BONUS = 1.5
RECENCY_WINDOW = timedelta(hours=24)
RECENCY_BONUS = 1.2
AUTHOR_BONUS = 1.3
LINE_START_BONUS = 1.1


def is_quote_line(line: str) -> bool:
    return bool(QUOTE_LINE_RE.match(line))


def clean_quote_block(block: str | Sequence[str]) -> list[str]:
    """Strip one blockquote marker and surrounding whitespace from each line.

    Leading and trailing blank lines are dropped; blank lines inside the
    block are kept so multi-paragraph quotes line up with the source.
    """
    lines = block.splitlines() if isinstance(block, str) else list(block)
    cleaned = [_MARKER_RE.sub("", line, count=1).strip() for line in lines]
    while cleaned and not cleaned[0]:
        cleaned.pop(0)
    while cleaned and not cleaned[-1]:
        cleaned.pop()
    return cleaned


def matches_exact(quote_lines: Sequence[str], body: str) -> bool:
    """True if quote_lines occur as a contiguous run of trimmed body lines."""
    if not quote_lines:
        return False
    body_lines = [line.strip() for line in (body or "").splitlines()]
    n = len(quote_lines)
    for i in range(len(body_lines) - n + 1):
        if body_lines[i : i + n] == list(quote_lines):
            return True
    return False


def normalize(text: str) -> str:
    """Drop ``*``, ``_`` and backticks, collapse whitespace, lowercase."""
    return " ".join(_EMPHASIS_RE.sub("", text or "").split()).lower()


def plain_text(body: str) -> str:
    """Normalized body with every blockquote marker removed, as a reader sees it."""
    return normalize("\n".join(_NESTED_MARKERS_RE.sub("", line) for line in (body or "").splitlines()))


def _matches_at_line_start(normalized_quote: str, body: str) -> bool:
    parts: list[str] = []
    starts: list[int] = []
    pos = 0
    for line in (body or "").splitlines():
        n = normalize(line)
        if not n:
            continue
        starts.append(pos)
        parts.append(n)
        pos += len(n) + 1
    joined = " ".join(parts)
    return any(joined.startswith(normalized_quote, s) for s in starts)


class QuoteMatcher:
    """Exact and fuzzy quote matching over a time-ordered comment pool."""

    def __init__(self, min_score: float = MIN_SCORE) -> None:
        self.min_score = min_score

    def exact_candidates(
        self,
        quote_lines: Sequence[str],
        target: Comment,
        pool: Iterable[Comment],
    ) -> list[Comment]:
        """Comments strictly older than target whose body contains the quote, oldest first."""
        found = [
            c
            for c in pool
            if c.created_at < target.created_at and c.id != target.id and matches_exact(quote_lines, c.body)
        ]
        found.sort(key=lambda c: c.sort_key)
        return found

    def score(self, quote: str, candidate: Comment, target: Comment) -> float:
        """Relevance of candidate as the source of quote, 0.0 when not contained."""
        q = normalize(quote)
        c = normalize(candidate.body)
        if not q or not c or q not in c:
            return 0.0
        score = len(q) / len(c)
        if abs(len(c) - len(q)) < LENGTH_SLACK:
            score *= LENGTH_BONUS
        if abs(target.created_at - candidate.created_at) <= RECENCY_WINDOW:
            score *= RECENCY_BONUS
        if candidate.author and candidate.author.lower() in q:
            score *= AUTHOR_BONUS
        if _matches_at_line_start(q, candidate.body):
            score *= LINE_START_BONUS
        return score

    def rank_candidates(
        self,
        quote: str,
        target: Comment,
        pool: Iterable[Comment],
    ) -> list[tuple[Comment, float]]:
        """Earlier comments scoring above min_score, best first.

        Equal scores go to the most recent comment before target.
        """
        ranked = []
        for c in pool:
            if c.id == target.id or not c.created_at < target.created_at:
                continue
            s = self.score(quote, c, target)
            if s > self.min_score:
                ranked.append((c, s))
        ranked.sort(key=lambda pair: (pair[1], pair[0].sort_key), reverse=True)
        return ranked

    def best_source(self, quote: str, target: Comment, pool: Iterable[Comment]) -> Comment | None:
        """Most likely source of quote among comments older than target."""
        ranked = self.rank_candidates(quote, target, pool)
        return ranked[0][0] if ranked else None

    def find_source(
        self,
        quote_lines: Sequence[str],
        target: Comment,
        pool: Iterable[Comment],
    ) -> Comment | None:
        """Single source for a quote block under the exact policy.

        Several exact matches are ranked by score; if none clears the
        threshold the oldest exact match is used.
        """
        candidates = self.exact_candidates(quote_lines, target, pool)
        if not candidates:
            return None
        return self.pick_best("\n".join(quote_lines), target, candidates)

    def pick_best(self, quote: str, target: Comment, candidates: Sequence[Comment]) -> Comment:
        """Best of several exact candidates (oldest first); oldest when none scores."""
        if len(candidates) == 1:
            return candidates[0]
        ranked = self.rank_candidates(quote, target, candidates)
        if ranked:
            LOG.debug(
                "Quote in %s matched %d comments, picked %s (score %.3f)",
                target.id,
                len(candidates),
                ranked[0][0].id,
                ranked[0][1],
            )
            return ranked[0][0]
        return candidates[0]
