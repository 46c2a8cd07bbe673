"""Derive a comment's outgoing references (quotes and @-mentions).

Resolution is a pure function of the comment and the pool; running it twice
over the same pool yields the same set.
"""

import logging
import re
from typing import Iterable, Sequence

from quotegraph.core.quote_matcher import QuoteMatcher, clean_quote_block, is_quote_line
from quotegraph.models import Comment

LOG = logging.getLogger("quotegraph.core.resolver")

MENTION_RE = re.compile(r"@([a-zA-Z0-9-]+)")


def extract_quote_blocks(body: str) -> list[list[str]]:
    """Maximal runs of blockquoted lines, cleaned; empty blocks dropped."""
    blocks: list[list[str]] = []
    run: list[str] = []
    for line in (body or "").splitlines():
        if is_quote_line(line):
            run.append(line)
            continue
        if run:
            blocks.append(clean_quote_block(run))
            run = []
    if run:
        blocks.append(clean_quote_block(run))
    return [b for b in blocks if any(b)]


def extract_mentions(body: str) -> list[str]:
    """@handles in order of first occurrence, without duplicates."""
    seen: dict[str, None] = {}
    for m in MENTION_RE.finditer(body or ""):
        seen.setdefault(m.group(1), None)
    return list(seen)


class ReferenceResolver:
    """Resolves quote and mention references against strictly earlier comments."""

    def __init__(self, matcher: QuoteMatcher | None = None) -> None:
        self.matcher = matcher or QuoteMatcher()

    def resolve(self, comment: Comment, pool: Sequence[Comment]) -> set[str]:
        """Return the reference set of comment; does not modify it."""
        refs: set[str] = set()
        if not comment.body:
            return refs
        earlier = [c for c in pool if c.created_at < comment.created_at and c.id != comment.id]
        if not earlier:
            return refs

        for quote_lines in extract_quote_blocks(comment.body):
            source = self.matcher.find_source(quote_lines, comment, earlier)
            if source is not None:
                refs.add(source.id)

        for handle in extract_mentions(comment.body):
            latest = None
            for c in earlier:
                if c.author != handle:
                    continue
                if latest is None or c.sort_key > latest.sort_key:
                    latest = c
            if latest is not None:
                refs.add(latest.id)
        return refs

    def resolve_all(self, pool: Iterable[Comment]) -> None:
        """Replace every comment's references with a fresh resolution."""
        comments = list(pool)
        total = 0
        for c in comments:
            c.references = self.resolve(c, comments)
            total += len(c.references)
        LOG.debug("Resolved %d comments, %d reference edges", len(comments), total)
