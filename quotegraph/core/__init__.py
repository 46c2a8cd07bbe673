"""Reference resolution and visibility engine (synchronous, in-memory)."""

from quotegraph.core.graph import ReferenceGraph
from quotegraph.core.quote_matcher import QuoteMatcher, clean_quote_block, matches_exact, normalize, plain_text
from quotegraph.core.resolver import ReferenceResolver, extract_mentions, extract_quote_blocks
from quotegraph.core.visibility import QuoteSelection, View, VisibilityEngine

__all__ = [
    "QuoteMatcher",
    "QuoteSelection",
    "ReferenceGraph",
    "ReferenceResolver",
    "View",
    "VisibilityEngine",
    "clean_quote_block",
    "extract_mentions",
    "extract_quote_blocks",
    "matches_exact",
    "normalize",
    "plain_text",
]
