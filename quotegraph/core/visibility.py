"""Per-comment display flags from filter, selection and selected quote.

Precedence is fixed: an active issue filter wins over everything, then a
selected comment (graph closure), then a selected quote (live text
containment). All flags are reset before each evaluation.
"""

import logging
from typing import Sequence

from pydantic import BaseModel, ConfigDict

from quotegraph.core.graph import ReferenceGraph
from quotegraph.core.quote_matcher import plain_text
from quotegraph.core.resolver import extract_quote_blocks
from quotegraph.models import Comment

LOG = logging.getLogger("quotegraph.core.visibility")


class QuoteSelection(BaseModel):
    """A passage the user picked inside one comment."""

    model_config = ConfigDict(frozen=True)

    owner_id: str
    text: str


class View(BaseModel):
    """Snapshot of the pool with display flags applied."""

    comments: list[Comment]
    issue_filter: str | None = None
    selected_id: str | None = None
    previous_id: str | None = None
    quote: QuoteSelection | None = None

    @property
    def visible(self) -> list[Comment]:
        return [c for c in self.comments if not c.filtered]

    @property
    def quote_related(self) -> list[Comment]:
        return [c for c in self.comments if c.quote_related]

    def get(self, comment_id: str) -> Comment | None:
        for c in self.comments:
            if c.id == comment_id:
                return c
        return None


class VisibilityEngine:
    """Computes filtered / quote_related / selected flags for a pool."""

    def apply(
        self,
        comments: Sequence[Comment],
        graph: ReferenceGraph,
        issue_filter: str | None = None,
        selected: str | None = None,
        previous: str | None = None,
        quote: QuoteSelection | None = None,
    ) -> None:
        """Set flags in place on comments."""
        for c in comments:
            c.reset_view_flags()

        if issue_filter:
            for c in comments:
                c.filtered = c.issue_ref != issue_filter
            return

        if selected is not None:
            visible = graph.selection_closure(selected, previous)
            for c in comments:
                c.filtered = c.id not in visible
                c.selected = c.id == selected
            return

        if quote is not None:
            self._mark_quote_related(comments, quote)

    def _mark_quote_related(self, comments: Sequence[Comment], quote: QuoteSelection) -> None:
        owner = next((c for c in comments if c.id == quote.owner_id), None)
        if owner is None:
            LOG.warning("Selected quote owner %s is not in the pool", quote.owner_id)
            return
        owner.quote_related = True
        needle = plain_text(quote.text)
        owner_text = plain_text(owner.body)
        for c in comments:
            if c is owner or c.filtered:
                continue
            if needle and needle in plain_text(c.body):
                c.quote_related = True
                continue
            # Mutual quotation: c quotes something the owner also says or quotes
            for block in extract_quote_blocks(c.body):
                text = plain_text("\n".join(block))
                if text and text in owner_text:
                    c.quote_related = True
                    break

    def view(
        self,
        comments: Sequence[Comment],
        graph: ReferenceGraph,
        issue_filter: str | None = None,
        selected: str | None = None,
        previous: str | None = None,
        quote: QuoteSelection | None = None,
    ) -> View:
        """Apply flags and return a detached snapshot."""
        self.apply(comments, graph, issue_filter, selected, previous, quote)
        return View(
            comments=[c.model_copy(update={"references": set(c.references)}) for c in comments],
            issue_filter=issue_filter,
            selected_id=selected,
            previous_id=previous,
            quote=quote,
        )
