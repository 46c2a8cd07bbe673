"""Comment pool, tracked issues and selection state.

StateManager is the only writer of the pool, the reference sets and the view
flags. Every mutation runs under one lock, re-sorts the pool, re-resolves all
references and recomputes the view; subscribers are called afterwards,
outside the lock, with the manager as the only argument.
"""

import itertools
import logging
import threading
from typing import Any, Callable, Iterable

from pydantic import ValidationError

from quotegraph.core import QuoteSelection, ReferenceGraph, ReferenceResolver, View, VisibilityEngine
from quotegraph.models import Comment, format_issue_ref, parse_issue_ref
from quotegraph.services.tracked_store import TrackedIssueStore

LOG = logging.getLogger("quotegraph.state")

Subscriber = Callable[["StateManager"], None]


class StateManager:
    """Owns the cross-issue comment pool and everything derived from it."""

    def __init__(
        self,
        tracked_store: TrackedIssueStore | None = None,
        resolver: ReferenceResolver | None = None,
        engine: VisibilityEngine | None = None,
    ) -> None:
        self._lock = threading.RLock()
        self._store = tracked_store
        self._resolver = resolver or ReferenceResolver()
        self._engine = engine or VisibilityEngine()
        self._arrival = itertools.count()
        self._comments: list[Comment] = []
        self._graph = ReferenceGraph([])
        self._view = View(comments=[])
        self._tracked: list[str] = tracked_store.load_tracked() if tracked_store else []
        self._companies: dict[str, str] = {}
        self._filter: str | None = None
        self._selected: str | None = None
        self._previous: str | None = None
        self._quote: QuoteSelection | None = None
        self._generation = 0
        # Generation at which each ref was added in this session, and of the last pool reset
        self._tracked_at: dict[str, int] = {}
        self._reset_at = 0
        self._subscribers: dict[int, Subscriber] = {}
        self._sub_ids = itertools.count()

    # Read side

    @property
    def comments(self) -> list[Comment]:
        with self._lock:
            return list(self._comments)

    @property
    def graph(self) -> ReferenceGraph:
        return self._graph

    @property
    def generation(self) -> int:
        """Token of the latest refresh or tracked-issue change."""
        return self._generation

    @property
    def tracked_issues(self) -> list[str]:
        with self._lock:
            return list(self._tracked)

    @property
    def active_filter(self) -> str | None:
        return self._filter

    @property
    def selected_id(self) -> str | None:
        return self._selected

    @property
    def previous_id(self) -> str | None:
        return self._previous

    @property
    def selected_quote(self) -> QuoteSelection | None:
        return self._quote

    def get_view(self) -> View:
        """Last computed view; treat as read-only."""
        return self._view

    def get_comment(self, comment_id: str) -> Comment | None:
        with self._lock:
            for c in self._comments:
                if c.id == comment_id:
                    return c
        return None

    def get_user_company(self, login: str) -> str:
        return self._companies.get(login, "")

    # Pool mutations

    def replace_all(self, comments: Iterable[Any]) -> int:
        """Clear the pool and load comments; supersedes any refresh in flight."""
        with self._lock:
            self._generation += 1
            self._reset_at = self._generation
            count = self._replace(comments)
        self._notify()
        return count

    ingest = replace_all

    def append(self, comments: Iterable[Any]) -> int:
        """Merge comments into the pool and re-resolve every comment."""
        with self._lock:
            existing = {c.id for c in self._comments}
            added = self._prepare(comments, existing)
            self._comments.extend(added)
            self._rebuild()
        LOG.info("Appended %d comments, pool size %d", len(added), len(self._comments))
        self._notify()
        return len(added)

    def append_issue(self, repo: str, number: int, comments: Iterable[Any]) -> int:
        """Append comments of one issue, stamping the issue reference on each."""
        return self.append(self._stamp(repo, number, comments))

    def commit_issue(self, generation: int, repo: str, number: int, comments: Iterable[Any]) -> int | None:
        """Append one fetched issue unless it was untracked or superseded meanwhile.

        Returns the number of comments added, or None when the batch is dropped.
        """
        ref = format_issue_ref(repo, number)
        stamped = self._stamp(repo, number, comments)
        with self._lock:
            if ref not in self._tracked or self._tracked_at.get(ref) != generation:
                LOG.warning("Discarding fetched %s: no longer tracked", ref)
                return None
            if self._reset_at > generation:
                LOG.warning("Discarding fetched %s: pool replaced since generation %d", ref, generation)
                return None
            added = self._prepare(stamped, {c.id for c in self._comments})
            self._comments.extend(added)
            self._rebuild()
        LOG.info("Appended %d comments of %s, pool size %d", len(added), ref, len(self._comments))
        self._notify()
        return len(added)

    def _stamp(self, repo: str, number: int, comments: Iterable[Any]) -> list[Any]:
        stamped = []
        for record in comments:
            if isinstance(record, Comment):
                stamped.append(record.model_copy(update={"repo": repo, "issue_number": number}))
            elif isinstance(record, dict):
                stamped.append({**record, "repo": repo, "issue_number": number})
            else:
                stamped.append(record)
        return stamped

    def remove_issue(self, ref: str) -> int:
        """Drop an issue's comments (and their edges) and stop tracking it."""
        with self._lock:
            before = len(self._comments)
            self._comments = [c for c in self._comments if c.issue_ref != ref]
            removed = before - len(self._comments)
            if ref in self._tracked:
                self._tracked.remove(ref)
                self._tracked_at.pop(ref, None)
                self._save_tracked()
                # A refresh in flight would bring the removed issue back
                self._generation += 1
            if self._filter == ref:
                self._filter = None
            self._rebuild()
        LOG.info("Removed issue %s (%d comments)", ref, removed)
        self._notify()
        return removed

    # Refresh generations

    def begin_refresh(self) -> int:
        """Start a refresh; returns its generation token."""
        with self._lock:
            self._generation += 1
            return self._generation

    def commit_refresh(self, generation: int, comments: Iterable[Any]) -> bool:
        """Replace the pool with a refresh result unless a newer refresh started."""
        with self._lock:
            if generation != self._generation:
                LOG.warning("Discarding stale refresh %d (current %d)", generation, self._generation)
                return False
            self._replace(comments)
        self._notify()
        return True

    # Tracked issues and companies

    def add_tracked_issue(self, ref: str) -> bool:
        """Track ref; False if already tracked. Raises ValueError if malformed."""
        return self.track_issue(ref) is not None

    def track_issue(self, ref: str) -> int | None:
        """Track ref and return the generation to pass to commit_issue.

        None if ref is already tracked. Raises ValueError if malformed.
        """
        parse_issue_ref(ref)
        with self._lock:
            if ref in self._tracked:
                return None
            self._tracked.append(ref)
            self._save_tracked()
            # A refresh started before this change would not include ref
            self._generation += 1
            generation = self._generation
            self._tracked_at[ref] = generation
        self._notify()
        return generation

    def set_user_company(self, login: str, company: str) -> None:
        self.set_user_companies({login: company})

    def set_user_companies(self, companies: dict[str, str]) -> None:
        with self._lock:
            self._companies.update(companies)
        self._notify()

    # Selection

    def set_filter(self, ref: str | None) -> None:
        with self._lock:
            self._filter = ref or None
            self._refresh_view()
        self._notify()

    def select(self, comment_id: str | None) -> bool:
        """Select a comment; the prior selection is kept as previous.

        None clears both. Unknown ids are ignored and return False.
        """
        with self._lock:
            if comment_id is None:
                self._selected = None
                self._previous = None
            elif comment_id == self._selected:
                return True
            elif not any(c.id == comment_id for c in self._comments):
                LOG.warning("Cannot select %s: not in pool", comment_id)
                return False
            else:
                self._previous = self._selected
                self._selected = comment_id
            self._refresh_view()
        self._notify()
        return True

    def select_quote(self, owner_id: str, text: str | None) -> None:
        with self._lock:
            self._quote = QuoteSelection(owner_id=owner_id, text=text) if text else None
            self._refresh_view()
        self._notify()

    # Observers

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register callback; returns a function that unregisters it."""
        with self._lock:
            token = next(self._sub_ids)
            self._subscribers[token] = callback

        def unsubscribe() -> None:
            with self._lock:
                self._subscribers.pop(token, None)

        return unsubscribe

    # Internals

    def _prepare(self, records: Iterable[Any], existing: set[str]) -> list[Comment]:
        seen = set(existing)
        out: list[Comment] = []
        for record in records:
            try:
                if isinstance(record, Comment):
                    comment = record.model_copy(update={"references": set()})
                else:
                    comment = Comment.model_validate(record)
            except ValidationError as e:
                LOG.warning("Dropping malformed comment record: %s", e.errors()[0].get("msg", e))
                continue
            if comment.id in seen:
                LOG.warning("Dropping duplicate comment id %s", comment.id)
                continue
            seen.add(comment.id)
            comment.seq = next(self._arrival)
            comment.reset_view_flags()
            out.append(comment)
        return out

    def _replace(self, comments: Iterable[Any]) -> int:
        self._comments = self._prepare(comments, set())
        self._rebuild()
        LOG.info("Loaded %d comments", len(self._comments))
        return len(self._comments)

    def _rebuild(self) -> None:
        self._comments.sort(key=lambda c: c.sort_key)
        self._resolver.resolve_all(self._comments)
        self._graph = ReferenceGraph(self._comments)
        ids = {c.id for c in self._comments}
        if self._selected not in ids:
            self._selected = None
        if self._previous not in ids:
            self._previous = None
        if self._quote is not None and self._quote.owner_id not in ids:
            self._quote = None
        self._refresh_view()

    def _refresh_view(self) -> None:
        self._view = self._engine.view(
            self._comments,
            self._graph,
            issue_filter=self._filter,
            selected=self._selected,
            previous=self._previous,
            quote=self._quote,
        )

    def _save_tracked(self) -> None:
        if self._store is not None:
            self._store.save_tracked(self._tracked)

    def _notify(self) -> None:
        with self._lock:
            callbacks = list(self._subscribers.values())
        for callback in callbacks:
            try:
                callback(self)
            except Exception:
                LOG.exception("Subscriber %r failed", callback)
