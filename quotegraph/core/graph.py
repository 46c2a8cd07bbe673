"""Undirected view over reference edges and closure computation."""

import logging
from collections import deque
from typing import Iterable

from quotegraph.models import Comment

LOG = logging.getLogger("quotegraph.core.graph")


class ReferenceGraph:
    """Adjacency built from the comments' reference sets.

    Each reference edge is walked in both directions. Edges to ids that are
    not in the pool, and self-edges, are logged and dropped.
    """

    def __init__(self, comments: Iterable[Comment]) -> None:
        self._adjacency: dict[str, set[str]] = {}
        comments = list(comments)
        for c in comments:
            self._adjacency.setdefault(c.id, set())
        for c in comments:
            for ref in c.references:
                if ref == c.id:
                    LOG.warning("Dropping self-reference on comment %s", c.id)
                    continue
                if ref not in self._adjacency:
                    LOG.warning("Dropping edge %s -> %s: target not in pool", c.id, ref)
                    continue
                self._adjacency[c.id].add(ref)
                self._adjacency[ref].add(c.id)

    def __contains__(self, comment_id: str) -> bool:
        return comment_id in self._adjacency

    def __len__(self) -> int:
        return len(self._adjacency)

    def neighbors(self, comment_id: str) -> set[str]:
        """Ids this comment references plus ids that reference it."""
        return set(self._adjacency.get(comment_id, ()))

    def closure(self, seeds: Iterable[str | None]) -> set[str]:
        """All ids reachable from seeds over undirected edges, seeds included.

        None and unknown seeds are ignored.
        """
        visited: set[str] = set()
        queue = deque()
        for seed in seeds:
            if seed is not None and seed in self._adjacency and seed not in visited:
                visited.add(seed)
                queue.append(seed)
        while queue:
            current = queue.popleft()
            for nxt in self._adjacency[current]:
                if nxt not in visited:
                    visited.add(nxt)
                    queue.append(nxt)
        return visited

    def selection_closure(self, selected: str | None, previous: str | None = None) -> set[str]:
        """Union of the closures of the current and the previous selection."""
        result = self.closure([selected])
        if previous is not None:
            result |= self.closure([previous])
        return result
