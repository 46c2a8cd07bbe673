"""Tests for quotegraph.core.graph (undirected neighbors and closures)."""

import itertools

from quotegraph.core.graph import ReferenceGraph
from quotegraph.core.resolver import ReferenceResolver


def _pool(make_comment):
    """A <- B (quote), B <- C (mention); D and E form a separate pair."""
    pool = [
        make_comment("A", "root", author="alice", minutes=0),
        make_comment("B", "> root\nagreed", author="bob", minutes=1),
        make_comment("C", "@bob why?", author="carol", minutes=2),
        make_comment("D", "unrelated", author="dave", minutes=3),
        make_comment("E", "@dave sure", author="erin", minutes=4),
        make_comment("F", "lonely", author="frank", minutes=5),
    ]
    ReferenceResolver().resolve_all(pool)
    return pool


class TestNeighbors:
    def test_edges_walk_both_directions(self, make_comment) -> None:
        graph = ReferenceGraph(_pool(make_comment))
        assert graph.neighbors("A") == {"B"}
        assert graph.neighbors("B") == {"A", "C"}
        assert graph.neighbors("F") == set()
        assert graph.neighbors("missing") == set()

    def test_dangling_and_self_edges_dropped(self, make_comment, caplog) -> None:
        a = make_comment("A", "x", minutes=0)
        b = make_comment("B", "y", minutes=1)
        b.references = {"A", "B", "gone"}
        with caplog.at_level("WARNING"):
            graph = ReferenceGraph([a, b])
        assert graph.neighbors("B") == {"A"}
        assert "gone" not in graph
        assert "target not in pool" in caplog.text


class TestClosure:
    def test_chained_closure(self, make_comment) -> None:
        graph = ReferenceGraph(_pool(make_comment))
        assert graph.closure(["A"]) == {"A", "B", "C"}
        assert graph.closure(["C"]) == {"A", "B", "C"}
        assert graph.closure(["F"]) == {"F"}

    def test_unknown_and_none_seeds_ignored(self, make_comment) -> None:
        graph = ReferenceGraph(_pool(make_comment))
        assert graph.closure([None, "nope"]) == set()

    def test_cycle_terminates(self, make_comment) -> None:
        a = make_comment("A", "", minutes=0)
        b = make_comment("B", "", minutes=1)
        c = make_comment("C", "", minutes=2)
        a.references = {"C"}
        b.references = {"A"}
        c.references = {"B"}
        assert ReferenceGraph([a, b, c]).closure(["A"]) == {"A", "B", "C"}

    def test_dual_seed_is_union(self, make_comment) -> None:
        graph = ReferenceGraph(_pool(make_comment))
        assert graph.selection_closure("E", "A") == {"A", "B", "C", "D", "E"}
        assert graph.selection_closure("E", None) == {"D", "E"}
        assert graph.selection_closure("E", "A") == graph.closure(["E"]) | graph.closure(["A"])

    def test_symmetry_and_fixed_point(self, make_comment) -> None:
        pool = _pool(make_comment)
        graph = ReferenceGraph(pool)
        ids = [c.id for c in pool]
        for seed in ids:
            reach = graph.closure([seed])
            for other in reach:
                assert seed in graph.closure([other])
            assert graph.closure(reach) == reach
        for pair in itertools.combinations(ids, 2):
            s = graph.closure(pair)
            assert graph.closure(s) == s
