"""Tests for quotegraph.core.visibility (filter, selection and quote flags)."""

from quotegraph.core.graph import ReferenceGraph
from quotegraph.core.resolver import ReferenceResolver
from quotegraph.core.visibility import QuoteSelection, VisibilityEngine


def _chain(make_comment):
    pool = [
        make_comment("A", "root", author="alice", minutes=0),
        make_comment("B", "> root\nagreed", author="bob", minutes=1),
        make_comment("C", "@bob why?", author="carol", minutes=2),
        make_comment("X", "other issue", author="xavier", minutes=3, issue_number=2),
    ]
    ReferenceResolver().resolve_all(pool)
    return pool, ReferenceGraph(pool)


def _flags(pool, name):
    return {c.id for c in pool if getattr(c, name)}


class TestFilter:
    def test_filter_hides_other_issues(self, make_comment) -> None:
        pool, graph = _chain(make_comment)
        VisibilityEngine().apply(pool, graph, issue_filter="owner/repo#2")
        assert _flags(pool, "filtered") == {"A", "B", "C"}

    def test_filter_wins_over_selection(self, make_comment) -> None:
        pool, graph = _chain(make_comment)
        VisibilityEngine().apply(pool, graph, issue_filter="owner/repo#2", selected="A")
        assert _flags(pool, "filtered") == {"A", "B", "C"}
        assert _flags(pool, "selected") == set()

    def test_clearing_resets_flags(self, make_comment) -> None:
        pool, graph = _chain(make_comment)
        engine = VisibilityEngine()
        engine.apply(pool, graph, issue_filter="owner/repo#2")
        engine.apply(pool, graph, issue_filter=None)
        assert _flags(pool, "filtered") == set()
        assert _flags(pool, "quote_related") == set()


class TestSelection:
    def test_selection_shows_closure(self, make_comment) -> None:
        pool, graph = _chain(make_comment)
        VisibilityEngine().apply(pool, graph, selected="A")
        assert _flags(pool, "filtered") == {"X"}
        assert _flags(pool, "selected") == {"A"}

    def test_previous_selection_kept_in_view(self, make_comment) -> None:
        pool, graph = _chain(make_comment)
        VisibilityEngine().apply(pool, graph, selected="X", previous="C")
        assert _flags(pool, "filtered") == set()
        assert _flags(pool, "selected") == {"X"}

    def test_isolated_selection(self, make_comment) -> None:
        pool, graph = _chain(make_comment)
        VisibilityEngine().apply(pool, graph, selected="X")
        assert _flags(pool, "filtered") == {"A", "B", "C"}


class TestQuote:
    def _pool(self, make_comment):
        pool = [
            make_comment("S", "original point", author="sam", minutes=0),
            make_comment("O", "> original point\nI **disagree** here", author="olga", minutes=1),
            make_comment("R", "> I disagree here\nwhy?", author="rita", minutes=2),
            make_comment("M", "> original point\nme too", author="max", minutes=3),
            make_comment("U", "something else", author="uma", minutes=4),
        ]
        return pool, ReferenceGraph(pool)

    def test_quote_related_marks(self, make_comment) -> None:
        pool, graph = self._pool(make_comment)
        quote = QuoteSelection(owner_id="O", text="I disagree here")
        VisibilityEngine().apply(pool, graph, quote=quote)
        # O owns it, R repeats it, M quotes what O also quotes
        assert _flags(pool, "quote_related") == {"O", "R", "M"}
        assert _flags(pool, "filtered") == set()

    def test_nested_quote_shared_with_owner(self, make_comment) -> None:
        """A comment re-quoting the owner's nested quote is related."""
        pool = [
            make_comment("A", "> > deep point\nowner says", author="alice", minutes=0),
            make_comment("C", "> > deep point\nme too", author="carol", minutes=1),
            make_comment("D", "> nothing shared\nunrelated", author="dan", minutes=2),
        ]
        VisibilityEngine().apply(pool, ReferenceGraph(pool), quote=QuoteSelection(owner_id="A", text="owner says"))
        assert _flags(pool, "quote_related") == {"A", "C"}

    def test_unknown_owner_marks_nothing(self, make_comment) -> None:
        pool, graph = self._pool(make_comment)
        VisibilityEngine().apply(pool, graph, quote=QuoteSelection(owner_id="nope", text="x"))
        assert _flags(pool, "quote_related") == set()

    def test_selection_takes_precedence_over_quote(self, make_comment) -> None:
        pool, graph = self._pool(make_comment)
        VisibilityEngine().apply(pool, graph, selected="U", quote=QuoteSelection(owner_id="O", text="I disagree"))
        assert _flags(pool, "quote_related") == set()
        assert _flags(pool, "filtered") == {"S", "O", "R", "M"}


class TestView:
    def test_view_is_detached_snapshot(self, make_comment) -> None:
        pool, graph = _chain(make_comment)
        view = VisibilityEngine().view(pool, graph, selected="A")
        assert [c.id for c in view.visible] == ["A", "B", "C"]
        assert view.get("B").references == {"A"}
        view.get("B").references.add("zzz")
        assert pool[1].references == {"A"}
        assert view.selected_id == "A"
