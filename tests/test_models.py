"""Tests for quotegraph.models (Comment coercion and issue references)."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from quotegraph.models import Comment, format_issue_ref, original_post_id, parse_issue_ref, reference_snippet


class TestIssueRef:
    def test_parse_and_format(self) -> None:
        assert parse_issue_ref("octo/hello.world#42") == ("octo/hello.world", 42)
        assert format_issue_ref("octo/hello.world", 42) == "octo/hello.world#42"

    @pytest.mark.parametrize("ref", ["", "repo#1", "owner/repo", "owner/repo#x", "owner/repo#0"])
    def test_malformed_raises(self, ref: str) -> None:
        with pytest.raises(ValueError):
            parse_issue_ref(ref)

    def test_original_post_id(self) -> None:
        assert original_post_id("owner/repo", 3) == "issue-owner-repo-3"


class TestComment:
    def test_coercion(self) -> None:
        c = Comment(id=123, body=None, author="a", created_at=datetime(2024, 1, 1), repo="o/r", issue_number=2)
        assert c.id == "123"
        assert c.body == ""
        assert c.created_at.tzinfo is not None
        assert c.issue_ref == "o/r#2"

    def test_empty_id_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Comment(id=" ", author="a", created_at=datetime(2024, 1, 1))

    def test_transient_fields_not_dumped(self) -> None:
        c = Comment(id="1", author="a", created_at=datetime(2024, 1, 1), references={"x"}, filtered=True)
        dumped = c.model_dump()
        for key in ("references", "filtered", "quote_related", "selected", "seq"):
            assert key not in dumped

    def test_reference_snippet(self) -> None:
        short = Comment(id="1", body="short", author="a", created_at=datetime(2024, 1, 1))
        long = Comment(id="2", body="x" * 60, author="a", created_at=datetime(2024, 1, 1))
        assert reference_snippet(short) == '"short"'
        assert reference_snippet(long) == '"' + "x" * 50 + '..."'
        assert reference_snippet(None) == "unknown comment"
