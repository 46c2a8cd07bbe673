"""Data models for issues and pooled comments (Pydantic)."""

from quotegraph.models.comment import Comment, reference_snippet
from quotegraph.models.issue import Issue, format_issue_ref, original_post_id, parse_issue_ref

__all__ = [
    "Comment",
    "Issue",
    "format_issue_ref",
    "original_post_id",
    "parse_issue_ref",
    "reference_snippet",
]
