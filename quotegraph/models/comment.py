"""Comment in the cross-issue pool.

``references`` is derived by the resolver and ``filtered``,
``quote_related`` and ``selected`` by the visibility engine; none of them
is ever taken from upstream data.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from quotegraph.models.issue import format_issue_ref

SNIPPET_LENGTH = 50


class Comment(BaseModel):
    """Issue comment (or synthetic original post) in the pool."""

    id: str
    body: str = ""
    author: str
    created_at: datetime
    repo: str = ""
    issue_number: int = 0
    issue_title: str = ""
    is_original_post: bool = False

    references: set[str] = Field(default_factory=set, exclude=True)
    # Arrival order, breaks created_at ties
    seq: int = Field(default=0, exclude=True)
    filtered: bool = Field(default=False, exclude=True)
    quote_related: bool = Field(default=False, exclude=True)
    selected: bool = Field(default=False, exclude=True)

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        if isinstance(value, str) and not value.strip():
            raise ValueError("comment id must not be empty")
        return value

    @field_validator("body", mode="before")
    @classmethod
    def _none_body(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @property
    def issue_ref(self) -> str:
        return format_issue_ref(self.repo, self.issue_number)

    @property
    def sort_key(self) -> tuple[datetime, int]:
        return (self.created_at, self.seq)

    def reset_view_flags(self) -> None:
        self.filtered = False
        self.quote_related = False
        self.selected = False


def reference_snippet(comment: Comment | None) -> str:
    """Short preview of a referenced comment for reference listings."""
    if comment is None:
        return "unknown comment"
    body = comment.body
    if len(body) > SNIPPET_LENGTH:
        return f'"{body[:SNIPPET_LENGTH]}..."'
    return f'"{body}"'
