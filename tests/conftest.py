"""Shared fixtures: comment factory on a fixed clock."""

import logging
from datetime import UTC, datetime, timedelta
from typing import Callable

import pytest

from quotegraph.models import Comment

T0 = datetime(2024, 1, 15, 10, 0, tzinfo=UTC)


def at(minutes: float) -> datetime:
    """T0 plus minutes."""
    return T0 + timedelta(minutes=minutes)


@pytest.fixture
def make_comment() -> Callable[..., Comment]:
    """Build a Comment at T0 + minutes in owner/repo#1 by default."""

    def _make(
        id: str,
        body: str = "",
        author: str = "alice",
        minutes: float = 0,
        repo: str = "owner/repo",
        issue_number: int = 1,
        **kwargs,
    ) -> Comment:
        return Comment(
            id=id,
            body=body,
            author=author,
            created_at=at(minutes),
            repo=repo,
            issue_number=issue_number,
            **kwargs,
        )

    return _make


@pytest.fixture(autouse=True)
def _reset_package_log_levels():
    """Undo levels set by configure_logging so caplog sees every record."""
    yield
    for name in ("quotegraph", "urllib3", "requests", "markdown_it"):
        logging.getLogger(name).setLevel(logging.NOTSET)
