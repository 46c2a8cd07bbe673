"""Issue model and issue reference helpers (``owner/repo#number``)."""

import re
from datetime import datetime

from pydantic import BaseModel

_REF_RE = re.compile(r"^(?P<repo>[\w.-]+/[\w.-]+)#(?P<number>\d+)$")


class Issue(BaseModel):
    """Git hosting platform issue (only what the comment pool needs)."""

    number: int
    title: str = ""
    body: str = ""
    author: str
    created_at: datetime


def format_issue_ref(repo: str, number: int) -> str:
    """Render ``owner/repo#number``."""
    return f"{repo}#{number}"


def parse_issue_ref(ref: str) -> tuple[str, int]:
    """Split ``owner/repo#number`` into (repo, number).

    Raises ValueError when the reference is malformed.
    """
    m = _REF_RE.match((ref or "").strip())
    if not m:
        raise ValueError(f"Invalid issue reference {ref!r}, expected owner/repo#number")
    number = int(m.group("number"))
    if number <= 0:
        raise ValueError(f"Invalid issue number in {ref!r}")
    return m.group("repo"), number


def original_post_id(repo: str, number: int) -> str:
    """Id of the synthetic comment that stands for the issue body."""
    return f"issue-{repo.replace('/', '-')}-{number}"
