"""Issue tracker adapters (base and implementations)."""

from quotegraph.adapters.base import (
    IssueSource,
    IssueSourceError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    UserDirectory,
)
from quotegraph.adapters.github import GitHubAdapter

__all__ = [
    "GitHubAdapter",
    "IssueSource",
    "IssueSourceError",
    "NetworkError",
    "NotFoundError",
    "RateLimitError",
    "UserDirectory",
]
