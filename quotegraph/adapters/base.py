"""Abstract issue source and user directory, and their errors."""

from abc import ABC, abstractmethod
from typing import Callable, List

from quotegraph.models import Comment, Issue

RETRYABLE_STATUSES = frozenset({408, 429, 500, 502, 503, 504})

# Called with a short progress message, e.g. "Loading page 2..."
ProgressCallback = Callable[[str], None]


class IssueSourceError(Exception):
    """Raised when an issue tracker API call fails."""

    def __init__(self, message: str, status: int | None = None, retryable: bool = False) -> None:
        super().__init__(message)
        self.status = status
        self.retryable = retryable


class NetworkError(IssueSourceError):
    """Transient failure (timeout, connection error, 408/429/5xx)."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message, status=status, retryable=True)


class RateLimitError(NetworkError):
    """API quota exhausted; retry_after is seconds until the reset."""

    def __init__(self, message: str, retry_after: float, status: int | None = 429) -> None:
        super().__init__(message, status=status)
        self.retry_after = retry_after


class NotFoundError(IssueSourceError):
    """Issue or repository does not exist (or is not visible)."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status=404, retryable=False)


class IssueSource(ABC):
    """Read-only access to issues and their comments."""

    @abstractmethod
    def get_issue(self, repo: str, issue_number: int) -> Issue:
        """Fetch issue by number."""
        ...

    @abstractmethod
    def get_issue_comments(
        self,
        repo: str,
        issue_number: int,
        progress: ProgressCallback | None = None,
    ) -> List[Comment]:
        """Fetch all comments on an issue, following pagination."""
        ...


class UserDirectory(ABC):
    """Profile lookups for comment authors."""

    @abstractmethod
    def get_company(self, login: str) -> str:
        """Company of login, or "" when unknown. Must not raise."""
        ...
