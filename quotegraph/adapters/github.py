"""GitHub REST adapter: issues, paginated comments and user profiles."""

import logging
import time
from datetime import UTC, datetime
from typing import Any, Callable, Dict, List

import requests

from quotegraph.adapters.base import (
    RETRYABLE_STATUSES,
    IssueSource,
    IssueSourceError,
    NetworkError,
    NotFoundError,
    ProgressCallback,
    RateLimitError,
    UserDirectory,
)
from quotegraph.config import AppConfig
from quotegraph.models import Comment, Issue

LOG = logging.getLogger("quotegraph.adapters.github")

GHOST_LOGIN = "ghost"


def _parse_iso(s: str) -> datetime:
    return datetime.fromisoformat(s.replace("Z", "+00:00"))


def _issue_from_api(data: Dict[str, Any]) -> Issue:
    user = data.get("user") or {}
    return Issue(
        number=data["number"],
        title=data.get("title") or "",
        body=data.get("body") or "",
        author=user.get("login") or GHOST_LOGIN,
        created_at=_parse_iso(data["created_at"]),
    )


def _comment_from_api(data: Dict[str, Any], repo: str, issue_number: int) -> Comment:
    user = data.get("user") or {}
    return Comment(
        id=str(data["id"]),
        body=data.get("body") or "",
        author=user.get("login") or GHOST_LOGIN,
        created_at=_parse_iso(data["created_at"]),
        repo=repo,
        issue_number=issue_number,
    )


def _retry_after(resp: requests.Response) -> float:
    """Seconds until the quota resets, from Retry-After or X-RateLimit-Reset."""
    header = resp.headers.get("Retry-After")
    if header:
        try:
            return max(0.0, float(header))
        except ValueError:
            pass
    reset = resp.headers.get("X-RateLimit-Reset")
    if reset:
        try:
            return max(0.0, float(reset) - datetime.now(UTC).timestamp())
        except ValueError:
            pass
    return 0.0


class GitHubAdapter(IssueSource, UserDirectory):
    """GitHub API implementation of IssueSource and UserDirectory."""

    def __init__(
        self,
        token: str | None = None,
        api_url: str = "https://api.github.com",
        timeout: float = 10.0,
        per_page: int = 100,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        max_rate_limit_wait: float = 60.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._per_page = per_page
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._max_rate_limit_wait = max_rate_limit_wait
        self._sleep = sleep
        self._companies: dict[str, str] = {}
        self._session = requests.Session()
        self._session.headers["Accept"] = "application/vnd.github.v3+json"
        if token:
            self._session.headers["Authorization"] = f"token {token}"

    @classmethod
    def from_config(cls, config: AppConfig) -> "GitHubAdapter":
        gh = config.github
        return cls(
            token=config.github_token_resolved,
            api_url=gh.api_url,
            timeout=gh.timeout,
            per_page=gh.per_page,
            max_retries=gh.max_retries,
            retry_delay=gh.retry_delay,
            max_rate_limit_wait=gh.max_rate_limit_wait,
        )

    def _url(self, path: str) -> str:
        return f"{self._api_url}{path}" if path.startswith("/") else f"{self._api_url}/{path}"

    def _send(self, url: str, params: Dict[str, Any] | None) -> requests.Response:
        try:
            resp = self._session.request("GET", url, params=params, timeout=self._timeout)
        except (requests.ConnectionError, requests.Timeout) as e:
            raise NetworkError(f"Request to {url} failed: {e}") from e
        if resp.status_code < 400:
            return resp
        msg = resp.text or resp.reason or str(resp.status_code)
        try:
            msg = resp.json().get("message", msg)
        except (ValueError, AttributeError):
            pass
        if resp.status_code == 429 or (
            resp.status_code == 403 and resp.headers.get("X-RateLimit-Remaining") == "0"
        ):
            wait = _retry_after(resp)
            raise RateLimitError(
                f"GitHub API rate limit exceeded. Resets in {wait:.0f} seconds",
                retry_after=wait,
                status=resp.status_code,
            )
        if resp.status_code == 404:
            raise NotFoundError(f"Not found: {url}")
        if resp.status_code in RETRYABLE_STATUSES:
            raise NetworkError(f"{resp.status_code}: {msg}", status=resp.status_code)
        raise IssueSourceError(f"{resp.status_code}: {msg}", status=resp.status_code)

    def _request(self, path_or_url: str, params: Dict[str, Any] | None = None) -> requests.Response:
        """GET with exponential backoff on transient errors and short rate limits."""
        url = path_or_url if path_or_url.startswith("http") else self._url(path_or_url)
        attempt = 0
        while True:
            try:
                return self._send(url, params)
            except NetworkError as e:
                if attempt >= self._max_retries:
                    raise
                delay = self._retry_delay * (2**attempt)
                if isinstance(e, RateLimitError):
                    if e.retry_after > self._max_rate_limit_wait:
                        raise
                    delay = max(delay, e.retry_after)
                LOG.warning("GET %s failed (%s), retry %d in %.1fs", url, e, attempt + 1, delay)
                self._sleep(delay)
                attempt += 1

    def get_issue(self, repo: str, issue_number: int) -> Issue:
        resp = self._request(f"/repos/{repo}/issues/{issue_number}")
        return _issue_from_api(resp.json())

    def get_issue_comments(
        self,
        repo: str,
        issue_number: int,
        progress: ProgressCallback | None = None,
    ) -> List[Comment]:
        url: str | None = self._url(f"/repos/{repo}/issues/{issue_number}/comments")
        params: Dict[str, Any] | None = {"per_page": self._per_page}
        comments: List[Comment] = []
        page = 1
        while url:
            if progress is not None:
                progress(f"Loading page {page}...")
            resp = self._request(url, params)
            for item in resp.json() or []:
                try:
                    comments.append(_comment_from_api(item, repo, issue_number))
                except (KeyError, TypeError, ValueError) as e:
                    LOG.warning("Skip malformed comment on %s#%s: %s", repo, issue_number, e)
            # Next page URL already carries per_page
            url = (resp.links or {}).get("next", {}).get("url")
            params = None
            page += 1
        LOG.debug("Fetched %d comments for %s#%s in %d page(s)", len(comments), repo, issue_number, page - 1)
        return comments

    def get_company(self, login: str) -> str:
        if not login:
            return ""
        if login in self._companies:
            return self._companies[login]
        try:
            data = self._request(f"/users/{login}").json() or {}
            company = (data.get("company") or "").strip()
        except (IssueSourceError, requests.RequestException, ValueError) as e:
            LOG.warning("Error fetching company for %s: %s", login, e)
            return ""
        self._companies[login] = company
        return company
