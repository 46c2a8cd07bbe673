"""Fetch tracked issues concurrently and feed them into the StateManager.

One task per tracked issue runs in parallel; the blocking HTTP calls run in
worker threads so the event loop stays free. Resolution happens once, after
every issue has delivered (or failed), through a single commit that is
discarded if a newer refresh or tracked-issue change started meanwhile.
"""

import asyncio
import logging
from typing import Callable, List

from pydantic import BaseModel, Field

from quotegraph.adapters.base import IssueSource, IssueSourceError, UserDirectory
from quotegraph.models import Comment, Issue, original_post_id, parse_issue_ref
from quotegraph.state import StateManager

LOG = logging.getLogger("quotegraph.services.refresh")

# Called with (issue_ref, message)
RefreshProgress = Callable[[str, str], None]


class RefreshReport(BaseModel):
    """Outcome of a refresh: per-issue comment counts and per-issue errors."""

    generation: int = 0
    loaded: dict[str, int] = Field(default_factory=dict)
    failed: dict[str, str] = Field(default_factory=dict)
    stale: bool = False

    @property
    def ok(self) -> bool:
        return not self.failed and not self.stale


def issue_thread(issue: Issue, comments: List[Comment], repo: str) -> List[Comment]:
    """Original post followed by the issue's comments, all tagged with the issue."""
    op = Comment(
        id=original_post_id(repo, issue.number),
        body=issue.body,
        author=issue.author,
        created_at=issue.created_at,
        repo=repo,
        issue_number=issue.number,
        issue_title=issue.title,
        is_original_post=True,
    )
    tagged = [
        c.model_copy(update={"repo": repo, "issue_number": issue.number, "issue_title": issue.title})
        for c in comments
    ]
    return [op, *tagged]


async def fetch_issue_thread(
    source: IssueSource,
    ref: str,
    progress: RefreshProgress | None = None,
) -> List[Comment]:
    """Issue and its comments (fetched in parallel) as one thread."""
    repo, number = parse_issue_ref(ref)

    def on_page(message: str) -> None:
        if progress is not None:
            progress(ref, message)

    issue, comments = await asyncio.gather(
        asyncio.to_thread(source.get_issue, repo, number),
        asyncio.to_thread(source.get_issue_comments, repo, number, on_page),
    )
    LOG.info("Fetched %s: %d comments", ref, len(comments))
    return issue_thread(issue, comments, repo)


async def fetch_companies(state: StateManager, users: UserDirectory) -> dict[str, str]:
    """Look up companies of every author in the pool and store them."""
    logins = sorted({c.author for c in state.comments if c.author})
    companies = await asyncio.gather(*(asyncio.to_thread(users.get_company, login) for login in logins))
    result = dict(zip(logins, companies))
    state.set_user_companies(result)
    return result


async def refresh_all(
    state: StateManager,
    source: IssueSource,
    users: UserDirectory | None = None,
    progress: RefreshProgress | None = None,
) -> RefreshReport:
    """Reload every tracked issue and replace the pool in one pass.

    Failures are reported per issue; the other issues are still loaded.
    """
    generation = state.begin_refresh()
    report = RefreshReport(generation=generation)
    refs = state.tracked_issues
    if not refs:
        LOG.info("No issues being tracked")
        report.stale = not state.commit_refresh(generation, [])
        return report

    LOG.info("Refreshing %d issue(s): %s", len(refs), ", ".join(refs))
    results = await asyncio.gather(
        *(fetch_issue_thread(source, ref, progress) for ref in refs),
        return_exceptions=True,
    )

    pooled: List[Comment] = []
    for ref, result in zip(refs, results):
        if isinstance(result, IssueSourceError):
            LOG.warning("Failed to fetch %s: %s", ref, result)
            report.failed[ref] = str(result)
        elif isinstance(result, Exception):
            LOG.error("Unexpected error fetching %s", ref, exc_info=result)
            report.failed[ref] = str(result) or type(result).__name__
        elif isinstance(result, BaseException):
            raise result
        else:
            pooled.extend(result)
            report.loaded[ref] = len(result)

    if not state.commit_refresh(generation, pooled):
        report.stale = True
        return report

    if users is not None:
        await fetch_companies(state, users)
    return report


async def add_issue(
    state: StateManager,
    source: IssueSource,
    ref: str,
    users: UserDirectory | None = None,
    progress: RefreshProgress | None = None,
) -> RefreshReport:
    """Start tracking ref and append its thread to the pool.

    Raises ValueError for a malformed ref. An already tracked ref is
    reported as failed without fetching. If ref is untracked or the pool is
    replaced while the fetch runs, the thread is dropped and the report is stale.
    """
    report = RefreshReport()
    generation = state.track_issue(ref)
    if generation is None:
        report.failed[ref] = "already tracked"
        return report
    report.generation = generation
    try:
        thread = await fetch_issue_thread(source, ref, progress)
    except IssueSourceError as e:
        LOG.warning("Failed to fetch %s: %s", ref, e)
        report.failed[ref] = str(e)
        return report
    repo, number = parse_issue_ref(ref)
    added = state.commit_issue(generation, repo, number, thread)
    if added is None:
        report.stale = True
        return report
    report.loaded[ref] = added
    if users is not None:
        await fetch_companies(state, users)
    return report
