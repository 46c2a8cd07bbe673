"""quotegraph entry point.

Tracks GitHub issues, pools their comments, and prints the pool with quote
and mention references resolved. Usage:

    quotegraph track owner/repo#12
    quotegraph show --select 1234567
    quotegraph show --filter owner/repo#12 --html > page.html
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from quotegraph.adapters import GitHubAdapter
from quotegraph.config import AppConfig, load_config
from quotegraph.core import QuoteMatcher, View
from quotegraph.logging import configure_logging
from quotegraph.models import reference_snippet
from quotegraph.services.refresh import RefreshReport, add_issue, refresh_all
from quotegraph.services.render import MarkdownRenderer, render_page
from quotegraph.services.tracked_store import TrackedIssueStore
from quotegraph.state import StateManager

LOG = logging.getLogger("quotegraph.main")

PREVIEW_LENGTH = 100
SUGGESTION_LIMIT = 5


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        prog="quotegraph",
        description="Cross-issue comment pool with quote and mention references",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=Path("config.yaml"),
        help="Path to YAML config file",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only load and validate config, then exit",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Debug logging, including HTTP retries",
    )
    sub = parser.add_subparsers(dest="command")

    track = sub.add_parser("track", help="Start tracking an issue (owner/repo#number)")
    track.add_argument("ref")

    untrack = sub.add_parser("untrack", help="Stop tracking an issue")
    untrack.add_argument("ref")

    sub.add_parser("list", help="List tracked issues")

    show = sub.add_parser("show", help="Refresh tracked issues and print the comment pool")
    show.add_argument("--filter", dest="issue_filter", help="Only comments of this issue (owner/repo#number)")
    show.add_argument("--select", help="Comment id; show only its reference cluster")
    show.add_argument("--previous", help="Previously selected comment id, kept in view with --select")
    show.add_argument("--quote-owner", help="Comment id that holds the selected quote")
    show.add_argument("--quote", help="Selected quote text (with --quote-owner)")
    show.add_argument("--html", action="store_true", help="Print an HTML page instead of text")
    show.add_argument("--no-companies", action="store_true", help="Skip author company lookups")

    suggest = sub.add_parser("suggest", help="Most likely source comment of a quote")
    suggest.add_argument("--quote", required=True, help="Quoted text")
    suggest.add_argument("--target", required=True, help="Id of the comment containing the quote")
    suggest.add_argument("--all", action="store_true", help=f"List up to {SUGGESTION_LIMIT} ranked candidates")

    return parser.parse_args(argv)


def _progress(ref: str, message: str) -> None:
    print(f"{ref}: {message}", file=sys.stderr)


def _print_report(report: RefreshReport) -> None:
    for ref, error in report.failed.items():
        print(f"Error: {ref}: {error}", file=sys.stderr)
    if report.stale:
        print("Refresh superseded by a newer one", file=sys.stderr)


def format_view(view: View, state: StateManager) -> str:
    """Plain-text listing of the visible comments."""
    lines = []
    for c in view.visible:
        marker = "*" if c.selected else ("~" if c.quote_related else " ")
        company = state.get_user_company(c.author)
        author = f"{c.author} ({company})" if company else c.author
        header = f"{marker} {c.id}  {author}  {c.created_at.date().isoformat()}  {c.issue_ref}"
        if c.is_original_post:
            header += f"  [Original Post: {c.issue_title}]"
        lines.append(header)
        preview = " ".join(c.body.split())
        if len(preview) > PREVIEW_LENGTH:
            preview = preview[:PREVIEW_LENGTH] + "..."
        if preview:
            lines.append(f"    {preview}")
        for ref in sorted(c.references):
            lines.append(f"    -> {ref} {reference_snippet(view.get(ref))}")
    if not lines:
        return "No comments found"
    return "\n".join(lines)


def run_show(args: argparse.Namespace, state: StateManager, adapter: GitHubAdapter) -> int:
    users = None if args.no_companies else adapter
    report = asyncio.run(refresh_all(state, adapter, users=users, progress=_progress))
    _print_report(report)
    if args.issue_filter:
        state.set_filter(args.issue_filter)
    if args.previous and not state.select(args.previous):
        print(f"Unknown comment id: {args.previous}", file=sys.stderr)
    if args.select and not state.select(args.select):
        print(f"Unknown comment id: {args.select}", file=sys.stderr)
        return 1
    if args.quote_owner and args.quote:
        state.select_quote(args.quote_owner, args.quote)
    view = state.get_view()
    if args.html:
        companies = {c.author: state.get_user_company(c.author) for c in view.comments}
        print(render_page(view.comments, MarkdownRenderer(), companies, state.active_filter), end="")
    else:
        print(format_view(view, state))
    return 0 if not report.failed else 2


def run_suggest(args: argparse.Namespace, state: StateManager, adapter: GitHubAdapter) -> int:
    _print_report(asyncio.run(refresh_all(state, adapter, progress=_progress)))
    target = state.get_comment(args.target)
    if target is None:
        print(f"Unknown comment id: {args.target}", file=sys.stderr)
        return 1
    matcher = QuoteMatcher()
    if args.all:
        ranked = matcher.rank_candidates(args.quote, target, state.comments)[:SUGGESTION_LIMIT]
    else:
        best = matcher.best_source(args.quote, target, state.comments)
        ranked = [(best, matcher.score(args.quote, best, target))] if best is not None else []
    if not ranked:
        print("No likely source found")
        return 0
    for comment, score in ranked:
        print(f"{score:.3f}  {comment.id}  {comment.author}  {reference_snippet(comment)}")
    return 0


def run(args: argparse.Namespace, config: AppConfig) -> int:
    store = TrackedIssueStore(config.store.path)
    state = StateManager(tracked_store=store)
    adapter = GitHubAdapter.from_config(config)

    if args.command == "list":
        for ref in state.tracked_issues:
            print(ref)
        return 0
    if args.command == "track":
        try:
            report = asyncio.run(add_issue(state, adapter, args.ref, users=adapter, progress=_progress))
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        _print_report(report)
        if args.ref in report.loaded:
            print(f"Tracking {args.ref} ({report.loaded[args.ref]} comments)")
            return 0
        return 1
    if args.command == "untrack":
        if args.ref not in state.tracked_issues:
            print(f"Not tracked: {args.ref}", file=sys.stderr)
            return 1
        state.remove_issue(args.ref)
        print(f"Stopped tracking {args.ref}")
        return 0
    if args.command == "suggest":
        return run_suggest(args, state, adapter)
    return run_show(args, state, adapter)


def main(argv: list[str] | None = None) -> int:
    """Entry point for quotegraph."""
    args = parse_args(argv)
    config_path = args.config
    if not config_path.is_file() and config_path == Path("config.yaml"):
        if Path("config.example.yaml").is_file():
            config_path = Path("config.example.yaml")
            logging.basicConfig(level=logging.INFO)
            LOG.warning("config.yaml not found, using config.example.yaml")

    config = load_config(config_path)

    if args.check:
        print("Config OK:", config.github.api_url, config.store.path)
        return 0

    configure_logging(config.logging, verbose=args.verbose)
    try:
        return run(args, config)
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        LOG.exception("Fatal error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
