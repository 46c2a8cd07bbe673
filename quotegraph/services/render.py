"""Markdown to sanitized HTML for comment bodies.

Raw HTML in comment bodies is escaped rather than passed through, and
markdown-it refuses javascript:, vbscript:, file: and non-image data: links.
"""

import html
from typing import Iterable, Mapping

from markdown_it import MarkdownIt

from quotegraph.models import Comment, reference_snippet


class MarkdownRenderer:
    """CommonMark plus GitHub tables and strikethrough, HTML disabled."""

    def __init__(self) -> None:
        self._md = MarkdownIt("commonmark", {"html": False}).enable(["table", "strikethrough"])

    def render(self, text: str) -> str:
        return self._md.render(text or "")


def _classes(comment: Comment) -> str:
    names = [
        "comment",
        "original-post" if comment.is_original_post else "",
        "filtered" if comment.filtered else "",
        "quote-related" if comment.quote_related else "",
        "selected" if comment.selected else "",
    ]
    return " ".join(n for n in names if n)


def render_comment(
    comment: Comment,
    renderer: MarkdownRenderer,
    company: str = "",
    active: bool = False,
    pool: Mapping[str, Comment] | None = None,
) -> str:
    """One comment as an HTML fragment with its display flags as classes.

    pool maps ids to comments for the reference snippets in the footer.
    """
    pool = pool or {}
    author = comment.author + (f" ({company})" if company else "")
    button_class = "issue-reference active" if active else "issue-reference"
    badge = ""
    if comment.is_original_post:
        badge = f'<span class="original-post-badge">Original Post: {html.escape(comment.issue_title)}</span>'
    refs = ""
    if comment.references:
        items = "".join(
            f'<div class="reference-item">ID: {html.escape(r)} - {html.escape(reference_snippet(pool.get(r)))}</div>'
            for r in sorted(comment.references)
        )
        refs = f'<div class="comment-footer"><div class="references"><div>References:</div>{items}</div></div>'
    return (
        f'<div class="{_classes(comment)}" data-comment-id="{html.escape(comment.id)}">'
        f'<div class="comment-header">'
        f'<span class="comment-author">{html.escape(author)}</span>'
        f'<span class="comment-date">{comment.created_at.date().isoformat()}</span>'
        f'<button class="{button_class}" data-issue="{html.escape(comment.issue_ref)}">'
        f"{html.escape(comment.issue_ref)}</button>{badge}</div>"
        f'<div class="comment-body">{renderer.render(comment.body)}</div>'
        f"{refs}</div>"
    )


def render_page(
    comments: Iterable[Comment],
    renderer: MarkdownRenderer,
    companies: dict[str, str] | None = None,
    active_filter: str | None = None,
) -> str:
    """Standalone HTML document for the visible comments."""
    companies = companies or {}
    comments = list(comments)
    pool = {c.id: c for c in comments}
    body = "\n".join(
        render_comment(c, renderer, companies.get(c.author, ""), active=c.issue_ref == active_filter, pool=pool)
        for c in comments
        if not c.filtered
    )
    return (
        '<!DOCTYPE html>\n<html><head><meta charset="utf-8"><title>quotegraph</title></head>\n'
        f'<body><div class="comments-section">\n{body}\n</div></body></html>\n'
    )
