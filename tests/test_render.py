"""Tests for markdown rendering and sanitization."""

from quotegraph.services.render import MarkdownRenderer, render_comment, render_page


def test_markdown_rendered() -> None:
    html = MarkdownRenderer().render("> quoted\n\n**bold** and ~~gone~~")
    assert "<blockquote>" in html
    assert "<strong>bold</strong>" in html
    assert "<s>gone</s>" in html


def test_raw_html_escaped() -> None:
    html = MarkdownRenderer().render('<script>alert(1)</script>\n\n<img src=x onerror="alert(1)">')
    assert "<script>" not in html
    assert "<img" not in html
    assert "&lt;script&gt;" in html


def test_javascript_links_refused() -> None:
    html = MarkdownRenderer().render("[click](javascript:alert(1))")
    assert 'href="javascript:' not in html


def test_render_comment_classes_and_escaping(make_comment) -> None:
    c = make_comment("7", "hi", author="<b>eve</b>", is_original_post=True, issue_title="<i>T</i>")
    c.quote_related = True
    c.references = {"3"}
    out = render_comment(c, MarkdownRenderer(), company="Acme", active=True)
    assert 'class="comment original-post quote-related"' in out
    assert "&lt;b&gt;eve&lt;/b&gt; (Acme)" in out
    assert "Original Post: &lt;i&gt;T&lt;/i&gt;" in out
    assert "issue-reference active" in out
    assert "ID: 3" in out


def test_render_page_skips_filtered(make_comment) -> None:
    shown = make_comment("1", "shown")
    hidden = make_comment("2", "hidden")
    hidden.filtered = True
    page = render_page([shown, hidden], MarkdownRenderer())
    assert 'data-comment-id="1"' in page
    assert 'data-comment-id="2"' not in page


def test_reference_footer_shows_snippets(make_comment) -> None:
    source = make_comment("1", "x" * 60)
    reply = make_comment("2", "> quoted", minutes=1)
    reply.references = {"1", "gone"}
    page = render_page([source, reply], MarkdownRenderer())
    assert "ID: 1 - &quot;" + "x" * 50 + "...&quot;" in page
    assert "ID: gone - unknown comment" in page
