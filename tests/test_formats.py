"""Tests for the HTML and Markdown output formats."""

from warble.components import HTML_SLOT, MARKDOWN_SLOT
from warble.rendering import HtmlFormat, MarkdownFormat


class FakeMarkdown:
    """Stands in for a Markdown renderer; echoes the source it was given."""

    def __init__(self, output: str | None = None) -> None:
        self.output = output
        self.sources: list[str] = []

    def render(self, source: str) -> str:
        self.sources.append(source)
        return self.output if self.output is not None else f"<p>{source}</p>"


class TestHtmlSlots:
    def test_inject_fills_first_slot_only(self) -> None:
        fmt = HtmlFormat()
        parent = f"<main>{HTML_SLOT}</main><aside>{HTML_SLOT}</aside>"
        assert fmt.inject_slot(parent, "<p>child</p>", "/") == (
            f"<main><p>child</p></main><aside>{HTML_SLOT}</aside>"
        )

    def test_inject_slot_with_attributes(self) -> None:
        fmt = HtmlFormat()
        assert fmt.inject_slot('<router-slot name="main"></router-slot>', "x", "/") == "x"

    def test_child_text_inserted_literally(self) -> None:
        fmt = HtmlFormat()
        assert fmt.inject_slot(HTML_SLOT, r"\1 \g<0>", "/") == r"\1 \g<0>"

    def test_strip_removes_all(self) -> None:
        fmt = HtmlFormat()
        assert fmt.strip_slots(f"a{HTML_SLOT}b{HTML_SLOT}") == "ab"


class TestExpandMarkdown:
    def test_without_renderer_left_for_client(self) -> None:
        html = "<mark-down># Hi</mark-down>"
        assert HtmlFormat().expand_markdown(html) == html

    def test_blocks_rendered_unescaped(self) -> None:
        renderer = FakeMarkdown()
        html = HtmlFormat(markdown_renderer=renderer).expand_markdown(
            "<div><mark-down>A &amp; B</mark-down></div><mark-down>C</mark-down>"
        )
        assert html == "<div><p>A & B</p></div><p>C</p>"
        assert renderer.sources == ["A & B", "C"]

    def test_fenced_slot_becomes_element(self) -> None:
        renderer = FakeMarkdown('<h1>Hi</h1><pre><code class="language-router-slot"></code></pre>')
        html = HtmlFormat(markdown_renderer=renderer).expand_markdown("<mark-down>ignored</mark-down>")
        assert html == "<h1>Hi</h1><router-slot></router-slot>"

    def test_fenced_widget_becomes_element(self) -> None:
        renderer = FakeMarkdown(
            '<pre><code class="language-widget:greet">{&quot;who&quot;: &quot;ada&quot;}</code></pre>'
        )
        html = HtmlFormat(markdown_renderer=renderer).expand_markdown("<mark-down>ignored</mark-down>")
        assert html == '<widget-greet who="ada"></widget-greet>'


class TestHtmlPages:
    def test_status_page(self) -> None:
        html = HtmlFormat().render_status_page(404, "/missing")
        assert "<h1>Not Found</h1>" in html
        assert "<p>Path: /missing</p>" in html

    def test_unknown_status_message(self) -> None:
        assert "<h1>Error</h1>" in HtmlFormat().render_status_page(418, "/teapot")

    def test_status_page_escapes_path(self) -> None:
        html = HtmlFormat().render_status_page(404, "/<script>")
        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_error_page(self) -> None:
        html = HtmlFormat().render_error_page(RuntimeError("db <down>"), "/x")
        assert "<h1>Error</h1>" in html
        assert "<p>Path: /x</p>" in html
        assert "db &lt;down&gt;" in html

    def test_redirect(self) -> None:
        html = HtmlFormat().render_redirect("/new")
        assert html.startswith('<meta http-equiv="refresh"')
        assert 'content="0;url=/new"' in html


class TestMarkdownFormat:
    def test_inject_fills_first_fence(self) -> None:
        fmt = MarkdownFormat()
        parent = f"# Home\n\n{MARKDOWN_SLOT}\n\n{MARKDOWN_SLOT}"
        assert fmt.inject_slot(parent, "# Child", "/") == f"# Home\n\n# Child\n\n{MARKDOWN_SLOT}"

    def test_strip_slots_trims(self) -> None:
        fmt = MarkdownFormat()
        assert fmt.strip_slots(f"# Home\n\n{MARKDOWN_SLOT}\n") == "# Home"

    def test_pages(self) -> None:
        fmt = MarkdownFormat()
        assert fmt.render_status_page(403, "/secret") == "# Forbidden\n\nPath: `/secret`"
        assert fmt.render_error_page(ValueError("bad"), "/x") == "# Error\n\nPath: `/x`\n\nbad"
        assert fmt.render_redirect("/new") == "Redirect to: /new"

    def test_names(self) -> None:
        assert HtmlFormat.name == "html"
        assert MarkdownFormat.name == "markdown"
