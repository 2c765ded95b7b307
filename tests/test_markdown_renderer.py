"""Tests for reply markdown → HTML rendering."""

import pytest

from markdown_renderer import escape_user_text, render_inline, render_markdown


class TestBlocks:

    def test_paragraph_with_bold(self):
        assert render_markdown("**Hi** there") == "<p><strong>Hi</strong> there</p>"

    def test_bullet_list(self):
        html = render_markdown("Intro\n• one\n• two")
        assert html == "<p>Intro</p><ul><li>one</li><li>two</li></ul>"

    def test_dash_bullets(self):
        assert render_markdown("- a\n- b") == "<ul><li>a</li><li>b</li></ul>"

    def test_numbered_list(self):
        assert render_markdown("1. one\n2. two") == "<ol><li>one</li><li>two</li></ol>"

    def test_header_line(self):
        assert render_markdown("**Skills:**\nPython") == "<h4>Skills:</h4><p>Python</p>"

    def test_line_breaks_and_paragraphs(self):
        assert render_markdown("a\nb\n\nc") == "<p>a<br>b</p><p>c</p>"

    def test_empty(self):
        assert render_markdown("") == ""


class TestInline:

    def test_italic(self):
        assert render_inline("*note*") == "<em>note</em>"

    def test_code(self):
        assert render_inline("run `pytest` now") == "run <code>pytest</code> now"

    def test_safe_link(self):
        html = render_markdown("[GitHub](https://github.com/tariqahmaad)")
        assert html == (
            '<p><a href="https://github.com/tariqahmaad" target="_blank" '
            'rel="noopener noreferrer">GitHub</a></p>'
        )

    def test_mailto_link(self):
        assert '<a href="mailto:me@example.com"' in render_inline("[mail](mailto:me@example.com)")

    @pytest.mark.parametrize("url", ["javascript:alert(1)", "data:text/html,x", "ftp://host/file"])
    def test_unsafe_link_keeps_label_only(self, url):
        html = render_inline(f"[click]({url})")
        assert "<a" not in html
        assert html.startswith("click")

    def test_html_is_escaped(self):
        assert render_markdown("<b>hi</b>") == "<p>&lt;b&gt;hi&lt;/b&gt;</p>"

    def test_script_in_bold_stays_escaped(self):
        html = render_markdown("**<script>x</script>**")
        assert "<script>" not in html
        assert "&lt;script&gt;" in html


class TestIdempotence:

    @pytest.mark.parametrize("text", [
        "**Hi** there",
        "Intro\n• one\n• two",
        "**Skills:**\nPython\n\n1. a\n2. b",
    ])
    def test_rendering_twice_changes_nothing(self, text):
        once = render_markdown(text)
        assert render_markdown(once) == once


def test_escape_user_text():
    assert escape_user_text("<i>&") == "&lt;i&gt;&amp;"
    assert escape_user_text(None) == ""
