"""
markdown_renderer.py
--------------------
Turns assistant replies (a small markdown-like dialect) into display HTML.

  blank line          → new block
  • item / - item     → <ul><li>
  1. item             → <ol><li>
  **Header:**         → <h4>   (only when it is the whole line)
  other lines         → <p>, joined with <br>
  **bold** *italic* `code` [text](url)

Text is HTML-escaped before any markup is applied, and links are only emitted
for http, https, mailto and tel targets.  Rendering already-rendered output
returns it unchanged.
"""

import re

from markupsafe import escape

_BLOCK_SPLIT_RE = re.compile(r"\n\s*\n")
_RENDERED_RE = re.compile(r"^<(p|ul|ol|h4)[\s>]")
_BULLET_RE = re.compile(r"^\s*(?:•|-)\s+(.*)$")
_NUMBER_RE = re.compile(r"^\s*\d+[.)]\s+(.*)$")
_HEADER_RE = re.compile(r"^\*\*([^*]+:)\*\*$")

_CODE_RE = re.compile(r"`([^`]+)`")
_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)\s]+)\)")
_BOLD_RE = re.compile(r"\*\*(.+?)\*\*")
_ITALIC_RE = re.compile(r"(?<![*\w])\*(?!\s)(.+?)(?<!\s)\*(?![*\w])")

SAFE_SCHEMES = ("http://", "https://", "mailto:", "tel:")


def escape_user_text(text: str) -> str:
    return str(escape(text or ""))


def _link(match) -> str:
    label, url = match.group(1), match.group(2)
    if not url.lower().startswith(SAFE_SCHEMES):
        return label
    return f'<a href="{url}" target="_blank" rel="noopener noreferrer">{label}</a>'


def render_inline(text: str) -> str:
    """Escape *text* and apply inline markup."""
    html = str(escape(text))
    html = _CODE_RE.sub(r"<code>\1</code>", html)
    html = _LINK_RE.sub(_link, html)
    html = _BOLD_RE.sub(r"<strong>\1</strong>", html)
    html = _ITALIC_RE.sub(r"<em>\1</em>", html)
    return html


def _render_block(block: str) -> str:
    out = []
    paragraph = []
    list_tag = None
    items = []

    def flush_paragraph():
        if paragraph:
            out.append("<p>" + "<br>".join(paragraph) + "</p>")
            paragraph.clear()

    def flush_list():
        nonlocal list_tag
        if items:
            out.append(f"<{list_tag}>" + "".join(f"<li>{i}</li>" for i in items) + f"</{list_tag}>")
            items.clear()
        list_tag = None

    for line in block.split("\n"):
        stripped = line.strip()
        if not stripped:
            continue

        header = _HEADER_RE.match(stripped)
        bullet = _BULLET_RE.match(stripped)
        number = None if bullet else _NUMBER_RE.match(stripped)

        if header:
            flush_paragraph()
            flush_list()
            out.append(f"<h4>{render_inline(header.group(1))}</h4>")
        elif bullet or number:
            tag = "ul" if bullet else "ol"
            flush_paragraph()
            if list_tag != tag:
                flush_list()
                list_tag = tag
            items.append(render_inline((bullet or number).group(1)))
        else:
            flush_list()
            paragraph.append(render_inline(stripped))

    flush_paragraph()
    flush_list()
    return "".join(out)


def render_markdown(text: str) -> str:
    if not text:
        return ""
    blocks = []
    for block in _BLOCK_SPLIT_RE.split(text.strip()):
        block = block.strip()
        if not block:
            continue
        if _RENDERED_RE.match(block):
            blocks.append(block)
        else:
            blocks.append(_render_block(block))
    return "".join(blocks)
