"""
Lightweight markdown to HTML conversion.

RegexMarkdownRenderer is a best-effort, regex-driven converter. It is not
a CommonMark implementation. Stages run in a fixed order and each stage
works on the previous stage's output:

    1. Fenced code blocks -> <pre><code> (content HTML-escaped)
    2. Inline code -> <code>
    3. Headers H1-H6 -> <h1>..<h6>
    4. Bold/italic, including combined ***text***
    5. Horizontal rules (---, ***, ___)
    6. Blockquotes
    7. Unordered and numbered list items -> <li>, runs wrapped in <ul>
    8. Table rows |a|b| -> <table><tr><td>
    9. Links [text](url)
    10. Paragraph wrapping for remaining bare lines

Known gaps, kept for output compatibility:
    - Nested lists are flattened; numbered lists render as <ul>.
    - Every table row becomes its own single-row table; separator rows
      are dropped and there is no header row.
    - Code content is not shielded from stages 3-9 once converted.
    - Headers carry no id attribute, so table-of-contents anchors do not
      resolve inside the rendered HTML.
    - Raw HTML in the input passes through unescaped.

Malformed input never raises; unrecognized lines become paragraphs.

Callers depend on the MarkdownRenderer protocol, so a full parser can be
swapped in without touching them.
"""

from __future__ import annotations

import html
import re
from typing import Protocol

_FENCED_CODE = re.compile(r"```[^\n]*\n(.*?)```", re.DOTALL)
_INLINE_CODE = re.compile(r"`([^`\n]+)`")
_HEADER = re.compile(r"^(#{1,6}) +(.+?)[ \t]*$", re.MULTILINE)
_BOLD_ITALIC = re.compile(r"\*\*\*([^*\n]+?)\*\*\*")
_BOLD = re.compile(r"\*\*([^*\n]+?)\*\*")
_ITALIC = re.compile(r"\*([^\s*](?:[^*\n]*?[^\s*])?)\*")
_RULE = re.compile(r"^(?:-{3,}|\*{3,}|_{3,})[ \t]*$", re.MULTILINE)
_BLOCKQUOTE = re.compile(r"^> ?(.*)$", re.MULTILINE)
_UNORDERED_ITEM = re.compile(r"^[ \t]*[-*+] +(.+)$", re.MULTILINE)
_ORDERED_ITEM = re.compile(r"^[ \t]*\d+\. +(.+)$", re.MULTILINE)
_LIST_RUN = re.compile(r"(?:^<li>.*</li>$\n?)+", re.MULTILINE)
_TABLE_ROW = re.compile(r"^\|(.+)\|[ \t]*$", re.MULTILINE)
_TABLE_SEPARATOR_CELL = re.compile(r"^\s*:?-+:?\s*$")
_LINK = re.compile(r"\[([^\]]+)\]\(([^)\s]+)\)")
_BLOCK_TAG = re.compile(
    r"^<(?:/?(?:h[1-6]|ul|ol|li|table|tr|td|th|hr|blockquote|pre|p|div))\b"
)

_TOC_HEADER = re.compile(r"^(#{2,3}) +(.+?)\s*$")


class MarkdownRenderer(Protocol):
    """Anything that turns markdown-like text into HTML."""

    def render(self, text: str) -> str: ...


def _render_table_row(match: re.Match[str]) -> str:
    cells = match.group(1).split("|")
    if all(_TABLE_SEPARATOR_CELL.match(cell) for cell in cells):
        return ""
    row = "".join(f"<td>{cell.strip()}</td>" for cell in cells)
    return f"<table><tr>{row}</tr></table>"


def _wrap_list_run(match: re.Match[str]) -> str:
    run = match.group(0)
    trailing = "\n" if run.endswith("\n") else ""
    return f"<ul>\n{run.rstrip(chr(10))}\n</ul>{trailing}"


def _wrap_paragraphs(text: str) -> str:
    lines = []
    in_pre = False
    for line in text.split("\n"):
        stripped = line.strip()
        if in_pre:
            lines.append(line)
            if "</pre>" in line:
                in_pre = False
            continue
        if "<pre>" in line and "</pre>" not in line:
            in_pre = True
            lines.append(line)
            continue
        if not stripped or _BLOCK_TAG.match(stripped):
            lines.append(line)
            continue
        lines.append(f"<p>{stripped}</p>")
    return "\n".join(lines)


class RegexMarkdownRenderer:
    """
    Regex-chain markdown converter.

    Example:
        renderer = RegexMarkdownRenderer()
        html = renderer.render("# Title\\n\\nSome **bold** text")
    """

    def render(self, text: str) -> str:
        """
        Convert markdown-like text to HTML.

        Args:
            text: Markdown-like input.

        Returns:
            HTML fragment. Never raises for malformed input.
        """
        result = text.replace("\r\n", "\n")
        result = _FENCED_CODE.sub(
            lambda m: f"<pre><code>{html.escape(m.group(1).rstrip(chr(10)))}</code></pre>",
            result,
        )
        result = _INLINE_CODE.sub(r"<code>\1</code>", result)
        result = _HEADER.sub(
            lambda m: f"<h{len(m.group(1))}>{m.group(2)}</h{len(m.group(1))}>", result
        )
        result = _BOLD_ITALIC.sub(r"<strong><em>\1</em></strong>", result)
        result = _BOLD.sub(r"<strong>\1</strong>", result)
        result = _ITALIC.sub(r"<em>\1</em>", result)
        result = _RULE.sub("<hr>", result)
        result = _BLOCKQUOTE.sub(r"<blockquote>\1</blockquote>", result)
        result = _UNORDERED_ITEM.sub(r"<li>\1</li>", result)
        result = _ORDERED_ITEM.sub(r"<li>\1</li>", result)
        result = _LIST_RUN.sub(_wrap_list_run, result)
        result = _TABLE_ROW.sub(_render_table_row, result)
        result = _LINK.sub(r'<a href="\2">\1</a>', result)
        return _wrap_paragraphs(result)


def heading_anchor(title: str) -> str:
    """Anchor for a heading: lowercased, whitespace runs become hyphens."""
    return re.sub(r"\s+", "-", title.strip().lower())


def table_of_contents(text: str) -> str:
    """
    Build a markdown table of contents from ## and ### headings.

    H1 and H4+ headings are ignored. ### entries are indented under the
    preceding ## entry.

    Args:
        text: Markdown-like text.

    Returns:
        Markdown TOC, or "" if the text has no ## or ### headings.
    """
    entries = []
    for line in text.split("\n"):
        match = _TOC_HEADER.match(line)
        if not match:
            continue
        indent = "  " if len(match.group(1)) == 3 else ""
        title = match.group(2)
        entries.append(f"{indent}- [{title}](#{heading_anchor(title)})")

    if not entries:
        return ""
    return "## Table of Contents\n\n" + "\n".join(entries)
