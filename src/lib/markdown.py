"""
Line renderer

Best-effort, line-oriented conversion of chunk prose into markup. Passes,
in order:

     1. trim
     2. fenced code      -> placeholders (highlighted via lib.code)
     3. inline code      -> placeholders (HTML-escaped on restore)
     4. tables           (lines containing |, first row is the header)
     5. headings         (# .. ######)
     6. blockquotes      (consecutive > lines merge)
     7. horizontal rules
     8. images           ![alt](src)
     9. links            [text](href)
    10. bold, italic, strikethrough
    11. lists           (-, 1., a), 一、 ... two consecutive items open a list)
    12. paragraphs      (blank-line separated; <br> for single newlines)
    13. restore protected spans

Attribute values of markup already in the text are shielded before the
emphasis passes so that underscores inside URLs or styles survive.

This is not a Markdown implementation and makes no attempt at spec
compliance.
"""

import html
import re
from typing import Dict, List, Mapping, Optional, Tuple

from ..config import appsettings
from .code import code_render
from .scanner import FENCE, SpanShield


INLINE_CODE = re.compile(r"`([^`\n]+)`")
ATTRIBUTE = re.compile(r'(?<==)"[^"\n]*"')

TABLE_SEPARATOR = re.compile(r"^\|?[\s\-:|]+\|?$")
BLOCKQUOTE = re.compile(r"^>\s+(.*$)", re.MULTILINE)
RULE = re.compile(r"^(\*{3,}|-{3,}|_{3,})$", re.MULTILINE)
IMAGE = re.compile(r"!\[(.*?)\]\((.*?)\)")
LINK = re.compile(r"\[(.*?)\]\((.*?)\)")

EMPHASIS = [
    (re.compile(r"\*\*([^*]+)\*\*"), r"<strong>\1</strong>"),
    (re.compile(r"__([^_]+)__"), r"<strong>\1</strong>"),
    (re.compile(r"\*([^*]+)\*"), r"<em>\1</em>"),
    (re.compile(r"_([^_]+)_"), r"<em>\1</em>"),
    (re.compile(r"~~([^~]+)~~"), r"<del>\1</del>"),
]

# (kind, style, pattern); alphabetic items need a delimiter
LIST_ITEMS = [
    ("ul", "ul", re.compile(r"^\s*-\s+(.*)$")),
    ("ol", "num", re.compile(r"^\s*\d+(?:[.)、])?\s+(.*)$")),
    ("ol", "alpha", re.compile(r"^\s*[a-z][.)、]\s+(.*)$")),
    ("ol", "alpha-upper", re.compile(r"^\s*[A-Z][.)、]\s+(.*)$")),
    ("ol", "cjk", re.compile(r"^\s*[一二三四五六七八九十]+(?:[.)、])?\s+(.*)$")),
]
LIST_CLASSES = {
    "ul": "matcha-ul",
    "num": "matcha-ol",
    "alpha": "matcha-ol matcha-ol-alpha",
    "alpha-upper": "matcha-ol matcha-ol-alpha-upper",
    "cjk": "matcha-ol matcha-ol-cjk",
}

BLOCK_START = re.compile(r"^<(h[1-6]|p|div|ul|ol|li|pre|blockquote|table|hr|img)", re.IGNORECASE)


def blockPlaceholders_pattern() -> "re.Pattern[str]":
    """Pattern for a paragraph made only of block-level placeholders"""
    placeholder = (
        re.escape(appsettings.placeholder_prefix)
        + r"(?:FENCE|MATHBLOCK)-\d+"
        + re.escape(appsettings.placeholder_suffix)
    )
    return re.compile(r"^(?:\s*" + placeholder + r")+\s*$")


def listItem_match(line: str) -> Optional[Tuple[str, str, str]]:
    """(kind, style, content) when line is a list item"""
    for kind, style, pattern in LIST_ITEMS:
        match = pattern.match(line)
        if match:
            return kind, style, match.group(1)
    return None


def table_build(rows: List[List[str]]) -> str:
    parts = ['<table class="matcha-table">', "<thead><tr>"]
    parts.extend(f"<th>{cell}</th>" for cell in rows[0])
    parts.append("</tr></thead>")
    if len(rows) > 1:
        parts.append("<tbody>")
        for row in rows[1:]:
            parts.append("<tr>")
            parts.extend(f"<td>{cell}</td>" for cell in row)
            parts.append("</tr>")
        parts.append("</tbody>")
    parts.append("</table>")
    return "".join(parts)


class LineRenderer:
    """
    Converter for one chunk of prose

    Args:
        code_configs: Code directive parameters by fence index
                      (see lib.code.codeConfigs_extract)
    """

    def __init__(self, code_configs: Optional[Mapping[int, Mapping[str, str]]] = None) -> None:
        self.code_configs: Mapping[int, Mapping[str, str]] = code_configs or {}
        self.block_placeholders = blockPlaceholders_pattern()

    def render(self, text: str) -> str:
        """
        Convert text to markup.

        Args:
            text: Chunk text after highlight, card and media processing

        Returns:
            Markup
        """
        fences = SpanShield("FENCE")
        inline_code = SpanShield("CODE")
        attributes = SpanShield("ATTR")

        def fence_render(match: "re.Match[str]") -> str:
            config = self.code_configs.get(len(fences.table))
            return code_render(match.group("code"), match.group("lang") or "", config)

        text = text.strip()
        text = fences.protect(text, FENCE, transform=fence_render)
        text = inline_code.protect(text, INLINE_CODE)

        text = self.tables_render(text)
        text = self.headings_render(text)
        text = self.blockquotes_render(text)
        text = RULE.sub("<hr>", text)
        text = IMAGE.sub(r'<img src="\2" alt="\1" loading="lazy">', text)
        text = LINK.sub(r'<a href="\2" target="_blank" rel="noopener">\1</a>', text)

        text = attributes.protect(text, ATTRIBUTE)
        for pattern, replacement in EMPHASIS:
            text = pattern.sub(replacement, text)
        text = self.lists_render(text)
        text = self.paragraphs_wrap(text)
        text = attributes.restore(text)

        text = inline_code.restore(
            text, render=lambda raw: f"<code>{html.escape(raw[1:-1], quote=False)}</code>"
        )
        return fences.restore(text)

    def tables_render(self, text: str) -> str:
        """
        Collect runs of table lines into tables.

        A table line starts with |, or contains | without starting with a
        tag. Separator rows are skipped. Every line comes out stripped.
        """
        result: List[str] = []
        rows: List[List[str]] = []

        for raw in text.split("\n"):
            line = raw.strip()
            if line.startswith("|") or ("|" in line and not line.startswith("<")):
                if TABLE_SEPARATOR.match(line):
                    continue
                rows.append([cell.strip() for cell in line.split("|") if cell.strip()])
                continue
            if rows:
                result.append(table_build(rows))
                rows = []
            result.append(line)

        if rows:
            result.append(table_build(rows))
        return "\n".join(result)

    def headings_render(self, text: str) -> str:
        for level in range(6, 0, -1):
            pattern = re.compile(r"^" + "#" * level + r"\s+(.*$)", re.MULTILINE)
            text = pattern.sub(rf"<h{level}>\1</h{level}>", text)
        return text

    def blockquotes_render(self, text: str) -> str:
        text = BLOCKQUOTE.sub(r"<blockquote>\1</blockquote>", text)
        return text.replace("</blockquote>\n<blockquote>", "\n")

    def lists_render(self, text: str) -> str:
        """
        Turn runs of list items into lists.

        A list opens only when the next line is an item of the same style;
        a change of style inside a list closes it and opens a new one.
        """
        lines = text.split("\n")
        result: List[str] = []
        open_style: Optional[str] = None

        def list_close() -> None:
            nonlocal open_style
            if open_style is not None:
                result.append("</ul>" if open_style == "ul" else "</ol>")
                open_style = None

        def list_open(style: str) -> None:
            nonlocal open_style
            tag = "ul" if style == "ul" else "ol"
            result.append(f'<{tag} class="{LIST_CLASSES[style]}">')
            open_style = style

        for position, line in enumerate(lines):
            item = listItem_match(line)
            if item is None:
                list_close()
                result.append(line)
                continue

            _, style, content = item
            if open_style is None:
                following = listItem_match(lines[position + 1]) if position + 1 < len(lines) else None
                if following is None or following[1] != style:
                    result.append(line)
                    continue
                list_open(style)
            elif open_style != style:
                list_close()
                list_open(style)

            result.append(f"<li>{content}</li>")

        list_close()
        return "\n".join(result)

    def paragraphs_wrap(self, text: str) -> str:
        """Wrap blank-line separated blocks that are not already block markup"""
        paragraphs: List[str] = []
        for block in text.split("\n\n"):
            trimmed = block.strip()
            if not trimmed:
                paragraphs.append("")
            elif BLOCK_START.match(trimmed) or self.block_placeholders.match(trimmed):
                paragraphs.append(block)
            else:
                paragraphs.append(f"<p>{trimmed.replace(chr(10), '<br>')}</p>")
        return "\n".join(paragraphs)


def markdown_render(text: str, code_configs: Optional[Dict[int, Dict[str, str]]] = None) -> str:
    """Module-level shortcut for LineRenderer(code_configs).render(text)"""
    return LineRenderer(code_configs).render(text)
