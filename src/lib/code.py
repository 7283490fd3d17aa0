"""
Fenced code blocks

A code directive configures the next fenced block of its chunk:

    <!-- code: lineNumbers=true, highlight="2,4-6", title=main.py -->
    ```python
    ...
    ```

Fences are dedented and highlighted with Pygments (inline styles, so the
output needs no stylesheet). The "matcha" language uses MatchaLexer.
"""

import html
import re
from typing import Dict, List, Mapping, Optional, Tuple

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import TextLexer, get_lexer_by_name
from pygments.util import ClassNotFound

from ..config import appsettings
from .directives import DirectiveRegistry
from .lexer import MatchaLexer
from .log import LOG
from .params import flag_get, params_parse
from .scanner import FENCE, scan


def codeConfigs_extract(
    text: str, registry: Optional[DirectiveRegistry] = None
) -> Tuple[str, Dict[int, Dict[str, str]]]:
    """
    Remove code directives and bind each one to the fence that follows it.

    Args:
        text: Chunk text
        registry: Directive grammars

    Returns:
        (text without code directives, fence index -> parameters)
    """
    registry = registry or DirectiveRegistry()
    result = scan(text, registry.grammar_get("code"))
    fence_starts = [match.start() for match in FENCE.finditer(result.text)]

    configs: Dict[int, Dict[str, str]] = {}
    for directive in result.directives:
        fence_index = sum(1 for start in fence_starts if start < directive.offset)
        if fence_index >= len(fence_starts):
            LOG("Code directive with no fence after it, ignored", level=2)
            continue
        configs[fence_index] = params_parse(directive.raw_params)
    return result.text, configs


def code_dedent(code: str) -> str:
    """Drop blank edge lines and the indentation common to every non-blank line"""
    lines = code.split("\n")
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    if not lines:
        return ""

    indents = [len(line) - len(line.lstrip(" ")) for line in lines if line.strip()]
    margin = min(indents) if indents else 0
    return "\n".join(line[margin:] for line in lines)


def highlightLines_parse(spec: Optional[str]) -> List[int]:
    """
    Line numbers named by a highlight list.

    Example:
        >>> highlightLines_parse("2,5-7")
        [2, 5, 6, 7]
    """
    lines: List[int] = []
    for part in (spec or "").split(","):
        part = part.strip()
        match = re.fullmatch(r"(\d+)\s*-\s*(\d+)", part)
        if match:
            lines.extend(range(int(match.group(1)), int(match.group(2)) + 1))
        elif part.isdigit():
            lines.append(int(part))
    return lines


def lexer_get(language: str) -> Lexer:
    """Pygments lexer for a language label, plain text when unknown"""
    if language.lower() == "matcha":
        return MatchaLexer()
    try:
        return get_lexer_by_name(language)
    except ClassNotFound:
        LOG(f"No lexer for '{language}', using plain text", level=3)
        return TextLexer()


def code_render(code: str, language: str = "", config: Optional[Mapping[str, str]] = None) -> str:
    """
    Render one fenced block with its header, copy button and highlighted body.

    Args:
        code: Fence content
        language: Fence label (overridden by config lang)
        config: Parameters of the code directive bound to this fence

    Returns:
        Block markup
    """
    config = config or {}
    language = config.get("lang") or language or "text"

    formatter = HtmlFormatter(
        style=appsettings.code_style,
        noclasses=True,
        linenos="inline" if flag_get(config, "lineNumbers", appsettings.code_line_numbers) else False,
        hl_lines=highlightLines_parse(config.get("highlight")),
    )
    body = highlight(code_dedent(code), lexer_get(language), formatter)

    classes = ["matcha-code-wrapper"]
    style = ""
    max_height = config.get("maxHeight")
    if max_height in ("none", "auto"):
        classes.append("no-height-limit")
    elif max_height:
        classes.append("has-custom-height")
        style = f' style="--code-max-height: {html.escape(max_height)}"'

    header = '<div class="matcha-code-header"><div class="matcha-code-dots"><span></span><span></span><span></span></div>'
    if config.get("title"):
        header += f'<span class="matcha-code-title">{html.escape(config["title"])}</span>'
    header += f'<span class="matcha-code-lang">{html.escape(language)}</span></div>'

    copy = ""
    if flag_get(config, "copy", appsettings.code_copy):
        copy = '<button class="matcha-code-copy">Copy</button>'

    return (
        f'<div class="{" ".join(classes)}"{style}>{header}{copy}'
        f'<div class="matcha-code-content">{body}</div></div>'
    )
