"""
Directive scanner

Single left-to-right pass that extracts directive markers from free text.

The scanner:
1. Locates code spans (fenced ``` blocks and single-line `inline` code)
2. Walks the text, trying a grammar only where its opening token occurs
3. Copies code spans verbatim, so markers inside code are never matched
4. Removes each matched marker (or emits the grammar's replacement)
5. Leaves partial or malformed markers untouched

Every Directive records its span in the scanned text and the offset in
the residual text where it was removed, so reinserting the spans
reconstructs the input exactly (ScanResult.source_restore).

Example:
    >>> from matcha.lib.directives import DirectiveRegistry
    >>> grammar = DirectiveRegistry().grammar_get("step")
    >>> result = scan("a<!-- step -->b", grammar)
    >>> result.text
    'ab'
    >>> result.directives[0].span_start, result.directives[0].span_end
    (1, 14)
"""

import re
from dataclasses import replace
from typing import Callable, List, Optional, Sequence, Tuple, Union

from ..config import appsettings
from ..models.directives import Directive, DirectiveGrammar, ScanResult


CODE_SPAN = re.compile(r"```[\s\S]*?(?:```|\Z)|`[^`\n]+`")

# Same extent as the fenced alternative of CODE_SPAN, with the language
# label (only when followed by a newline) and body split out
FENCE = re.compile(r"```(?:(?P<lang>[\w+#.-]+)?[ \t]*\n)?(?P<code>[\s\S]*?)(?:```|\Z)")


def codeSpans_find(text: str) -> List[Tuple[int, int]]:
    """
    Locate fenced and inline code spans.

    An unterminated fence runs to the end of the text.

    Returns:
        Sorted, non-overlapping (start, end) pairs
    """
    return [match.span() for match in CODE_SPAN.finditer(text)]


def _match_straddlesCode(
    spans: List[Tuple[int, int]], first: int, start: int, end: int
) -> bool:
    """True when a code span opens inside [start, end) but closes after end"""
    index = first
    while index < len(spans) and spans[index][0] < end:
        span_start, span_end = spans[index]
        if span_start >= start and span_end > end:
            return True
        index += 1
    return False


def scan(
    text: str, grammars: Union[DirectiveGrammar, Sequence[DirectiveGrammar]]
) -> ScanResult:
    """
    Extract every marker of the given grammar(s) from text.

    When several grammars share a position the first one listed wins.

    Args:
        text: Text to scan
        grammars: One grammar or an ordered sequence of grammars

    Returns:
        ScanResult with directives in document order and the residual text
    """
    if isinstance(grammars, DirectiveGrammar):
        grammars = [grammars]
    openings = sorted({grammar.opening for grammar in grammars})

    spans = codeSpans_find(text)
    span_index = 0

    directives: List[Directive] = []
    parts: List[str] = []
    residual_length = 0
    copied = 0
    cursor = 0
    length = len(text)

    while cursor < length:
        candidates = [found for found in (text.find(op, cursor) for op in openings) if found != -1]
        if not candidates:
            break
        position = min(candidates)

        # Code spans are opaque
        while span_index < len(spans) and spans[span_index][1] <= position:
            span_index += 1
        if span_index < len(spans) and spans[span_index][0] <= position:
            cursor = spans[span_index][1]
            continue

        matched = None
        for grammar in grammars:
            if not text.startswith(grammar.opening, position):
                continue
            match = grammar.pattern.match(text, position)
            if not match or match.end() == position:
                continue
            if _match_straddlesCode(spans, span_index, position, match.end()):
                continue
            matched = (grammar, match)
            break

        if matched is None:
            cursor = position + 1
            continue

        grammar, match = matched
        groups = match.groupdict()
        chunk = text[copied:position]
        parts.append(chunk)
        residual_length += len(chunk)

        directive = Directive(
            name=groups.get("name") or grammar.name,
            raw_params=groups.get("params") or "",
            span_start=position,
            span_end=match.end(),
            index=len(directives),
            offset=residual_length,
            body=groups.get("body"),
        )
        if grammar.replace is not None:
            directive = replace(directive, replacement=grammar.replace(directive))
        directives.append(directive)

        parts.append(directive.replacement)
        residual_length += len(directive.replacement)
        copied = cursor = match.end()

    parts.append(text[copied:])
    return ScanResult(directives=directives, text="".join(parts), source=text)


class SpanShield:
    """
    Placeholder protection for one kind of span

    Replaces matched spans with opaque placeholders so later passes cannot
    see into them, and puts them back afterwards.

    Example:
        >>> shield = SpanShield("CODE")
        >>> shield.protect("a `x_y_z` b", CODE_SPAN)
        'a \\x00CODE-0\\x00 b'
        >>> shield.restore('a \\x00CODE-0\\x00 b')
        'a `x_y_z` b'
    """

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self.table: List[str] = []
        self.pattern = appsettings.placeHolder_pattern(kind)

    def protect(
        self,
        text: str,
        pattern: "re.Pattern[str]",
        keep: Optional[Callable[["re.Match[str]"], bool]] = None,
        transform: Optional[Callable[["re.Match[str]"], str]] = None,
    ) -> str:
        """
        Replace every match of pattern with a placeholder.

        Args:
            text: Text to protect
            pattern: Spans to hide
            keep: Optional filter; matches it rejects stay in place
            transform: Optional renderer; its result is stored instead of
                       the matched text (len(self.table) is the index the
                       result will get)

        Returns:
            Text with protected spans replaced
        """

        def placeholder_substitute(match: "re.Match[str]") -> str:
            if keep is not None and not keep(match):
                return match.group(0)
            self.table.append(transform(match) if transform is not None else match.group(0))
            return appsettings.placeHolder_make(self.kind, len(self.table) - 1)

        return pattern.sub(placeholder_substitute, text)

    def restore(self, text: str, render: Optional[Callable[[str], str]] = None) -> str:
        """
        Put protected spans back, optionally transformed by render.

        Placeholders whose index is unknown are left in place.
        """

        def placeholder_expand(match: "re.Match[str]") -> str:
            index = int(match.group("index"))
            if index >= len(self.table):
                return match.group(0)
            original = self.table[index]
            return render(original) if render is not None else original

        return self.pattern.sub(placeholder_expand, text)


def text_splitOutsideCode(text: str, separator: "re.Pattern[str]") -> List[str]:
    """
    Split text at separator matches that do not start inside code spans.

    Example:
        >>> text_splitOutsideCode("a\\n---\\nb", re.compile(r"^\\s*---\\s*$", re.M))
        ['a\\n', '\\nb']
    """
    spans = codeSpans_find(text)
    parts: List[str] = []
    start = 0
    for match in separator.finditer(text):
        if any(span_start <= match.start() < span_end for span_start, span_end in spans):
            continue
        parts.append(text[start:match.start()])
        start = match.end()
    parts.append(text[start:])
    return parts
