"""
Directive specification and scan result models

Defines the grammar of a directive marker, the metadata the registry keeps
per directive kind, and the records the scanner produces when it extracts
markers from text.
"""

import re
from enum import Enum
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional


class DirectiveCategory(Enum):
    """
    Categories of matcha directives

    Used for organization, documentation generation, and pipeline ordering.
    """
    STRUCTURAL = "structural"    # step, define, @usage
    SLIDE = "slide"              # layout, transition, theme, style
    CONTENT = "content"          # card, video, audio, image, iframe, code
    INLINE = "inline"            # <highlight>, $math$


@dataclass(frozen=True)
class Directive:
    """
    One marker extracted by the scanner

    Attributes:
        name: Resolved directive name (e.g., "step", "card", "logo" for <!-- @logo -->)
        raw_params: Unparsed parameter string ("" when the marker has none)
        span_start: Offset of the marker's first character in the scanned text
        span_end: Offset one past the marker's last character
        index: Ordinal of this directive within its scan (0-based)
        offset: Position in the residual text where the marker was removed
        replacement: Text emitted in place of the marker ("" for removal)
        body: Enclosed text for block grammars that capture one (define)

    Example:
        Scanning "a<!-- step -->b" with the step grammar yields
        Directive(name="step", raw_params="", span_start=1, span_end=14,
                  index=0, offset=1, replacement="")
    """
    name: str
    raw_params: str
    span_start: int
    span_end: int
    index: int = 0
    offset: int = 0
    replacement: str = ""
    body: Optional[str] = None


@dataclass(frozen=True)
class DirectiveGrammar:
    """
    Marker syntax for one directive kind

    The pattern is tried only where the opening token occurs in the text.
    Named groups ``name``, ``params`` and ``body`` are read when present;
    a grammar whose pattern has no ``name`` group reports its own name.

    Attributes:
        name: Directive kind name
        pattern: Compiled marker pattern, anchored at the opening token
        opening: Literal token every marker starts with
        replace: Callable producing the text emitted in place of a marker;
                 None removes the marker
    """
    name: str
    pattern: "re.Pattern[str]"
    opening: str = "<!--"
    replace: Optional[Callable[[Directive], str]] = None

    def replace_with(self, fn: Optional[Callable[[Directive], str]]) -> "DirectiveGrammar":
        """Copy of this grammar emitting fn(directive) in place of each marker"""
        return replace(self, replace=fn)


@dataclass
class DirectiveSpec:
    """
    Specification for a matcha directive

    Defines metadata and the marker grammar for a directive kind.
    Used by DirectiveRegistry to manage available directives.

    Attributes:
        name: Directive name
        category: Category for organization
        description: Human-readable description
        grammar: Marker grammar handed to the scanner
        examples: Example usage strings
        aliases: Alternative names for the directive
    """
    name: str
    category: DirectiveCategory
    description: str
    grammar: DirectiveGrammar
    examples: List[str] = field(default_factory=list)
    aliases: List[str] = field(default_factory=list)

    def matches(self, directive_name: str) -> bool:
        """Check if this spec handles a directive name (direct or alias)"""
        return self.name == directive_name or directive_name in self.aliases


@dataclass
class ScanResult:
    """
    Result of one left-to-right scan

    Attributes:
        directives: Matched directives in document order
        text: Input with every matched marker removed or replaced
        source: The scanned input, kept for span restoration
    """
    directives: List[Directive]
    text: str
    source: str = ""

    def source_restore(self) -> str:
        """
        Reinsert each marker's literal source span where it was removed.

        Reconstructs the scanned input exactly; used to check that a scan
        never disturbs the text around the markers it consumes.

        Returns:
            The original scanned text
        """
        restored = self.text
        for directive in reversed(self.directives):
            restored = (
                restored[:directive.offset]
                + self.source[directive.span_start:directive.span_end]
                + restored[directive.offset + len(directive.replacement):]
            )
        return restored
