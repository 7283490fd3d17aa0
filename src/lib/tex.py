"""
TeX protection

Display ($$...$$) and inline ($...$, single line) TeX is lifted out of the
text before chunking so that neither the highlight marker nor the line
renderer can touch it, then put back as markup for an external typesetter.
Delimiters inside code are ignored.

Display and inline spans use different placeholder kinds so the line
renderer can tell a display block standing alone from a paragraph.
"""

import html
from typing import List, Optional, Tuple

from ..config import appsettings
from ..models.directives import Directive
from .directives import DirectiveRegistry
from .scanner import scan


DISPLAY_KIND = "MATHBLOCK"
INLINE_KIND = "MATH"


class MathShield:
    """
    Placeholder table for the TeX of one slide

    Example:
        >>> shield = MathShield()
        >>> text = shield.protect("Energy: $E=mc^2$")
        >>> shield.restore(text)
        'Energy: <span class="matcha-math inline">\\\\(E=mc^2\\\\)</span>'
    """

    def __init__(self, registry: Optional[DirectiveRegistry] = None) -> None:
        registry = registry or DirectiveRegistry()
        self.grammars = [
            registry.grammar_get("math-display").replace_with(self.placeholder_emit),
            registry.grammar_get("math-inline").replace_with(self.placeholder_emit),
        ]
        self.blocks: List[Tuple[str, str]] = []
        self.patterns = [
            appsettings.placeHolder_pattern(DISPLAY_KIND),
            appsettings.placeHolder_pattern(INLINE_KIND),
        ]

    def placeholder_emit(self, directive: Directive) -> str:
        display = directive.name == "math-display"
        self.blocks.append(("display" if display else "inline", directive.raw_params.strip()))
        return appsettings.placeHolder_make(DISPLAY_KIND if display else INLINE_KIND, len(self.blocks) - 1)

    def protect(self, text: str) -> str:
        """Replace every TeX span with a placeholder"""
        return scan(text, self.grammars).text

    def block_render(self, index: int) -> str:
        mode, tex = self.blocks[index]
        escaped = html.escape(tex, quote=False)
        if mode == "display":
            return f'<div class="matcha-math display">\\[{escaped}\\]</div>'
        return f'<span class="matcha-math inline">\\({escaped}\\)</span>'

    def restore(self, text: str) -> str:
        """Replace placeholders with TeX markup; unknown indexes stay as they are"""

        def placeholder_expand(match) -> str:
            index = int(match.group("index"))
            if index >= len(self.blocks):
                return match.group(0)
            return self.block_render(index)

        for pattern in self.patterns:
            text = pattern.sub(placeholder_expand, text)
        return text
