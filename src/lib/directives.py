"""
Directive registry for matcha

Each directive kind is described by a DirectiveSpec carrying its marker
grammar. Consumers never hard-code marker syntax: they ask the registry for
a grammar by name and hand it to the scanner.
"""

import re
from typing import Dict, List, Optional

from ..models.directives import DirectiveCategory, DirectiveGrammar, DirectiveSpec


def marker_compile(names: str, params: str = r"(?:\s*:\s*(?P<params>.+?))?") -> "re.Pattern[str]":
    """
    Compile an HTML-comment marker pattern.

    Args:
        names: Regex alternation of directive names
        params: Regex for everything between the name and the closing token

    Returns:
        Pattern matching <!-- name[: params] -->
    """
    return re.compile(r"<!--\s*(?P<name>" + names + r")" + params + r"\s*-->")


class DirectiveRegistry:
    """
    Registry of directive specifications

    Maps directive names (and aliases) to DirectiveSpec objects.
    """

    def __init__(self) -> None:
        """Initialize the registry and register all built-in directives"""
        self.specs: Dict[str, DirectiveSpec] = {}
        self.structuralDirectives_register()
        self.slideDirectives_register()
        self.contentDirectives_register()
        self.inlineDirectives_register()

    def register(self, spec: DirectiveSpec) -> None:
        """Register a directive specification (and its aliases)"""
        self.specs[spec.name] = spec
        for alias in spec.aliases:
            self.specs[alias] = spec

    def spec_get(self, name: str) -> Optional[DirectiveSpec]:
        """Full directive specification by name, or None"""
        return self.specs.get(name)

    def grammar_get(self, name: str) -> DirectiveGrammar:
        """
        Marker grammar for a directive kind

        Raises:
            KeyError: If no directive of that name is registered
        """
        spec = self.specs.get(name)
        if spec is None:
            raise KeyError(f"Unknown directive: {name}")
        return spec.grammar

    def directives_listByCategory(self, category: DirectiveCategory) -> List[DirectiveSpec]:
        """Get all directives in a category (aliases listed once)"""
        seen: List[DirectiveSpec] = []
        for spec in self.specs.values():
            if spec.category == category and spec not in seen:
                seen.append(spec)
        return seen

    def structuralDirectives_register(self) -> None:
        """Register step, component and region directives"""

        # Effect and duration are both optional; only these two forms are
        # accepted so that anything else stays in the text untouched.
        self.register(DirectiveSpec(
            name="step",
            category=DirectiveCategory.STRUCTURAL,
            description="Chunk boundary; effect and duration apply to the chunk that follows",
            grammar=DirectiveGrammar(
                name="step",
                pattern=re.compile(
                    r"<!--\s*(?P<name>step)"
                    r"(?P<params>(?:\s*:\s*[\w-]+)?(?:\s*,\s*duration\s*=\s*\d+)?)"
                    r"\s*-->"
                ),
            ),
            examples=["<!-- step -->", "<!-- step: slide-left -->", "<!-- step: zoom, duration=300 -->"],
        ))

        # An unterminated define closes at the next define or at the end.
        self.register(DirectiveSpec(
            name="define",
            category=DirectiveCategory.STRUCTURAL,
            description="Reusable component template",
            grammar=DirectiveGrammar(
                name="define",
                pattern=re.compile(
                    r"<!--\s*define:\s*(?P<name>[\w-]+)(?:\s*,\s*(?P<params>.+?))?\s*-->"
                    r"(?P<body>[\s\S]*?)"
                    r"(?P<close><!--\s*enddefine\s*-->|(?=<!--\s*define:)|\Z)"
                ),
            ),
            examples=["<!-- define: footer, position=bottom -->\nPage {{$slideNumber}}\n<!-- enddefine -->"],
        ))

        self.register(DirectiveSpec(
            name="enddefine",
            category=DirectiveCategory.STRUCTURAL,
            description="Closes a define block",
            grammar=DirectiveGrammar(name="enddefine", pattern=marker_compile("enddefine", "")),
            examples=["<!-- enddefine -->"],
        ))

        self.register(DirectiveSpec(
            name="usage",
            category=DirectiveCategory.STRUCTURAL,
            description="Places a defined component on the slide",
            grammar=DirectiveGrammar(
                name="usage",
                pattern=re.compile(r"<!--\s*@(?P<name>[\w-]+)(?::\s*(?P<params>.+?))?\s*-->"),
            ),
            examples=["<!-- @footer -->", "<!-- @badge: text=New, position=top-left -->"],
        ))

    def slideDirectives_register(self) -> None:
        """Register per-slide metadata directives"""

        slide_specs = [
            ("layout", "Slide layout: center, doc, cols, rows, grid",
             ["<!-- layout: cols, ratio=1:2 -->", "<!-- layout: grid, cols=2, compact -->"]),
            ("align", "Horizontal alignment of one layout cell", ["<!-- align: left -->"]),
            ("valign", "Vertical alignment of one layout cell", ["<!-- valign: top -->"]),
            ("transition", "Slide transition", ["<!-- transition: zoom, duration=500 -->"]),
            ("theme", "Slide theme", ["<!-- theme: ocean -->"]),
            ("style", "Per-slide style overrides", ["<!-- style: fg=#fff, padding=3 -->"]),
            ("global-style", "Style overrides for every slide", ["<!-- global-style: accent=#00e676 -->"]),
        ]

        for name, description, examples in slide_specs:
            self.register(DirectiveSpec(
                name=name,
                category=DirectiveCategory.SLIDE,
                description=description,
                grammar=DirectiveGrammar(name=name, pattern=marker_compile(re.escape(name))),
                examples=examples,
            ))

    def contentDirectives_register(self) -> None:
        """Register directives rendered inside a chunk"""

        self.register(DirectiveSpec(
            name="card",
            category=DirectiveCategory.CONTENT,
            description="Opens a styled card container",
            grammar=DirectiveGrammar(name="card", pattern=marker_compile("card")),
            examples=["<!-- card: bg=glass, shadow=lg -->"],
        ))

        self.register(DirectiveSpec(
            name="endcard",
            category=DirectiveCategory.CONTENT,
            description="Closes the open card",
            grammar=DirectiveGrammar(name="endcard", pattern=marker_compile("endcard", "")),
            examples=["<!-- endcard -->"],
        ))

        media_specs = [
            ("video", "Embedded video", ['<!-- video: src=intro.mp4, autoplay=true, muted=true -->']),
            ("audio", "Embedded audio", ['<!-- audio: src=theme.mp3 -->']),
            ("image", "Image with size/round/shadow options", ['<!-- image: src="a.png", size=6, round=lg -->']),
            ("iframe", "Embedded page", ['<!-- iframe: src="https://example.org", height=500px -->']),
        ]

        for name, description, examples in media_specs:
            self.register(DirectiveSpec(
                name=name,
                category=DirectiveCategory.CONTENT,
                description=description,
                grammar=DirectiveGrammar(name=name, pattern=marker_compile(name)),
                examples=examples,
            ))

        self.register(DirectiveSpec(
            name="code",
            category=DirectiveCategory.CONTENT,
            description="Options for the next fenced code block",
            grammar=DirectiveGrammar(name="code", pattern=marker_compile("code")),
            examples=['<!-- code: lineNumbers=true, highlight="2,4-6", title=main.py -->'],
        ))

    def inlineDirectives_register(self) -> None:
        """Register inline span directives"""

        # Excludes closing tags and comments; image syntax after '<' passes
        self.register(DirectiveSpec(
            name="highlight",
            category=DirectiveCategory.INLINE,
            description="Highlight span revealed as a micro-step",
            grammar=DirectiveGrammar(
                name="highlight",
                pattern=re.compile(r"<(?!/|!--)(?P<params>[^<>]+)>"),
                opening="<",
            ),
            examples=["Hello <World>!", "<# Title>"],
        ))

        self.register(DirectiveSpec(
            name="math-display",
            category=DirectiveCategory.INLINE,
            description="Display TeX",
            grammar=DirectiveGrammar(
                name="math-display",
                pattern=re.compile(r"\$\$(?P<params>[\s\S]*?)\$\$"),
                opening="$$",
            ),
            examples=["$$E = mc^2$$"],
        ))

        self.register(DirectiveSpec(
            name="math-inline",
            category=DirectiveCategory.INLINE,
            description="Inline TeX (single line)",
            grammar=DirectiveGrammar(
                name="math-inline",
                pattern=re.compile(r"\$(?P<params>[^$\n]+?)\$"),
                opening="$",
            ),
            examples=["$a^2 + b^2$"],
        ))
