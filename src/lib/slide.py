"""
Slide directives

Per-slide metadata read before chunking:

    <!-- transition: zoom, duration=500, easing=ease-in -->
    <!-- theme: ocean -->
    <!-- style: fg=#fff, padding=3 -->
    <!-- global-style: accent=#00e676 -->
    <!-- layout: cols, ratio=1:2, valign=top -->

Layouts split a slide into cells: cols on lines of +++, rows on lines of
===, grid on both (rows first). A cell may carry its own
<!-- align: x --> and <!-- valign: x -->.
"""

import re
from typing import Dict, List, Mapping, Optional, Tuple

from ..config import appsettings
from ..models.slides import LayoutCell, LayoutSpec, SlideStyle, TransitionConfig
from .diagnostics import Diagnostics
from .directives import DirectiveRegistry
from .log import LOG
from .params import flag_get, integer_get, params_parse, params_splitHead
from .scanner import scan, text_splitOutsideCode


TRANSITION_TYPES = ("fade", "slide", "slideUp", "zoom", "zoomIn", "flip", "flipY", "cube", "none")

LAYOUT_TYPES = ("center", "doc", "cols", "rows", "grid")

COL_SEPARATOR = re.compile(r"^\s*\+\+\+\s*$", re.MULTILINE)
ROW_SEPARATOR = re.compile(r"^\s*===\s*$", re.MULTILINE)

MODERN_SANS = '"Inter", "Noto Sans SC", -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif'

THEMES: Dict[str, Dict[str, str]] = {
    "matcha": {
        "bg": "transparent", "fg": "#ffffff", "h1": "#ffffff", "h2": "#00e676",
        "note": "#888888", "card": "rgba(255, 255, 255, 0.03)", "accent": "#00e676",
        "secondary": "#2979ff", "glassBg": "rgba(255, 255, 255, 0.03)",
        "borderColor": "rgba(255, 255, 255, 0.1)", "font": MODERN_SANS,
        "padding": "5", "gap": "5",
    },
    "mono": {
        "bg": "transparent", "fg": "#eeeeee", "h1": "#ffffff", "h2": "#E31937",
        "note": "#666666", "card": "rgba(255, 255, 255, 0.04)", "accent": "#E31937",
        "secondary": "#E31937", "glassBg": "rgba(20, 20, 20, 0.6)",
        "borderColor": "rgba(255, 255, 255, 0.15)", "font": MODERN_SANS,
        "padding": "6", "gap": "6",
    },
    "ocean": {
        "bg": "transparent", "fg": "#dbeafe", "h1": "#ffffff", "h2": "#3b82f6",
        "note": "#64748b", "card": "rgba(30, 41, 59, 0.3)", "accent": "#3b82f6",
        "secondary": "#8b5cf6", "glassBg": "rgba(30, 41, 59, 0.3)",
        "borderColor": "rgba(59, 130, 246, 0.2)", "font": MODERN_SANS,
        "padding": "5", "gap": "5",
    },
    "sunset": {
        "bg": "transparent", "fg": "#fff1f2", "h1": "#ffffff", "h2": "#f43f5e",
        "note": "#fda4af", "card": "rgba(88, 28, 135, 0.2)", "accent": "#f43f5e",
        "secondary": "#fbbf24", "glassBg": "rgba(255, 255, 255, 0.05)",
        "borderColor": "rgba(244, 63, 94, 0.2)", "font": MODERN_SANS,
        "padding": "5", "gap": "5",
    },
    "light": {
        "bg": "#ffffff", "fg": "#111827", "h1": "#000000", "h2": "#059669",
        "note": "#6b7280", "card": "#f3f4f6", "accent": "#059669",
        "secondary": "#ec4899", "glassBg": "rgba(0,0,0,0.03)",
        "borderColor": "rgba(0,0,0,0.06)", "font": MODERN_SANS,
        "padding": "5", "gap": "5",
    },
}

SIZE_SCALES: Dict[str, Dict[int, str]] = {
    "padding": {
        1: "0", 2: "40px 60px", 3: "60px 80px", 4: "0 60px", 5: "0 80px",
        6: "0 100px", 7: "0 120px", 8: "0 150px", 9: "0 200px", 10: "0 300px",
    },
    "gap": {
        1: "0", 2: "20px", 3: "40px", 4: "60px", 5: "80px",
        6: "100px", 7: "120px", 8: "150px", 9: "200px", 10: "250px",
    },
}

# Style key -> CSS custom property set on the slide
STYLE_VARIABLES = {
    "bg": "--slide-bg",
    "fg": "--slide-fg",
    "h1": "--slide-h1",
    "h2": "--slide-h2",
    "note": "--slide-note",
    "card": "--slide-card-bg",
    "accent": "--slide-accent",
    "secondary": "--slide-secondary",
    "glassBg": "--slide-glass-bg",
    "borderColor": "--slide-border-color",
    "font": "--slide-font",
    "padding": "--slide-padding",
    "gap": "--matcha-gap",
}


def size_resolve(value: str, kind: str) -> str:
    """
    Resolve a 1-10 size level through its scale; other values pass through.

    Example:
        >>> size_resolve("12", "gap")
        '250px'
        >>> size_resolve("2rem", "gap")
        '2rem'
    """
    scale = SIZE_SCALES.get(kind)
    match = re.match(r"\s*(-?\d+)", str(value))
    if scale is None or match is None:
        return value
    return scale[max(1, min(10, int(match.group(1))))]


def styles_merge(target: Dict[str, str], raw: str) -> Dict[str, str]:
    """Merge one style parameter string into target ("text" is an alias for "fg")"""
    for key, value in params_parse(raw).items():
        target["fg" if key == "text" else key] = value
    return target


class SlideDirectives:
    """
    Reader for slide-level directives

    Holds the global-style map of the current build.
    """

    def __init__(
        self,
        registry: Optional[DirectiveRegistry] = None,
        diagnostics: Optional[Diagnostics] = None,
    ) -> None:
        self.directives = registry or DirectiveRegistry()
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.global_styles: Dict[str, str] = {}

    def globalStyles_extract(self, text: str) -> str:
        """Merge every global-style marker into the global map and remove them"""
        result = scan(text, self.directives.grammar_get("global-style"))
        for directive in result.directives:
            styles_merge(self.global_styles, directive.raw_params)
        return result.text

    def transition_extract(self, text: str, slide_index: Optional[int] = None) -> Tuple[str, TransitionConfig]:
        """
        Read the slide transition. The first marker wins; every marker is removed.

        Returns:
            (text without transition markers, TransitionConfig)
        """
        result = scan(text, self.directives.grammar_get("transition"))
        config = TransitionConfig(
            type=appsettings.transition_type,
            duration_ms=appsettings.transition_duration_ms,
            easing=appsettings.transition_easing,
        )
        if not result.directives:
            return result.text, config

        head, rest = params_splitHead(result.directives[0].raw_params)
        params = params_parse(rest)
        if head:
            if head not in TRANSITION_TYPES:
                self.diagnostics.report("unresolved", f"Unknown transition '{head}'", slide_index)
            config.type = head
        config.duration_ms = integer_get(params, "duration", appsettings.transition_duration_ms)
        if params.get("easing"):
            config.easing = params["easing"]
        return result.text, config

    def style_extract(self, text: str, slide_index: Optional[int] = None) -> Tuple[str, SlideStyle]:
        """
        Read theme and style markers. The first of each wins; all are removed.

        Returns:
            (text without the markers, SlideStyle with global styles merged under the slide's)
        """
        themes = scan(text, self.directives.grammar_get("theme"))
        styles = scan(themes.text, self.directives.grammar_get("style"))

        theme = appsettings.default_theme
        if themes.directives:
            theme = params_splitHead(themes.directives[0].raw_params)[0] or theme
        if theme not in THEMES:
            self.diagnostics.report("unresolved", f"Unknown theme '{theme}', using matcha", slide_index)

        merged = dict(self.global_styles)
        if styles.directives:
            styles_merge(merged, styles.directives[0].raw_params)
        return styles.text, SlideStyle(theme=theme, styles=merged)

    def layout_extract(self, text: str, slide_index: Optional[int] = None) -> Tuple[str, LayoutSpec]:
        """
        Read the layout marker. The first marker wins; all are removed.

        Unknown layout types fall back to center.
        """
        result = scan(text, self.directives.grammar_get("layout"))
        if not result.directives:
            return result.text, LayoutSpec(type=appsettings.default_layout)

        head, rest = params_splitHead(result.directives[0].raw_params)
        layout_type = head or appsettings.default_layout
        if layout_type not in LAYOUT_TYPES:
            self.diagnostics.report("unresolved", f"Unknown layout '{layout_type}', using center", slide_index)
            layout_type = "center"
        return result.text, LayoutSpec(type=layout_type, params=params_parse(rest))

    def localAlign_extract(self, text: str) -> Tuple[str, Optional[str], Optional[str]]:
        """(text without align/valign markers, halign, valign); the last marker of each wins"""
        result = scan(text, [self.directives.grammar_get("align"), self.directives.grammar_get("valign")])
        halign: Optional[str] = None
        valign: Optional[str] = None
        for directive in result.directives:
            value = directive.raw_params.strip().lower() or None
            if directive.name == "align":
                halign = value
            else:
                valign = value
        return result.text, halign, valign

    def cell_make(self, text: str, row: int = 0, column: int = 0) -> LayoutCell:
        text, halign, valign = self.localAlign_extract(text)
        return LayoutCell(text=text, halign=halign, valign=valign, row=row, column=column)

    def cells_split(self, text: str, layout: LayoutSpec) -> List[LayoutCell]:
        """
        Split slide text into the cells of its layout.

        A cols or rows layout with a single part and no force flag yields
        one plain cell.
        """
        if layout.type == "cols":
            parts = text_splitOutsideCode(text, COL_SEPARATOR)
            if len(parts) <= 1 and not flag_get(layout.params, "force"):
                return [LayoutCell(text=text)]
            return [self.cell_make(part, column=index) for index, part in enumerate(parts)]

        if layout.type == "rows":
            parts = text_splitOutsideCode(text, ROW_SEPARATOR)
            if len(parts) <= 1 and not flag_get(layout.params, "force"):
                return [LayoutCell(text=text)]
            return [self.cell_make(part, row=index) for index, part in enumerate(parts)]

        if layout.type == "grid":
            cells: List[LayoutCell] = []
            for row, row_text in enumerate(text_splitOutsideCode(text, ROW_SEPARATOR)):
                for column, cell_text in enumerate(text_splitOutsideCode(row_text, COL_SEPARATOR)):
                    cells.append(self.cell_make(cell_text, row=row, column=column))
            return cells

        return [LayoutCell(text=text)]

    def layoutClasses_build(self, layout: LayoutSpec) -> List[str]:
        """Classes of the slide element: layout, alignment and density"""
        classes = ["matcha-slide", f"layout-{layout.type}"]
        if layout.params.get("valign"):
            classes.append(f"valign-{layout.params['valign']}")
        if layout.params.get("halign"):
            classes.append(f"halign-{layout.params['halign']}")
        if flag_get(layout.params, "compact"):
            classes.append("compact")
        return classes

    def gridTemplate_build(self, layout: LayoutSpec, cells: List[LayoutCell]) -> str:
        """
        Inline grid template of a split layout's container.

        Example:
            ratio=1:2 on a cols layout gives "grid-template-columns: 1fr 2fr"
        """
        ratio = layout.params.get("ratio")
        if layout.type == "cols":
            if ratio:
                return "grid-template-columns: " + " ".join(f"{part.strip()}fr" for part in ratio.split(":"))
            return f"grid-template-columns: repeat({len(cells)}, 1fr)"
        if layout.type == "rows":
            if ratio:
                return "grid-template-rows: " + " ".join(f"{part.strip()}fr" for part in ratio.split(":"))
            return f"grid-template-rows: repeat({len(cells)}, 1fr)"
        if layout.type == "grid":
            max_columns = max([cell.column + 1 for cell in cells] or [1])
            row_count = max([cell.row + 1 for cell in cells] or [1])
            columns = integer_get(layout.params, "cols", max_columns)
            rows = integer_get(layout.params, "rows", row_count)
            return f"grid-template-columns: repeat({columns}, 1fr); grid-template-rows: repeat({rows}, 1fr)"
        return ""

    def styleVariables_build(self, style: SlideStyle) -> Dict[str, str]:
        """
        CSS custom properties for a slide: theme values, overlaid by
        global styles, overlaid by the slide's own styles.
        """
        values: Dict[str, str] = dict(THEMES.get(style.theme, THEMES["matcha"]))
        values.update(style.styles)

        variables: Dict[str, str] = {}
        for key, value in values.items():
            if key not in STYLE_VARIABLES or not value:
                continue
            if key in SIZE_SCALES:
                value = size_resolve(value, key)
            variables[STYLE_VARIABLES[key]] = value
        LOG(f"Theme {style.theme}: {len(variables)} variable(s)", level=3)
        return variables


def styleAttribute_build(variables: Mapping[str, str]) -> str:
    """Inline style string from a property mapping"""
    return "; ".join(f"{name}: {value}" for name, value in variables.items())
