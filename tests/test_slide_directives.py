"""
Slide directive tests

Tests transition, theme/style and layout extraction, cell splitting and
the values handed to the page.
"""

from matcha.lib.diagnostics import Diagnostics
from matcha.lib.slide import SlideDirectives, size_resolve
from matcha.models.slides import LayoutSpec, SlideStyle


class TestTransition:
    """Test transition_extract()"""

    def test_type_and_duration(self):
        """Type and duration come from the marker, easing from settings"""
        text, config = SlideDirectives().transition_extract("<!-- transition: zoom, duration=500 -->\n# A")

        assert text == "\n# A"
        assert (config.type, config.duration_ms) == ("zoom", 500)
        assert config.easing == "cubic-bezier(0.4, 0, 0.2, 1)"

    def test_defaults(self):
        """No marker means the configured defaults"""
        _, config = SlideDirectives().transition_extract("# A")
        assert (config.type, config.duration_ms) == ("fade", 700)

    def test_first_wins_all_removed(self):
        """The first marker decides; every marker is removed"""
        text, config = SlideDirectives().transition_extract(
            "<!-- transition: flip -->A<!-- transition: cube -->B"
        )
        assert config.type == "flip"
        assert text == "AB"

    def test_invalid_duration(self):
        """A non-integer duration falls back to the default"""
        _, config = SlideDirectives().transition_extract("<!-- transition: slide, duration=slow -->")
        assert config.duration_ms == 700

    def test_unknown_type(self):
        """An unknown transition is reported"""
        diagnostics = Diagnostics()
        SlideDirectives(diagnostics=diagnostics).transition_extract("<!-- transition: wobble -->", 3)
        assert diagnostics.of_kind("unresolved")[0].slide_index == 3


class TestStyle:
    """Test theme and style extraction and the CSS variables"""

    def test_global_then_local(self):
        """Slide styles overlay global styles; text is an alias for fg"""
        directives = SlideDirectives()
        directives.globalStyles_extract("<!-- global-style: accent=#00e676, fg=#111 -->")
        text, style = directives.style_extract("<!-- theme: ocean -->\n<!-- style: text=#fff -->\nX")

        assert text == "\n\nX"
        assert style.theme == "ocean"
        assert style.styles == {"accent": "#00e676", "fg": "#fff"}

    def test_variables(self):
        """Theme values, overridden styles and size levels"""
        variables = SlideDirectives().styleVariables_build(
            SlideStyle(theme="matcha", styles={"padding": "3", "gap": "12"})
        )
        assert variables["--slide-padding"] == "60px 80px"
        assert variables["--matcha-gap"] == "250px"
        assert variables["--slide-accent"] == "#00e676"

    def test_unknown_theme(self):
        """An unknown theme is reported and renders as matcha"""
        diagnostics = Diagnostics()
        directives = SlideDirectives(diagnostics=diagnostics)
        _, style = directives.style_extract("<!-- theme: neon -->")

        assert len(diagnostics.of_kind("unresolved")) == 1
        assert directives.styleVariables_build(style)["--slide-h2"] == "#00e676"

    def test_size_resolve(self):
        """Levels are clamped to 1-10; other values pass through"""
        assert size_resolve("0", "padding") == "0"
        assert size_resolve("4", "gap") == "60px"
        assert size_resolve("2rem", "gap") == "2rem"


class TestLayout:
    """Test layout_extract(), cells_split() and the container helpers"""

    def test_cols(self):
        """cols splits on +++ and uses the ratio as column template"""
        directives = SlideDirectives()
        text, layout = directives.layout_extract("<!-- layout: cols, ratio=1:2 -->\nA\n+++\nB")
        cells = directives.cells_split(text, layout)

        assert layout.type == "cols"
        assert layout.params == {"ratio": "1:2"}
        assert [cell.text for cell in cells] == ["\nA\n", "\nB"]
        assert [cell.column for cell in cells] == [0, 1]
        assert directives.gridTemplate_build(layout, cells) == "grid-template-columns: 1fr 2fr"

    def test_single_part_without_force(self):
        """A single part stays one plain cell"""
        directives = SlideDirectives()
        cells = directives.cells_split("<!-- align: left -->A", LayoutSpec(type="cols"))
        assert len(cells) == 1
        assert cells[0].halign is None

    def test_rows(self):
        """rows splits on ==="""
        directives = SlideDirectives()
        layout = LayoutSpec(type="rows")
        cells = directives.cells_split("A\n===\nB\n===\nC", layout)

        assert [cell.row for cell in cells] == [0, 1, 2]
        assert directives.gridTemplate_build(layout, cells) == "grid-template-rows: repeat(3, 1fr)"

    def test_grid(self):
        """grid splits rows first, then columns"""
        directives = SlideDirectives()
        layout = LayoutSpec(type="grid")
        cells = directives.cells_split("A\n+++\nB\n===\nC", layout)

        assert [(cell.row, cell.column) for cell in cells] == [(0, 0), (0, 1), (1, 0)]
        assert directives.gridTemplate_build(layout, cells) == (
            "grid-template-columns: repeat(2, 1fr); grid-template-rows: repeat(2, 1fr)"
        )

    def test_local_alignment(self):
        """align and valign markers apply to their own cell"""
        directives = SlideDirectives()
        cells = directives.cells_split(
            "<!-- align: left -->\nA\n+++\n<!-- valign: top -->B", LayoutSpec(type="cols")
        )
        assert (cells[0].halign, cells[0].valign) == ("left", None)
        assert (cells[1].halign, cells[1].valign) == (None, "top")
        assert "<!--" not in cells[0].text

    def test_separator_in_code(self):
        """Separators inside fenced code do not split"""
        cells = SlideDirectives().cells_split("```\n+++\n```", LayoutSpec(type="cols"))
        assert len(cells) == 1

    def test_unknown_layout(self):
        """An unknown layout falls back to center"""
        diagnostics = Diagnostics()
        _, layout = SlideDirectives(diagnostics=diagnostics).layout_extract("<!-- layout: spiral -->")

        assert layout.type == "center"
        assert len(diagnostics.of_kind("unresolved")) == 1

    def test_default_layout(self):
        """No marker means center"""
        _, layout = SlideDirectives().layout_extract("A")
        assert layout.type == "center"

    def test_classes(self):
        """Slide classes carry layout, alignment and density"""
        layout = LayoutSpec(type="cols", params={"valign": "top", "compact": "true"})
        assert SlideDirectives().layoutClasses_build(layout) == [
            "matcha-slide", "layout-cols", "valign-top", "compact",
        ]
