"""
Component registry tests

Tests definitions, usages, global usages, variable precedence and the
diagnostics raised for unresolvable or unbalanced markers.
"""

from matcha.lib.components import ComponentRegistry, positionStyle_get
from matcha.lib.diagnostics import Diagnostics
from matcha.models.components import AnchorPosition


FOOTER = """<!-- define: footer, position=bottom -->
Page {{$slideNumber}} / {{$totalSlides}}
<!-- enddefine -->
rest"""


class TestDefinitions:
    """Test definitions_extract() and register()"""

    def test_define_block(self):
        """A define block is registered and removed"""
        registry = ComponentRegistry()
        residual = registry.definitions_extract(FOOTER)

        assert residual == "\nrest"
        definition = registry.components_get()["footer"]
        assert definition.template == "Page {{$slideNumber}} / {{$totalSlides}}"
        assert definition.position is AnchorPosition.BOTTOM

    def test_default_position(self):
        """Definitions without position anchor bottom-right"""
        registry = ComponentRegistry()
        registry.definitions_extract("<!-- define: logo -->L<!-- enddefine -->")
        assert registry.components_get()["logo"].position is AnchorPosition.BOTTOM_RIGHT

    def test_last_definition_wins(self):
        """Redefining a name replaces the template"""
        registry = ComponentRegistry()
        registry.definitions_extract(
            "<!-- define: a -->one<!-- enddefine --><!-- define: a -->two<!-- enddefine -->"
        )
        assert registry.components_get()["a"].template == "two"

    def test_unterminated_define(self):
        """An unterminated define closes at the next define and is reported"""
        diagnostics = Diagnostics()
        registry = ComponentRegistry(diagnostics=diagnostics)
        registry.definitions_extract("<!-- define: a -->one\n<!-- define: b -->two<!-- enddefine -->")

        assert registry.components_get()["a"].template == "one"
        assert registry.components_get()["b"].template == "two"
        assert len(diagnostics.of_kind("structural")) == 1

    def test_stray_enddefine(self):
        """An enddefine without define is removed and reported"""
        diagnostics = Diagnostics()
        registry = ComponentRegistry(diagnostics=diagnostics)
        residual = registry.definitions_extract("a<!-- enddefine -->b")

        assert residual == "ab"
        assert len(diagnostics.of_kind("structural")) == 1

    def test_unknown_anchor_falls_back(self):
        """An unknown anchor becomes bottom-right with a diagnostic"""
        diagnostics = Diagnostics()
        registry = ComponentRegistry(diagnostics=diagnostics)
        definition = registry.register("x", "X", position="upstairs")

        assert definition.position is AnchorPosition.BOTTOM_RIGHT
        assert len(diagnostics.of_kind("unresolved")) == 1

    def test_reset(self):
        """reset() forgets everything"""
        registry = ComponentRegistry()
        registry.register("x", "X")
        registry.reset()
        assert not registry.component_has("x")


class TestUsages:
    """Test usages_resolve() and global usages"""

    def test_usage_resolved(self):
        """A usage is removed from the text and recorded with its params"""
        registry = ComponentRegistry()
        registry.register("badge", "{{text}}", position="top-right")
        residual, usages = registry.usages_resolve("A<!-- @badge: text=New, position=top-left -->B", 2, 5)

        assert residual == "AB"
        assert len(usages) == 1
        assert usages[0].params == {"text": "New", "position": "top-left"}
        assert usages[0].position is AnchorPosition.TOP_LEFT
        assert (usages[0].slide_index, usages[0].total_slides) == (2, 5)

    def test_unknown_component_dropped(self):
        """An unknown usage is removed with an unresolved diagnostic"""
        diagnostics = Diagnostics()
        registry = ComponentRegistry(diagnostics=diagnostics)
        residual, usages = registry.usages_resolve("A<!-- @nope -->B", 0, 1)

        assert residual == "AB"
        assert usages == []
        assert len(diagnostics.of_kind("unresolved")) == 1

    def test_global_usage_rendered_per_slide(self):
        """Global usages get the built-ins of the slide being visited"""
        registry = ComponentRegistry()
        registry.definitions_extract(FOOTER)
        registry.globalUsages_resolve("<!-- @footer -->")

        for index in (0, 3):
            usages = registry.usages_merge(index, 4, [])
            rendered = registry.components_render(index, 4, usages)
            assert rendered[0].html == f"Page {index + 1} / 4"
            assert rendered[0].position is AnchorPosition.BOTTOM

    def test_merge_order(self):
        """Global usages come before the slide's own"""
        registry = ComponentRegistry()
        registry.register("a", "A")
        registry.register("b", "B")
        registry.globalUsages_resolve("<!-- @a -->")
        _, slide_usages = registry.usages_resolve("<!-- @b -->", 1, 2)

        merged = registry.usages_merge(1, 2, slide_usages)
        assert [usage.name for usage in merged] == ["a", "b"]


class TestRendering:
    """Test components_render() and variable precedence"""

    def test_precedence(self):
        """Built-ins beat usage params, usage params beat globals"""
        registry = ComponentRegistry()
        registry.register("c", "{{$slideNumber}} {{title}} {{event}}")
        registry.globalVars_set({"$slideNumber": 99, "title": "global", "event": "PyCon"})
        _, usages = registry.usages_resolve("<!-- @c: title=local -->", 2, 5)

        rendered = registry.components_render(2, 5, usages)
        assert rendered[0].html == "3 local PyCon"

    def test_usage_count(self):
        """Every rendered instance bumps the usage count"""
        registry = ComponentRegistry()
        registry.register("c", "x")
        _, usages = registry.usages_resolve("<!-- @c --><!-- @c -->", 0, 1)
        registry.components_render(0, 1, usages)

        assert registry.components_get()["c"].usage_count == 2

    def test_render_fn(self):
        """render_fn post-processes the expanded text"""
        registry = ComponentRegistry()
        registry.register("c", "x")
        _, usages = registry.usages_resolve("<!-- @c -->", 0, 1)

        rendered = registry.components_render(0, 1, usages, render_fn=str.upper)
        assert rendered[0].html == "X"

    def test_global_var_set(self):
        """globalVar_set() adds one variable"""
        registry = ComponentRegistry()
        registry.register("c", "{{who}}")
        registry.globalVar_set("who", "me")
        _, usages = registry.usages_resolve("<!-- @c -->", 0, 1)

        assert registry.components_render(0, 1, usages)[0].html == "me"

    def test_unknown_variable_reported(self):
        """An unknown template variable stays literal and is reported as unresolved"""
        diagnostics = Diagnostics()
        registry = ComponentRegistry(diagnostics=diagnostics)
        registry.register("c", "{{missing}}")
        _, usages = registry.usages_resolve("<!-- @c -->", 3, 5)

        assert registry.components_render(3, 5, usages)[0].html == "{{missing}}"
        unresolved = diagnostics.of_kind("unresolved")
        assert len(unresolved) == 1
        assert "missing" in unresolved[0].message
        assert "component 'c'" in unresolved[0].message
        assert unresolved[0].slide_index == 3

    def test_position_style(self):
        """Anchors map to fixed inline placement"""
        assert positionStyle_get(AnchorPosition.BOTTOM_RIGHT) == "bottom: 40px; right: 20px"
