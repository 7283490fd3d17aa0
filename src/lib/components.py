"""
Component registry

Reusable, parameterized snippets declared once and placed on slides:

    <!-- define: footer, position=bottom -->
    Page {{$slideNumber}} / {{$totalSlides}}
    <!-- enddefine -->

    <!-- @footer -->
    <!-- @badge: text=New, position=top-left -->

The registry owns a RegistryState that is rebuilt wholesale on every build.
Usages are resolved (looked up, positioned) when a slide is built and
expanded through the template interpreter only when a slide is rendered.

Variable precedence at render time, highest first:
    built-ins ($slideIndex, $slideNumber, $totalSlides)
    per-usage parameters
    global variables
"""

import re
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from ..config import appsettings
from ..models.components import (
    AnchorPosition,
    ComponentDefinition,
    ComponentUsage,
    RegistryState,
    RenderedComponent,
)
from .diagnostics import Diagnostics
from .directives import DirectiveRegistry
from .log import LOG
from .params import params_parse
from .scanner import scan
from .template import TemplateInterpreter


# Fixed CSS placement per anchor
POSITION_STYLES: Dict[AnchorPosition, Dict[str, str]] = {
    AnchorPosition.TOP_LEFT: {"top": "20px", "left": "20px"},
    AnchorPosition.TOP: {"top": "20px", "left": "50%", "transform": "translateX(-50%)"},
    AnchorPosition.TOP_RIGHT: {"top": "20px", "right": "20px"},
    AnchorPosition.LEFT: {"top": "50%", "left": "20px", "transform": "translateY(-50%)"},
    AnchorPosition.CENTER: {"top": "50%", "left": "50%", "transform": "translate(-50%, -50%)"},
    AnchorPosition.RIGHT: {"top": "50%", "right": "20px", "transform": "translateY(-50%)"},
    AnchorPosition.BOTTOM_LEFT: {"bottom": "40px", "left": "20px"},
    AnchorPosition.BOTTOM: {"bottom": "40px", "left": "50%", "transform": "translateX(-50%)"},
    AnchorPosition.BOTTOM_RIGHT: {"bottom": "40px", "right": "20px"},
}

ENDDEFINE_TAIL = re.compile(r"<!--\s*enddefine\s*-->\Z")


def positionStyle_get(position: AnchorPosition) -> str:
    """Inline CSS for an anchor (e.g. "bottom: 40px; right: 20px")"""
    return "; ".join(f"{key}: {value}" for key, value in POSITION_STYLES[position].items())


class ComponentRegistry:
    """
    Store of component definitions and global variables for one build
    """

    def __init__(
        self,
        registry: Optional[DirectiveRegistry] = None,
        diagnostics: Optional[Diagnostics] = None,
    ) -> None:
        """
        Args:
            registry: Directive grammars (a fresh DirectiveRegistry when None)
            diagnostics: Side channel for unresolved names and stray markers
        """
        self.directives = registry or DirectiveRegistry()
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.interpreter = TemplateInterpreter(self.diagnostics)
        self.state = RegistryState()

    def reset(self) -> None:
        """Discard every definition, global variable and global usage"""
        self.state = RegistryState()

    def position_resolve(
        self, value: Optional[str], fallback: AnchorPosition, slide_index: Optional[int] = None
    ) -> AnchorPosition:
        """Anchor named by value; unknown names fall back to bottom-right"""
        if value is None:
            return fallback
        position = AnchorPosition.resolve(value)
        if position is None:
            self.diagnostics.report(
                "unresolved", f"Unknown anchor position '{value}', using bottom-right", slide_index
            )
            return AnchorPosition.BOTTOM_RIGHT
        return position

    def register(self, name: str, template: str, position: str = "bottom-right") -> ComponentDefinition:
        """
        Define a component programmatically.

        Args:
            name: Component name (replaces any existing definition)
            template: Template text
            position: Default anchor name

        Returns:
            The new ComponentDefinition
        """
        definition = ComponentDefinition(
            name=name,
            template=template,
            position=self.position_resolve(position, AnchorPosition.BOTTOM_RIGHT),
        )
        self.state.definitions[name] = definition
        return definition

    def definitions_extract(self, text: str, slide_index: Optional[int] = None) -> str:
        """
        Register every define block in text and remove the blocks.

        Later definitions replace earlier ones of the same name. A stray
        enddefine is removed; an unterminated define runs to the next define
        or the end of the text.

        Args:
            text: Region to scan (normally the definitions region)
            slide_index: Slide the region belongs to, for diagnostics

        Returns:
            Text with every define block removed
        """
        result = scan(
            text,
            [self.directives.grammar_get("define"), self.directives.grammar_get("enddefine")],
        )
        default_position = self.position_resolve(
            appsettings.default_position, AnchorPosition.BOTTOM_RIGHT, slide_index
        )

        for directive in result.directives:
            if directive.body is None:
                self.diagnostics.report("structural", "enddefine without define, removed", slide_index)
                continue

            span = result.source[directive.span_start:directive.span_end]
            if not ENDDEFINE_TAIL.search(span):
                self.diagnostics.report(
                    "structural", f"define '{directive.name}' not closed, auto-closed", slide_index
                )

            params = params_parse(directive.raw_params)
            if directive.name in self.state.definitions:
                LOG(f"Component '{directive.name}' redefined", level=3)
            self.state.definitions[directive.name] = ComponentDefinition(
                name=directive.name,
                template=directive.body.strip(),
                position=self.position_resolve(params.get("position"), default_position, slide_index),
            )
            LOG(
                f"Registered component: {directive.name} "
                f"({self.state.definitions[directive.name].position.value})",
                level=2,
            )

        return result.text

    def usages_resolve(
        self, text: str, slide_index: int, total_slides: int
    ) -> Tuple[str, List[ComponentUsage]]:
        """
        Extract usage markers from a slide.

        Unknown component names are dropped with a diagnostic. Templates are
        not expanded here.

        Args:
            text: Slide source
            slide_index: 0-based slide index
            total_slides: Number of slides in the deck

        Returns:
            (text without usage markers, resolved usages in document order)
        """
        result = scan(text, self.directives.grammar_get("usage"))
        usages: List[ComponentUsage] = []

        for directive in result.directives:
            definition = self.state.definitions.get(directive.name)
            if definition is None:
                self.diagnostics.report(
                    "unresolved", f"Unknown component '{directive.name}', usage removed", slide_index
                )
                continue
            params = params_parse(directive.raw_params)
            usages.append(ComponentUsage(
                name=directive.name,
                params=params,
                position=self.position_resolve(params.get("position"), definition.position, slide_index),
                slide_index=slide_index,
                total_slides=total_slides,
            ))

        return result.text, usages

    def globalUsages_resolve(self, text: str) -> str:
        """
        Record the usages found in the definitions region.

        They are rendered on every slide with that slide's built-ins.

        Returns:
            Text without usage markers
        """
        residual, usages = self.usages_resolve(text, 0, 0)
        self.state.global_usages = usages
        return residual

    def usages_merge(
        self, slide_index: int, total_slides: int, slide_usages: List[ComponentUsage]
    ) -> List[ComponentUsage]:
        """Global usages bound to this slide, followed by the slide's own usages"""
        visited = [usage.visit(slide_index, total_slides) for usage in self.state.global_usages]
        return visited + list(slide_usages)

    def variables_build(
        self, slide_index: int, total_slides: int, params: Mapping[str, str]
    ) -> Dict[str, Any]:
        """Render context for one usage: globals < params < built-ins"""
        variables: Dict[str, Any] = dict(self.state.global_vars)
        variables.update(params)
        variables.update({
            "$slideIndex": slide_index,
            "$slideNumber": slide_index + 1,
            "$totalSlides": total_slides,
        })
        return variables

    def components_render(
        self,
        slide_index: int,
        total_slides: int,
        usages: List[ComponentUsage],
        render_fn: Optional[Callable[[str], str]] = None,
    ) -> List[RenderedComponent]:
        """
        Expand usages for one slide visit.

        Args:
            slide_index: Slide being shown
            total_slides: Number of slides
            usages: Usages to render, in order
            render_fn: Optional post-processing of the expanded text (markup rendering)

        Returns:
            One RenderedComponent per usage whose component still exists
        """
        rendered: List[RenderedComponent] = []
        for usage in usages:
            definition = self.state.definitions.get(usage.name)
            if definition is None:
                self.diagnostics.report(
                    "unresolved", f"Unknown component '{usage.name}' at render time", slide_index
                )
                continue

            variables = self.variables_build(slide_index, total_slides, usage.params)
            html = self.interpreter.expand(
                definition.template, variables, source=f"component '{usage.name}'", slide_index=slide_index
            )
            if render_fn is not None:
                html = render_fn(html)

            definition.usage_count += 1
            rendered.append(RenderedComponent(name=usage.name, position=usage.position, html=html))
        return rendered

    def globalVar_set(self, name: str, value: Any) -> None:
        self.state.global_vars[name] = value

    def globalVars_set(self, variables: Mapping[str, Any]) -> None:
        self.state.global_vars.update(variables)

    def components_get(self) -> Dict[str, ComponentDefinition]:
        """Shallow copy of the definitions by name"""
        return dict(self.state.definitions)

    def component_has(self, name: str) -> bool:
        return name in self.state.definitions
