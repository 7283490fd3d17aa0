"""
Compiler for matcha decks

Builds a deck from source text and writes it out as static files.

Build order:
    1. split at ---global (before = definitions region, after = slides)
    2. definitions region: define blocks, global-style, global usages
    3. slides region: define blocks and global-style anywhere in it
    4. split slides at --- lines outside code
    5. per slide: usages, transition, theme/style, layout, cells
    6. per cell: TeX protection, step split
    7. per chunk: highlights, cards and media, code directives,
       line rendering, TeX restore
"""

import html
import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..models.components import ComponentDefinition, ComponentUsage, RenderedComponent
from ..models.disclosure import ContentChunk
from ..models.slides import LayoutSpec, SlideBlock
from .blocks import blocks_render
from .code import codeConfigs_extract
from .components import ComponentRegistry, positionStyle_get
from .diagnostics import Diagnostics
from .directives import DirectiveRegistry
from .disclosure import highlights_mark, steps_split
from .log import LOG
from .markdown import LineRenderer
from .params import flag_get
from .scanner import text_splitOutsideCode
from .slide import SlideDirectives, styleAttribute_build
from .tex import MathShield


GLOBAL_SEPARATOR = re.compile(r"(?m)^[ \t]*---global[ \t]*$")
SLIDE_SEPARATOR = re.compile(r"^\s*---\s*$", re.MULTILINE)

# layout type -> (container class, cell class)
CONTAINERS = {
    "cols": ("matcha-cols-container", "matcha-col"),
    "rows": ("matcha-rows-container", "matcha-row"),
    "grid": ("matcha-grid-container", "matcha-grid-cell"),
}


def source_split(source: str) -> Tuple[str, str]:
    """
    Separate the definitions region from the slides region.

    Example:
        >>> source_split("<!-- define: a -->x<!-- enddefine -->\\n---global\\n# One")
        ('<!-- define: a -->x<!-- enddefine -->\\n', '\\n# One')
        >>> source_split("# One")
        ('', '# One')
    """
    match = GLOBAL_SEPARATOR.search(source)
    if match is None:
        return "", source
    return source[:match.start()], source[match.end():]


@dataclass
class Deck:
    """
    Result of one build

    Attributes:
        slides: Built slides in document order
        definitions: Component definitions by name
        global_usages: Usages declared in the definitions region
        diagnostics: Anomalies found while building
        total_slides: Number of slides
    """
    slides: List[SlideBlock]
    definitions: Dict[str, ComponentDefinition] = field(default_factory=dict)
    global_usages: List[ComponentUsage] = field(default_factory=list)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    total_slides: int = 0


class Compiler:
    """
    Compiles matcha source to a Deck and to static output

    Every build starts from a fresh component registry, global-style map
    and diagnostics channel.

    Args:
        source: Deck source text
        vars: Global template variables
        registry: Directive grammars (a default registry when None)
    """

    def __init__(
        self,
        source: str,
        vars: Optional[Mapping[str, Any]] = None,
        registry: Optional[DirectiveRegistry] = None,
    ) -> None:
        self.source = source
        self.vars: Dict[str, Any] = dict(vars or {})
        self.directives = registry or DirectiveRegistry()
        self.diagnostics = Diagnostics()
        self.components = ComponentRegistry(self.directives, self.diagnostics)
        self.slide_directives = SlideDirectives(self.directives, self.diagnostics)
        self.deck: Optional[Deck] = None

    def build(self) -> Deck:
        """
        Run the full build.

        Returns:
            The built Deck (also kept on self.deck)
        """
        LOG("Starting build...", level=2)
        self.diagnostics = Diagnostics()
        self.components = ComponentRegistry(self.directives, self.diagnostics)
        self.components.globalVars_set(self.vars)
        self.slide_directives = SlideDirectives(self.directives, self.diagnostics)

        definitions, slides_text = source_split(self.source)
        definitions = self.components.definitions_extract(definitions)
        definitions = self.slide_directives.globalStyles_extract(definitions)
        self.components.globalUsages_resolve(definitions)

        slides_text = self.components.definitions_extract(slides_text)
        slides_text = self.slide_directives.globalStyles_extract(slides_text)

        sources = [part for part in text_splitOutsideCode(slides_text, SLIDE_SEPARATOR) if part.strip()]
        total = len(sources)
        slides = [self.slide_build(text, index, total) for index, text in enumerate(sources)]

        self.deck = Deck(
            slides=slides,
            definitions=self.components.components_get(),
            global_usages=list(self.components.state.global_usages),
            diagnostics=self.diagnostics,
            total_slides=total,
        )
        LOG(f"Built {total} slide(s), {len(self.diagnostics)} diagnostic(s)", level=1)
        return self.deck

    def slide_build(self, text: str, index: int, total: int) -> SlideBlock:
        """Build one slide from its source block"""
        text, usages = self.components.usages_resolve(text, index, total)
        text, transition = self.slide_directives.transition_extract(text, index)
        text, style = self.slide_directives.style_extract(text, index)
        text, layout = self.slide_directives.layout_extract(text, index)
        cells = self.slide_directives.cells_split(text, layout)

        chunks: List[ContentChunk] = []
        for cell_index, cell in enumerate(cells):
            shield = MathShield(self.directives)
            # Only the first cell opens with the slide; later cells are revealed
            cell_chunks = steps_split(shield.protect(cell.text), opening=not chunks)
            for chunk in cell_chunks:
                chunk.cell = cell_index
                chunk.html = self.chunk_render(chunk, shield, index)
            chunks.extend(cell_chunks)

        LOG(f"Slide {index}: {layout.type}, {len(cells)} cell(s), {len(chunks)} chunk(s)", level=2)
        return SlideBlock(
            index=index,
            layout=layout,
            cells=cells,
            chunks=chunks,
            transition=transition,
            style=style,
            usages=usages,
        )

    def chunk_render(self, chunk: ContentChunk, shield: MathShield, slide_index: int) -> str:
        """Mark highlights, then render the chunk like any other fragment"""
        text, chunk.highlight_count = highlights_mark(chunk.raw_text)
        return shield.restore(self.blocks_render(text, slide_index))

    def blocks_render(self, text: str, slide_index: Optional[int] = None) -> str:
        text = blocks_render(text, self.directives, self.diagnostics, slide_index)
        text, configs = codeConfigs_extract(text, self.directives)
        return LineRenderer(configs).render(text)

    def fragment_render(self, text: str, slide_index: Optional[int] = None) -> str:
        """
        Render expanded component text through the content pipeline.

        Expanded templates may carry cards, media, code and TeX; they do
        not carry steps or highlights.
        """
        shield = MathShield(self.directives)
        return shield.restore(self.blocks_render(shield.protect(text), slide_index))

    def slideComponents_render(self, slide: SlideBlock, total: int) -> List[RenderedComponent]:
        """Global usages bound to this slide, then the slide's own usages"""
        usages = self.components.usages_merge(slide.index, total, slide.usages)
        return self.components.components_render(
            slide.index, total, usages, render_fn=lambda text: self.fragment_render(text, slide.index)
        )

    def compile(self, output_dir: str) -> Dict[str, Any]:
        """
        Build the deck afresh and write index.html and deck.json.

        Every call starts from a new build, so usage counts and diagnostics
        describe this output only.

        Args:
            output_dir: Directory for the compiled output (created if missing)

        Returns:
            dict with compilation results and statistics
        """
        deck = self.build()
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)

        sections = [self.slideSection_build(slide, deck.total_slides) for slide in deck.slides]
        output_file = output_path / "index.html"
        output_file.write_text(self.htmlDocument_build("\n".join(sections), deck), encoding="utf-8")
        LOG(f"Wrote {output_file}", level=2)

        deck_file = output_path / "deck.json"
        deck_file.write_text(json.dumps(self.deckMetadata_build(deck), indent=2), encoding="utf-8")
        LOG(f"Wrote {deck_file}", level=2)

        return {
            "status": True,
            "output_file": str(output_file),
            "deck_file": str(deck_file),
            "slide_count": deck.total_slides,
            "diagnostics": [str(diagnostic) for diagnostic in deck.diagnostics],
        }

    def stepBlock_build(self, chunk: ContentChunk, step: int) -> str:
        visibility = "step-visible" if step == 1 else "step-hidden"
        return (
            f'<div class="matcha-step-block {visibility}" data-step="{step}" '
            f'data-effect="{html.escape(chunk.effect)}" data-highlights="{chunk.highlight_count}" '
            f'style="--step-duration: {chunk.duration_ms}ms">\n{chunk.html}\n</div>'
        )

    def slideSection_build(self, slide: SlideBlock, total: int) -> str:
        """One section element: layout container, step blocks and components"""
        blocks_by_cell: Dict[int, List[str]] = {}
        for step, chunk in enumerate(slide.chunks, start=1):
            blocks_by_cell.setdefault(chunk.cell, []).append(self.stepBlock_build(chunk, step))

        if self.layout_isSplit(slide.layout, len(slide.cells)):
            container_class, cell_class = CONTAINERS[slide.layout.type]
            cells = []
            for cell_index, cell in enumerate(slide.cells):
                classes = [cell_class]
                if cell.halign:
                    classes.append(f"local-halign-{cell.halign}")
                if cell.valign:
                    classes.append(f"local-valign-{cell.valign}")
                inner = "\n".join(blocks_by_cell.get(cell_index, []))
                cells.append(f'<div class="{html.escape(" ".join(classes))}">\n{inner}\n</div>')
            template = self.slide_directives.gridTemplate_build(slide.layout, slide.cells)
            body = f'<div class="{container_class}" style="{html.escape(template)}">\n' + "\n".join(cells) + "\n</div>"
        else:
            body = "\n".join(block for blocks in blocks_by_cell.values() for block in blocks)

        components = "\n".join(
            f'<div class="matcha-component" data-component="{html.escape(rendered.name)}" '
            f'data-position="{rendered.position.value}" style="{positionStyle_get(rendered.position)}">'
            f"{rendered.html}</div>"
            for rendered in self.slideComponents_render(slide, total)
        )

        classes = " ".join(self.slide_directives.layoutClasses_build(slide.layout))
        variables = styleAttribute_build(self.slide_directives.styleVariables_build(slide.style))
        transition = slide.transition
        return (
            f'<section class="{html.escape(classes)}" id="slide-{slide.index}" data-index="{slide.index}" '
            f'data-theme="{html.escape(slide.style.theme)}" '
            f'data-transition="{html.escape(transition.type)}" '
            f'data-transition-duration="{transition.duration_ms}" '
            f'data-transition-easing="{html.escape(transition.easing)}" '
            f'style="{html.escape(variables)}">\n'
            f"{body}\n{components}\n</section>"
        )

    def layout_isSplit(self, layout: LayoutSpec, cell_count: int) -> bool:
        """True when the slide renders inside a layout container"""
        if layout.type not in CONTAINERS:
            return False
        return layout.type == "grid" or cell_count > 1 or flag_get(layout.params, "force")

    def htmlDocument_build(self, content: str, deck: Deck) -> str:
        """
        Build the complete HTML document.

        Styling, typesetting and navigation are left to whatever loads
        the page; the document only carries structure and metadata.
        """
        return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>matcha</title>
</head>
<body>
    <div class="matcha-deck" data-total-slides="{deck.total_slides}">
{content}
    </div>
</body>
</html>"""

    def deckMetadata_build(self, deck: Deck) -> Dict[str, Any]:
        """JSON-ready description of slides, chunks and component usages"""

        def usage_describe(usage: ComponentUsage) -> Dict[str, Any]:
            return {"name": usage.name, "position": usage.position.value, "params": dict(usage.params)}

        slides = []
        for slide in deck.slides:
            slides.append({
                "index": slide.index,
                "layout": {"type": slide.layout.type, "params": dict(slide.layout.params)},
                "transition": {
                    "type": slide.transition.type,
                    "duration_ms": slide.transition.duration_ms,
                    "easing": slide.transition.easing,
                },
                "theme": slide.style.theme,
                "styles": dict(slide.style.styles),
                "chunks": [
                    {
                        "step": step,
                        "cell": chunk.cell,
                        "effect": chunk.effect,
                        "duration_ms": chunk.duration_ms,
                        "highlights": chunk.highlight_count,
                    }
                    for step, chunk in enumerate(slide.chunks, start=1)
                ],
                "usages": [usage_describe(usage) for usage in slide.usages],
            })

        return {
            "total_slides": deck.total_slides,
            "slides": slides,
            "global_usages": [usage_describe(usage) for usage in deck.global_usages],
            "components": {
                name: {"position": definition.position.value, "usage_count": definition.usage_count}
                for name, definition in deck.definitions.items()
            },
            "diagnostics": [
                {"kind": record.kind, "message": record.message, "slide_index": record.slide_index}
                for record in deck.diagnostics
            ],
        }
