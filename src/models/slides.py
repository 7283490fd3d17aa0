"""
Slide models

Per-slide metadata gathered from slide directives, and the built slide
records the compiler hands to external collaborators.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .components import ComponentUsage
from .disclosure import ContentChunk


@dataclass
class TransitionConfig:
    """Slide transition from <!-- transition: type, duration=N, easing=E -->"""
    type: str
    duration_ms: int
    easing: str


@dataclass
class SlideStyle:
    """
    Theme and style overrides for one slide

    Attributes:
        theme: Theme name from <!-- theme: name -->
        styles: global-style values overlaid with the slide's own style values
    """
    theme: str
    styles: Dict[str, str] = field(default_factory=dict)


@dataclass
class LayoutSpec:
    """Layout from <!-- layout: type, params -->"""
    type: str
    params: Dict[str, str] = field(default_factory=dict)


@dataclass
class LayoutCell:
    """
    One region of a split layout

    Attributes:
        text: Cell source with local alignment directives removed
        halign: Local horizontal alignment, if declared
        valign: Local vertical alignment, if declared
        row: Row of the cell (grid and rows layouts)
        column: Column of the cell (grid and cols layouts)
    """
    text: str
    halign: Optional[str] = None
    valign: Optional[str] = None
    row: int = 0
    column: int = 0


@dataclass
class SlideBlock:
    """
    A fully built slide

    Attributes:
        index: 0-based slide index
        layout: Layout type and parameters
        cells: Layout cells in document order
        chunks: Content chunks across all cells, in document order
        transition: Transition configuration
        style: Theme and style overrides
        usages: Component usages declared on this slide
    """
    index: int
    layout: LayoutSpec
    cells: List[LayoutCell]
    chunks: List[ContentChunk]
    transition: TransitionConfig
    style: SlideStyle
    usages: List[ComponentUsage] = field(default_factory=list)
