"""
Component models

Types owned by the component registry: definitions, usages, the per-build
registry state and rendered instances.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional


class AnchorPosition(Enum):
    """The nine fixed placements a component instance can occupy"""
    TOP_LEFT = "top-left"
    TOP = "top"
    TOP_RIGHT = "top-right"
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM = "bottom"
    BOTTOM_RIGHT = "bottom-right"

    @classmethod
    def resolve(cls, value: Optional[str]) -> Optional["AnchorPosition"]:
        """Anchor named by value, or None when value names no anchor"""
        if value is None:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


@dataclass
class ComponentDefinition:
    """
    A reusable template declared with <!-- define: name --> ... <!-- enddefine -->

    Attributes:
        name: Unique, case-sensitive component name
        template: Template text expanded at render time
        position: Default anchor for usages that do not override it
        usage_count: Number of rendered instances (diagnostic only)
    """
    name: str
    template: str
    position: AnchorPosition = AnchorPosition.BOTTOM_RIGHT
    usage_count: int = 0


@dataclass
class ComponentUsage:
    """
    One <!-- @name: params --> marker resolved against the registry

    Attributes:
        name: Component name
        params: Per-usage parameters
        position: Anchor after applying a position= override
        slide_index: Slide the usage belongs to (0 for global usages)
        total_slides: Slide count at resolution time
    """
    name: str
    params: Dict[str, str]
    position: AnchorPosition
    slide_index: int = 0
    total_slides: int = 0

    def visit(self, slide_index: int, total_slides: int) -> "ComponentUsage":
        """Copy of this usage bound to the slide being visited"""
        return ComponentUsage(
            name=self.name,
            params=dict(self.params),
            position=self.position,
            slide_index=slide_index,
            total_slides=total_slides,
        )


@dataclass
class RegistryState:
    """
    Everything the component registry owns for one build

    Rebuilt wholesale on every build; nothing outside the registry
    mutates it.

    Attributes:
        definitions: Component definitions by name (last definition wins)
        global_vars: Template variables shared by every usage
        global_usages: Usages declared in the definitions region
    """
    definitions: Dict[str, ComponentDefinition] = field(default_factory=dict)
    global_vars: Dict[str, str] = field(default_factory=dict)
    global_usages: List[ComponentUsage] = field(default_factory=list)


@dataclass
class RenderedComponent:
    """A component instance expanded for one slide visit"""
    name: str
    position: AnchorPosition
    html: str
