"""
Models package for matcha

Contains data structures and type definitions for the build pipeline.
"""

from .state import ProgramState, pipeline
from .directives import Directive, DirectiveCategory, DirectiveGrammar, DirectiveSpec, ScanResult
from .components import AnchorPosition, ComponentDefinition, ComponentUsage, RegistryState, RenderedComponent
from .disclosure import ContentChunk, DisclosureEvent, SlideDisclosureState, StepProgress
from .slides import LayoutCell, LayoutSpec, SlideBlock, SlideStyle, TransitionConfig

__all__ = [
    "ProgramState",
    "pipeline",
    "Directive",
    "DirectiveCategory",
    "DirectiveGrammar",
    "DirectiveSpec",
    "ScanResult",
    "AnchorPosition",
    "ComponentDefinition",
    "ComponentUsage",
    "RegistryState",
    "RenderedComponent",
    "ContentChunk",
    "DisclosureEvent",
    "SlideDisclosureState",
    "StepProgress",
    "LayoutCell",
    "LayoutSpec",
    "SlideBlock",
    "SlideStyle",
    "TransitionConfig",
]
