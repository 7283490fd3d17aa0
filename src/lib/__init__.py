"""
matcha library: scanner, registries, disclosure state machine, renderers
and the compiler that ties them together.
"""

from .compiler import Compiler, Deck
from .components import ComponentRegistry
from .diagnostics import Diagnostics, MatchaInvariantError
from .directives import DirectiveRegistry
from .disclosure import DisclosureStateMachine
from .log import LOG, state_connectToLogger
from .params import params_parse
from .presenter import Presenter
from .scanner import scan
from .template import template_expand

__all__ = [
    "Compiler",
    "Deck",
    "ComponentRegistry",
    "Diagnostics",
    "MatchaInvariantError",
    "DirectiveRegistry",
    "DisclosureStateMachine",
    "LOG",
    "state_connectToLogger",
    "params_parse",
    "Presenter",
    "scan",
    "template_expand",
]
