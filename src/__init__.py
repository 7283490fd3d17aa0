"""
matcha - Progressive-disclosure presentation compiler

Turns an annotated text deck into slides revealed chunk by chunk and
highlight by highlight.
"""

__version__ = "1.0.0"

from .lib import Compiler, Deck, Presenter, DirectiveRegistry, LOG, state_connectToLogger

__all__ = ["Compiler", "Deck", "Presenter", "DirectiveRegistry", "LOG", "state_connectToLogger", "__version__"]
