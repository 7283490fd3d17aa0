"""
Verbosity-gated logging on top of Loguru.

The CLI connects its ProgramState once; from then on any library module
can call LOG() and the message is emitted only when the connected
verbosity reaches the message level. With nothing connected (library use,
tests) LOG() is silent.

    state_connectToLogger(state)
    LOG("Built 12 slides")                     # -v and up
    LOG("Slide 3: 7 micro-steps", level=2)     # -vv and up
    LOG("Scanner matched step", level=3)       # -vvv
"""

import sys
from contextvars import ContextVar
from typing import Any, Optional

from loguru import logger


_program_state: ContextVar[Optional[Any]] = ContextVar("program_state", default=None)

# Verbosity level -> loguru level name
LEVELS = {1: "INFO", 2: "DEBUG", 3: "TRACE"}

logger_format = (
    "<green>{time:HH:mm:ss}</green> │ "
    "<level>{level: <5}</level> │ "
    "<cyan>{name}:{function}</cyan> @ "
    "<cyan>{line: <4}</cyan> ║ "
    "<level>{message}</level>"
)

logger.remove()
logger.add(sys.stderr, format=logger_format, level="TRACE")


def state_connectToLogger(state: Any) -> None:
    """Make state.verbosity govern LOG() in the current context"""
    _program_state.set(state)


def verbosity_get() -> int:
    """Verbosity of the connected state, 0 when none is connected"""
    state = _program_state.get()
    return getattr(state, "verbosity", 0) if state is not None else 0


def LOG(message: str, level: int = 1, **kwargs: Any) -> None:
    """
    Emit message when the connected verbosity is at least level.

    Args:
        message: Text to log
        level: 1 normal, 2 verbose, 3 trace
        **kwargs: Passed through to loguru
    """
    if verbosity_get() < level:
        return
    logger.opt(depth=1).log(LEVELS.get(level, "TRACE"), message, **kwargs)
