"""
Progressive disclosure

Splits slide text into chunks at step markers, marks highlight spans inside
a chunk, and walks the resulting micro-steps:

    chunk1, chunk1-hl1, chunk1-hl2, chunk2, chunk2-hl1, ...

The effect and duration written on a step marker apply to the chunk that
follows it. A slide's first chunk is shown on entry and always carries
effect "none" with duration 0.

Example:
    >>> [c.effect for c in steps_split("a<!-- step -->b<!-- step: slide-left -->c")]
    ['none', 'fade', 'slide-left']
"""

import re
from typing import Callable, Dict, List, Optional, Tuple

from ..config import appsettings
from ..models.directives import Directive
from ..models.disclosure import (
    ContentChunk,
    DisclosureEvent,
    SlideDisclosureState,
    StepProgress,
)
from .diagnostics import Diagnostics, MatchaInvariantError
from .directives import DirectiveRegistry
from .log import LOG
from .scanner import scan


STEP_PARAMS = re.compile(r"(?:\s*:\s*(?P<effect>[\w-]+))?(?:\s*,\s*duration\s*=\s*(?P<duration>\d+))?")

# A Markdown block prefix stays outside the highlight wrapper
MARKDOWN_PREFIX = re.compile(r"^(\s*(?:#{1,6}|>|\*|\+|-|\d+\.)\s+)([\s\S]+)$")

_directives = DirectiveRegistry()


def stepParams_parse(directive: Directive) -> Tuple[str, int]:
    """
    Effect and duration carried by one step marker.

    A missing effect, or a missing or zero duration, falls back to the
    configured defaults.
    """
    match = STEP_PARAMS.fullmatch(directive.raw_params)
    effect = match.group("effect") if match else None
    duration = int(match.group("duration")) if match and match.group("duration") else 0
    return effect or appsettings.default_effect, duration or appsettings.default_duration_ms


def steps_split(text: str, opening: bool = True) -> List[ContentChunk]:
    """
    Split text into content chunks at step markers.

    Blank segments are dropped. When several markers precede a chunk the
    last one decides its effect. Markers inside code are not boundaries.

    Args:
        text: Cell or slide text
        opening: True when the first chunk opens the slide and is shown on
                 entry (effect "none"); False for a later layout cell, whose
                 first chunk is revealed with its leading marker's effect,
                 or the defaults when it has none

    Returns:
        At least one chunk; a blank text yields a single empty chunk
    """
    result = scan(text, _directives.grammar_get("step"))

    bounds = [0] + [directive.offset for directive in result.directives] + [len(result.text)]
    chunks: List[ContentChunk] = []
    pending: Optional[Tuple[str, int]] = None

    for position in range(len(bounds) - 1):
        if position > 0:
            pending = stepParams_parse(result.directives[position - 1])
        segment = result.text[bounds[position]:bounds[position + 1]]
        if not segment.strip():
            continue

        if not chunks and opening:
            chunks.append(ContentChunk(raw_text=segment))
            continue
        effect, duration = pending or (appsettings.default_effect, appsettings.default_duration_ms)
        chunks.append(ContentChunk(raw_text=segment, effect=effect, duration_ms=duration))

    if not chunks:
        if opening:
            chunks.append(ContentChunk(raw_text=""))
        else:
            effect, duration = pending or (appsettings.default_effect, appsettings.default_duration_ms)
            chunks.append(ContentChunk(raw_text="", effect=effect, duration_ms=duration))

    LOG(f"Split into {len(chunks)} chunk(s) at {len(result.directives)} step marker(s)", level=3)
    return chunks


def highlight_wrap(directive: Directive) -> str:
    """Highlight span markup for one <TEXT> marker"""
    text = directive.raw_params
    opening = f'<span class="matcha-highlight" data-highlight-index="{directive.index}">'
    prefix = MARKDOWN_PREFIX.match(text)
    if prefix:
        return f"{prefix.group(1)}{opening}{prefix.group(2)}</span>"
    return f"{opening}{text}</span>"


def highlights_mark(text: str) -> Tuple[str, int]:
    """
    Wrap every <TEXT> highlight marker of one chunk.

    Indexes are 0-based and follow document order. Code spans are left
    alone.

    Returns:
        (marked text, number of highlight spans)

    Example:
        >>> highlights_mark("Hello <World>!")
        ('Hello <span class="matcha-highlight" data-highlight-index="0">World</span>!', 1)
    """
    grammar = _directives.grammar_get("highlight").replace_with(highlight_wrap)
    result = scan(text, grammar)
    return result.text, len(result.directives)


def microStep_rank(highlights_per_chunk: List[int], chunk: int, highlight: int) -> int:
    """1-based rank of (chunk, highlight) in the canonical micro-step order"""
    return sum(1 + count for count in highlights_per_chunk[:chunk - 1]) + highlight + 1


class DisclosureStateMachine:
    """
    Cursor over micro-steps, one SlideDisclosureState per slide index

    Navigation on a slide with no recorded state is a no-op that returns
    False and records a "state" diagnostic. Observers registered with
    listener_add() receive a DisclosureEvent after every change.
    """

    def __init__(self, diagnostics: Optional[Diagnostics] = None) -> None:
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.states: Dict[int, SlideDisclosureState] = {}
        self.listeners: List[Callable[[DisclosureEvent], None]] = []

    def listener_add(self, listener: Callable[[DisclosureEvent], None]) -> None:
        self.listeners.append(listener)

    def listener_remove(self, listener: Callable[[DisclosureEvent], None]) -> None:
        if listener in self.listeners:
            self.listeners.remove(listener)

    def event_emit(self, kind: str, slide_index: int, state: SlideDisclosureState, **kwargs) -> None:
        event = DisclosureEvent(
            kind=kind,
            slide_index=slide_index,
            chunk=kwargs.pop("chunk", state.current_chunk),
            highlight=kwargs.pop("highlight", state.current_highlight),
            **kwargs,
        )
        for listener in list(self.listeners):
            listener(event)

    def slide_init(self, slide_index: int, chunks: List[ContentChunk]) -> SlideDisclosureState:
        """
        Record the chunks of a slide and place the cursor on the first micro-step.

        Args:
            slide_index: 0-based slide index
            chunks: The slide's chunks in document order

        Returns:
            The new state (replacing any previous state for the slide)

        Raises:
            MatchaInvariantError: If slide_index is negative
        """
        if slide_index < 0:
            raise MatchaInvariantError(f"Negative slide index: {slide_index}")
        if not chunks:
            chunks = [ContentChunk(raw_text="")]

        state = SlideDisclosureState(
            highlights_per_chunk=[chunk.highlight_count for chunk in chunks],
            effects=[chunk.effect for chunk in chunks],
            durations=[chunk.duration_ms for chunk in chunks],
            visible=[index == 0 for index in range(len(chunks))],
        )
        self.states[slide_index] = state
        LOG(
            f"Slide {slide_index}: {state.total_chunks} chunk(s), "
            f"{state.total_micro_steps} micro-step(s)",
            level=3,
        )
        return state

    def states_clear(self) -> None:
        """Forget every slide (called before a full rebuild)"""
        self.states.clear()

    def state_get(self, slide_index: int) -> Optional[SlideDisclosureState]:
        return self.states.get(slide_index)

    def state_require(self, slide_index: int, operation: str) -> Optional[SlideDisclosureState]:
        state = self.states.get(slide_index)
        if state is None:
            self.diagnostics.report("state", f"{operation} on slide without state, ignored", slide_index)
        return state

    def microStep_sync(self, state: SlideDisclosureState) -> None:
        """Recompute the micro-step from the (chunk, highlight) cursor; ends reveal-all"""
        state.current_micro_step = microStep_rank(
            state.highlights_per_chunk, state.current_chunk, state.current_highlight
        )
        state.revealed_all = False

    def invariants_check(self, state: SlideDisclosureState) -> None:
        """Raise MatchaInvariantError when the cursor is out of bounds or out of rank"""
        if not 1 <= state.current_chunk <= state.total_chunks:
            raise MatchaInvariantError(f"Chunk cursor {state.current_chunk} outside 1..{state.total_chunks}")
        limit = state.highlights_per_chunk[state.current_chunk - 1]
        if not 0 <= state.current_highlight <= limit:
            raise MatchaInvariantError(f"Highlight cursor {state.current_highlight} outside 0..{limit}")
        rank = microStep_rank(state.highlights_per_chunk, state.current_chunk, state.current_highlight)
        if state.current_micro_step != rank:
            raise MatchaInvariantError(f"Micro-step {state.current_micro_step} does not match rank {rank}")

    def advance(self, slide_index: int) -> bool:
        """
        Move one micro-step forward.

        Activates the next highlight of the current chunk, or reveals the
        next chunk once every highlight has been shown.

        Returns:
            True when the cursor moved, False at the last micro-step
        """
        state = self.state_require(slide_index, "advance")
        if state is None:
            return False

        if state.current_highlight < state.highlights_per_chunk[state.current_chunk - 1]:
            switching = state.current_highlight > 0
            state.current_highlight += 1
            self.microStep_sync(state)
            state.active_highlight = (state.current_chunk, state.current_highlight)
            self.invariants_check(state)
            self.event_emit("highlight-activate", slide_index, state, switching=switching)
            return True

        if state.current_chunk >= state.total_chunks:
            LOG(f"Slide {slide_index}: no more steps", level=3)
            return False

        if state.active_highlight is not None:
            state.active_highlight = None
            self.event_emit("highlight-clear", slide_index, state)
        state.current_chunk += 1
        state.current_highlight = 0
        self.microStep_sync(state)
        state.visible[state.current_chunk - 1] = True
        self.invariants_check(state)
        self.event_emit(
            "chunk-reveal",
            slide_index,
            state,
            effect=state.effects[state.current_chunk - 1],
            duration_ms=state.durations[state.current_chunk - 1],
        )
        return True

    def retreat(self, slide_index: int) -> bool:
        """
        Move one micro-step backward; the exact inverse of advance().

        Retreating into the previous chunk restores it fully highlighted.

        Returns:
            True when the cursor moved, False at the first micro-step
        """
        state = self.state_require(slide_index, "retreat")
        if state is None:
            return False

        if state.current_highlight > 0:
            state.current_highlight -= 1
            self.microStep_sync(state)
            if state.current_highlight > 0:
                state.active_highlight = (state.current_chunk, state.current_highlight)
                self.invariants_check(state)
                self.event_emit("highlight-activate", slide_index, state, switching=True)
            else:
                state.active_highlight = None
                self.invariants_check(state)
                self.event_emit("highlight-clear", slide_index, state)
            return True

        if state.current_chunk <= 1:
            return False

        hidden = state.current_chunk
        state.visible[hidden - 1] = False
        state.current_chunk -= 1
        state.current_highlight = state.highlights_per_chunk[state.current_chunk - 1]
        self.microStep_sync(state)
        state.active_highlight = None
        self.event_emit("chunk-hide", slide_index, state, chunk=hidden, highlight=0)

        if state.current_highlight > 0:
            state.active_highlight = (state.current_chunk, state.current_highlight)
            self.event_emit("highlight-activate", slide_index, state)
        self.invariants_check(state)
        return True

    def slide_reset(self, slide_index: int) -> bool:
        """First chunk visible, everything else hidden, no highlight active"""
        state = self.state_require(slide_index, "reset")
        if state is None:
            return False

        state.current_chunk = 1
        state.current_highlight = 0
        state.current_micro_step = 1
        state.visible = [index == 0 for index in range(state.total_chunks)]
        state.active_highlight = None
        state.revealed_all = False
        self.invariants_check(state)
        self.event_emit("reset", slide_index, state)
        return True

    def slide_revealAll(self, slide_index: int) -> bool:
        """
        Every chunk visible with no highlight active, cursor on the last micro-step.

        The micro-step reads as the last one even though the last chunk's
        highlights are not active, so a retreat() from here is not the
        inverse of an advance(). This is the only state whose micro-step
        is not the rank of its (chunk, highlight) cursor; the next
        advance() or retreat() resynchronizes it.
        """
        state = self.state_require(slide_index, "reveal-all")
        if state is None:
            return False

        state.current_chunk = state.total_chunks
        state.current_highlight = 0
        state.current_micro_step = state.total_micro_steps
        state.visible = [True] * state.total_chunks
        state.active_highlight = None
        state.revealed_all = True
        self.event_emit("reveal-all", slide_index, state)
        return True

    def next_has(self, slide_index: int) -> bool:
        state = self.states.get(slide_index)
        if state is None:
            return False
        if state.current_highlight < state.highlights_per_chunk[state.current_chunk - 1]:
            return True
        return state.current_chunk < state.total_chunks

    def previous_has(self, slide_index: int) -> bool:
        state = self.states.get(slide_index)
        if state is None:
            return False
        return state.current_highlight > 0 or state.current_chunk > 1

    def progress_get(self, slide_index: int) -> StepProgress:
        """
        Snapshot of a slide's cursor.

        A slide with no recorded state reports a single empty chunk.
        """
        state = self.states.get(slide_index)
        if state is None:
            return StepProgress(
                chunk=1, total_chunks=1, highlight=0, total_highlights=0,
                micro_step=1, total_micro_steps=1,
            )
        return StepProgress(
            chunk=state.current_chunk,
            total_chunks=state.total_chunks,
            highlight=state.current_highlight,
            total_highlights=state.highlights_per_chunk[state.current_chunk - 1],
            micro_step=state.current_micro_step,
            total_micro_steps=state.total_micro_steps,
        )
