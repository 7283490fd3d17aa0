"""
Presenter

Navigation across the slides of a built deck. Within a slide, next() and
prev() walk micro-steps; at a slide boundary they move to the adjacent
slide. Entering a slide forward starts it from its first micro-step;
entering it backward shows it whole.
"""

from typing import Any, List, Mapping, Optional, Tuple

from ..models.components import RenderedComponent
from ..models.disclosure import StepProgress
from .compiler import Compiler, Deck
from .disclosure import DisclosureStateMachine
from .log import LOG


class Presenter:
    """
    Owns one build and the disclosure state of its slides

    Args:
        source: Deck source text
        vars: Global template variables

    Attributes:
        current: Index of the slide on screen
        rendered: Components rendered for the current slide visit
    """

    def __init__(self, source: str, vars: Optional[Mapping[str, Any]] = None) -> None:
        self.source = source
        self.vars = dict(vars or {})
        self.machine = DisclosureStateMachine()
        self.compiler: Compiler = Compiler(source, self.vars)
        self.deck: Deck = self.deck_build()
        self.current = 0
        self.rendered: List[RenderedComponent] = []
        if self.deck.total_slides:
            self.goto(0)

    def deck_build(self) -> Deck:
        """Build the source and record fresh disclosure state for every slide"""
        self.compiler = Compiler(self.source, self.vars)
        deck = self.compiler.build()
        self.machine.diagnostics = deck.diagnostics
        self.machine.states_clear()
        for slide in deck.slides:
            self.machine.slide_init(slide.index, slide.chunks)
        return deck

    def goto(self, index: int, direction: str = "forward") -> bool:
        """
        Show slide index.

        Args:
            index: 0-based slide index
            direction: "forward" starts the slide from its first micro-step,
                       "backward" reveals it whole

        Returns:
            False (and no change) when index is out of range
        """
        if not 0 <= index < self.deck.total_slides:
            return False

        self.current = index
        if direction == "backward":
            self.machine.slide_revealAll(index)
        else:
            self.machine.slide_reset(index)

        slide = self.deck.slides[index]
        self.rendered = self.compiler.slideComponents_render(slide, self.deck.total_slides)
        LOG(f"Slide {index + 1}/{self.deck.total_slides} ({direction})", level=2)
        return True

    def next(self) -> bool:
        """Next micro-step, else the first micro-step of the next slide"""
        if self.machine.next_has(self.current):
            return self.machine.advance(self.current)
        return self.goto(self.current + 1, "forward")

    def prev(self) -> bool:
        """Previous micro-step, else the previous slide shown whole"""
        if self.machine.previous_has(self.current):
            return self.machine.retreat(self.current)
        return self.goto(self.current - 1, "backward")

    def first(self) -> bool:
        return self.goto(0)

    def last(self) -> bool:
        return self.goto(self.deck.total_slides - 1)

    def rebuild(self, source: Optional[str] = None) -> bool:
        """
        Rebuild everything and come back to the same place.

        The active slide and micro-step are restored when they still
        exist; otherwise the slide index is clamped to the last slide and
        the micro-step to that slide's last one.

        Args:
            source: New source text (the current source when None)

        Returns:
            True when the previous position was restored exactly
        """
        if source is not None:
            self.source = source
        slide_index, progress = self.position_get()
        previous = self.machine.state_get(slide_index)
        revealed_all = previous is not None and previous.revealed_all

        self.deck = self.deck_build()
        if not self.deck.total_slides:
            self.current = 0
            self.rendered = []
            return False

        target = min(slide_index, self.deck.total_slides - 1)
        if revealed_all:
            # Entered backward: show it whole again rather than replaying
            self.goto(target, "backward")
            restored = target == slide_index
            LOG(f"Rebuilt at slide {target}, revealed (restored: {restored})", level=2)
            return restored

        self.goto(target)
        state = self.machine.state_get(target)
        micro_step = min(progress.micro_step, state.total_micro_steps)
        while self.machine.progress_get(target).micro_step < micro_step:
            if not self.machine.advance(target):
                break

        now = self.machine.progress_get(target)
        restored = (
            target == slide_index
            and now.micro_step == progress.micro_step
            and (now.chunk, now.highlight) == (progress.chunk, progress.highlight)
        )
        LOG(f"Rebuilt at slide {target}, micro-step {now.micro_step} (restored: {restored})", level=2)
        return restored

    def position_get(self) -> Tuple[int, StepProgress]:
        """(current slide index, progress within it)"""
        return self.current, self.machine.progress_get(self.current)
