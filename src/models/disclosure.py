"""
Progressive-disclosure models

A slide is an ordered list of content chunks; each chunk may hold an
ordered list of highlight spans. Navigation walks "micro-steps":

    chunk1, chunk1-hl1, chunk1-hl2, chunk2, chunk2-hl1, ...
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class ContentChunk:
    """
    One step of a slide

    Attributes:
        raw_text: Chunk source text (step markers removed)
        effect: Reveal effect ("none" for a slide's opening chunk)
        duration_ms: Reveal duration (0 for a slide's opening chunk)
        highlight_count: Number of highlight spans marked in the chunk
        html: Rendered markup, filled in by the compiler
        cell: Index of the layout cell the chunk belongs to
    """
    raw_text: str
    effect: str = "none"
    duration_ms: int = 0
    highlight_count: int = 0
    html: str = ""
    cell: int = 0


@dataclass
class SlideDisclosureState:
    """
    Cursor over one slide's micro-steps

    Invariants:
        1 <= current_chunk <= total_chunks
        0 <= current_highlight <= highlights_per_chunk[current_chunk - 1]
        current_micro_step is the 1-based rank of
        (current_chunk, current_highlight) in the canonical ordering

    Attributes:
        highlights_per_chunk: Highlight count per chunk, in chunk order
        effects: Reveal effect per chunk
        durations: Reveal duration per chunk
        current_chunk: Last revealed chunk (1-based)
        current_highlight: Active highlight in that chunk (0 = none)
        current_micro_step: Rank of the cursor (1-based)
        visible: Visibility flag per chunk
        active_highlight: (chunk, highlight) pair currently focused, or None
        revealed_all: True from slide_revealAll() until the cursor next moves
    """
    highlights_per_chunk: List[int]
    effects: List[str] = field(default_factory=list)
    durations: List[int] = field(default_factory=list)
    current_chunk: int = 1
    current_highlight: int = 0
    current_micro_step: int = 1
    visible: List[bool] = field(default_factory=list)
    active_highlight: Optional[tuple] = None
    revealed_all: bool = False

    @property
    def total_chunks(self) -> int:
        return len(self.highlights_per_chunk)

    @property
    def total_micro_steps(self) -> int:
        return sum(1 + count for count in self.highlights_per_chunk)


@dataclass(frozen=True)
class StepProgress:
    """Read-only snapshot of a slide's cursor"""
    chunk: int
    total_chunks: int
    highlight: int
    total_highlights: int
    micro_step: int
    total_micro_steps: int


@dataclass(frozen=True)
class DisclosureEvent:
    """
    Notification sent to observers after a state change

    Kinds: "chunk-reveal", "chunk-hide", "highlight-activate",
    "highlight-clear", "reset", "reveal-all".
    """
    kind: str
    slide_index: int
    chunk: int
    highlight: int = 0
    effect: str = "none"
    duration_ms: int = 0
    switching: bool = False
