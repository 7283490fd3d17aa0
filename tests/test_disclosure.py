"""
Progressive disclosure tests

Tests step splitting, highlight marking and the micro-step state machine:
completeness, inverse symmetry, reveal-all and missing state.
"""

import pytest

from matcha.lib.diagnostics import Diagnostics, MatchaInvariantError
from matcha.lib.disclosure import DisclosureStateMachine, highlights_mark, microStep_rank, steps_split
from matcha.models.disclosure import ContentChunk


def chunks_make(highlights):
    """Chunks with the given highlight counts"""
    return [
        ContentChunk(raw_text=f"chunk {index}", highlight_count=count)
        for index, count in enumerate(highlights)
    ]


def cursor_get(machine, slide=0):
    progress = machine.progress_get(slide)
    return progress.chunk, progress.highlight


class TestStepsSplit:
    """Test steps_split()"""

    def test_three_chunks(self):
        """Each marker's effect applies to the chunk after it"""
        chunks = steps_split("a<!-- step -->b<!-- step:slide-left -->c")

        assert [chunk.raw_text for chunk in chunks] == ["a", "b", "c"]
        assert [chunk.effect for chunk in chunks] == ["none", "fade", "slide-left"]
        assert [chunk.duration_ms for chunk in chunks] == [0, 500, 500]

    def test_duration(self):
        """duration= sets the reveal duration"""
        chunks = steps_split("a<!-- step: zoom, duration=300 -->b")
        assert (chunks[1].effect, chunks[1].duration_ms) == ("zoom", 300)

    def test_blank_text(self):
        """A blank text is a single empty chunk"""
        chunks = steps_split("  \n")
        assert len(chunks) == 1
        assert chunks[0].effect == "none"

    def test_leading_marker(self):
        """A marker before any content does not create an empty chunk"""
        chunks = steps_split("<!-- step: zoom -->a")
        assert [chunk.raw_text for chunk in chunks] == ["a"]
        assert chunks[0].effect == "none"

    def test_later_cell_keeps_leading_marker(self):
        """Without opening, the first chunk takes its leading marker's effect"""
        chunks = steps_split("<!-- step: zoom, duration=900 -->a", opening=False)
        assert [chunk.raw_text for chunk in chunks] == ["a"]
        assert (chunks[0].effect, chunks[0].duration_ms) == ("zoom", 900)

    def test_later_cell_defaults(self):
        """Without opening or a marker, the first chunk uses the default effect"""
        chunks = steps_split("a", opening=False)
        assert (chunks[0].effect, chunks[0].duration_ms) == ("fade", 500)

    def test_marker_in_code(self):
        """Markers inside code are not boundaries"""
        chunks = steps_split("```\n<!-- step -->\n```")
        assert len(chunks) == 1


class TestHighlights:
    """Test highlights_mark()"""

    def test_single_highlight(self):
        """One span wrapping the marked text, index 0"""
        text, count = highlights_mark("Hello <World>!")
        assert count == 1
        assert text == 'Hello <span class="matcha-highlight" data-highlight-index="0">World</span>!'

    def test_markdown_prefix_kept_outside(self):
        """A block prefix stays outside the highlight"""
        text, _ = highlights_mark("<# Title>")
        assert text == '# <span class="matcha-highlight" data-highlight-index="0">Title</span>'

    def test_indexes_in_document_order(self):
        """Indexes follow document order"""
        text, count = highlights_mark("<a> and <b>")
        assert count == 2
        assert 'data-highlight-index="1">b<' in text

    def test_closing_tags_and_comments_ignored(self):
        """Closing tags and comments are not highlights"""
        text, count = highlights_mark("x </b> <!-- note -->")
        assert count == 0
        assert text == "x </b> <!-- note -->"

    def test_code_ignored(self):
        """Highlights are not marked inside code"""
        _, count = highlights_mark("`<x>`")
        assert count == 0


class TestStateMachine:
    """Test DisclosureStateMachine navigation"""

    def test_two_chunks_four_micro_steps(self):
        """advance() walks micro-steps 1 to 4 and then stops"""
        machine = DisclosureStateMachine()
        state = machine.slide_init(0, chunks_make([2, 0]))
        assert state.total_micro_steps == 4

        steps = [machine.progress_get(0).micro_step]
        for _ in range(3):
            assert machine.advance(0) is True
            steps.append(machine.progress_get(0).micro_step)

        assert steps == [1, 2, 3, 4]
        assert machine.advance(0) is False
        assert machine.next_has(0) is False

    @pytest.mark.parametrize("highlights", [[0], [2, 0], [1, 3, 0, 2], [0, 0, 0]])
    def test_micro_step_completeness(self, highlights):
        """Every (chunk, highlight) pair is visited once, in order"""
        machine = DisclosureStateMachine()
        state = machine.slide_init(0, chunks_make(highlights))
        machine.slide_reset(0)

        expected = [(chunk + 1, highlight) for chunk, count in enumerate(highlights) for highlight in range(count + 1)]
        visited = [cursor_get(machine)]
        for _ in range(state.total_micro_steps - 1):
            assert machine.advance(0) is True
            visited.append(cursor_get(machine))

        assert visited == expected
        assert [microStep_rank(highlights, *pair) for pair in visited] == list(range(1, len(expected) + 1))
        assert machine.advance(0) is False

    @pytest.mark.parametrize("highlights", [[2, 0], [1, 3, 0, 2]])
    def test_retreat_inverts_advance(self, highlights):
        """retreat() right after advance() returns to the previous pair"""
        machine = DisclosureStateMachine()
        machine.slide_init(0, chunks_make(highlights))

        while True:
            before = cursor_get(machine)
            if not machine.advance(0):
                break
            after = cursor_get(machine)
            assert machine.retreat(0) is True
            assert cursor_get(machine) == before
            machine.advance(0)
            assert cursor_get(machine) == after

    def test_retreat_into_chunk_restores_highlights(self):
        """Retreating into a chunk leaves its last highlight active"""
        machine = DisclosureStateMachine()
        machine.slide_init(0, chunks_make([2, 0]))
        for _ in range(3):
            machine.advance(0)

        machine.retreat(0)
        state = machine.state_get(0)
        assert (state.current_chunk, state.current_highlight) == (1, 2)
        assert state.active_highlight == (1, 2)
        assert state.visible == [True, False]

    def test_retreat_at_start(self):
        """retreat() on the first micro-step is a no-op"""
        machine = DisclosureStateMachine()
        machine.slide_init(0, chunks_make([1]))
        assert machine.retreat(0) is False
        assert machine.previous_has(0) is False

    def test_reveal_all(self):
        """reveal-all shows every chunk with no highlight active"""
        machine = DisclosureStateMachine()
        machine.slide_init(0, chunks_make([1, 2]))
        machine.slide_revealAll(0)

        state = machine.state_get(0)
        assert state.visible == [True, True]
        assert (state.current_chunk, state.current_highlight) == (2, 0)
        assert state.active_highlight is None
        assert state.current_micro_step == state.total_micro_steps == 5

    def test_retreat_after_reveal_all(self):
        """From reveal-all, retreat() hides the last chunk"""
        machine = DisclosureStateMachine()
        machine.slide_init(0, chunks_make([1, 2]))
        machine.slide_revealAll(0)

        assert machine.retreat(0) is True
        assert cursor_get(machine) == (1, 1)
        assert machine.progress_get(0).micro_step == 2

    def test_reveal_all_flag(self):
        """The reveal-all flag holds until the cursor moves"""
        machine = DisclosureStateMachine()
        machine.slide_init(0, chunks_make([1, 2]))
        machine.slide_revealAll(0)
        assert machine.state_get(0).revealed_all

        machine.retreat(0)
        assert not machine.state_get(0).revealed_all

        machine.slide_revealAll(0)
        machine.slide_reset(0)
        assert not machine.state_get(0).revealed_all

    def test_reset(self):
        """slide_reset() returns to the first micro-step"""
        machine = DisclosureStateMachine()
        machine.slide_init(0, chunks_make([1, 1]))
        machine.slide_revealAll(0)
        machine.slide_reset(0)

        state = machine.state_get(0)
        assert state.visible == [True, False]
        assert state.current_micro_step == 1


class TestStateMachineEdges:
    """Test missing state, invariants and events"""

    def test_missing_state_is_noop(self):
        """Navigation on an unknown slide returns False with a diagnostic"""
        diagnostics = Diagnostics()
        machine = DisclosureStateMachine(diagnostics)

        assert machine.advance(7) is False
        assert machine.retreat(7) is False
        assert machine.slide_reset(7) is False
        assert len(diagnostics.of_kind("state")) == 3
        assert machine.next_has(7) is False

    def test_missing_state_progress(self):
        """Progress of an unknown slide is a single empty chunk"""
        progress = DisclosureStateMachine().progress_get(3)
        assert (progress.chunk, progress.total_chunks, progress.total_micro_steps) == (1, 1, 1)

    def test_negative_index(self):
        """A negative slide index is a programming error"""
        with pytest.raises(MatchaInvariantError):
            DisclosureStateMachine().slide_init(-1, chunks_make([0]))

    def test_events(self):
        """Listeners see highlight and chunk events with the reveal effect"""
        machine = DisclosureStateMachine()
        chunks = chunks_make([1, 0])
        chunks[1].effect = "zoom"
        chunks[1].duration_ms = 300
        machine.slide_init(0, chunks)

        events = []
        machine.listener_add(events.append)
        machine.advance(0)
        machine.advance(0)

        assert [event.kind for event in events] == ["highlight-activate", "highlight-clear", "chunk-reveal"]
        assert (events[-1].effect, events[-1].duration_ms) == ("zoom", 300)

        machine.listener_remove(events.append)
        machine.retreat(0)
        assert len(events) == 3
