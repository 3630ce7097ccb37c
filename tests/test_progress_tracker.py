import pytest

from core.progress import COVER_LETTER_STEPS, RESUME_PARSE_STEPS, ProgressTracker


def _tracker(clock, steps=RESUME_PARSE_STEPS, interval=2.0):
    return ProgressTracker(steps=steps, min_interval_s=interval, clock=clock)


def test_step_labels() -> None:
    assert len(RESUME_PARSE_STEPS) == 6
    assert RESUME_PARSE_STEPS[0] == "Extracting text from PDF"
    assert RESUME_PARSE_STEPS[-1] == "Generating search keywords"
    assert COVER_LETTER_STEPS == (
        "Analyzing job requirements",
        "Crafting personalized content",
        "Polishing final draft",
    )


def test_advance_is_unconditional_and_sequential(fake_clock) -> None:
    tracker = _tracker(fake_clock)
    first = tracker.advance()
    second = tracker.advance()
    assert (first.step_index, second.step_index) == (0, 1)
    assert first.total_steps == second.total_steps == 6
    assert second.step == "Analyzing document structure"


def test_tick_respects_minimum_interval(fake_clock) -> None:
    tracker = _tracker(fake_clock)
    tracker.advance()
    tracker.advance()

    fake_clock.advance(1.999)
    assert tracker.tick() is None
    fake_clock.advance(0.001)
    event = tracker.tick()
    assert event is not None and event.step_index == 2

    # Rapid activity right after an emission is absorbed, not queued.
    for _ in range(50):
        fake_clock.advance(0.01)
        assert tracker.tick() is None
    assert tracker.next_index == 3


def test_burst_across_window_edge_emits_once(fake_clock) -> None:
    tracker = _tracker(fake_clock)
    tracker.advance()
    tracker.advance()

    # 100 callbacks over 500 ms, from 1.75 s to 2.25 s after the last emission.
    fake_clock.advance(1.75)
    emitted = []
    for _ in range(100):
        fake_clock.advance(0.005)
        event = tracker.tick()
        if event is not None:
            emitted.append(event)

    assert [e.step_index for e in emitted] == [2]
    assert tracker.next_index == 3


def test_first_tick_without_prior_emission_only_opens_window(fake_clock) -> None:
    tracker = _tracker(fake_clock, steps=("a", "b"))
    fake_clock.advance(10)
    assert tracker.tick() is None
    fake_clock.advance(2)
    assert tracker.tick().step == "a"


def test_nothing_after_total_steps(fake_clock) -> None:
    tracker = _tracker(fake_clock, steps=("only",))
    assert tracker.advance().step_index == 0
    assert tracker.exhausted
    assert tracker.advance() is None
    fake_clock.advance(100)
    assert tracker.tick() is None
    assert tracker.flush() == []


def test_flush_emits_remaining_in_order(fake_clock) -> None:
    tracker = _tracker(fake_clock)
    tracker.advance()
    tracker.advance()
    flushed = tracker.flush()
    assert [e.step_index for e in flushed] == [2, 3, 4, 5]
    assert [e.step for e in flushed] == list(RESUME_PARSE_STEPS[2:])
    assert tracker.exhausted


def test_zero_interval_emits_on_every_tick(fake_clock) -> None:
    tracker = _tracker(fake_clock, interval=0.0)
    tracker.advance()
    assert tracker.tick().step_index == 1
    assert tracker.tick().step_index == 2


def test_empty_steps_rejected(fake_clock) -> None:
    with pytest.raises(ValueError):
        ProgressTracker(steps=(), clock=fake_clock)
