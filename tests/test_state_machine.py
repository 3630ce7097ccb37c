import pytest

from core.state_machine import (
    COVER_LETTER_TRANSITIONS,
    RESUME_TRANSITIONS,
    InvalidTransition,
    Stage,
    StageMachine,
)


def test_resume_happy_path() -> None:
    sm = StageMachine(RESUME_TRANSITIONS)
    for stage in (Stage.VALIDATING, Stage.EXTRACTING, Stage.GENERATING, Stage.FINALIZING, Stage.COMPLETE):
        sm.advance(stage)
    assert sm.is_terminal
    assert sm.history[0] is Stage.IDLE
    assert sm.history[-1] is Stage.COMPLETE


def test_cover_letter_skips_extraction() -> None:
    sm = StageMachine(COVER_LETTER_TRANSITIONS)
    sm.advance(Stage.VALIDATING)
    assert not sm.can_advance(Stage.EXTRACTING)
    sm.advance(Stage.GENERATING)


def test_cover_letter_can_regenerate_from_finalizing() -> None:
    sm = StageMachine(COVER_LETTER_TRANSITIONS)
    for stage in (Stage.VALIDATING, Stage.GENERATING, Stage.FINALIZING, Stage.GENERATING, Stage.FINALIZING):
        sm.advance(stage)
    sm.advance(Stage.COMPLETE)
    assert sm.state is Stage.COMPLETE


def test_resume_cannot_regenerate() -> None:
    sm = StageMachine(RESUME_TRANSITIONS)
    for stage in (Stage.VALIDATING, Stage.EXTRACTING, Stage.GENERATING, Stage.FINALIZING):
        sm.advance(stage)
    with pytest.raises(InvalidTransition):
        sm.advance(Stage.GENERATING)


@pytest.mark.parametrize("stage", [Stage.IDLE, Stage.VALIDATING, Stage.GENERATING])
def test_any_non_terminal_stage_can_fail(stage: Stage) -> None:
    sm = StageMachine(COVER_LETTER_TRANSITIONS, state=stage)
    sm.fail()
    assert sm.state is Stage.ERROR


def test_terminal_stages_are_final() -> None:
    sm = StageMachine(RESUME_TRANSITIONS)
    sm.fail()
    with pytest.raises(InvalidTransition):
        sm.fail()
    with pytest.raises(InvalidTransition):
        sm.advance(Stage.VALIDATING)
