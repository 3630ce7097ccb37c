from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum


class Stage(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    EXTRACTING = "extracting"
    GENERATING = "generating"
    FINALIZING = "finalizing"
    COMPLETE = "complete"
    ERROR = "error"


TERMINAL_STAGES = frozenset({Stage.COMPLETE, Stage.ERROR})

RESUME_TRANSITIONS: tuple[tuple[Stage, Stage], ...] = (
    (Stage.IDLE, Stage.VALIDATING),
    (Stage.VALIDATING, Stage.EXTRACTING),
    (Stage.EXTRACTING, Stage.GENERATING),
    (Stage.GENERATING, Stage.FINALIZING),
    (Stage.FINALIZING, Stage.COMPLETE),
)

COVER_LETTER_TRANSITIONS: tuple[tuple[Stage, Stage], ...] = (
    (Stage.IDLE, Stage.VALIDATING),
    (Stage.VALIDATING, Stage.GENERATING),
    (Stage.GENERATING, Stage.FINALIZING),
    (Stage.FINALIZING, Stage.GENERATING),
    (Stage.FINALIZING, Stage.COMPLETE),
)


class InvalidTransition(RuntimeError):
    pass


@dataclass
class StageMachine:
    """
    Minimal per-run FSM over ``Stage``.
    Not thread-safe; every non-terminal stage may fail into ERROR.
    """

    transitions: Iterable[tuple[Stage, Stage]]
    state: Stage = Stage.IDLE
    history: list[Stage] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._allowed = frozenset(self.transitions)
        self.history.append(self.state)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STAGES

    def can_advance(self, dest: Stage) -> bool:
        return (self.state, dest) in self._allowed

    def advance(self, dest: Stage) -> None:
        if not self.can_advance(dest):
            raise InvalidTransition(f"No transition from '{self.state.value}' to '{dest.value}'")
        self.state = dest
        self.history.append(dest)

    def fail(self) -> None:
        if self.is_terminal:
            raise InvalidTransition(f"Run already terminated in '{self.state.value}'")
        self.state = Stage.ERROR
        self.history.append(Stage.ERROR)
