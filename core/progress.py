"""Step accounting and minimum-interval throttling for one pipeline run."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
import time

from core.events import ProgressUpdate

RESUME_PARSE_STEPS: tuple[str, ...] = (
    "Extracting text from PDF",
    "Analyzing document structure",
    "Identifying skills & technologies",
    "Parsing work experience",
    "Extracting education",
    "Generating search keywords",
)

COVER_LETTER_STEPS: tuple[str, ...] = (
    "Analyzing job requirements",
    "Crafting personalized content",
    "Polishing final draft",
)


@dataclass(slots=True)
class ProgressTracker:
    """Hands out ``ProgressUpdate`` values for a fixed list of step labels.

    ``step_index`` starts at 0, grows by one per event and stops at
    ``total_steps``. ``tick`` is the throttled path used for generation
    activity callbacks: it yields an event only when ``min_interval_s`` has
    passed since the previous one, and absorbs everything else.
    """

    steps: Sequence[str]
    min_interval_s: float = 2.0
    clock: Callable[[], float] = time.monotonic
    _next_index: int = field(default=0, init=False)
    _last_emit: float | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        if not self.steps:
            raise ValueError("ProgressTracker needs at least one step label")

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def next_index(self) -> int:
        return self._next_index

    @property
    def exhausted(self) -> bool:
        return self._next_index >= self.total_steps

    def _take(self, now: float) -> ProgressUpdate:
        event = ProgressUpdate(
            step=self.steps[self._next_index],
            step_index=self._next_index,
            total_steps=self.total_steps,
        )
        self._next_index += 1
        self._last_emit = now
        return event

    def advance(self) -> ProgressUpdate | None:
        if self.exhausted:
            return None
        return self._take(self.clock())

    def tick(self) -> ProgressUpdate | None:
        if self.exhausted:
            return None
        now = self.clock()
        if self._last_emit is None:
            # First activity opens the window; nothing to report yet.
            self._last_emit = now
            return None
        if now - self._last_emit < self.min_interval_s:
            return None
        return self._take(now)

    def flush(self) -> list[ProgressUpdate]:
        now = self.clock()
        events: list[ProgressUpdate] = []
        while not self.exhausted:
            events.append(self._take(now))
        return events
