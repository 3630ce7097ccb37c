"""Progress-streaming pipelines for resume parsing and cover letters.

Each ``run`` drives one request through its stages and writes events into an
``EventChannel``: zero or more ``progress`` events, then exactly one terminal
``complete`` or ``error``. Pipelines keep no state between runs; everything a
run mutates lives in ``_PipelineRun``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass, field
import logging
import time
from typing import Any, Optional, Protocol, Union
import uuid

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream

from core.errors import ExtractionError, GenerationError, InputValidationError, PipelineError
from core.events import Completion, EventChannel, Failure, ProgressEvent
from core.jobs import JobCatalog
from core.models import (
    CandidateProfile,
    CoverLetter,
    CoverLetterRequest,
    CoverLetterResult,
    Job,
    ParsedResume,
    ParseResumeResult,
)
from core.obs import Logger, NullLogger
from core.pdf_text import TextExtractor
from core.progress import COVER_LETTER_STEPS, RESUME_PARSE_STEPS, ProgressTracker
from core.quality import QualityPolicy, QualityRules, check_quality, summarize_issues
from core.settings import PipelineSettings
from core.state_machine import (
    COVER_LETTER_TRANSITIONS,
    RESUME_TRANSITIONS,
    Stage,
    StageMachine,
)

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR = "An unexpected error occurred"
TIMEOUT_ERROR = "Request timed out"
NO_TEXT_ERROR = "Could not extract text from PDF. It may be an image-based PDF."

ActivityCallback = Callable[[], None]


class ResumeParser(Protocol):
    async def parse_streaming(
        self, resume_text: str, on_activity: Optional[ActivityCallback] = None
    ) -> ParsedResume: ...


class CoverLetterWriter(Protocol):
    async def write_streaming(
        self,
        job: Job,
        profile: CandidateProfile,
        feedback: Sequence[str] = (),
        on_activity: Optional[ActivityCallback] = None,
    ) -> CoverLetter: ...


@dataclass(frozen=True, slots=True)
class ResumeUpload:
    """An uploaded file as received by the route layer."""

    filename: Optional[str]
    content_type: Optional[str]
    data: Optional[bytes]
    # Size reported by the multipart parser when the body was not read.
    declared_size: Optional[int] = None

    @property
    def size(self) -> int:
        if self.data is None:
            return self.declared_size or 0
        return len(self.data)


@dataclass(slots=True)
class _PipelineRun:
    """Per-request state: channel, step tracker and stage machine."""

    channel: EventChannel
    tracker: ProgressTracker
    machine: StageMachine
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def abandoned(self) -> bool:
        return not self.channel.connected

    def _emit(self, event: ProgressEvent) -> None:
        # Consumer gone: stop emitting, the run just finishes quietly.
        if self.abandoned:
            return
        self.channel.emit(event)

    def advance(self) -> None:
        event = self.tracker.advance()
        if event is not None:
            self._emit(event)

    def on_activity(self) -> None:
        if self.abandoned:
            return
        event = self.tracker.tick()
        if event is not None:
            self._emit(event)

    def flush(self) -> None:
        for event in self.tracker.flush():
            self._emit(event)

    def complete(self, data: Union[ParsedResume, CoverLetter], raw_text: Optional[str] = None) -> None:
        self.machine.advance(Stage.COMPLETE)
        self._emit(Completion(data=data, raw_text=raw_text))

    def fail(self, message: str) -> None:
        if self.machine.is_terminal:
            logger.warning("pipeline.fail_after_terminal run_id=%s", self.run_id)
            return
        self.machine.fail()
        self._emit(Failure(error=message))


class _StreamingPipeline:
    """Shared driver: timeout, error mapping and channel teardown."""

    event_prefix = "pipeline"
    fallback_error = UNEXPECTED_ERROR

    def __init__(
        self,
        settings: PipelineSettings,
        logger: Optional[Logger] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings
        self._logger: Logger = logger or NullLogger()
        self._clock = clock

    def _new_run(
        self,
        channel: EventChannel,
        steps: Sequence[str],
        transitions: Iterable[tuple[Stage, Stage]],
    ) -> _PipelineRun:
        return _PipelineRun(
            channel=channel,
            tracker=ProgressTracker(
                steps=steps,
                min_interval_s=self._settings.min_emit_interval_s,
                clock=self._clock,
            ),
            machine=StageMachine(transitions),
        )

    async def _drive(
        self,
        run: _PipelineRun,
        body: Callable[[_PipelineRun], Awaitable[None]],
        **fields: Any,
    ) -> None:
        started = self._clock()
        self._logger.info(f"{self.event_prefix}.start", run_id=run.run_id, **fields)
        try:
            with anyio.fail_after(self._settings.request_timeout_seconds):
                await body(run)
        except TimeoutError:
            self._logger.error(
                f"{self.event_prefix}.timeout",
                run_id=run.run_id,
                stage=run.machine.state.value,
                timeout_s=self._settings.request_timeout_seconds,
            )
            run.fail(TIMEOUT_ERROR)
        except PipelineError as exc:
            self._logger.warn(
                f"{self.event_prefix}.failed",
                run_id=run.run_id,
                stage=run.machine.state.value,
                error_type=type(exc).__name__,
                error=exc.user_message,
            )
            run.fail(exc.user_message)
        except Exception as exc:  # noqa: BLE001
            logger.exception("%s.unexpected run_id=%s", self.event_prefix, run.run_id)
            self._logger.error(
                f"{self.event_prefix}.failed",
                run_id=run.run_id,
                stage=run.machine.state.value,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            run.fail(str(exc) or self.fallback_error)
        else:
            self._logger.info(
                f"{self.event_prefix}.complete",
                run_id=run.run_id,
                duration_ms=round((self._clock() - started) * 1000, 1),
                events=run.channel.emitted,
                connected=run.channel.connected,
            )
        finally:
            run.channel.close()


class ResumeParsePipeline(_StreamingPipeline):
    """Validate an uploaded PDF, extract its text and parse it into a profile."""

    event_prefix = "resume_parse"

    def __init__(
        self,
        parser: ResumeParser,
        extractor: TextExtractor,
        settings: PipelineSettings,
        logger: Optional[Logger] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(settings, logger=logger, clock=clock)
        self._parser = parser
        self._extractor = extractor

    def validate(self, upload: Optional[ResumeUpload]) -> bytes:
        if upload is None or (upload.data is None and upload.declared_size is None):
            raise InputValidationError("No file provided")
        if "pdf" not in (upload.content_type or "").lower():
            raise InputValidationError("Please upload a PDF file")
        if upload.size > self._settings.max_upload_bytes:
            raise InputValidationError("File size must be under 10MB")
        if upload.data is None:
            raise InputValidationError("No file provided")
        return upload.data

    async def run(self, upload: Optional[ResumeUpload], channel: EventChannel) -> None:
        run = self._new_run(channel, RESUME_PARSE_STEPS, RESUME_TRANSITIONS)

        async def body(run: _PipelineRun) -> None:
            run.machine.advance(Stage.VALIDATING)
            data = self.validate(upload)

            run.machine.advance(Stage.EXTRACTING)
            run.advance()
            raw_text = await anyio.to_thread.run_sync(self._extractor.extract, data)
            if not raw_text or not raw_text.strip():
                raise ExtractionError(NO_TEXT_ERROR)
            if run.abandoned:
                logger.info("resume_parse.abandoned run_id=%s stage=extracting", run.run_id)
                return

            run.machine.advance(Stage.GENERATING)
            run.advance()
            parsed = await self._parser.parse_streaming(raw_text, on_activity=run.on_activity)
            if parsed is None:
                raise GenerationError("Failed to parse resume data")

            run.machine.advance(Stage.FINALIZING)
            run.flush()
            run.complete(parsed, raw_text=raw_text)

        await self._drive(
            run,
            body,
            filename=getattr(upload, "filename", None),
            size=upload.size if upload is not None else 0,
        )


class CoverLetterPipeline(_StreamingPipeline):
    """Generate a cover letter for a catalog job and run it through the quality gate."""

    event_prefix = "cover_letter"
    fallback_error = "Failed to generate cover letter"

    def __init__(
        self,
        writer: CoverLetterWriter,
        catalog: JobCatalog,
        settings: PipelineSettings,
        rules: Optional[QualityRules] = None,
        logger: Optional[Logger] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(settings, logger=logger, clock=clock)
        self._writer = writer
        self._catalog = catalog
        self._rules = rules or QualityRules(match_mode=settings.quality_match_mode)

    async def run(self, request: CoverLetterRequest, channel: EventChannel) -> None:
        run = self._new_run(channel, COVER_LETTER_STEPS, COVER_LETTER_TRANSITIONS)

        async def body(run: _PipelineRun) -> None:
            run.machine.advance(Stage.VALIDATING)
            job = self._catalog.get(request.job_id)
            if job is None:
                raise InputValidationError("Job not found")
            run.advance()

            run.machine.advance(Stage.GENERATING)
            run.advance()
            letter = await self._writer.write_streaming(
                job, request.profile, on_activity=run.on_activity
            )

            run.machine.advance(Stage.FINALIZING)
            run.flush()
            if run.abandoned:
                logger.info("cover_letter.abandoned run_id=%s stage=finalizing", run.run_id)
                return
            letter = await self._apply_quality_policy(run, job, request.profile, letter)
            run.complete(letter)

        await self._drive(run, body, job_id=request.job_id, empty_profile=request.profile.is_empty)

    async def _apply_quality_policy(
        self, run: _PipelineRun, job: Job, profile: CandidateProfile, letter: CoverLetter
    ) -> CoverLetter:
        policy = self._settings.quality_policy
        issues = check_quality(letter.full_text(), self._rules)
        attempts = 0
        while (
            issues
            and policy is QualityPolicy.REGENERATE
            and attempts < self._settings.max_regenerations
            and not run.abandoned
        ):
            attempts += 1
            self._logger.info(
                "cover_letter.regenerate",
                run_id=run.run_id,
                attempt=attempts,
                issues=[issue.to_dict() for issue in issues],
            )
            run.machine.advance(Stage.GENERATING)
            letter = await self._writer.write_streaming(
                job, profile, feedback=[issue.detail for issue in issues]
            )
            run.machine.advance(Stage.FINALIZING)
            issues = check_quality(letter.full_text(), self._rules)

        if not issues:
            return letter
        if policy is QualityPolicy.REJECT:
            raise GenerationError(
                f"Cover letter failed quality checks: {summarize_issues(issues)}"
            )
        self._logger.warn(
            "cover_letter.quality_issues",
            run_id=run.run_id,
            job_id=job.id,
            policy=policy.value,
            regenerations=attempts,
            word_count=letter.word_count,
            issues=[issue.to_dict() for issue in issues],
        )
        return letter


# ---------- non-streaming entry points ----------


async def collect_events(receive: MemoryObjectReceiveStream) -> list[ProgressEvent]:
    events: list[ProgressEvent] = []
    async with receive:
        async for event in receive:
            events.append(event)
    return events


async def parse_resume_once(
    pipeline: ResumeParsePipeline, upload: Optional[ResumeUpload]
) -> ParseResumeResult:
    """Run the resume pipeline to completion and fold the result into an envelope."""
    channel, receive = EventChannel.open()
    await pipeline.run(upload, channel)
    await collect_events(receive)
    terminal = channel.terminal_event
    if isinstance(terminal, Completion) and isinstance(terminal.data, ParsedResume):
        return ParseResumeResult(success=True, data=terminal.data, raw_text=terminal.raw_text)
    if isinstance(terminal, Failure):
        return ParseResumeResult(success=False, error=terminal.error)
    return ParseResumeResult(success=False, error=UNEXPECTED_ERROR)


async def generate_cover_letter_once(
    pipeline: CoverLetterPipeline, request: CoverLetterRequest
) -> CoverLetterResult:
    channel, receive = EventChannel.open()
    await pipeline.run(request, channel)
    await collect_events(receive)
    terminal = channel.terminal_event
    if isinstance(terminal, Completion) and isinstance(terminal.data, CoverLetter):
        return CoverLetterResult(success=True, data=terminal.data)
    if isinstance(terminal, Failure):
        return CoverLetterResult(success=False, error=terminal.error)
    return CoverLetterResult(success=False, error=UNEXPECTED_ERROR)
