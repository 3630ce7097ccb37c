"""Progress events and the channel that carries them to one consumer.

A request produces zero or more ``progress`` events followed by exactly one
terminal event (``complete`` or ``error``). Each variant carries only its own
fields, so a ``complete`` event with a step label cannot be constructed.

``EventChannel`` sits on top of an anyio memory object stream. The producer
side never blocks; the consumer (usually an SSE response) iterates the
receive stream. When the consumer goes away the receive stream is closed and
the channel quietly stops emitting.
"""

from __future__ import annotations

import json
import logging
import math
from typing import Annotated, Literal, Optional, Union

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from pydantic import ConfigDict, Field, TypeAdapter, model_validator
from pydantic.alias_generators import to_camel

from core.models import CoverLetter, ParsedResume, WireModel

logger = logging.getLogger(__name__)

_EVENT_CONFIG = ConfigDict(
    alias_generator=to_camel, populate_by_name=True, frozen=True, extra="forbid"
)


class ProgressUpdate(WireModel):
    model_config = _EVENT_CONFIG

    type: Literal["progress"] = "progress"
    step: str
    step_index: int = Field(..., ge=0)
    total_steps: int = Field(..., ge=1)

    @model_validator(mode="after")
    def _index_within_total(self) -> "ProgressUpdate":
        if self.step_index >= self.total_steps:
            raise ValueError("step_index must be lower than total_steps")
        return self


class Completion(WireModel):
    model_config = _EVENT_CONFIG

    type: Literal["complete"] = "complete"
    data: Union[CoverLetter, ParsedResume]
    raw_text: Optional[str] = None


class Failure(WireModel):
    model_config = _EVENT_CONFIG

    type: Literal["error"] = "error"
    error: str


ProgressEvent = Annotated[Union[ProgressUpdate, Completion, Failure], Field(discriminator="type")]
TERMINAL_TYPES = frozenset({"complete", "error"})

_EVENT_ADAPTER: TypeAdapter[ProgressEvent] = TypeAdapter(ProgressEvent)


def is_terminal(event: ProgressEvent) -> bool:
    return event.type in TERMINAL_TYPES


def event_to_json(event: ProgressEvent) -> str:
    """Serialize one event; absent optional fields (``rawText``) are omitted."""
    payload = event.model_dump(mode="json", by_alias=True)
    if isinstance(event, Completion) and event.raw_text is None:
        payload.pop("rawText", None)
    return json.dumps(payload, ensure_ascii=False)


def encode_sse(event: ProgressEvent) -> str:
    return f"data: {event_to_json(event)}\n\n"


def parse_event(raw: str | bytes | dict) -> ProgressEvent:
    if isinstance(raw, dict):
        return _EVENT_ADAPTER.validate_python(raw)
    return _EVENT_ADAPTER.validate_json(raw)


class ChannelTerminatedError(RuntimeError):
    """Raised when something tries to emit after the terminal event."""


class EventChannel:
    """Single-consumer, emission-ordered event channel for one request."""

    def __init__(self, send_stream: MemoryObjectSendStream) -> None:
        self._send = send_stream
        self._connected = True
        self._terminal: ProgressEvent | None = None
        self._last_step_index: int | None = None
        self.emitted = 0

    @classmethod
    def open(cls) -> tuple["EventChannel", MemoryObjectReceiveStream]:
        send, receive = anyio.create_memory_object_stream(max_buffer_size=math.inf)
        return cls(send), receive

    @property
    def connected(self) -> bool:
        """False once the consumer has closed its receive side."""
        if self._connected and self._send.statistics().open_receive_streams == 0:
            logger.info("event_channel.disconnected emitted=%s", self.emitted)
            self._connected = False
        return self._connected

    @property
    def terminated(self) -> bool:
        return self._terminal is not None

    @property
    def terminal_event(self) -> ProgressEvent | None:
        return self._terminal

    def emit(self, event: ProgressEvent) -> bool:
        """Deliver ``event``; return False when the consumer is gone."""
        if self._terminal is not None:
            raise ChannelTerminatedError(
                f"cannot emit '{event.type}' after terminal '{self._terminal.type}'"
            )
        if isinstance(event, ProgressUpdate):
            if self._last_step_index is not None and event.step_index <= self._last_step_index:
                raise ValueError(
                    f"step_index {event.step_index} does not advance past {self._last_step_index}"
                )
            self._last_step_index = event.step_index
        if is_terminal(event):
            self._terminal = event

        delivered = False
        if self.connected:
            try:
                self._send.send_nowait(event)
                delivered = True
                self.emitted += 1
            except (anyio.BrokenResourceError, anyio.ClosedResourceError):
                logger.info("event_channel.disconnected type=%s", event.type)
                self._connected = False
        if self._terminal is not None:
            self.close()
        return delivered

    def close(self) -> None:
        self._send.close()
