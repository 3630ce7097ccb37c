"""Failure taxonomy shared by pipelines, agents and routes.

Every member is scoped to a single request. The message is what the caller
sees in the terminal ``error`` event or in a non-streaming result envelope.
"""

from __future__ import annotations


class PipelineError(RuntimeError):
    """Base error for a single generation request."""

    @property
    def user_message(self) -> str:
        return str(self) or "An unexpected error occurred"


class InputValidationError(PipelineError):
    """Bad input shape or size; reported immediately, never retried."""


class ExtractionError(PipelineError):
    """Text extraction failed or produced unusable output."""


class GenerationError(PipelineError):
    """The generation service failed or returned a malformed result."""
