""" Agents package initialization."""

from .cover_letter_agent import (  # noqa: F401
    CoverLetterAgent,
    CoverLetterInvalidResponse,
)
from .resume_parser import ResumeParseInvalid, ResumeParserAgent  # noqa: F401
