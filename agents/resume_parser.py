"""Extract a ParsedResume from raw resume text."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from pydantic import ValidationError

from core.config import get_default_model
from core.errors import GenerationError
from core.json_utils import parse_json_object
from core.llm_client import AsyncLLMClient
from core.models import ParsedResume
from core.pii import detect_sensitive_data

logger = logging.getLogger(__name__)

RESUME_SCHEMA_TEXT = """
class ExperienceEntry(BaseModel):
    title: str            # Job title
    company: str          # Company name
    duration: str         # e.g. "Jan 2020 - Present"
    highlights: List[str] # Key achievements and responsibilities

class EducationEntry(BaseModel):
    school: str           # Name of school or university
    degree: str           # Degree and field of study
    year: str             # Graduation year or expected graduation

class ParsedResume(BaseModel):
    headline: str               # e.g. "Senior AI Engineer with 5+ years experience"
    summary: str                # 2-3 sentence professional summary
    skills: List[str]
    experience: List[ExperienceEntry]   # reverse chronological order
    education: List[EducationEntry]
    targetTitles: List[str]     # 3-5 job titles the candidate should apply for
    searchKeywords: List[str]   # technologies, methodologies, domain terms
"""

_SYSTEM = f"""
You are an expert resume parser and career advisor. Your job is to:

1. Extract structured information from resume text
2. Identify key skills, technologies, and experiences
3. Generate relevant job search keywords based on the candidate's background
4. Suggest appropriate job titles the candidate should apply for

When parsing resumes:
- Extract ALL technical skills and technologies mentioned.
- Capture work experience with specific achievements and metrics when available.
- Identify education and certifications.
- Generate comprehensive search keywords including technologies, frameworks,
  methodologies, soft skills, and industry terms.
- Suggest 3-5 realistic job titles based on their experience level.
- Do NOT invent facts. If something is unknown, use an empty string or empty list.

Output STRICT JSON only, no markdown or commentary, matching this schema:
{RESUME_SCHEMA_TEXT}
"""

_USER = (
    "Parse the following resume and extract structured information:\n\n"
    "---\n{resume_text}\n---\nReturn only ParsedResume JSON."
)


class ResumeParseInvalid(GenerationError):
    """Raised when parser output cannot be parsed or validated."""

    def __init__(self, message: str = "Failed to parse resume data") -> None:
        super().__init__(message)


@dataclass(slots=True)
class ResumeParserAgent:
    """Turn resume text into a ParsedResume with one LLM call."""

    llm: AsyncLLMClient
    model: str = field(default_factory=get_default_model)
    temperature: float = 0.1

    def build_messages(self, resume_text: str) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": _SYSTEM},
            {"role": "user", "content": _USER.format(resume_text=resume_text.strip())},
        ]

    def parse_result(self, data: dict[str, Any]) -> ParsedResume:
        try:
            parsed = ParsedResume.model_validate(data)
        except ValidationError as e:
            logger.warning("resume_parser.validation_failed errors=%s", e.error_count())
            raise ResumeParseInvalid() from e
        # Flag, never block: resumes carry contact details by design.
        for finding in detect_sensitive_data(parsed.text_fields()):
            logger.warning("resume_parser.sensitive_data finding=%s", finding)
        return parsed

    def _decode(self, raw: str) -> ParsedResume:
        try:
            data = parse_json_object(raw, ResumeParseInvalid)
        except ResumeParseInvalid as e:
            logger.warning("resume_parser.bad_json error=%s", str(e))
            raise ResumeParseInvalid() from e
        return self.parse_result(data)

    async def parse(self, resume_text: str) -> ParsedResume:
        logger.info("resume_parser.start chars=%s", len(resume_text))
        raw = await self.llm.chat(
            messages=self.build_messages(resume_text),
            model=self.model,
            temperature=self.temperature,
        )
        return self._decode(str(raw))

    async def parse_streaming(
        self, resume_text: str, on_activity: Optional[Callable[[], None]] = None
    ) -> ParsedResume:
        """Like ``parse`` but streams the model output.

        ``on_activity`` fires once per received chunk; it carries no payload.
        """

        def _on_chunk(_chunk: str) -> None:
            if on_activity is not None:
                on_activity()

        logger.info("resume_parser.stream_start chars=%s", len(resume_text))
        raw = await self.llm.stream_chat(
            messages=self.build_messages(resume_text),
            model=self.model,
            temperature=self.temperature,
            on_chunk=_on_chunk,
        )
        return self._decode(str(raw))
