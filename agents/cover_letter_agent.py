"""Agent for generating a short, grounded cover letter for one job."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from pydantic import ValidationError

from core.config import get_default_model
from core.errors import GenerationError
from core.json_utils import parse_json_object
from core.llm_client import AsyncLLMClient
from core.models import CandidateProfile, CoverLetter, Job
from core.quality import BANNED_PHRASES, EM_DASH

logger = logging.getLogger(__name__)


COVER_LETTER_SCHEMA_TEXT = """
class CoverLetter(BaseModel):
    greeting: str     # Simple greeting like "Hi Jordan," or "Hello,"
    opening: str      # 2-3 sentences: the role + ONE specific reason the company is interesting
    body: List[str]   # 1-2 short paragraphs with specific stories from the profile
    closing: str      # 1-2 sentences: reaffirm interest + light call to action
    signature: str    # Warm sign-off like "Best," or "Thanks,"
"""

_BANNED_LIST = "\n".join(f'- "{phrase}"' for phrase in BANNED_PHRASES)

SYSTEM_PROMPT = f"""
You write SHORT, HUMAN cover letters that feel like a thoughtful email from a strong
engineer, not a resume paragraph or an AI template.

Voice:
- Sound like a calm, competent teammate. Use contractions (I'm, I've, don't).
- Vary sentence openings. Keep paragraphs 3-5 lines.
- Mention the company by name or "your platform", never its marketing tagline.
- Limit yourself to 1-2 standout metrics per paragraph.
- Never echo the job description wording verbatim.
- NEVER use em-dashes ({EM_DASH}). Use commas instead.
- Avoid semicolons.

Strictly banned phrases (or close variants):
{_BANNED_LIST}

Output STRICT JSON only, no markdown or commentary, matching this schema:
{COVER_LETTER_SCHEMA_TEXT}
"""

_EMPTY_PROFILE_RULES = """
The candidate profile is EMPTY. No experience, skills or background were provided.

Strict rules for an empty profile:
- Do NOT invent ANY experience, projects, metrics or numbers.
- Do NOT say "I developed...", "I built..." or "I improved X by Y%".
- Do NOT make up university projects, internships or coursework.
- Write ONLY about why this specific role interests them.
- Keep it to 100-120 words max.
- Be genuine: express interest in the company and role, ask for a chance to learn.
- Tone: curious, eager, honest about being early-career or transitioning.
"""

_GROUNDED_RULES = """
You MUST only use information from the CANDIDATE PROFILE below.
- Every claim must come directly from the profile.
- Every metric or number must be from the profile's highlights.
- Every skill mentioned must be in their skills list.
- If something isn't in the profile, DO NOT mention it.
- If you can't find a good story, keep it brief and honest.
"""

USER_TEMPLATE = """
GROUNDING RULES:
{grounding}

JOB DETAILS:
Position: {title}
Company: {company}
Location: {location}

Job Description:
{description}

Key Requirements:
{requirements}

CANDIDATE PROFILE:
Headline: {headline}
Summary: {summary}
Skills: {skills}

Work Experience:
{experience}

Education:
{education}

CONTENT RULES:
1. Opening (2-3 sentences): name the role and ONE specific reason this role or company
   is interesting, based only on the job description.
2. Body paragraph 1 (3-4 sentences): pick ONE top requirement and ONE real experience
   that proves it, told as a mini-story (context, what they did, impact).
3. Body paragraph 2 (2-3 sentences, optional): one more requirement and a related experience.
4. Closing (1-2 sentences): reaffirm interest and add a light call to action.
{length_rule}
{feedback}
Return ONLY JSON for CoverLetter.
"""


def _format_experience(profile: CandidateProfile) -> str:
    if not profile.experience:
        return "No work experience provided"
    lines = []
    for exp in profile.experience:
        lines.append(f"- {exp.title} at {exp.company} ({exp.duration})")
        lines.extend(f"  {h}" for h in exp.highlights)
    return "\n".join(lines)


def _format_education(profile: CandidateProfile) -> str:
    if not profile.education:
        return "No education provided"
    return "\n".join(f"- {edu.degree} from {edu.school} ({edu.year})" for edu in profile.education)


def build_cover_letter_prompt(
    job: Job, profile: CandidateProfile, feedback: Sequence[str] = ()
) -> str:
    """Render the user prompt; an empty profile switches to the no-invention rules."""
    empty = profile.is_empty
    feedback_block = ""
    if feedback:
        joined = "\n".join(f"- {item}" for item in feedback)
        feedback_block = (
            "\nA previous draft was rejected by the quality check. Fix these problems:\n"
            f"{joined}\n"
        )
    return USER_TEMPLATE.format(
        grounding=_EMPTY_PROFILE_RULES if empty else _GROUNDED_RULES,
        title=job.title,
        company=job.company,
        location=job.location,
        description=job.description,
        requirements="\n".join(f"- {r}" for r in job.requirements),
        headline=profile.headline or "Not provided",
        summary=profile.summary or "Not provided",
        skills=", ".join(profile.skills) or "Not provided",
        experience=_format_experience(profile),
        education=_format_education(profile),
        length_rule=(
            "Total length: 100-120 words." if empty else "Total length: 200-280 words."
        ),
        feedback=feedback_block,
    )


class CoverLetterInvalidResponse(GenerationError):
    """Raised when the cover letter JSON cannot be parsed/validated."""

    def __init__(self, message: str = "Failed to generate cover letter") -> None:
        super().__init__(message)


@dataclass(slots=True)
class CoverLetterAgent:
    """Generate a CoverLetter for a job from the candidate profile."""

    llm: AsyncLLMClient
    model: str = field(default_factory=get_default_model)
    temperature: float = 0.4

    def build_messages(
        self, job: Job, profile: CandidateProfile, feedback: Sequence[str] = ()
    ) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_cover_letter_prompt(job, profile, feedback)},
        ]

    def parse_result(self, data: dict[str, Any]) -> CoverLetter:
        try:
            return CoverLetter.model_validate(data)
        except ValidationError as e:
            logger.warning("cover_letter.validation_failed errors=%s", e.error_count())
            raise CoverLetterInvalidResponse() from e

    def _decode(self, raw: str) -> CoverLetter:
        try:
            data = parse_json_object(raw, CoverLetterInvalidResponse)
        except CoverLetterInvalidResponse as e:
            logger.warning("cover_letter.bad_json error=%s", str(e))
            raise CoverLetterInvalidResponse() from e
        return self.parse_result(data)

    async def write(
        self, job: Job, profile: CandidateProfile, feedback: Sequence[str] = ()
    ) -> CoverLetter:
        logger.info(
            "cover_letter.start job_id=%s empty_profile=%s feedback=%s",
            job.id,
            profile.is_empty,
            len(feedback),
        )
        raw = await self.llm.chat(
            messages=self.build_messages(job, profile, feedback),
            model=self.model,
            temperature=self.temperature,
        )
        return self._decode(str(raw))

    async def write_streaming(
        self,
        job: Job,
        profile: CandidateProfile,
        feedback: Sequence[str] = (),
        on_activity: Optional[Callable[[], None]] = None,
    ) -> CoverLetter:
        def _on_chunk(_chunk: str) -> None:
            if on_activity is not None:
                on_activity()

        logger.info(
            "cover_letter.stream_start job_id=%s empty_profile=%s feedback=%s",
            job.id,
            profile.is_empty,
            len(feedback),
        )
        raw = await self.llm.stream_chat(
            messages=self.build_messages(job, profile, feedback),
            model=self.model,
            temperature=self.temperature,
            on_chunk=_on_chunk,
        )
        return self._decode(str(raw))
