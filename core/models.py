from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from core.quality import count_words


class WireModel(BaseModel):
    """Base for models exchanged with the UI (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# ==== Resume parsing output ====

class ExperienceEntry(WireModel):
    title: str
    company: str
    duration: str = ""
    highlights: list[str] = Field(default_factory=list)


class EducationEntry(WireModel):
    school: str
    degree: str = ""
    year: str = ""


class ParsedResume(WireModel):
    """Structured profile extracted from resume text."""

    headline: str = Field(
        "",
        description="Professional headline, e.g. 'Senior AI Engineer with 5+ years experience'.",
    )
    summary: str = Field("", description="2-3 sentence professional summary.")
    skills: list[str] = Field(default_factory=list)
    experience: list[ExperienceEntry] = Field(
        default_factory=list, description="Work experience, most recent first."
    )
    education: list[EducationEntry] = Field(default_factory=list)
    target_titles: list[str] = Field(
        default_factory=list, description="3-5 job titles the candidate should apply for."
    )
    search_keywords: list[str] = Field(
        default_factory=list, description="Keywords for job searching."
    )

    def text_fields(self) -> str:
        parts = [self.headline, self.summary, *self.skills]
        for exp in self.experience:
            parts.extend([exp.title, exp.company, *exp.highlights])
        for edu in self.education:
            parts.extend([edu.school, edu.degree])
        return "\n".join(p for p in parts if p)


# ==== Cover letter grounding context ====

class CandidateProfile(WireModel):
    """Grounding context for cover letters; never validated beyond shape."""

    headline: Optional[str] = None
    summary: Optional[str] = None
    skills: list[str] = Field(default_factory=list)
    experience: list[ExperienceEntry] = Field(default_factory=list)
    education: list[EducationEntry] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return (
            not self.experience
            and not self.skills
            and not (self.headline or "").strip()
            and not (self.summary or "").strip()
        )


# ==== Cover letter output ====

class CoverLetter(WireModel):
    """A finished cover letter, handed to callers as an immutable value."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    greeting: str = Field(..., description="Simple greeting like 'Hi Jordan,' or 'Hello,'.")
    opening: str = Field(..., description="2-3 sentences naming the role and one specific reason.")
    body: list[str] = Field(default_factory=list, description="1-2 short paragraphs.")
    closing: str = Field(..., description="1-2 sentences with a light call to action.")
    signature: str = Field(..., description="Warm sign-off like 'Best,'.")

    def paragraphs(self) -> list[str]:
        return [self.opening, *self.body]

    def full_text(self) -> str:
        """Assemble the letter in document order, paragraphs separated by a blank line."""
        parts = [self.greeting, *self.paragraphs(), self.closing, self.signature]
        return "\n\n".join(p.strip() for p in parts if p and p.strip())

    @computed_field(alias="wordCount")  # type: ignore[prop-decorator]
    @property
    def word_count(self) -> int:
        return count_words(self.full_text())


# ==== Job catalog ====

class Job(WireModel):
    id: str
    title: str
    company: str
    location: str
    type: Literal["remote", "hybrid", "onsite"] = "remote"
    salary: Optional[str] = None
    posted_at: str = ""
    source: str = ""
    url: Optional[str] = None
    description: str
    requirements: list[str] = Field(default_factory=list)
    benefits: list[str] = Field(default_factory=list)
    match_score: Optional[int] = None
    match_reasons: list[str] = Field(default_factory=list)


# ==== Stored profile ====

class ProfileData(WireModel):
    headline: Optional[str] = None
    summary: Optional[str] = None
    skills: list[str] = Field(default_factory=list)
    experience: list[ExperienceEntry] = Field(default_factory=list)
    education: list[EducationEntry] = Field(default_factory=list)
    target_titles: list[str] = Field(default_factory=list)
    target_locations: list[str] = Field(default_factory=list)
    search_keywords: list[str] = Field(default_factory=list)
    min_salary: Optional[int] = None
    max_salary: Optional[int] = None
    remote_preference: Optional[str] = None
    company_size: list[str] = Field(default_factory=list)
    resume_text: Optional[str] = None


# ==== Requests and result envelopes ====

class CoverLetterRequest(WireModel):
    job_id: str
    profile: CandidateProfile = Field(default_factory=CandidateProfile)


class ParseResumeResult(WireModel):
    success: bool
    data: Optional[ParsedResume] = None
    raw_text: Optional[str] = None
    error: Optional[str] = None


class CoverLetterResult(WireModel):
    success: bool
    data: Optional[CoverLetter] = None
    error: Optional[str] = None


class SaveProfileResult(WireModel):
    success: bool
    error: Optional[str] = None


class LoadProfileResult(WireModel):
    success: bool
    data: Optional[ProfileData] = None
    error: Optional[str] = None


class FromResumeRequest(WireModel):
    data: ParsedResume
    raw_text: str = ""
