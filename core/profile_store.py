"""Pluggable persistence for the user's job-search profile.

The store is a single-record key/value abstraction with last-write-wins
semantics: ``load`` returns the most recently saved ``ProfileData`` (or
None), ``save`` replaces it.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
from pathlib import Path
from typing import Optional, Protocol

from core.models import ParsedResume, ProfileData


class ProfileStore(Protocol):
    """Abstract storage for the profile record."""

    def load(self) -> Optional[ProfileData]:
        """Return the stored profile, or None if nothing was saved yet."""

    def save(self, profile: ProfileData) -> None:
        """Persist ``profile``, replacing any previous record."""


class InMemoryProfileStore:
    """Process-local ProfileStore for dev/test."""

    def __init__(self) -> None:
        self._record: Optional[dict] = None

    def load(self) -> Optional[ProfileData]:
        if self._record is None:
            return None
        return ProfileData.model_validate(self._record)

    def save(self, profile: ProfileData) -> None:
        self._record = profile.model_dump(mode="json")


@dataclass
class JsonFileProfileStore:
    """Persist the profile as one JSON file.

    Writes go through a temporary file and an atomic rename so a crash
    never leaves a half-written record behind.
    """

    path: Path

    def __post_init__(self) -> None:
        self.path = Path(self.path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def load(self) -> Optional[ProfileData]:
        if not self.path.exists():
            return None
        with self.path.open("r", encoding="utf-8") as f:
            return ProfileData.model_validate(json.load(f))

    def save(self, profile: ProfileData) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(profile.model_dump(mode="json", by_alias=True), f, ensure_ascii=False, indent=2)
        tmp.replace(self.path)


def merge_parsed_resume(
    existing: Optional[ProfileData], parsed: ParsedResume, raw_text: str
) -> ProfileData:
    """Fold a freshly parsed resume into the stored profile.

    Non-empty parsed values win; search preferences the user set by hand
    (locations, salary range, remote preference, company size) are kept.
    """
    base = existing or ProfileData()

    def _pick_list(new: list, old: list) -> list:
        return list(new) if new else list(old)

    return ProfileData(
        headline=parsed.headline or base.headline,
        summary=parsed.summary or base.summary,
        skills=_pick_list(parsed.skills, base.skills),
        experience=_pick_list(parsed.experience, base.experience),
        education=_pick_list(parsed.education, base.education),
        target_titles=_pick_list(parsed.target_titles, base.target_titles),
        target_locations=list(base.target_locations),
        search_keywords=_pick_list(parsed.search_keywords, base.search_keywords),
        min_salary=base.min_salary,
        max_salary=base.max_salary,
        remote_preference=base.remote_preference,
        company_size=list(base.company_size),
        resume_text=raw_text,
    )
