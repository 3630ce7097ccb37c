"""Deterministic quality checks for generated cover letters.

The gate only reports. What to do with a non-empty issue list (log it,
reject the draft, or ask for another one) is decided by the caller through
``QualityPolicy``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import re

EM_DASH = "—"

BANNED_PHRASES: tuple[str, ...] = (
    "i am excited to apply",
    "i am writing to express my interest",
    "highly motivated and results-driven",
    "dynamic organization",
    "fast-paced environment",
    "leverage my skills",
    "passionate about",
    "utilize my experience",
    "thrives in ambiguity",
    "take ownership",
    "innovative ai execution platform",
    "my experience aligns well",
    "unique opportunity",
    "perfect fit",
    "eager to contribute",
)

_WHITESPACE = re.compile(r"\s+")


class IssueKind(str, Enum):
    BANNED_PHRASE = "banned-phrase"
    EM_DASH_USAGE = "em-dash-usage"
    EXCESSIVE_SEMICOLONS = "excessive-semicolons"
    LENGTH_OVERRUN = "length-overrun"


class MatchMode(str, Enum):
    """How banned phrases are located in the lower-cased text."""

    SUBSTRING = "substring"
    WORD_BOUNDARY = "word_boundary"


class QualityPolicy(str, Enum):
    WARN = "warn"
    REJECT = "reject"
    REGENERATE = "regenerate"


@dataclass(frozen=True, slots=True)
class QualityIssue:
    kind: IssueKind
    detail: str
    count: int | None = None
    phrase: str | None = None

    def to_dict(self) -> dict[str, object]:
        out: dict[str, object] = {"kind": self.kind.value, "detail": self.detail}
        if self.count is not None:
            out["count"] = self.count
        if self.phrase is not None:
            out["phrase"] = self.phrase
        return out


@dataclass(frozen=True, slots=True)
class QualityRules:
    banned_phrases: tuple[str, ...] = BANNED_PHRASES
    max_em_dashes: int = 0
    max_semicolons: int = 1
    max_words: int = 350
    match_mode: MatchMode = MatchMode.SUBSTRING


DEFAULT_RULES = QualityRules()


def count_words(text: str) -> int:
    return len([token for token in _WHITESPACE.split(text) if token])


def _phrase_present(phrase: str, lowered: str, mode: MatchMode) -> bool:
    if mode is MatchMode.WORD_BOUNDARY:
        return re.search(rf"\b{re.escape(phrase)}\b", lowered) is not None
    return phrase in lowered


def check_quality(text: str, rules: QualityRules = DEFAULT_RULES) -> list[QualityIssue]:
    """Return every rule violation found in ``text``, in rule order."""
    issues: list[QualityIssue] = []
    lowered = text.lower()

    seen: set[str] = set()
    for phrase in rules.banned_phrases:
        needle = phrase.lower()
        if needle in seen:
            continue
        seen.add(needle)
        if _phrase_present(needle, lowered, rules.match_mode):
            issues.append(
                QualityIssue(
                    kind=IssueKind.BANNED_PHRASE,
                    detail=f'Contains banned phrase: "{phrase}"',
                    phrase=phrase,
                )
            )

    em_dashes = text.count(EM_DASH)
    if em_dashes > rules.max_em_dashes:
        issues.append(
            QualityIssue(
                kind=IssueKind.EM_DASH_USAGE,
                detail=f"Contains em-dashes ({em_dashes}) - use commas instead",
                count=em_dashes,
            )
        )

    semicolons = text.count(";")
    if semicolons > rules.max_semicolons:
        issues.append(
            QualityIssue(
                kind=IssueKind.EXCESSIVE_SEMICOLONS,
                detail=f"Too many semicolons ({semicolons})",
                count=semicolons,
            )
        )

    words = count_words(text)
    if words > rules.max_words:
        issues.append(
            QualityIssue(
                kind=IssueKind.LENGTH_OVERRUN,
                detail=f"Too long ({words} words, max {rules.max_words})",
                count=words,
            )
        )

    return issues


def summarize_issues(issues: list[QualityIssue]) -> str:
    return "; ".join(issue.detail for issue in issues)
