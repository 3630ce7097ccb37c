"""Sensitive-data detection for parsed resume output.

Resumes legitimately contain names, emails and phone numbers, so only
identity and financial numbers are flagged, and only as warnings.
"""

from __future__ import annotations

import re

_SSN_PATTERN = re.compile(r"\b\d{3}-\d{2}-\d{4}\b")
_CARD_PATTERN = re.compile(r"\b(?:\d[ -]?){12,18}\d\b")


def _luhn_ok(digits: str) -> bool:
    total = 0
    for i, ch in enumerate(reversed(digits)):
        n = int(ch)
        if i % 2 == 1:
            n *= 2
            if n > 9:
                n -= 9
        total += n
    return total % 10 == 0


def detect_sensitive_data(text: str) -> list[str]:
    """Return human-readable findings for SSN-like and card-like numbers."""
    findings: list[str] = []
    if _SSN_PATTERN.search(text):
        findings.append("Possible social security number detected")
    for match in _CARD_PATTERN.finditer(text):
        digits = re.sub(r"\D", "", match.group(0))
        if 13 <= len(digits) <= 19 and _luhn_ok(digits):
            findings.append("Possible credit card number detected")
            break
    return findings
