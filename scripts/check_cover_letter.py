"""Run the cover letter quality gate over a text file.

Usage:
  .venv/bin/python -m scripts.check_cover_letter letter.txt
  .venv/bin/python -m scripts.check_cover_letter letter.txt --word-boundary
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from core.quality import MatchMode, QualityRules, check_quality, count_words


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("path", type=Path)
    parser.add_argument(
        "--word-boundary",
        action="store_true",
        help="Match banned phrases on word boundaries instead of raw substrings.",
    )
    args = parser.parse_args()

    text = args.path.read_text(encoding="utf-8")
    mode = MatchMode.WORD_BOUNDARY if args.word_boundary else MatchMode.SUBSTRING
    issues = check_quality(text, QualityRules(match_mode=mode))

    print(f"words={count_words(text)} issues={len(issues)}")
    for issue in issues:
        print(json.dumps(issue.to_dict(), ensure_ascii=False))
    return 1 if issues else 0


if __name__ == "__main__":
    raise SystemExit(main())
