from __future__ import annotations

import json
import re
from typing import Any

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def parse_json_object(raw: str, error_cls: type[Exception]) -> dict[str, Any]:
    """Extract a JSON object from raw model output, raising error_cls on failure.

    Markdown code fences are stripped first. Tries a full-string parse, then
    the outermost {...} block. The original exception is chained.
    """
    text = _FENCE.sub("", (raw or "").strip())
    try:
        data = json.loads(text)
        if isinstance(data, dict):
            return data
        raise error_cls("Expected JSON object in model output")
    except json.JSONDecodeError as exc:
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end == -1 or end < start:
            raise error_cls("No JSON detected in model output") from exc
        try:
            data = json.loads(text[start : end + 1])
            if isinstance(data, dict):
                return data
            raise error_cls("Expected JSON object in model output")
        except json.JSONDecodeError as exc2:
            raise error_cls("Malformed JSON in model output") from exc2
