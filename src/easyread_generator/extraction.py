from __future__ import annotations

import json
import re
from typing import Any

# Anchored at the very start/end of the string, like a non-multiline JS regex.
_FENCE_RE = re.compile(r"\A```[a-zA-Z]*\n?|```\Z")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def extract_json(raw: Any) -> dict[str, Any] | None:
    """
    Best-effort recovery of a single JSON object from model output.

    Strips one leading/trailing code fence, then parses the text between the
    first "{" and the last "}". Anything else (no braces, braces out of order,
    invalid JSON) yields None.
    """
    if not isinstance(raw, str):
        return None
    cleaned = _FENCE_RE.sub("", raw).strip()
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return None
    try:
        parsed = json.loads(cleaned[start : end + 1], parse_constant=_reject_constant)
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None
