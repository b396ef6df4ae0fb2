from __future__ import annotations

from typing import Any

from .errors import ValidationError

MIN_CHARS = 1
MAX_CHARS = 10000


def validate_request(body: Any) -> str | ValidationError:
    """Return the text to transform, or the reason the body was rejected.

    Length is measured in characters, not bytes.
    """
    if not isinstance(body, dict) or not isinstance(body.get("text"), str):
        return ValidationError()
    text: str = body["text"]
    if not MIN_CHARS <= len(text) <= MAX_CHARS:
        return ValidationError(f"Text must be between {MIN_CHARS} and {MAX_CHARS} characters.")
    return text
