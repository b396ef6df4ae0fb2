from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Literal

Role = Literal["system", "user"]


@dataclass(frozen=True)
class PromptMessage:
    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class TransformResult:
    summary: str
    easy_read: str

    @classmethod
    def from_payload(cls, payload: Any) -> TransformResult | None:
        """Accept a parsed completion only when both fields are strings."""
        if not isinstance(payload, dict):
            return None
        summary = payload.get("summary")
        easy_read = payload.get("easyRead")
        if not isinstance(summary, str) or not isinstance(easy_read, str):
            return None
        return cls(summary=summary, easy_read=easy_read)
