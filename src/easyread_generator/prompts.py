from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TypeAlias

from .contracts import PromptMessage

SYSTEM_PROMPT = (
    "You convert pasted text into (1) a concise summary and (2) an Easy Read version. "
    "Easy Read must follow these rules: short, plain sentences; one idea per sentence; "
    "avoid jargon; use clear headings and bullet points; left-aligned structure; "
    "define any hard terms simply; insert text-only image placeholders like "
    "[IMAGE PLACEHOLDER: brief description] where a supportive picture would normally appear. "
    "Do NOT include actual images, links, code, or HTML. "
    "Output MUST be valid JSON matching the schema provided. Do not add commentary."
)

OUTPUT_SCHEMA = (
    "OUTPUT FORMAT (MUST be valid JSON):\n"
    "{\n"
    '  "summary": "2–5 sentence plain-language overview (≤120 words).",\n'
    '  "easyRead": "Easy Read version using short sentences and bullets. '
    'Insert [IMAGE PLACEHOLDER: …] where visuals would help."\n'
    "}"
)

JSON_REMINDER = "REMINDER: Respond in VALID JSON ONLY. No prose. No code fences."

PromptTransform: TypeAlias = Callable[[Sequence[PromptMessage]], list[PromptMessage]]
RepairStrategy: TypeAlias = tuple[PromptTransform, ...]


def build_messages(text: str) -> list[PromptMessage]:
    return [
        PromptMessage(role="system", content=SYSTEM_PROMPT),
        PromptMessage(role="user", content=f"INPUT TEXT:\n{text}\n\n{OUTPUT_SCHEMA}"),
    ]


def as_is(messages: Sequence[PromptMessage]) -> list[PromptMessage]:
    return list(messages)


def with_json_reminder(messages: Sequence[PromptMessage]) -> list[PromptMessage]:
    """Keep the original instructions and append a strict-JSON reminder."""
    return [*messages, PromptMessage(role="system", content=JSON_REMINDER)]


DEFAULT_REPAIR_STRATEGY: RepairStrategy = (as_is, with_json_reminder)
