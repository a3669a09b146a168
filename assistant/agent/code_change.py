"""Detection of feature and change requests in user messages."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from assistant.store.models import Message

CHANGE_PHRASES: tuple[str, ...] = (
    "add feature",
    "add a feature",
    "implement",
    "create functionality",
    "build",
    "integrate",
    "connect to",
    "make it",
    "update to",
    "change behavior",
    "fix code",
    "new capability",
)

# "can you" only counts as a change request when a change verb follows it,
# so capability questions like "what can you help me with?" pass through.
CAN_YOU_REQUEST = re.compile(
    r"\bcan you (?:please )?"
    r"(?:add|build|create|implement|make|change|update|fix|integrate|connect|refactor|support|automate)\b"
)

# Checked in order; the first group with a match decides the category.
CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("bugfix", ("fix", "broken")),
    ("refactor", ("refactor", "clean")),
    ("integration", ("integrate", "connect")),
)

HIGH_PRIORITY_KEYWORDS = ("urgent", "important")
LOW_PRIORITY_KEYWORDS = ("eventually", "someday")


@dataclass(frozen=True)
class CodeChangeDetection:
    detected: bool
    request: str | None = None
    priority: str | None = None
    category: str | None = None


def is_change_request(lowered: str) -> bool:
    return any(phrase in lowered for phrase in CHANGE_PHRASES) or bool(
        CAN_YOU_REQUEST.search(lowered)
    )


def categorize(lowered: str) -> str:
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return "feature"


def prioritize(lowered: str) -> str:
    if any(keyword in lowered for keyword in HIGH_PRIORITY_KEYWORDS):
        return "high"
    if any(keyword in lowered for keyword in LOW_PRIORITY_KEYWORDS):
        return "low"
    return "medium"


def detect(utterance: str, history: list[Message] | None = None) -> CodeChangeDetection:
    """Check whether *utterance* asks for a change to the assistant itself.

    *history* is accepted so richer policies can look at prior turns; the
    keyword policy only reads the utterance.
    """
    lowered = utterance.lower()
    if not is_change_request(lowered):
        return CodeChangeDetection(detected=False)
    return CodeChangeDetection(
        detected=True,
        request=utterance,
        priority=prioritize(lowered),
        category=categorize(lowered),
    )


def serialize_context(history: list[Message], turns: int = 3, max_chars: int = 1000) -> str:
    """Serialize the last *turns* history entries as JSON for the request record.

    Message content longer than *max_chars* is cut and suffixed with ``...``.
    """
    recent = history[-turns:] if turns > 0 else []
    entries = []
    for message in recent:
        content = message.content
        if len(content) > max_chars:
            content = content[: max_chars - 3] + "..."
        entries.append({"role": message.role, "content": content})
    return json.dumps(entries)


def acknowledgement(request: str) -> str:
    return (
        f'I\'ve captured your request for: "{request}". '
        "This has been queued for future implementation."
    )
