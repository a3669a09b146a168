"""Rule-based memory extraction.

After each completed exchange, the user's utterance is matched against a
fixed set of phrases. Every rule that fires yields one memory carrying the
whole utterance and a fixed importance score. There is no model call here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractedMemory:
    type: str
    content: str
    importance: float


@dataclass(frozen=True)
class ExtractionRule:
    type: str
    phrases: tuple[str, ...]
    importance: float

    def matches(self, lowered: str) -> bool:
        return any(phrase in lowered for phrase in self.phrases)


RULES: tuple[ExtractionRule, ...] = (
    ExtractionRule("preference", ("i prefer", "i like"), 0.8),
    ExtractionRule("goal", ("my goal", "i want to"), 0.9),
    ExtractionRule("fact", ("i am", "i have", "i work"), 0.7),
)


def extract(
    user_utterance: str,
    assistant_response: str = "",
    rules: tuple[ExtractionRule, ...] = RULES,
) -> list[ExtractedMemory]:
    """Return the memories implied by an exchange, in rule order.

    *assistant_response* is accepted for interface symmetry; only the
    user's utterance drives matching.
    """
    lowered = user_utterance.lower()
    memories = [
        ExtractedMemory(type=rule.type, content=user_utterance, importance=rule.importance)
        for rule in rules
        if rule.matches(lowered)
    ]
    if memories:
        logger.debug(
            "Extracted %d memories: %s", len(memories), ", ".join(m.type for m in memories)
        )
    return memories
