"""Keyword intent classification."""

from dataclasses import dataclass

# Vocabulary suggesting the user is asking about their PARA data.
CONTEXT_KEYWORDS: tuple[str, ...] = (
    "project",
    "area",
    "resource",
    "task",
    "goal",
    "what",
    "show",
    "list",
)


@dataclass(frozen=True)
class IntentDecision:
    requires_external_context: bool
    label: str  # "query" or "general"


def classify(utterance: str) -> IntentDecision:
    """Decide whether an utterance needs PARA context.

    Plain substring matching on the lower-cased text, so "tasks" and
    "whatever" both match.
    """
    lowered = utterance.lower()
    needs_context = any(keyword in lowered for keyword in CONTEXT_KEYWORDS)
    return IntentDecision(
        requires_external_context=needs_context,
        label="query" if needs_context else "general",
    )
