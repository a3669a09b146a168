"""Prompt assembly — system instruction, history and the current utterance."""

from __future__ import annotations

from typing import TYPE_CHECKING

from assistant.context.models import has_content, render_context

if TYPE_CHECKING:
    from assistant.context.models import OpaqueContext, ParaContext
    from assistant.store.models import Memory, Message

ROLE_PROMPT = """\
You are an intelligent personal assistant with access to the user's PARA \
(Projects, Areas, Resources, Archives) system.

Your role is to:
1. Help the user manage their projects and tasks
2. Provide context-aware suggestions based on their PARA data
3. Learn from interactions to provide better personalized assistance
4. Be concise, helpful, and proactive"""

CLOSING_PROMPT = "Always base your responses on the provided context when available."


def _format_memories(memories: list[Memory]) -> str:
    """Format retrieved memories for injection into the system prompt."""
    if not memories:
        return ""

    lines = ["## Relevant Memories\n"]
    for memory in memories:
        lines.append(f"- [{memory.type}] {memory.content}")
    return "\n".join(lines)


def build_system_prompt(
    context: ParaContext | OpaqueContext | None = None,
    memories: list[Memory] | None = None,
) -> str:
    """Assemble the system instruction.

    Sections for PARA context and memories are included only when there
    is something to show.
    """
    sections = [ROLE_PROMPT]

    if has_content(context):
        sections.append(f"## Relevant PARA Context\n\n{render_context(context)}")

    memory_text = _format_memories(memories or [])
    if memory_text:
        sections.append(memory_text)

    sections.append(CLOSING_PROMPT)
    return "\n\n".join(sections)


def build_messages(
    utterance: str,
    history: list[Message],
    *,
    context: ParaContext | OpaqueContext | None = None,
    memories: list[Memory] | None = None,
    history_limit: int = 10,
) -> list[dict[str, str]]:
    """Build the ordered message list for the model backend.

    Args:
        utterance: The current user message, appended last.
        history: Prior turns, oldest first, not including *utterance*.
        context: Gathered PARA context, if any.
        memories: Retrieved memories, if any.
        history_limit: How many of the most recent history turns to keep.
    """
    messages = [{"role": "system", "content": build_system_prompt(context, memories)}]
    recent = history[-history_limit:] if history_limit > 0 else []
    messages.extend(m.to_api_message() for m in recent)
    messages.append({"role": "user", "content": utterance})
    return messages
