"""Tests for keyword intent classification."""

import pytest

from assistant.agent.intent import CONTEXT_KEYWORDS, classify


@pytest.mark.parametrize("keyword", CONTEXT_KEYWORDS)
def test_each_keyword_requires_context(keyword: str) -> None:
    decision = classify(f"Tell me about the {keyword.upper()} please")
    assert decision.requires_external_context is True
    assert decision.label == "query"


def test_greeting_question_requires_context() -> None:
    decision = classify("Hello! What can you help me with?")
    assert decision.requires_external_context is True
    assert decision.label == "query"


def test_general_chat_needs_no_context() -> None:
    decision = classify("Good morning, how are you?")
    assert decision.requires_external_context is False
    assert decision.label == "general"


def test_substring_match_inside_words() -> None:
    assert classify("Any tasks due?").requires_external_context is True
    assert classify("whatever works").requires_external_context is True


def test_empty_utterance_is_general() -> None:
    assert classify("").label == "general"


def test_deterministic() -> None:
    assert classify("Show my projects") == classify("Show my projects")
