"""Tests for rule-based memory extraction."""

from assistant.memory.extraction import ExtractedMemory, extract


def test_preference() -> None:
    result = extract("I prefer working in the morning and I like using structured tools", "ok")
    assert result == [
        ExtractedMemory(
            type="preference",
            content="I prefer working in the morning and I like using structured tools",
            importance=0.8,
        )
    ]


def test_goal() -> None:
    result = extract("My goal is to learn more about AI agents this month")
    assert [(m.type, m.importance) for m in result] == [("goal", 0.9)]


def test_want_to_is_a_goal() -> None:
    assert [m.type for m in extract("I want to run a marathon")] == ["goal"]


def test_fact_phrases() -> None:
    for utterance in ("I am a nurse", "I have two cats", "I work remotely"):
        result = extract(utterance)
        assert [(m.type, m.importance) for m in result] == [("fact", 0.7)]


def test_multiple_rules_yield_multiple_memories() -> None:
    result = extract("I am a developer and I prefer mornings", "Noted!")
    assert {m.type for m in result} == {"fact", "preference"}
    assert all(m.content == "I am a developer and I prefer mornings" for m in result)


def test_all_rules_fire_in_order() -> None:
    result = extract("I like tea, my goal is calm, and I work at home")
    assert [m.type for m in result] == ["preference", "goal", "fact"]


def test_no_match_returns_empty() -> None:
    assert extract("What's the weather?", "Sunny.") == []


def test_assistant_response_does_not_drive_matching() -> None:
    assert extract("Thanks", "I prefer to help. I am an assistant.") == []


def test_deterministic() -> None:
    first = extract("I have a dog and I like walks", "Nice")
    second = extract("I have a dog and I like walks", "Nice")
    assert first == second
