from __future__ import annotations

import pytest

from nexithra.llm.action_schema import Action, ActionKind, ActionValidator, SchemaError


def test_generate_test_defaults_filled() -> None:
    action = ActionValidator().validate(
        {"kind": "generate_test", "params": {"topic": "calculus"}, "verbalResponse": "On it."}
    )
    assert action.params == {"topic": "calculus", "numQuestions": 10, "difficulty": "medium"}


def test_read_news_defaults_category() -> None:
    action = ActionValidator().validate({"kind": "read_news", "params": {"country": "in"}, "verbalResponse": "News."})
    assert action.params["category"] == "top"


def test_legacy_keys_accepted() -> None:
    action = ActionValidator().validate({"action": "logout", "verbal_response": "Goodbye."})
    assert action.action_kind is ActionKind.LOGOUT
    assert action.params == {}
    assert action.to_payload()["verbalResponse"] == "Goodbye."


def test_navigate_outside_allow_list_rejected() -> None:
    with pytest.raises(SchemaError) as info:
        ActionValidator().validate({"kind": "navigate", "params": {"target": "/admin"}, "verbalResponse": "Ok."})
    assert info.value.payload["params"]["target"] == "/admin"


@pytest.mark.parametrize(
    "payload",
    [
        {"kind": "search_books", "params": {}, "verbalResponse": "Searching."},
        {"kind": "generate_test", "params": {"topic": "x", "numQuestions": 90}, "verbalResponse": "Ok."},
        {"kind": "change_theme", "params": {"theme": "neon"}, "verbalResponse": "Ok."},
        {"kind": "chat", "params": {}, "verbalResponse": "   "},
        ["not", "an", "object"],
    ],
)
def test_invalid_payloads(payload) -> None:
    with pytest.raises(SchemaError):
        ActionValidator().validate(payload)


def test_unknown_kind_is_degraded_not_rejected() -> None:
    action = ActionValidator().validate({"kind": "foo_bar", "params": {"x": 1}, "verbalResponse": "Hmm."})
    assert not action.is_known
    assert action.params == {"x": 1}


def test_wake_word_chat_flag() -> None:
    action = Action(kind="chat", params={"isWakeWord": True}, verbal_response="Yes, sir?")
    assert action.is_wake_word
    plain = ActionValidator().validate({"kind": "chat", "params": {}, "verbalResponse": "Hello."})
    assert not plain.is_wake_word
    assert plain.params == {}


def test_kind_parse() -> None:
    assert ActionKind.parse("generate_test") is ActionKind.GENERATE_TEST
    assert ActionKind.parse("foo_bar") is None
