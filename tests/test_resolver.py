from __future__ import annotations

import asyncio
from datetime import datetime

import httpx
import pytest

from conftest import StubProvider, action_json
from nexithra.llm.action_schema import SchemaError
from nexithra.llm.providers.gemini import GeminiProvider
from nexithra.llm.resolver import MALFORMED, IntentResolver, ResolutionError, parse_action_payload, sanitize_error
from nexithra.llm.tools import ResolverToolbox
from nexithra.llm.types import ChatResponse
from nexithra.orchestrator.events import AssistantContext, UserGoal
from nexithra.orchestrator.policies import ResolverPolicies

CONTEXT = AssistantContext(route="/dashboard", language="English")


@pytest.mark.anyio
@pytest.mark.parametrize(
    ("command", "mode", "greeting"),
    [("Jarvis", "jarvis", "Yes, sir?"), ("hey alya", "alya", "Yes?"), ("ALIA!", "alya", "Yes?")],
)
async def test_wake_word_short_circuits(command: str, mode: str, greeting: str) -> None:
    provider = StubProvider()
    action = await IntentResolver(provider).resolve(command, CONTEXT, mode)

    assert provider.calls == []
    assert action.kind == "chat"
    assert action.is_wake_word
    assert action.verbal_response == greeting


@pytest.mark.anyio
async def test_resolves_and_validates() -> None:
    provider = StubProvider([action_json("generate_test", "Creating a calculus test.", topic="calculus")])
    context = AssistantContext(route="/study", language="Spanish", user_goal=UserGoal(type="exam", country="India"))

    action = await IntentResolver(provider).resolve("make a calculus test", context, "jarvis")

    assert action.params["numQuestions"] == 10
    call = provider.calls[0]
    assert '"make a calculus test"' in call["prompt"]
    assert '"/study"' in call["prompt"]
    assert "exam in India" in call["prompt"]
    assert "MUST be written in Spanish" in call["system"]
    assert {tool["name"] for tool in call["tools"]} == {"getCurrentTime", "generalKnowledge"}


@pytest.mark.anyio
async def test_tool_round_feeds_results_back() -> None:
    provider = StubProvider(
        [
            ChatResponse(text="", tool_calls=[{"tool": "getCurrentTime", "args": {"location": "Paris"}}]),
            action_json("chat", "It is about 3 PM in Paris."),
        ]
    )
    toolbox = ResolverToolbox(clock=lambda: datetime(2024, 5, 1, 15, 4))

    action = await IntentResolver(provider, toolbox=toolbox).resolve("what time is it in Paris", CONTEXT, "jarvis")

    assert action.verbal_response == "It is about 3 PM in Paris."
    assert len(provider.calls) == 2
    assert "The current time in Paris is approximately 03:04 PM." in provider.calls[1]["prompt"]


@pytest.mark.anyio
async def test_endless_tool_calls_fail() -> None:
    looping = ChatResponse(text="", tool_calls=[{"tool": "generalKnowledge", "args": {"question": "why"}}])
    provider = StubProvider([looping, looping, looping])
    resolver = IntentResolver(provider, policies=ResolverPolicies(max_tool_rounds=2))

    with pytest.raises(ResolutionError):
        await resolver.resolve("why is the sky blue", CONTEXT, "jarvis")


@pytest.mark.anyio
async def test_timeout_becomes_resolution_error() -> None:
    provider = StubProvider([action_json("chat", "late")], gate=asyncio.Event())
    resolver = IntentResolver(provider, policies=ResolverPolicies(timeout_seconds=0.05))

    with pytest.raises(ResolutionError, match="within 0.05 seconds"):
        await resolver.resolve("hello", CONTEXT, "jarvis")


@pytest.mark.anyio
async def test_http_errors_are_sanitized() -> None:
    request = httpx.Request("POST", "https://example.invalid/v1")
    response = httpx.Response(403, text="API key not valid. Please pass a valid API key.", request=request)
    provider = StubProvider([httpx.HTTPStatusError("forbidden", request=request, response=response)])

    with pytest.raises(ResolutionError) as info:
        await IntentResolver(provider).resolve("hello", CONTEXT, "jarvis")
    assert str(info.value) == "Assistant Error: The API key is invalid or missing permissions."
    assert "valid API key" in info.value.raw


@pytest.mark.anyio
async def test_network_error_is_sanitized() -> None:
    provider = StubProvider([httpx.ConnectError("connection refused")])
    with pytest.raises(ResolutionError, match="unreachable"):
        await IntentResolver(provider).resolve("hello", CONTEXT, "jarvis")


@pytest.mark.anyio
async def test_invalid_params_raise_schema_error() -> None:
    provider = StubProvider([action_json("navigate", "Going.", target="/nowhere")])
    with pytest.raises(SchemaError):
        await IntentResolver(provider).resolve("go nowhere", CONTEXT, "jarvis")


def test_parse_strips_code_fence() -> None:
    payload = parse_action_payload('```json\n{"kind": "logout", "verbalResponse": "Bye."}\n```')
    assert payload["kind"] == "logout"


@pytest.mark.parametrize(
    ("text", "fragment"),
    [
        ("", "Missing 'kind'"),
        ("I think you want the dashboard", "malformed data"),
        ("[1, 2]", "malformed data"),
        ('{"params": {}, "verbalResponse": "hi"}', "Missing 'kind'"),
        ('{"kind": "chat"}', "Missing 'verbalResponse'"),
    ],
)
def test_parse_rejects_bad_replies(text: str, fragment: str) -> None:
    with pytest.raises(ResolutionError, match=fragment):
        parse_action_payload(text)


def test_sanitize_error_never_leaks_detail() -> None:
    assert "not found" in sanitize_error("models/gemini-x is not found for API version v1beta")
    assert sanitize_error("socket exploded at 0xdeadbeef") == "I've encountered an anomaly in my processing core."


@pytest.mark.anyio
async def test_non_json_provider_body_becomes_resolution_error() -> None:
    client = httpx.AsyncClient(
        base_url="https://gemini.test/v1beta",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>upstream proxy error</html>")),
    )
    resolver = IntentResolver(GeminiProvider("secret", client=client))

    with pytest.raises(ResolutionError) as excinfo:
        await resolver.resolve("open notes", CONTEXT, "jarvis")

    assert str(excinfo.value) == MALFORMED
    assert "upstream proxy error" in excinfo.value.raw
