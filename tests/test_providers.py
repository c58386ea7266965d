from __future__ import annotations

import json

import httpx
import pytest

from nexithra.llm.providers.gemini import GeminiProvider
from nexithra.llm.providers.ollama import OllamaProvider

TOOLS = [{"name": "getCurrentTime", "description": "time", "parameters": {"type": "object"}}]


@pytest.mark.anyio
async def test_gemini_request_and_function_call() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "candidates": [
                    {"content": {"parts": [{"functionCall": {"name": "getCurrentTime", "args": {"location": "Pune"}}}]}}
                ]
            },
        )

    client = httpx.AsyncClient(base_url="https://gemini.test/v1beta", transport=httpx.MockTransport(handler))
    provider = GeminiProvider("secret", "gemini-test", client=client)

    response = await provider.chat("what time is it in Pune", "system rules", tools=TOOLS)
    await provider.aclose()

    assert "/models/gemini-test:generateContent" in seen["url"]
    assert "key=secret" in seen["url"]
    assert seen["body"]["tools"] == [{"functionDeclarations": TOOLS}]
    assert "responseMimeType" not in seen["body"]["generationConfig"]
    assert response.tool_calls == [{"tool": "getCurrentTime", "args": {"location": "Pune"}}]


@pytest.mark.anyio
async def test_gemini_json_mode_without_tools() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert body["generationConfig"]["responseMimeType"] == "application/json"
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": '{"kind": "chat"}'}]}}]})

    client = httpx.AsyncClient(base_url="https://gemini.test/v1beta", transport=httpx.MockTransport(handler))
    response = await GeminiProvider("secret", client=client).chat("hi", "rules")
    assert response.text == '{"kind": "chat"}'
    assert response.tool_calls == []


@pytest.mark.anyio
async def test_gemini_http_error_propagates() -> None:
    client = httpx.AsyncClient(
        base_url="https://gemini.test/v1beta",
        transport=httpx.MockTransport(lambda request: httpx.Response(403, text="API key not valid")),
    )
    with pytest.raises(httpx.HTTPStatusError):
        await GeminiProvider("bad", client=client).chat("hi", "rules")


@pytest.mark.anyio
async def test_ollama_tool_calls_parsed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert body["model"] == "llama-test"
        assert body["messages"][0] == {"role": "system", "content": "rules"}
        assert body["tools"][0]["type"] == "function"
        return httpx.Response(
            200,
            json={
                "message": {
                    "content": "",
                    "tool_calls": [{"function": {"name": "generalKnowledge", "arguments": {"question": "why"}}}],
                }
            },
        )

    client = httpx.AsyncClient(base_url="http://ollama.test", transport=httpx.MockTransport(handler))
    provider = OllamaProvider("http://ollama.test", "llama-test", client=client)

    response = await provider.chat("why", "rules", tools=TOOLS)

    assert response.tool_calls == [{"tool": "generalKnowledge", "args": {"question": "why"}}]
