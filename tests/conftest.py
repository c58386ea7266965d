from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest

from nexithra.config import AppSettings
from nexithra.llm.types import ChatProvider, ChatResponse


@pytest.fixture
def anyio_backend():
    return "asyncio"


def action_json(kind: str, verbal: str, **params: Any) -> str:
    return json.dumps({"kind": kind, "params": params, "verbalResponse": verbal})


class StubProvider(ChatProvider):
    """Replays canned replies; an optional gate holds every call open."""

    def __init__(self, replies: list[Any] | None = None, gate: asyncio.Event | None = None) -> None:
        self.name = "stub"
        self.replies = list(replies or [])
        self.calls: list[dict[str, Any]] = []
        self.gate = gate
        self.closed = False

    async def chat(self, prompt, system, tools=None, temperature=0.1) -> ChatResponse:
        self.calls.append({"prompt": prompt, "system": system, "tools": tools, "temperature": temperature})
        if self.gate is not None:
            await self.gate.wait()
        if not self.replies:
            raise AssertionError("provider called more often than expected")
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, ChatResponse):
            return reply
        return ChatResponse(text=reply)

    async def aclose(self) -> None:
        self.closed = True


class RecordingBridge:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict]] = []

    async def publish_state(self, state: str, payload: dict | None = None) -> None:
        self.events.append((state, payload or {}))

    def of(self, state: str) -> list[dict]:
        return [payload for name, payload in self.events if name == state]


class RecordingEngine:
    def __init__(self) -> None:
        self.spoken = []
        self.cancelled = []

    async def speak(self, utterance) -> None:
        self.spoken.append(utterance)

    async def cancel(self, utterance) -> None:
        self.cancelled.append(utterance)


@pytest.fixture
def bridge() -> RecordingBridge:
    return RecordingBridge()


@pytest.fixture
def make_runtime(bridge, monkeypatch):
    """Build the production wiring around a stub provider and a recording bridge."""
    for key in ("LLM_PROVIDER", "GEMINI_API_KEY", "ASSISTANT_MODE", "APP_LANGUAGE", "SOUND_MODE"):
        monkeypatch.delenv(key, raising=False)

    from nexithra.main import build_runtime

    def factory(replies: list[Any] | None = None, gate: asyncio.Event | None = None, **overrides: Any):
        options = {"COMMAND_SETTLE_SECONDS": 0, "DEDUPE_WINDOW_SECONDS": 0, **overrides}
        config = AppSettings(_env_file=None, **options)
        provider = StubProvider(replies, gate=gate)
        return build_runtime(config, provider=provider, ui=bridge), provider

    return factory
