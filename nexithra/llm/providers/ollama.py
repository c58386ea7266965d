from __future__ import annotations

from typing import Any

import httpx

from nexithra.llm.types import ChatProvider, ChatResponse
from nexithra.telemetry.logging import get_logger


class OllamaProvider(ChatProvider):
    def __init__(self, host: str, model: str = "llama3.2", client: httpx.AsyncClient | None = None) -> None:
        self._host = host.rstrip("/")
        self._model = model
        self._client = client or httpx.AsyncClient(base_url=self._host, timeout=60.0)
        self._logger = get_logger(__name__)
        self.name = "ollama"

    async def chat(
        self,
        prompt: str,
        system: str,
        tools: list[dict[str, Any]] | None = None,
        temperature: float = 0.1,
    ) -> ChatResponse:
        payload: dict[str, Any] = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "stream": False,
            "options": {"temperature": temperature},
        }
        if tools:
            payload["tools"] = [{"type": "function", "function": tool} for tool in tools]
        else:
            payload["format"] = "json"
        self._logger.info("ollama.chat", model=self._model, prompt_len=len(prompt), tools=len(tools or []))
        resp = await self._client.post("/api/chat", json=payload)
        resp.raise_for_status()
        message = resp.json().get("message") or {}
        tool_calls = [
            {"tool": call.get("function", {}).get("name"), "args": call.get("function", {}).get("arguments") or {}}
            for call in message.get("tool_calls") or []
        ]
        return ChatResponse(text=message.get("content", ""), tool_calls=tool_calls)

    async def aclose(self) -> None:
        await self._client.aclose()
