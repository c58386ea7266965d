from __future__ import annotations

from typing import Any

import httpx

from nexithra.llm.types import ChatProvider, ChatResponse
from nexithra.telemetry.logging import get_logger

SAFETY_SETTINGS = [
    {"category": category, "threshold": "BLOCK_ONLY_HIGH"}
    for category in (
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    )
]


class GeminiProvider(ChatProvider):
    def __init__(self, api_key: str, model: str = "gemini-2.5-flash-lite", client: httpx.AsyncClient | None = None) -> None:
        self._client = client or httpx.AsyncClient(
            base_url="https://generativelanguage.googleapis.com/v1beta",
            timeout=60.0,
        )
        self._api_key = api_key
        self._model = model
        self._logger = get_logger(__name__)
        self.name = "gemini"

    async def chat(
        self,
        prompt: str,
        system: str,
        tools: list[dict[str, Any]] | None = None,
        temperature: float = 0.1,
    ) -> ChatResponse:
        payload: dict[str, Any] = {
            "systemInstruction": {"role": "system", "parts": [{"text": system}]},
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": temperature},
            "safetySettings": SAFETY_SETTINGS,
        }
        if tools:
            payload["tools"] = [{"functionDeclarations": tools}]
        else:
            # JSON mode cannot be combined with function calling.
            payload["generationConfig"]["responseMimeType"] = "application/json"
        resp = await self._client.post(
            f"/models/{self._model}:generateContent",
            params={"key": self._api_key},
            json=payload,
        )
        resp.raise_for_status()
        data = resp.json()
        text_parts: list[str] = []
        tool_calls: list[dict[str, Any]] = []
        candidates = data.get("candidates") or []
        if candidates:
            for part in (candidates[0].get("content") or {}).get("parts", []):
                if "functionCall" in part:
                    call = part["functionCall"]
                    tool_calls.append({"tool": call.get("name"), "args": call.get("args") or {}})
                elif "text" in part:
                    text_parts.append(part["text"])
        self._logger.debug("gemini.chat.response", tool_calls=len(tool_calls), chars=sum(map(len, text_parts)))
        return ChatResponse(text="".join(text_parts), tool_calls=tool_calls)

    async def aclose(self) -> None:
        await self._client.aclose()
