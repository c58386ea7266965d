from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class ChatResponse:
    text: str
    tool_calls: list[dict[str, Any]] = field(default_factory=list)


class ChatProvider:
    name: str

    async def chat(
        self,
        prompt: str,
        system: str,
        tools: list[dict[str, Any]] | None = None,
        temperature: float = 0.1,
    ) -> ChatResponse:
        raise NotImplementedError

    async def aclose(self) -> None:
        return None


__all__ = ["ChatProvider", "ChatResponse"]
