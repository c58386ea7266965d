from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel

AssistantStatus = Literal["off", "idle", "listening", "processing", "speaking"]

CommandSource = Literal["voice", "text"]

UIEvent = Literal["STATUS", "TERMINAL", "ACTION", "SPEAK", "SPEECH_CANCEL", "PERSONA", "PANEL"]


@dataclass(slots=True)
class WakeWordHit:
    ts: float
    keyword: str
    confidence: float = 1.0


@dataclass(slots=True)
class TranscriptChunk:
    ts: float
    text: str
    is_final: bool = False


class UserGoal(BaseModel):
    type: str
    country: str | None = None
    university: str | None = None


@dataclass(slots=True)
class AssistantContext:
    route: str
    language: str
    user_goal: UserGoal | None = None


@dataclass(slots=True)
class TurnResult:
    turn_id: int
    command: str
    kind: str | None
    verbal_response: str
    ok: bool = True
    stale: bool = False
    speech: str | None = None
    params: dict[str, Any] = field(default_factory=dict)


__all__ = [
    "AssistantStatus",
    "CommandSource",
    "UIEvent",
    "WakeWordHit",
    "TranscriptChunk",
    "UserGoal",
    "AssistantContext",
    "TurnResult",
]
