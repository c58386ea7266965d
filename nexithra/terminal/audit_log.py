from __future__ import annotations

import itertools
from dataclasses import asdict, dataclass
from typing import Any, Literal

MessageType = Literal["user", "ai", "system", "error"]


@dataclass(frozen=True, slots=True)
class TerminalMessage:
    id: int
    content: str
    type: MessageType

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class AuditLog:
    """Append-only transcript of the current assistant session.

    Ids keep increasing across ``clear()`` so the UI never sees a reused id.
    """

    def __init__(self) -> None:
        self._messages: list[TerminalMessage] = []
        self._ids = itertools.count(1)

    def append(self, content: str, type: MessageType) -> TerminalMessage:
        message = TerminalMessage(id=next(self._ids), content=content, type=type)
        self._messages.append(message)
        return message

    def snapshot(self) -> list[TerminalMessage]:
        return list(self._messages)

    def clear(self) -> None:
        self._messages.clear()

    def __len__(self) -> int:
        return len(self._messages)


__all__ = ["AuditLog", "TerminalMessage", "MessageType"]
