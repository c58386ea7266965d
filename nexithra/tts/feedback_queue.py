from __future__ import annotations

import asyncio
import itertools
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Literal, Protocol

from nexithra.config import SoundMode
from nexithra.telemetry.logging import get_logger
from nexithra.tts.voice_router import VoiceProfile, VoiceRouter, load_router

Priority = Literal["essential", "optional", "manual"]
SpeechOutcome = Literal["started", "queued", "dropped"]


@dataclass(frozen=True, slots=True)
class Utterance:
    id: int
    text: str
    priority: Priority
    voice: VoiceProfile

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "text": self.text, "priority": self.priority, "voice": self.voice.to_dict()}


class SpeechEngine(Protocol):
    """Black-box TTS: starts and cancels playback, reports the end back.

    The end must be reported through ``SpeechFeedbackQueue.playback_ended``
    after ``speak`` has returned, never from inside it.
    """

    async def speak(self, utterance: Utterance) -> None: ...

    async def cancel(self, utterance: Utterance) -> None: ...


class StatePublisher(Protocol):
    async def publish_state(self, state: str, payload: dict | None = None) -> None: ...


class BridgeSpeechEngine:
    """Forwards playback to the host UI; the host posts the end event back."""

    def __init__(self, publisher: StatePublisher) -> None:
        self._publisher = publisher

    async def speak(self, utterance: Utterance) -> None:
        await self._publisher.publish_state("SPEAK", utterance.to_dict())

    async def cancel(self, utterance: Utterance) -> None:
        await self._publisher.publish_state("SPEECH_CANCEL", {"id": utterance.id})


class SpeechFeedbackQueue:
    """Priority arbitration of spoken responses; one audible utterance at a time.

    ``manual`` preempts everything and discards pending items, ``essential``
    preempts ``optional`` but waits behind another ``essential``/``manual``,
    and ``optional`` is dropped whenever anything is speaking or waiting.
    """

    def __init__(
        self,
        engine: SpeechEngine,
        voice_router: VoiceRouter | None = None,
        language_provider: Callable[[], str] = lambda: "en",
        sound_mode: SoundMode = "essential",
        persona: str = "jarvis",
    ) -> None:
        self._engine = engine
        self._router = voice_router or load_router()
        self._language_provider = language_provider
        self._sound_mode: SoundMode = sound_mode
        self._persona = persona
        self._current: Utterance | None = None
        self._pending: deque[Utterance] = deque()
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()
        self._logger = get_logger(__name__)
        self.on_drained: Callable[[], Awaitable[None]] | None = None

    @property
    def current(self) -> Utterance | None:
        return self._current

    @property
    def pending(self) -> list[Utterance]:
        return list(self._pending)

    @property
    def is_busy(self) -> bool:
        return self._current is not None or bool(self._pending)

    @property
    def sound_mode(self) -> SoundMode:
        return self._sound_mode

    def set_sound_mode(self, mode: SoundMode) -> None:
        if mode not in ("full", "essential", "muted"):
            raise ValueError(f"unknown sound mode '{mode}'")
        self._sound_mode = mode
        self._logger.info("speech.sound_mode.set", mode=mode)

    def set_voice_preference(self, persona: str) -> None:
        # Validated eagerly; applies to utterances requested from now on.
        self._router.resolve(persona, self._language_provider())
        self._persona = persona
        self._logger.info("speech.voice.preference", persona=persona)

    async def request(self, text: str, priority: Priority = "essential") -> SpeechOutcome:
        text = text.strip()
        if not text:
            return "dropped"
        if not self._allowed(priority):
            self._logger.debug("speech.request.muted", priority=priority, sound_mode=self._sound_mode)
            return "dropped"

        async with self._lock:
            utterance = Utterance(
                id=next(self._ids),
                text=text,
                priority=priority,
                voice=self._router.resolve(self._persona, self._language_provider()),
            )
            current = self._current
            if priority == "manual":
                dropped = len(self._pending)
                self._pending.clear()
                if current is not None:
                    await self._engine.cancel(current)
                self._logger.debug("speech.manual.preempt", cancelled=current is not None, dropped=dropped)
                await self._start(utterance)
                return "started"

            if priority == "essential":
                if current is None:
                    await self._start(utterance)
                    return "started"
                if current.priority == "optional":
                    await self._engine.cancel(current)
                    await self._start(utterance)
                    return "started"
                self._pending.append(utterance)
                self._logger.debug("speech.queued", id=utterance.id, depth=len(self._pending))
                return "queued"

            if current is not None or self._pending:
                self._logger.debug("speech.optional.dropped", id=utterance.id)
                return "dropped"
            await self._start(utterance)
            return "started"

    async def playback_ended(self, utterance_id: int) -> None:
        drained = False
        async with self._lock:
            if self._current is None or self._current.id != utterance_id:
                # Late end event for an utterance that was already cancelled.
                return
            self._current = None
            if self._pending:
                await self._start(self._pending.popleft())
            else:
                drained = True
        if drained and self.on_drained is not None:
            await self.on_drained()

    async def cancel_all(self) -> None:
        async with self._lock:
            self._pending.clear()
            current, self._current = self._current, None
            if current is not None:
                await self._engine.cancel(current)
                self._logger.info("speech.cancelled", id=current.id)

    def _allowed(self, priority: Priority) -> bool:
        if self._sound_mode == "muted":
            return priority == "manual"
        if self._sound_mode == "essential":
            return priority != "optional"
        return True

    async def _start(self, utterance: Utterance) -> None:
        self._current = utterance
        await self._engine.speak(utterance)
        self._logger.info("speech.started", id=utterance.id, priority=utterance.priority, persona=utterance.voice.persona)


__all__ = [
    "BridgeSpeechEngine",
    "Priority",
    "SpeechEngine",
    "SpeechFeedbackQueue",
    "SpeechOutcome",
    "Utterance",
]
