from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from nexithra.orchestrator.events import TranscriptChunk, WakeWordHit
from nexithra.telemetry.logging import get_logger

TranscriptHandler = Callable[[TranscriptChunk], Awaitable[None]]
WakeWordHandler = Callable[[WakeWordHit], Awaitable[None]]


class CaptureError(RuntimeError):
    """Microphone unavailable: permission denied or unsupported host."""


class SpeechCaptureAdapter(ABC):
    @property
    @abstractmethod
    def active(self) -> bool:
        """Whether a capture session is currently open."""

    @abstractmethod
    async def start(self, on_transcript: TranscriptHandler, on_wake_word: WakeWordHandler) -> None:
        """Open the capture session; raises CaptureError when the mic is unavailable."""

    @abstractmethod
    async def stop(self) -> None:
        """Close the capture session and release the microphone."""

    @abstractmethod
    def report_failure(self, reason: str) -> None:
        """Mark the microphone unavailable so later starts raise CaptureError."""


class HostCaptureAdapter(SpeechCaptureAdapter):
    """Capture performed by the host (browser speech recognition).

    The host pushes recognition events in; they are forwarded only while a
    session is open.
    """

    def __init__(self, supported: bool = True) -> None:
        self._supported = supported
        self._failure: str | None = None
        self._on_transcript: TranscriptHandler | None = None
        self._on_wake_word: WakeWordHandler | None = None
        self._logger = get_logger(__name__)

    @property
    def active(self) -> bool:
        return self._on_transcript is not None

    def report_failure(self, reason: str) -> None:
        """Host could not obtain the microphone (permission, unsupported browser)."""
        self._supported = False
        self._failure = reason
        self._logger.warning("capture.host.failure", reason=reason)

    async def start(self, on_transcript: TranscriptHandler, on_wake_word: WakeWordHandler) -> None:
        if not self._supported:
            raise CaptureError(
                self._failure or "Voice recognition requires a browser with speech recognition support."
            )
        if self.active:
            return
        self._on_transcript = on_transcript
        self._on_wake_word = on_wake_word
        self._logger.info("capture.session.opened")

    async def stop(self) -> None:
        if not self.active:
            return
        self._on_transcript = None
        self._on_wake_word = None
        self._logger.info("capture.session.closed")

    async def push_transcript(self, text: str, is_final: bool, ts: float | None = None) -> bool:
        handler = self._on_transcript
        if handler is None:
            return False
        await handler(TranscriptChunk(ts=ts if ts is not None else time.time(), text=text, is_final=is_final))
        return True

    async def push_wake_word(self, keyword: str, confidence: float = 1.0, ts: float | None = None) -> bool:
        handler = self._on_wake_word
        if handler is None:
            return False
        await handler(WakeWordHit(ts=ts if ts is not None else time.time(), keyword=keyword, confidence=confidence))
        return True


__all__ = ["CaptureError", "HostCaptureAdapter", "SpeechCaptureAdapter", "TranscriptHandler", "WakeWordHandler"]
