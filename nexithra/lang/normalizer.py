from __future__ import annotations

import re
import time
from collections.abc import Callable

from nexithra.telemetry.logging import get_logger

WAKE_WORDS: tuple[str, ...] = ("jarvis", "alya", "alia")

_WAKE_ONLY = re.compile(r"^(?:hey\s+)?(?:jarvis|alya|alia)[\s.,!?]*$", re.IGNORECASE)
_WAKE_ANYWHERE = re.compile(r"\b(?:jarvis|alya|alia)\b", re.IGNORECASE)


def normalize(raw: str | None) -> str | None:
    """Trim a raw utterance; ``None`` when nothing visible is left.

    Casing is preserved because the resolver relies on it for proper nouns.
    Wake-word-only input is returned as-is.
    """
    if raw is None:
        return None
    text = raw.strip()
    if not text or not any(ch.isprintable() and not ch.isspace() for ch in text):
        return None
    return text


def is_wake_word(command: str) -> bool:
    return bool(_WAKE_ONLY.match(command.strip()))


def extract_wake_command(transcript: str) -> str | None:
    """Return the command starting at the last wake word in a final transcript."""
    matches = list(_WAKE_ANYWHERE.finditer(transcript))
    if not matches:
        return None
    return transcript[matches[-1].start() :].strip()


class CommandNormalizer:
    """Stateful front door: normalization plus duplicate suppression."""

    def __init__(self, dedupe_window_seconds: float = 1.5, clock: Callable[[], float] = time.monotonic) -> None:
        self._window = dedupe_window_seconds
        self._clock = clock
        self._last_text: str | None = None
        self._last_ts = 0.0
        self._logger = get_logger(__name__)

    def accept(self, raw: str | None) -> str | None:
        text = normalize(raw)
        if text is None:
            return None
        now = self._clock()
        if (
            self._window > 0
            and self._last_text is not None
            and text.casefold() == self._last_text.casefold()
            and now - self._last_ts < self._window
        ):
            self._logger.debug("normalizer.duplicate_dropped", text=text)
            return None
        self._last_text = text
        self._last_ts = now
        return text

    def reset(self) -> None:
        self._last_text = None
        self._last_ts = 0.0


__all__ = ["WAKE_WORDS", "normalize", "is_wake_word", "extract_wake_command", "CommandNormalizer"]
