from __future__ import annotations

import pytest

from nexithra.lang.normalizer import CommandNormalizer, extract_wake_command, is_wake_word, normalize


@pytest.mark.parametrize("raw", [None, "", "   ", "\t\n"])
def test_normalize_drops_invisible_input(raw) -> None:
    assert normalize(raw) is None


def test_normalize_trims_and_keeps_casing() -> None:
    assert normalize("  Open the Dashboard  ") == "Open the Dashboard"
    assert normalize("Jarvis") == "Jarvis"


@pytest.mark.parametrize("command", ["Jarvis", "jarvis", "Hey Jarvis", "hey alya", "ALIA", "Jarvis?", "Alya."])
def test_wake_word_only(command: str) -> None:
    assert is_wake_word(command)


@pytest.mark.parametrize("command", ["Jarvis open notes", "Hey there", "jarvisx", "say jarvis"])
def test_not_wake_word_only(command: str) -> None:
    assert not is_wake_word(command)


def test_extract_wake_command_uses_last_wake_word() -> None:
    assert extract_wake_command("um Jarvis wait, Alya open the news") == "Alya open the news"
    assert extract_wake_command("open the news") is None


def test_duplicates_within_window_are_dropped() -> None:
    now = [100.0]
    normalizer = CommandNormalizer(dedupe_window_seconds=1.5, clock=lambda: now[0])

    assert normalizer.accept("open notes") == "open notes"
    now[0] += 0.5
    assert normalizer.accept("Open Notes ") is None
    now[0] += 2.0
    assert normalizer.accept("open notes") == "open notes"


def test_reset_forgets_last_command() -> None:
    normalizer = CommandNormalizer(dedupe_window_seconds=10, clock=lambda: 1.0)
    normalizer.accept("dark mode")
    normalizer.reset()
    assert normalizer.accept("dark mode") == "dark mode"
