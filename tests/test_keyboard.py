from __future__ import annotations

import pytest

from nexithra.actions.subsystems import AppSubsystems
from nexithra.ui.keyboard import KeyboardShortcuts, parse_chord


@pytest.mark.parametrize(
    ("raw", "chord"),
    [("Ctrl+'", "ctrl+'"), ("Control + Q", "ctrl+q"), ("ctrl+P", "ctrl+p")],
)
def test_parse_chord(raw: str, chord: str) -> None:
    assert parse_chord(raw) == chord


@pytest.mark.anyio
async def test_chords_drive_panels(bridge) -> None:
    app = AppSubsystems()
    keys = KeyboardShortcuts(app, bridge)

    assert await keys.handle("Ctrl+'") == "terminal"
    assert app.terminal.is_open
    assert await keys.handle("ctrl+q") == "secondary_terminal"
    assert app.terminal.secondary_open
    assert await keys.handle("ctrl+p") == "command_palette"
    assert app.palette.is_open

    assert await keys.handle("Ctrl+'") == "terminal"
    assert not app.terminal.is_open
    assert bridge.of("PANEL")[-1] == {"panel": "terminal", "open": False}


@pytest.mark.anyio
async def test_unbound_chord_ignored(bridge) -> None:
    keys = KeyboardShortcuts(AppSubsystems(), bridge)
    assert await keys.handle("ctrl+z") is None
    assert bridge.events == []
