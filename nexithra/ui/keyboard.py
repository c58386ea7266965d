from __future__ import annotations

from typing import Literal

from nexithra.actions.subsystems import AppSubsystems
from nexithra.orchestrator.state_machine import FloatingUIBridge
from nexithra.telemetry.logging import get_logger

Panel = Literal["terminal", "secondary_terminal", "command_palette"]

CHORDS: dict[str, Panel] = {
    "ctrl+'": "terminal",
    "ctrl+q": "secondary_terminal",
    "ctrl+p": "command_palette",
}

_MODIFIER_ALIASES = {"control": "ctrl", "ctl": "ctrl"}


def parse_chord(raw: str) -> str:
    """Normalize ``"Control + Q"`` style input to ``"ctrl+q"``."""
    parts = [part.strip().lower() for part in raw.split("+")]
    return "+".join(_MODIFIER_ALIASES.get(part, part) for part in parts if part)


class KeyboardShortcuts:
    def __init__(self, app: AppSubsystems, ui_bridge: FloatingUIBridge) -> None:
        self._app = app
        self._ui = ui_bridge
        self._logger = get_logger(__name__)

    async def handle(self, chord: str) -> Panel | None:
        panel = CHORDS.get(parse_chord(chord))
        if panel is None:
            return None
        if panel == "terminal":
            await self.toggle_terminal()
        elif panel == "secondary_terminal":
            await self.toggle_secondary_terminal()
        else:
            await self.open_palette()
        return panel

    async def toggle_terminal(self) -> bool:
        is_open = self._app.terminal.toggle()
        await self._publish("terminal", is_open)
        return is_open

    async def toggle_secondary_terminal(self) -> bool:
        is_open = self._app.terminal.toggle_secondary()
        await self._publish("secondary_terminal", is_open)
        return is_open

    async def open_palette(self) -> bool:
        self._app.palette.open()
        await self._publish("command_palette", True)
        return True

    async def _publish(self, panel: Panel, is_open: bool) -> None:
        self._logger.info("ui.panel", panel=panel, open=is_open)
        await self._ui.publish_state("PANEL", {"panel": panel, "open": is_open})


__all__ = ["CHORDS", "KeyboardShortcuts", "Panel", "parse_chord"]
