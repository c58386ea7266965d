from __future__ import annotations

from dataclasses import dataclass

from nexithra.config import Persona
from nexithra.orchestrator.events import AssistantStatus
from nexithra.telemetry.logging import get_logger


class InvalidTransition(RuntimeError):
    """Raised when a status change is not allowed by the state machine."""


TRANSITIONS: dict[AssistantStatus, frozenset[AssistantStatus]] = {
    "off": frozenset({"idle", "processing"}),
    "idle": frozenset({"listening", "processing", "off"}),
    "listening": frozenset({"processing", "idle", "off"}),
    "processing": frozenset({"speaking", "idle", "off"}),
    "speaking": frozenset({"idle", "processing", "off"}),
}


@dataclass(frozen=True, slots=True)
class TurnTicket:
    turn_id: int
    epoch: int
    resting: AssistantStatus


class AssistantSession:
    """Status machine for one assistant per tab.

    ``epoch`` advances on every toggle and every new turn; a resolver result
    is only applied while the ticket it was issued with is still current.
    """

    def __init__(self, mode: Persona = "jarvis") -> None:
        self.mode: Persona = mode
        self.capture_disabled = False
        self._status: AssistantStatus = "off"
        self._epoch = 0
        self._turns = 0
        self._active_turn: TurnTicket | None = None
        self._logger = get_logger(__name__)

    @property
    def status(self) -> AssistantStatus:
        return self._status

    @property
    def is_active(self) -> bool:
        """True while the capture session is open."""
        return self._status != "off" and not self._offline_turn()

    @property
    def epoch(self) -> int:
        return self._epoch

    def accepts_transcripts(self) -> bool:
        return self._status in ("idle", "listening")

    def toggle_on(self) -> None:
        if self.is_active:
            raise InvalidTransition(f"cannot toggle on from {self._status}")
        # A typed turn started while off is superseded by the new capture session.
        self._epoch += 1
        self._active_turn = None
        self._set("idle", "toggle_on")

    def toggle_off(self) -> None:
        self._epoch += 1
        self._active_turn = None
        if self._status != "off":
            self._set("off", "toggle_off")

    def activate(self) -> bool:
        """Wake word or manual activation; only meaningful from ``idle``."""
        if self._status != "idle":
            return False
        self._set("listening", "activate")
        return True

    def begin_turn(self) -> TurnTicket | None:
        if self._status == "processing":
            return None
        resting: AssistantStatus = "off" if self._status == "off" else "idle"
        self._epoch += 1
        self._turns += 1
        ticket = TurnTicket(turn_id=self._turns, epoch=self._epoch, resting=resting)
        self._active_turn = ticket
        self._set("processing", "begin_turn")
        return ticket

    def is_current(self, ticket: TurnTicket) -> bool:
        return ticket.epoch == self._epoch and self._status == "processing"

    def finish_turn(self, ticket: TurnTicket, speaking: bool) -> None:
        if not self.is_current(ticket):
            return
        self._active_turn = None
        if speaking and ticket.resting != "off":
            self._set("speaking", "resolved")
        else:
            self._set(ticket.resting, "resolved")

    def playback_ended(self) -> None:
        if self._status == "speaking":
            self._set("idle", "playback_ended")

    def _offline_turn(self) -> bool:
        return self._active_turn is not None and self._active_turn.resting == "off"

    def _set(self, target: AssistantStatus, event: str) -> None:
        if target not in TRANSITIONS[self._status]:
            raise InvalidTransition(f"{self._status} -> {target} ({event})")
        previous = self._status
        self._status = target
        self._logger.debug("session.transition", previous=previous, status=target, trigger=event, epoch=self._epoch)


__all__ = ["AssistantSession", "InvalidTransition", "TurnTicket", "TRANSITIONS"]
