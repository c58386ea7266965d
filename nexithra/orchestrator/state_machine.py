from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any, Protocol

from nexithra.actions.dispatcher import ActionDispatcher
from nexithra.actions.subsystems import AppSubsystems
from nexithra.capture.adapter import CaptureError, SpeechCaptureAdapter
from nexithra.lang.normalizer import CommandNormalizer, extract_wake_command
from nexithra.llm.action_schema import SchemaError
from nexithra.llm.resolver import GENERIC_FAILURE, IntentResolver, ResolutionError
from nexithra.orchestrator.events import (
    AssistantContext,
    AssistantStatus,
    CommandSource,
    TranscriptChunk,
    TurnResult,
    UIEvent,
    WakeWordHit,
)
from nexithra.orchestrator.policies import TurnPolicies
from nexithra.orchestrator.session import AssistantSession, TurnTicket
from nexithra.persona import PersonaManager, apology, display_name
from nexithra.telemetry.logging import bind_turn, clear_turn, get_logger
from nexithra.tts.feedback_queue import SpeechFeedbackQueue

ContextProvider = Callable[[], AssistantContext]


class FloatingUIBridge(Protocol):
    async def publish_state(self, state: UIEvent, payload: dict | None = None) -> None: ...


class Orchestrator:
    """Runs one command turn at a time from capture to spoken reply.

    A command that arrives while a turn is in flight is ignored, and a result
    that arrives after the session was toggled is discarded.
    """

    def __init__(
        self,
        session: AssistantSession,
        persona: PersonaManager,
        normalizer: CommandNormalizer,
        resolver: IntentResolver,
        dispatcher: ActionDispatcher,
        feedback: SpeechFeedbackQueue,
        capture: SpeechCaptureAdapter,
        app: AppSubsystems,
        ui_bridge: FloatingUIBridge,
        policies: TurnPolicies | None = None,
        context_provider: ContextProvider | None = None,
    ) -> None:
        self._session = session
        self._persona = persona
        self._normalizer = normalizer
        self._resolver = resolver
        self._dispatcher = dispatcher
        self._feedback = feedback
        self._capture = capture
        self._app = app
        self._ui = ui_bridge
        self._policies = policies or TurnPolicies()
        self._context_provider = context_provider or self._app_context
        self._settle_task: asyncio.Task | None = None
        self._logger = get_logger(__name__)
        self._feedback.on_drained = self._on_speech_drained

    @property
    def session(self) -> AssistantSession:
        return self._session

    @property
    def status(self) -> AssistantStatus:
        return self._session.status

    def status_payload(self) -> dict[str, Any]:
        return {
            "status": self._session.status,
            "active": self._session.is_active,
            "mode": self._session.mode,
            "capture_disabled": self._session.capture_disabled,
            "sound_mode": self._feedback.sound_mode,
        }

    async def publish(self, event: UIEvent, payload: dict[str, Any] | None = None) -> None:
        await self._ui.publish_state(event, payload or {})

    async def toggle_assistant(self) -> AssistantStatus:
        if self._session.capture_disabled:
            self._logger.info("assistant.toggle.disabled")
            return self._session.status

        if self._session.is_active:
            self._session.toggle_off()
            self._cancel_settle()
            await self._capture.stop()
            await self._feedback.cancel_all()
            self._normalizer.reset()
            self._logger.info("assistant.toggled", active=False)
        else:
            try:
                await self._capture.start(self.on_transcript, self.on_wake_word)
            except CaptureError as exc:
                self._session.capture_disabled = True
                self._app.audit.append(f"Voice recognition unavailable: {exc}", "error")
                self._logger.error("capture.start.failed", error=str(exc))
                await self._publish_terminal()
                await self._publish_status()
                return self._session.status
            self._session.toggle_on()
            self._logger.info("assistant.toggled", active=True)

        await self._publish_status()
        return self._session.status

    async def capture_failed(self, reason: str) -> None:
        """The host lost the microphone; close the session and disable toggling."""
        self._capture.report_failure(reason)
        if self._session.capture_disabled:
            return
        self._session.capture_disabled = True
        self._cancel_settle()
        if self._session.is_active:
            self._session.toggle_off()
            await self._feedback.cancel_all()
            self._normalizer.reset()
        await self._capture.stop()
        self._app.audit.append(f"Voice recognition unavailable: {reason}", "error")
        self._logger.error("capture.host.failed", reason=reason)
        await self._publish_terminal()
        await self._publish_status()

    async def on_wake_word(self, hit: WakeWordHit) -> None:
        if self._session.activate():
            self._logger.info("capture.wake_word", keyword=hit.keyword, confidence=hit.confidence)
            await self._publish_status()

    async def on_transcript(self, chunk: TranscriptChunk) -> None:
        if not self._session.accepts_transcripts():
            return

        command = extract_wake_command(chunk.text)
        if command is None and self._session.status == "listening":
            command = chunk.text.strip() or None
        if command is None:
            return

        if self._session.activate():
            await self._publish_status()
        if not chunk.is_final:
            return

        # Trailing speech within the settle window replaces the pending command.
        self._cancel_settle()
        if self._policies.settle_seconds <= 0:
            await self.process_command(command, "voice")
            return
        self._settle_task = asyncio.create_task(self._settle(command), name="voice-settle")

    async def process_command(self, raw: str | None, source: CommandSource = "text") -> TurnResult | None:
        if source == "voice" and not self._session.accepts_transcripts():
            self._logger.debug("turn.voice.ignored", status=self._session.status)
            return None
        if self._session.status == "processing":
            self._logger.info("turn.ignored.busy", source=source)
            return None

        command = self._normalizer.accept(raw)
        if command is None:
            return None

        ticket = self._session.begin_turn()
        if ticket is None:
            return None

        bind_turn(ticket.turn_id, source)
        try:
            return await self._run_turn(ticket, command)
        finally:
            clear_turn()

    async def playback_ended(self, utterance_id: int) -> None:
        await self._feedback.playback_ended(utterance_id)

    async def set_mode(self, mode: str) -> dict[str, object]:
        self._persona.activate(mode)
        profile = self._persona.active_profile()
        await self.publish("PERSONA", profile)
        return profile

    async def aclose(self) -> None:
        self._cancel_settle()
        await self._capture.stop()
        await self._feedback.cancel_all()

    async def _run_turn(self, ticket: TurnTicket, command: str) -> TurnResult:
        self._logger.info("turn.started", command=command, resting=ticket.resting)
        self._app.audit.append(f"> {command}", "user")
        await self._publish_terminal()
        await self._publish_status()

        context: AssistantContext | None = None
        try:
            context = self._context_provider()
            action = await self._resolver.resolve(command, context, self._session.mode)
        except (ResolutionError, SchemaError) as exc:
            raw = getattr(exc, "raw", None) or getattr(exc, "payload", None)
            self._logger.error("turn.resolution.failed", error=str(exc), raw=raw)
            return await self._fail(ticket, command, str(exc), context)
        except Exception as exc:
            self._logger.exception("turn.resolution.crashed", error=str(exc))
            return await self._fail(ticket, command, GENERIC_FAILURE, context)

        if not self._session.is_current(ticket):
            self._logger.info("turn.stale", kind=action.kind, epoch=ticket.epoch, current=self._session.epoch)
            return TurnResult(
                turn_id=ticket.turn_id,
                command=command,
                kind=action.kind,
                verbal_response=action.verbal_response,
                ok=False,
                stale=True,
                params=action.params,
            )

        self._app.audit.append(f"{display_name(self._session.mode)}: {action.verbal_response}", "ai")
        ok = self._dispatcher.dispatch(action)
        await self._publish_terminal()
        await self.publish("ACTION", {"action": action.to_payload(), "app": self._app.snapshot()})

        speech = await self._speak(ticket, action.verbal_response)
        self._logger.info("turn.completed", kind=action.kind, ok=ok, spoken=speech is not None)
        return TurnResult(
            turn_id=ticket.turn_id,
            command=command,
            kind=action.kind,
            verbal_response=action.verbal_response,
            ok=ok,
            speech=speech,
            params=action.params,
        )

    async def _fail(
        self,
        ticket: TurnTicket,
        command: str,
        message: str,
        context: AssistantContext | None,
    ) -> TurnResult:
        reply = apology(self._session.mode, context.language if context else "English")
        if not self._session.is_current(ticket):
            return TurnResult(ticket.turn_id, command, None, reply, ok=False, stale=True)
        self._app.audit.append(message, "error")
        await self._publish_terminal()
        speech = await self._speak(ticket, reply)
        return TurnResult(ticket.turn_id, command, None, reply, ok=False, speech=speech)

    async def _speak(self, ticket: TurnTicket, text: str) -> str | None:
        if not self._session.is_current(ticket):
            self._logger.info("turn.speech.skipped", epoch=ticket.epoch, current=self._session.epoch)
            return None
        spoken = False
        if ticket.resting != "off":
            outcome = await self._feedback.request(text, "essential")
            spoken = outcome != "dropped"
        self._session.finish_turn(ticket, speaking=spoken)
        await self._publish_status()
        return text if spoken else None

    async def _settle(self, command: str) -> None:
        await asyncio.sleep(self._policies.settle_seconds)
        self._settle_task = None
        await self.process_command(command, "voice")

    def _cancel_settle(self) -> None:
        task, self._settle_task = self._settle_task, None
        if task is not None and not task.done():
            task.cancel()

    async def _on_speech_drained(self) -> None:
        if self._session.status == "speaking":
            self._session.playback_ended()
            await self._publish_status()

    def _app_context(self) -> AssistantContext:
        return AssistantContext(
            route=self._app.navigator.current_route,
            language=self._app.language.language.english_name,
            user_goal=self._app.auth.user_goal,
        )

    async def _publish_status(self) -> None:
        await self.publish("STATUS", self.status_payload())

    async def _publish_terminal(self) -> None:
        await self.publish(
            "TERMINAL",
            {"open": self._app.terminal.is_open, "messages": [m.to_dict() for m in self._app.audit.snapshot()]},
        )


__all__ = ["ContextProvider", "FloatingUIBridge", "Orchestrator"]
