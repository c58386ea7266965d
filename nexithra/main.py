from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from nexithra.actions.dispatcher import ActionDispatcher
from nexithra.actions.handlers import default_handlers
from nexithra.actions.subsystems import AppSubsystems
from nexithra.capture.adapter import HostCaptureAdapter
from nexithra.config import AppSettings, SoundMode, load_settings
from nexithra.lang.normalizer import CommandNormalizer
from nexithra.llm.providers.gemini import GeminiProvider
from nexithra.llm.providers.ollama import OllamaProvider
from nexithra.llm.resolver import IntentResolver
from nexithra.llm.types import ChatProvider
from nexithra.orchestrator.events import CommandSource, UserGoal
from nexithra.orchestrator.policies import ResolverPolicies, TurnPolicies
from nexithra.orchestrator.session import AssistantSession
from nexithra.orchestrator.state_machine import Orchestrator
from nexithra.persona import PERSONAS, PersonaManager
from nexithra.telemetry.logging import configure_logging, get_logger
from nexithra.telemetry.tracing import configure_tracing
from nexithra.tts.feedback_queue import BridgeSpeechEngine, SpeechFeedbackQueue, StatePublisher
from nexithra.tts.voice_router import load_router
from nexithra.ui.keyboard import KeyboardShortcuts
from nexithra.ui.websocket import FloatingUIBridge

settings = load_settings()
configure_logging(settings.telemetry.log_level, settings.telemetry.log_format)
configure_tracing("nexithra-assistant", settings.telemetry.otlp_endpoint)
logger = get_logger(__name__)

app = FastAPI(title="Nexithra Assistant")
ui_bridge = FloatingUIBridge()

origins = {settings.ui.floating_ui_origin}
if "localhost" in settings.ui.floating_ui_origin:
    origins.add(settings.ui.floating_ui_origin.replace("localhost", "127.0.0.1"))
app.include_router(ui_bridge.router)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(origins),
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)


class Runtime:
    """Everything one assistant session needs, built once per process."""

    def __init__(
        self,
        orchestrator: Orchestrator,
        capture: HostCaptureAdapter,
        feedback: SpeechFeedbackQueue,
        keyboard: KeyboardShortcuts,
        subsystems: AppSubsystems,
        provider: ChatProvider,
    ) -> None:
        self.orchestrator = orchestrator
        self.capture = capture
        self.feedback = feedback
        self.keyboard = keyboard
        self.subsystems = subsystems
        self._provider = provider
        self._logger = get_logger(__name__)

    async def start(self) -> None:
        await self.orchestrator.publish("STATUS", self.orchestrator.status_payload())
        self._logger.info("runtime.started", provider=self._provider.name)

    async def shutdown(self) -> None:
        self._logger.info("runtime.shutdown.start")
        await self.orchestrator.aclose()
        await self._provider.aclose()
        self._logger.info("runtime.shutdown.complete")


def build_provider(config: AppSettings) -> ChatProvider:
    llm = config.llm
    if llm.provider == "gemini" and llm.gemini_api_key:
        return GeminiProvider(llm.gemini_api_key, llm.gemini_model)
    return OllamaProvider(llm.ollama_host, llm.ollama_model)


def build_runtime(
    config: AppSettings,
    provider: ChatProvider | None = None,
    ui: StatePublisher | None = None,
    capture: HostCaptureAdapter | None = None,
) -> Runtime:
    publisher = ui or ui_bridge
    provider = provider or build_provider(config)
    assistant = config.assistant

    subsystems = AppSubsystems()
    subsystems.language.set(assistant.language)
    session = AssistantSession(mode=assistant.mode)
    feedback = SpeechFeedbackQueue(
        BridgeSpeechEngine(publisher),
        voice_router=load_router(),
        language_provider=lambda: subsystems.language.code,
        sound_mode=config.speech.sound_mode,
        persona=assistant.mode,
    )
    persona = PersonaManager(session, voice=feedback)
    resolver = IntentResolver(
        provider,
        policies=ResolverPolicies(
            timeout_seconds=config.llm.timeout_seconds,
            max_tool_rounds=config.llm.max_tool_rounds,
        ),
    )
    turn_policies = TurnPolicies(
        settle_seconds=assistant.settle_seconds,
        dedupe_window_seconds=assistant.dedupe_window_seconds,
    )
    capture = capture or HostCaptureAdapter()
    orchestrator = Orchestrator(
        session=session,
        persona=persona,
        normalizer=CommandNormalizer(turn_policies.dedupe_window_seconds),
        resolver=resolver,
        dispatcher=ActionDispatcher(default_handlers(), subsystems),
        feedback=feedback,
        capture=capture,
        app=subsystems,
        ui_bridge=publisher,
        policies=turn_policies,
    )
    return Runtime(
        orchestrator=orchestrator,
        capture=capture,
        feedback=feedback,
        keyboard=KeyboardShortcuts(subsystems, publisher),
        subsystems=subsystems,
        provider=provider,
    )


def _runtime() -> Runtime:
    runtime = getattr(app.state, "runtime", None)
    if runtime is None:
        raise HTTPException(status_code=503, detail="runtime-unavailable")
    return runtime


@app.on_event("startup")
async def startup_event() -> None:
    runtime = build_runtime(settings)
    ui_bridge.attach_snapshot(runtime.orchestrator.status_payload)
    await runtime.start()
    app.state.runtime = runtime
    logger.info("app.startup", origins=sorted(origins))


@app.on_event("shutdown")
async def shutdown_event() -> None:
    runtime = getattr(app.state, "runtime", None)
    if runtime:
        await runtime.shutdown()


class CommandRequest(BaseModel):
    command: str
    source: CommandSource = "text"


class ModeRequest(BaseModel):
    mode: str


class ContextRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    route: str | None = None
    language: str | None = None
    user_goal: UserGoal | None = Field(default=None, alias="userGoal")


class TranscriptRequest(BaseModel):
    text: str
    is_final: bool = False
    ts: float | None = None


class WakeRequest(BaseModel):
    keyword: str
    confidence: float = 1.0
    ts: float | None = None


class CaptureErrorRequest(BaseModel):
    reason: str


class SpeechEndedRequest(BaseModel):
    id: int


class SoundModeRequest(BaseModel):
    mode: SoundMode


class KeyRequest(BaseModel):
    chord: str


@app.post("/assistant/toggle")
async def toggle_assistant() -> dict[str, Any]:
    runtime = _runtime()
    await runtime.orchestrator.toggle_assistant()
    return runtime.orchestrator.status_payload()


@app.get("/assistant/status")
async def assistant_status() -> dict[str, Any]:
    return _runtime().orchestrator.status_payload()


@app.post("/assistant/command")
async def assistant_command(req: CommandRequest) -> dict[str, Any]:
    runtime = _runtime()
    result = await runtime.orchestrator.process_command(req.command, req.source)
    if result is None:
        return {"status": "ignored", "assistant": runtime.orchestrator.status_payload()}
    return {
        "status": "stale" if result.stale else ("ok" if result.ok else "error"),
        "turn_id": result.turn_id,
        "kind": result.kind,
        "verbalResponse": result.verbal_response,
        "params": result.params,
        "spoken": result.speech is not None,
        "assistant": runtime.orchestrator.status_payload(),
    }


@app.get("/assistant/personas")
async def assistant_personas() -> dict[str, Any]:
    return {"personas": [{"name": name, "display_name": p["display_name"]} for name, p in PERSONAS.items()]}


@app.post("/assistant/mode")
async def assistant_mode(req: ModeRequest) -> dict[str, Any]:
    runtime = _runtime()
    try:
        profile = await runtime.orchestrator.set_mode(req.mode)
    except ValueError as exc:
        logger.warning("assistant.mode.rejected", mode=req.mode)
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"status": "ok", "profile": profile}


@app.post("/assistant/context")
async def assistant_context(req: ContextRequest) -> dict[str, Any]:
    subsystems = _runtime().subsystems
    if req.route is not None:
        subsystems.navigator.sync(req.route)
    if req.language is not None:
        subsystems.language.set(req.language)
    if req.user_goal is not None:
        subsystems.auth.user_goal = req.user_goal
    return subsystems.snapshot()


@app.post("/capture/transcript")
async def capture_transcript(req: TranscriptRequest) -> dict[str, bool]:
    forwarded = await _runtime().capture.push_transcript(req.text, req.is_final, req.ts)
    return {"forwarded": forwarded}


@app.post("/capture/wake")
async def capture_wake(req: WakeRequest) -> dict[str, bool]:
    forwarded = await _runtime().capture.push_wake_word(req.keyword, req.confidence, req.ts)
    return {"forwarded": forwarded}


@app.post("/capture/error")
async def capture_error(req: CaptureErrorRequest) -> dict[str, str]:
    await _runtime().orchestrator.capture_failed(req.reason)
    return {"status": "ok"}


@app.post("/speech/ended")
async def speech_ended(req: SpeechEndedRequest) -> dict[str, Any]:
    runtime = _runtime()
    await runtime.orchestrator.playback_ended(req.id)
    return runtime.orchestrator.status_payload()


@app.post("/speech/sound-mode")
async def speech_sound_mode(req: SoundModeRequest) -> dict[str, str]:
    feedback = _runtime().feedback
    feedback.set_sound_mode(req.mode)
    return {"sound_mode": feedback.sound_mode}


@app.get("/terminal")
async def terminal_messages() -> dict[str, Any]:
    subsystems = _runtime().subsystems
    return {
        "open": subsystems.terminal.is_open,
        "messages": [message.to_dict() for message in subsystems.audit.snapshot()],
    }


@app.post("/terminal/toggle")
async def terminal_toggle() -> dict[str, bool]:
    is_open = await _runtime().keyboard.toggle_terminal()
    return {"open": is_open}


@app.post("/keys")
async def keys(req: KeyRequest) -> dict[str, str | None]:
    panel = await _runtime().keyboard.handle(req.chord)
    return {"status": "handled" if panel else "ignored", "panel": panel}


__all__ = ["app", "build_provider", "build_runtime", "Runtime"]
