from __future__ import annotations

import functools
from typing import Literal

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

Persona = Literal["jarvis", "alya"]
SoundMode = Literal["full", "essential", "muted"]


class LLMSettings(BaseModel):
    provider: Literal["gemini", "ollama"] = "gemini"
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.5-flash-lite"
    ollama_host: str = "http://localhost:11434"
    ollama_model: str = "llama3.2"
    timeout_seconds: float = 20.0
    max_tool_rounds: int = 2


class AssistantSettings(BaseModel):
    mode: Persona = "jarvis"
    language: str = "en"
    dedupe_window_seconds: float = 1.5
    settle_seconds: float = 1.0


class SpeechSettings(BaseModel):
    sound_mode: SoundMode = "essential"


class TelemetrySettings(BaseModel):
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "json"
    otlp_endpoint: str | None = None


class UISettings(BaseModel):
    floating_ui_origin: str = "http://localhost:3000"


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=(".env", ".env.local"), env_file_encoding="utf-8", extra="ignore")

    LLM_PROVIDER: Literal["gemini", "ollama"] = "gemini"
    GEMINI_API_KEY: str | None = None
    GEMINI_MODEL: str = "gemini-2.5-flash-lite"
    OLLAMA_HOST: str = "http://localhost:11434"
    OLLAMA_MODEL: str = "llama3.2"
    RESOLVER_TIMEOUT_SECONDS: float = 20.0
    RESOLVER_MAX_TOOL_ROUNDS: int = 2
    ASSISTANT_MODE: Persona = "jarvis"
    APP_LANGUAGE: str = "en"
    DEDUPE_WINDOW_SECONDS: float = 1.5
    COMMAND_SETTLE_SECONDS: float = 1.0
    SOUND_MODE: SoundMode = "essential"
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "json"
    OTEL_EXPORTER_OTLP_ENDPOINT: str | None = None
    FLOATING_UI_ORIGIN: str = "http://localhost:3000"

    @property
    def llm(self) -> LLMSettings:
        provider = self.LLM_PROVIDER
        # Gemini without a key cannot serve requests; fall back to the local model.
        if provider == "gemini" and not self.GEMINI_API_KEY:
            provider = "ollama"
        return LLMSettings(
            provider=provider,
            gemini_api_key=self.GEMINI_API_KEY,
            gemini_model=self.GEMINI_MODEL,
            ollama_host=self.OLLAMA_HOST,
            ollama_model=self.OLLAMA_MODEL,
            timeout_seconds=self.RESOLVER_TIMEOUT_SECONDS,
            max_tool_rounds=self.RESOLVER_MAX_TOOL_ROUNDS,
        )

    @property
    def assistant(self) -> AssistantSettings:
        return AssistantSettings(
            mode=self.ASSISTANT_MODE,
            language=self.APP_LANGUAGE,
            dedupe_window_seconds=self.DEDUPE_WINDOW_SECONDS,
            settle_seconds=self.COMMAND_SETTLE_SECONDS,
        )

    @property
    def speech(self) -> SpeechSettings:
        return SpeechSettings(sound_mode=self.SOUND_MODE)

    @property
    def telemetry(self) -> TelemetrySettings:
        return TelemetrySettings(
            log_level=self.LOG_LEVEL,
            log_format=self.LOG_FORMAT,
            otlp_endpoint=self.OTEL_EXPORTER_OTLP_ENDPOINT,
        )

    @property
    def ui(self) -> UISettings:
        return UISettings(floating_ui_origin=self.FLOATING_UI_ORIGIN)


@functools.lru_cache(maxsize=1)
def load_settings() -> AppSettings:
    return AppSettings()


__all__ = ["AppSettings", "Persona", "SoundMode", "load_settings"]
