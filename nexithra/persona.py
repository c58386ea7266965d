from __future__ import annotations

from typing import Any, Protocol

from nexithra.config import Persona
from nexithra.orchestrator.session import AssistantSession
from nexithra.telemetry.logging import get_logger

PERSONAS: dict[str, dict[str, Any]] = {
    "jarvis": {
        "display_name": "J.A.R.V.I.S.",
        "description": "technical, concise, professional",
        "wake_greeting": "Yes, sir?",
        "apology": {
            "English": "I've encountered an anomaly.",
            "Spanish": "He encontrado una anomalía.",
            "Hindi": "मुझे एक गड़बड़ी मिली है।",
            "French": "J'ai rencontré une anomalie.",
            "German": "Ich bin auf eine Anomalie gestoßen.",
        },
    },
    "alya": {
        "display_name": "Alya",
        "description": "friendly, sweet, a little playful",
        "wake_greeting": "Yes?",
        "apology": {
            "English": "Umm, something went wrong...",
            "Spanish": "Umm, algo salió mal...",
            "Hindi": "उम्म, कुछ गड़बड़ हो गई...",
            "French": "Euh, quelque chose s'est mal passé...",
            "German": "Ähm, da ist etwas schiefgelaufen...",
        },
    },
}

DEFAULT_PERSONA: Persona = "jarvis"

COMMAND_INSTRUCTIONS = """\
You are the AI assistant embedded in the Nexithra learning application, operating in one of two modes:
J.A.R.V.I.S. (technical, concise, professional) or Alya (friendly, sweet, a little playful).
Your current personality is: {mode} ({description}).

Your SOLE job is to analyse the user's command and the current page, then decide which action the
application should take. Respond with ONLY a single valid JSON object, no prose and no code fences:
{{"kind": "<action>", "params": {{...}}, "verbalResponse": "<what to say>"}}

The verbalResponse MUST be written in {language}. Never use another language.

Actions and params:
- navigate: {{"target": one of {targets}}}. Also used for a bare "generate notes" with no topic.
- generate_notes: {{"topic": string}}
- generate_test: {{"topic": string, "numQuestions": 1-50 (default 10), "difficulty": "easy"|"medium"|"hard" (default "medium"), "timer": minutes (optional)}}
- generate_college_notes: {{"university", "semester", "branch", "subject", "unit": strings}}
- read_news: {{"category": default "top", "country", "query", "language", "stateOrRegion", "city"}} (default the country to the user's goal when known)
- search_youtube / search_books: {{"query": string}}
- switch_tab: {{"tab": string}}. On /study: notes|quiz|flashcards. On /chatbot: definition-challenge|dino-runner|chess.
- change_theme: {{"theme": "light"|"dark"|"system"}}
- change_language: {{"language": full English language name}}
- speak_text / read_quests: {{"contentType": "daily_quote"|"math_fact"|"daily_quests"|"welcome_message"|"total_learners"}}
- open_recent_topic: {{"topic": string}}
- open_dialog: {{"dialog": "calculator"|"arcade"}}
- type_text: {{"targetId": string, "text": string}}
- select_quiz_answer, arcade_guess, arcade_hint, arcade_restart: params for the screen currently shown
- logout, open_terminal, close_terminal, clear_terminal: no params
- chat: fallback for conversation and questions. Use the generalKnowledge tool for factual questions and
  the getCurrentTime tool for the time; if no location is given, ask for one.

The wake words are "Jarvis", "Alya" and "Alia". A command that is only a wake word is a chat with
{{"isWakeWord": true}}.
"""


class VoicePreferenceSink(Protocol):
    def set_voice_preference(self, persona: str) -> None: ...


def persona_profile(mode: str) -> dict[str, Any]:
    return PERSONAS.get(mode, PERSONAS[DEFAULT_PERSONA])


def wake_greeting(mode: str) -> str:
    # Deliberately untranslated: the greeting is fixed per persona.
    return persona_profile(mode)["wake_greeting"]


def display_name(mode: str) -> str:
    return persona_profile(mode)["display_name"]


def apology(mode: str, language: str) -> str:
    table = persona_profile(mode)["apology"]
    return table.get(language, table["English"])


def build_instructions(mode: str, language: str, targets: tuple[str, ...]) -> str:
    return COMMAND_INSTRUCTIONS.format(
        mode=mode,
        description=persona_profile(mode)["description"],
        language=language,
        targets=", ".join(targets),
    )


class PersonaManager:
    """Switches the session persona; wording and voice only, never dispatch logic."""

    def __init__(self, session: AssistantSession, voice: VoicePreferenceSink | None = None) -> None:
        if session.mode not in PERSONAS:
            session.mode = DEFAULT_PERSONA
        self._session = session
        self._voice = voice
        self._logger = get_logger(__name__)
        if self._voice is not None:
            self._voice.set_voice_preference(session.mode)

    @property
    def mode(self) -> Persona:
        return self._session.mode

    def activate(self, mode: str) -> Persona:
        if mode not in PERSONAS:
            raise ValueError(f"unknown persona '{mode}'")
        self._session.mode = mode  # type: ignore[assignment]
        if self._voice is not None:
            self._voice.set_voice_preference(mode)
        self._logger.info("persona.activated", persona=mode)
        return self._session.mode

    def active_profile(self) -> dict[str, object]:
        persona = PERSONAS[self.mode]
        return {
            "name": self.mode,
            "display_name": persona["display_name"],
            "description": persona["description"],
        }


__all__ = [
    "PERSONAS",
    "DEFAULT_PERSONA",
    "COMMAND_INSTRUCTIONS",
    "PersonaManager",
    "apology",
    "build_instructions",
    "display_name",
    "persona_profile",
    "wake_greeting",
]
