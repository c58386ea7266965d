from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from nexithra.telemetry.logging import get_logger


class SchemaError(ValueError):
    """Raised when model output does not satisfy the action contract."""

    def __init__(self, message: str, payload: Any = None) -> None:
        super().__init__(message)
        self.payload = payload


class UnknownActionWarning(UserWarning):
    """Notice for model-invented kinds; never raised, only logged."""

    def __init__(self, kind: str) -> None:
        super().__init__(f'Action "{kind}" is recognized but not yet implemented.')
        self.kind = kind


class ActionKind(str, Enum):
    NAVIGATE = "navigate"
    GENERATE_NOTES = "generate_notes"
    GENERATE_TEST = "generate_test"
    GENERATE_COLLEGE_NOTES = "generate_college_notes"
    READ_NEWS = "read_news"
    SEARCH_YOUTUBE = "search_youtube"
    SEARCH_BOOKS = "search_books"
    SWITCH_TAB = "switch_tab"
    CHANGE_THEME = "change_theme"
    CHANGE_LANGUAGE = "change_language"
    SPEAK_TEXT = "speak_text"
    READ_QUESTS = "read_quests"
    OPEN_RECENT_TOPIC = "open_recent_topic"
    SELECT_QUIZ_ANSWER = "select_quiz_answer"
    ARCADE_GUESS = "arcade_guess"
    ARCADE_HINT = "arcade_hint"
    ARCADE_RESTART = "arcade_restart"
    LOGOUT = "logout"
    OPEN_TERMINAL = "open_terminal"
    CLOSE_TERMINAL = "close_terminal"
    CLEAR_TERMINAL = "clear_terminal"
    OPEN_DIALOG = "open_dialog"
    TYPE_TEXT = "type_text"
    CHAT = "chat"

    @classmethod
    def parse(cls, value: str) -> ActionKind | None:
        try:
            return cls(value)
        except ValueError:
            return None


NAVIGATION_TARGETS: tuple[str, ...] = (
    "/dashboard",
    "/notes",
    "/custom-test",
    "/flashcards",
    "/news",
    "/library",
    "/profile",
    "/college",
    "/coding",
)

ContentType = Literal["daily_quote", "math_fact", "daily_quests", "welcome_message", "total_learners"]


class ActionParams(BaseModel):
    """Base for per-kind parameters; unexpected keys ride along untouched."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class NavigateParams(ActionParams):
    target: str

    @field_validator("target")
    @classmethod
    def known_route(cls, target: str) -> str:
        if target not in NAVIGATION_TARGETS:
            raise ValueError(f"unsupported navigation target {target!r}")
        return target


class GenerateNotesParams(ActionParams):
    topic: str | None = None


class GenerateTestParams(ActionParams):
    topic: str | None = None
    num_questions: int = Field(10, ge=1, le=50, alias="numQuestions")
    difficulty: Literal["easy", "medium", "hard"] = "medium"
    timer: int | None = Field(default=None, ge=0, description="Minutes")


class CollegeNotesParams(ActionParams):
    university: str | None = None
    semester: str | None = None
    branch: str | None = None
    subject: str | None = None
    unit: str | None = None


class ReadNewsParams(ActionParams):
    category: str = "top"
    country: str | None = None
    query: str | None = None
    language: str | None = None
    state_or_region: str | None = Field(default=None, alias="stateOrRegion")
    city: str | None = None


class SearchParams(ActionParams):
    query: str = Field(..., min_length=1)


class SwitchTabParams(ActionParams):
    tab: str = Field(..., min_length=1)


class ChangeThemeParams(ActionParams):
    theme: Literal["light", "dark", "system"]


class ChangeLanguageParams(ActionParams):
    language: str = Field(..., min_length=1)


class OpenDialogParams(ActionParams):
    dialog: Literal["calculator", "arcade"]


class TypeTextParams(ActionParams):
    target_id: str = Field(..., min_length=1, alias="targetId")
    text: str


class SpeakContentParams(ActionParams):
    content_type: ContentType = Field(..., alias="contentType")


class RecentTopicParams(ActionParams):
    topic: str = Field(..., min_length=1)


class ChatParams(ActionParams):
    is_wake_word: bool | None = Field(default=None, alias="isWakeWord")


PARAM_MODELS: dict[ActionKind, type[ActionParams]] = {
    ActionKind.NAVIGATE: NavigateParams,
    ActionKind.GENERATE_NOTES: GenerateNotesParams,
    ActionKind.GENERATE_TEST: GenerateTestParams,
    ActionKind.GENERATE_COLLEGE_NOTES: CollegeNotesParams,
    ActionKind.READ_NEWS: ReadNewsParams,
    ActionKind.SEARCH_YOUTUBE: SearchParams,
    ActionKind.SEARCH_BOOKS: SearchParams,
    ActionKind.SWITCH_TAB: SwitchTabParams,
    ActionKind.CHANGE_THEME: ChangeThemeParams,
    ActionKind.CHANGE_LANGUAGE: ChangeLanguageParams,
    ActionKind.SPEAK_TEXT: SpeakContentParams,
    ActionKind.READ_QUESTS: SpeakContentParams,
    ActionKind.OPEN_RECENT_TOPIC: RecentTopicParams,
    # Quiz and arcade controls are consumed by whichever screen is mounted.
    ActionKind.SELECT_QUIZ_ANSWER: ActionParams,
    ActionKind.ARCADE_GUESS: ActionParams,
    ActionKind.ARCADE_HINT: ActionParams,
    ActionKind.ARCADE_RESTART: ActionParams,
    ActionKind.LOGOUT: ActionParams,
    ActionKind.OPEN_TERMINAL: ActionParams,
    ActionKind.CLOSE_TERMINAL: ActionParams,
    ActionKind.CLEAR_TERMINAL: ActionParams,
    ActionKind.OPEN_DIALOG: OpenDialogParams,
    ActionKind.TYPE_TEXT: TypeTextParams,
    ActionKind.CHAT: ChatParams,
}


class Action(BaseModel):
    """Validated unit of dispatch."""

    model_config = ConfigDict(populate_by_name=True)

    kind: str = Field(..., min_length=1, validation_alias=AliasChoices("kind", "action"))
    params: dict[str, Any] = Field(default_factory=dict)
    verbal_response: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("verbalResponse", "verbal_response"),
        serialization_alias="verbalResponse",
    )

    @field_validator("params", mode="before")
    @classmethod
    def default_params(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("verbal_response")
    @classmethod
    def visible_response(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("verbalResponse must not be blank")
        return value

    @property
    def action_kind(self) -> ActionKind | None:
        return ActionKind.parse(self.kind)

    @property
    def is_known(self) -> bool:
        return self.action_kind is not None

    @property
    def is_wake_word(self) -> bool:
        return self.kind == ActionKind.CHAT.value and self.params.get("isWakeWord") is True

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class ActionValidator:
    """Checks kind and per-kind params, filling defaults."""

    def __init__(self) -> None:
        self._logger = get_logger(__name__)

    def validate(self, raw: Any) -> Action:
        if isinstance(raw, Action):
            raw = raw.to_payload()
        if not isinstance(raw, dict):
            raise SchemaError("Assistant Error: AI returned malformed data. Could not parse command.", payload=raw)
        try:
            action = Action.model_validate(raw)
        except ValidationError as exc:
            self._logger.warning("schema.action.invalid", payload=raw, errors=exc.errors(include_url=False))
            raise SchemaError(f"Assistant Error: invalid action payload ({_summarize(exc)}).", payload=raw) from exc

        kind = action.action_kind
        if kind is None:
            self._logger.info("schema.action.unknown_kind", kind=action.kind)
            return action

        model = PARAM_MODELS[kind]
        try:
            params = model.model_validate(action.params)
        except ValidationError as exc:
            self._logger.warning(
                "schema.params.invalid",
                kind=action.kind,
                payload=raw,
                errors=exc.errors(include_url=False),
            )
            raise SchemaError(
                f'Assistant Error: invalid parameters for "{action.kind}" ({_summarize(exc)}).',
                payload=raw,
            ) from exc
        return action.model_copy(update={"params": params.model_dump(by_alias=True, exclude_none=True)})


def _summarize(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors(include_url=False)[:3]:
        location = ".".join(str(item) for item in error.get("loc", ())) or "payload"
        parts.append(f"{location}: {error.get('msg', 'invalid')}")
    return "; ".join(parts)


__all__ = [
    "Action",
    "ActionKind",
    "ActionParams",
    "ActionValidator",
    "NAVIGATION_TARGETS",
    "PARAM_MODELS",
    "SchemaError",
    "UnknownActionWarning",
]
