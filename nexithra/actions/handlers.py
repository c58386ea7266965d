from __future__ import annotations

from urllib.parse import quote, urlencode

from nexithra.actions.dispatcher import Handler, HandlerSpec
from nexithra.actions.subsystems import AppSubsystems
from nexithra.lang.languages import match_language
from nexithra.llm.action_schema import Action, ActionKind

STUDY_TABS = ("notes", "quiz", "flashcards")
ARCADE_TABS = ("definition-challenge", "dino-runner", "chess")

COLLEGE_SUBJECT_IDS: dict[str, str] = {
    "operating system": "rgpv-cse-4-os",
}

# Quest 1: generate study material. Quest 2: take a test.
NOTES_QUEST = 1
TEST_QUEST = 2


def navigate(action: Action, app: AppSubsystems) -> None:
    app.navigator.push(action.params["target"])


def generate_notes(action: Action, app: AppSubsystems) -> None:
    topic = action.params.get("topic")
    if not topic:
        app.navigator.push("/notes")
        return
    app.notifier.toast("AI Assistant Request", f'Generating notes for "{topic}". Redirecting...')
    app.quests.complete(NOTES_QUEST)
    app.navigator.push(f"/notes?topic={quote(topic)}")


def generate_test(action: Action, app: AppSubsystems) -> None:
    params = action.params
    topic = params.get("topic")
    if not topic:
        app.navigator.push("/custom-test")
        return
    app.notifier.toast("AI Assistant Request", f'Creating test for "{topic}". Redirecting...')
    query = urlencode(
        {
            "sourceType": "topic",
            "topics": topic,
            "numQuestions": params.get("numQuestions", 10),
            "difficulty": params.get("difficulty", "medium"),
            "timer": params.get("timer") or 0,
        }
    )
    app.quests.complete(TEST_QUEST)
    app.navigator.push(f"/custom-test?{query}")


def generate_college_notes(action: Action, app: AppSubsystems) -> None:
    subject = action.params.get("subject")
    unit = action.params.get("unit")
    if not (subject and unit):
        app.navigator.push("/college")
        return
    app.notifier.toast("College Feature Request", f"Generating notes for {subject} - {unit}")
    subject_id = next((sid for name, sid in COLLEGE_SUBJECT_IDS.items() if name in subject.lower()), None)
    if subject_id:
        app.navigator.push(f"/college/{subject_id}?{urlencode({'unit': unit})}")
    else:
        app.navigator.push(f"/college?{urlencode({'subject': subject, 'unit': unit})}")
    app.quests.complete(NOTES_QUEST)


def read_news(action: Action, app: AppSubsystems) -> None:
    app.notifier.toast("AI Assistant Request", "Fetching news...")
    query = urlencode({key: str(value) for key, value in action.params.items() if value is not None})
    app.navigator.push(f"/news?{query}")


def search_library(action: Action, app: AppSubsystems) -> None:
    query = action.params["query"]
    feature = "youtube" if action.kind == ActionKind.SEARCH_YOUTUBE.value else "books"
    app.notifier.toast("Library Search", f'Searching for "{query}"...')
    app.navigator.push(f"/library?{urlencode({'feature': feature, 'query': query})}")


def switch_tab(action: Action, app: AppSubsystems) -> None:
    tab = action.params["tab"]
    path = app.navigator.path
    if path == "/study" and tab in STUDY_TABS:
        app.tabs.study_tab = tab
    elif path == "/chatbot" and tab in ARCADE_TABS:
        app.tabs.arcade_tab = tab


def change_theme(action: Action, app: AppSubsystems) -> None:
    app.theme.set(action.params["theme"])


def change_language(action: Action, app: AppSubsystems) -> None:
    requested = action.params["language"]
    language = match_language(requested)
    if language is None:
        app.notifier.toast(
            "Language not found",
            f'Could not find a language matching "{requested}".',
            variant="destructive",
        )
        return
    app.language.set(language.code)


def open_recent_topic(action: Action, app: AppSubsystems) -> None:
    app.navigator.push(f"/study?topic={quote(action.params['topic'])}")


def open_terminal(action: Action, app: AppSubsystems) -> None:
    app.terminal.is_open = True


def close_terminal(action: Action, app: AppSubsystems) -> None:
    app.terminal.is_open = False


def clear_terminal(action: Action, app: AppSubsystems) -> None:
    app.audit.clear()


def open_dialog(action: Action, app: AppSubsystems) -> None:
    app.dialog_to_open = action.params["dialog"]


def type_text(action: Action, app: AppSubsystems) -> None:
    app.text_to_type = {"targetId": action.params["targetId"], "text": action.params["text"]}


def logout(action: Action, app: AppSubsystems) -> None:
    app.auth.sign_out()


def screen_consumed(action: Action, app: AppSubsystems) -> None:
    """Read by the mounted screen from ``last_action``; nothing to do here."""


def _spec(kind: ActionKind, handler: Handler) -> HandlerSpec:
    return HandlerSpec(kind=kind, handler=handler)


def default_handlers() -> dict[ActionKind, HandlerSpec]:
    specs = [
        _spec(ActionKind.NAVIGATE, navigate),
        _spec(ActionKind.GENERATE_NOTES, generate_notes),
        _spec(ActionKind.GENERATE_TEST, generate_test),
        _spec(ActionKind.GENERATE_COLLEGE_NOTES, generate_college_notes),
        _spec(ActionKind.READ_NEWS, read_news),
        _spec(ActionKind.SEARCH_YOUTUBE, search_library),
        _spec(ActionKind.SEARCH_BOOKS, search_library),
        _spec(ActionKind.SWITCH_TAB, switch_tab),
        _spec(ActionKind.CHANGE_THEME, change_theme),
        _spec(ActionKind.CHANGE_LANGUAGE, change_language),
        _spec(ActionKind.SPEAK_TEXT, screen_consumed),
        _spec(ActionKind.READ_QUESTS, screen_consumed),
        _spec(ActionKind.OPEN_RECENT_TOPIC, open_recent_topic),
        _spec(ActionKind.SELECT_QUIZ_ANSWER, screen_consumed),
        _spec(ActionKind.ARCADE_GUESS, screen_consumed),
        _spec(ActionKind.ARCADE_HINT, screen_consumed),
        _spec(ActionKind.ARCADE_RESTART, screen_consumed),
        _spec(ActionKind.LOGOUT, logout),
        _spec(ActionKind.OPEN_TERMINAL, open_terminal),
        _spec(ActionKind.CLOSE_TERMINAL, close_terminal),
        _spec(ActionKind.CLEAR_TERMINAL, clear_terminal),
        _spec(ActionKind.OPEN_DIALOG, open_dialog),
        _spec(ActionKind.TYPE_TEXT, type_text),
        _spec(ActionKind.CHAT, screen_consumed),
    ]
    return {spec.kind: spec for spec in specs}


__all__ = ["default_handlers", "COLLEGE_SUBJECT_IDS", "STUDY_TABS", "ARCADE_TABS"]
