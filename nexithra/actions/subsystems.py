from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal
from urllib.parse import urlsplit

from nexithra.lang.languages import AppLanguage, by_code
from nexithra.llm.action_schema import Action
from nexithra.orchestrator.events import UserGoal
from nexithra.terminal.audit_log import AuditLog

Theme = Literal["light", "dark", "system"]


@dataclass
class Navigator:
    current_route: str = "/dashboard"
    history: list[str] = field(default_factory=list)

    @property
    def path(self) -> str:
        return urlsplit(self.current_route).path or "/"

    def push(self, route: str) -> bool:
        """Navigate; pushing the route already shown is a no-op."""
        if route == self.current_route:
            return False
        self.history.append(route)
        self.current_route = route
        return True

    def sync(self, route: str) -> None:
        """Record navigation the user performed in the host UI."""
        self.current_route = route


@dataclass
class ThemeController:
    theme: Theme = "system"

    def set(self, theme: Theme) -> None:
        self.theme = theme


@dataclass
class LanguageSettings:
    code: str = "en"

    @property
    def language(self) -> AppLanguage:
        return by_code(self.code)

    def set(self, code: str) -> None:
        self.code = code


@dataclass
class TerminalPanel:
    is_open: bool = False
    secondary_open: bool = False

    def toggle(self) -> bool:
        self.is_open = not self.is_open
        return self.is_open

    def toggle_secondary(self) -> bool:
        self.secondary_open = not self.secondary_open
        return self.secondary_open


@dataclass
class CommandPalette:
    is_open: bool = False

    def open(self) -> None:
        self.is_open = True


@dataclass
class StudyTabs:
    study_tab: str = "notes"
    arcade_tab: str = "definition-challenge"


@dataclass
class Toast:
    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"


@dataclass
class Notifier:
    toasts: list[Toast] = field(default_factory=list)

    def toast(self, title: str, description: str, variant: Literal["default", "destructive"] = "default") -> None:
        self.toasts.append(Toast(title=title, description=description, variant=variant))


@dataclass
class QuestTracker:
    completed: set[int] = field(default_factory=set)

    def complete(self, quest: int) -> None:
        self.completed.add(quest)


@dataclass
class AuthSession:
    signed_in: bool = True
    user_goal: UserGoal | None = None

    def sign_out(self) -> None:
        self.signed_in = False


@dataclass
class AppSubsystems:
    """Application state the dispatcher mutates; owned by the host."""

    audit: AuditLog = field(default_factory=AuditLog)
    navigator: Navigator = field(default_factory=Navigator)
    theme: ThemeController = field(default_factory=ThemeController)
    language: LanguageSettings = field(default_factory=LanguageSettings)
    terminal: TerminalPanel = field(default_factory=TerminalPanel)
    palette: CommandPalette = field(default_factory=CommandPalette)
    tabs: StudyTabs = field(default_factory=StudyTabs)
    notifier: Notifier = field(default_factory=Notifier)
    quests: QuestTracker = field(default_factory=QuestTracker)
    auth: AuthSession = field(default_factory=AuthSession)
    dialog_to_open: Literal["calculator", "arcade"] | None = None
    text_to_type: dict[str, str] | None = None
    last_action: Action | None = None

    def snapshot(self) -> dict[str, Any]:
        return {
            "route": self.navigator.current_route,
            "theme": self.theme.theme,
            "language": self.language.code,
            "terminal_open": self.terminal.is_open,
            "secondary_terminal_open": self.terminal.secondary_open,
            "palette_open": self.palette.is_open,
            "study_tab": self.tabs.study_tab,
            "arcade_tab": self.tabs.arcade_tab,
            "dialog_to_open": self.dialog_to_open,
            "text_to_type": self.text_to_type,
            "signed_in": self.auth.signed_in,
            "last_action": self.last_action.to_payload() if self.last_action else None,
        }


__all__ = [
    "AppSubsystems",
    "AuthSession",
    "CommandPalette",
    "LanguageSettings",
    "Navigator",
    "Notifier",
    "QuestTracker",
    "StudyTabs",
    "TerminalPanel",
    "ThemeController",
    "Toast",
]
