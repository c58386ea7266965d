from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass

from nexithra.actions.subsystems import AppSubsystems
from nexithra.llm.action_schema import Action, ActionKind, UnknownActionWarning
from nexithra.telemetry.logging import get_logger

Handler = Callable[[Action, AppSubsystems], None]


@dataclass(slots=True)
class HandlerSpec:
    kind: ActionKind
    handler: Handler


class ActionDispatcher:
    """Table lookup from action kind to handler.

    The table must cover every ``ActionKind``. Handler failures are written
    to the audit log and never propagate.
    """

    def __init__(self, handlers: Mapping[ActionKind, HandlerSpec], app: AppSubsystems) -> None:
        missing = [kind.value for kind in ActionKind if kind not in handlers]
        if missing:
            raise ValueError(f"No handler registered for: {', '.join(missing)}")
        self._handlers = dict(handlers)
        self._app = app
        self._logger = get_logger(__name__)

    def dispatch(self, action: Action) -> bool:
        self._app.last_action = action
        if action.is_wake_word:
            return True

        kind = action.action_kind
        if kind is None:
            notice = UnknownActionWarning(action.kind)
            self._logger.warning("dispatch.unknown_kind", kind=action.kind)
            self._app.audit.append(str(notice), "system")
            return False

        spec = self._handlers[kind]
        try:
            spec.handler(action, self._app)
        except Exception as exc:
            self._logger.error("dispatch.handler.failed", kind=action.kind, params=action.params, error=str(exc))
            self._app.audit.append(f'Action "{action.kind}" failed: {exc}', "error")
            return False
        self._logger.info("dispatch.handled", kind=action.kind, route=self._app.navigator.current_route)
        return True


__all__ = ["ActionDispatcher", "Handler", "HandlerSpec"]
