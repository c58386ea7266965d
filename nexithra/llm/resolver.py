from __future__ import annotations

import asyncio
import json
import re
from dataclasses import dataclass, field
from typing import Any

import httpx

from nexithra.lang.normalizer import is_wake_word
from nexithra.llm.action_schema import NAVIGATION_TARGETS, Action, ActionKind, ActionValidator
from nexithra.llm.tools import ResolverToolbox, ToolError
from nexithra.llm.types import ChatProvider, ChatResponse
from nexithra.orchestrator.events import AssistantContext
from nexithra.orchestrator.policies import ResolverPolicies
from nexithra.persona import build_instructions, wake_greeting
from nexithra.telemetry.logging import get_logger
from nexithra.telemetry.tracing import get_tracer

GENERIC_FAILURE = "I've encountered an anomaly in my processing core."
MALFORMED = "Assistant Error: AI returned malformed data. Could not parse command."

_FENCE = re.compile(r"^```(?:json)?\s*(?P<body>.*?)\s*```$", re.DOTALL)


class ResolutionError(Exception):
    """Resolver failure carrying a message that is safe to show the user."""

    def __init__(self, message: str, raw: str | None = None) -> None:
        super().__init__(message)
        self.raw = raw


@dataclass
class IntentResolver:
    provider: ChatProvider
    policies: ResolverPolicies = field(default_factory=ResolverPolicies)
    validator: ActionValidator = field(default_factory=ActionValidator)
    toolbox: ResolverToolbox = field(default_factory=ResolverToolbox)

    def __post_init__(self) -> None:
        self._logger = get_logger(__name__)
        self._tracer = get_tracer(__name__)

    async def resolve(self, command: str, context: AssistantContext, mode: str) -> Action:
        if is_wake_word(command):
            self._logger.info("resolver.wake_word", mode=mode)
            return Action(
                kind=ActionKind.CHAT.value,
                params={"isWakeWord": True},
                verbal_response=wake_greeting(mode),
            )

        with self._tracer.start_as_current_span("intent.resolve") as span:
            span.set_attribute("assistant.provider", self.provider.name)
            span.set_attribute("assistant.route", context.route)
            timeout = self.policies.effective_timeout()
            try:
                if timeout is None:
                    response = await self._converse(command, context, mode)
                else:
                    response = await asyncio.wait_for(self._converse(command, context, mode), timeout=timeout)
            except asyncio.TimeoutError as exc:
                self._logger.warning("resolver.timeout", timeout=timeout)
                raise ResolutionError(f"Assistant Error: no response from the AI within {timeout:g} seconds.") from exc
            except httpx.HTTPStatusError as exc:
                body = exc.response.text
                self._logger.error("resolver.http_error", status=exc.response.status_code, body=body[:500])
                raise ResolutionError(sanitize_error(body or str(exc)), raw=body) from exc
            except httpx.HTTPError as exc:
                self._logger.error("resolver.network_error", error=str(exc))
                raise ResolutionError(sanitize_error(str(exc))) from exc
            except ToolError as exc:
                self._logger.error("resolver.tool_error", error=str(exc))
                raise ResolutionError(sanitize_error(str(exc))) from exc
            except (ValueError, KeyError, AttributeError) as exc:
                # Provider answered 200 with a body that is not the JSON envelope it promised.
                self._logger.error("resolver.bad_envelope", error=str(exc))
                raise ResolutionError(MALFORMED, raw=getattr(exc, "doc", None)) from exc

            payload = parse_action_payload(response.text)
            action = self.validator.validate(payload)
            span.set_attribute("assistant.action", action.kind)
        self._logger.info("resolver.resolved", kind=action.kind, known=action.is_known)
        return action

    async def _converse(self, command: str, context: AssistantContext, mode: str) -> ChatResponse:
        system = build_instructions(mode, context.language, NAVIGATION_TARGETS)
        prompt = compose_prompt(command, context)
        tools = self.toolbox.declarations()
        self._logger.info("resolver.request", provider=self.provider.name, route=context.route, prompt_len=len(prompt))
        response = await self.provider.chat(prompt, system, tools=tools, temperature=self.policies.temperature)

        rounds = 0
        tool_results: list[dict[str, Any]] = []
        while response.tool_calls:
            if rounds >= self.policies.max_tool_rounds:
                raise ToolError(f"model kept calling tools after {rounds} rounds")
            tool_results.extend(self.toolbox.invoke(call) for call in response.tool_calls)
            rounds += 1
            response = await self.provider.chat(
                followup_prompt(prompt, tool_results),
                system,
                tools=tools,
                temperature=self.policies.temperature,
            )
        return response


def compose_prompt(command: str, context: AssistantContext) -> str:
    lines = [
        f'User\'s command (in {context.language}): "{command}"',
        f'User\'s current page: "{context.route}"',
    ]
    goal = context.user_goal
    if goal is not None:
        detail = goal.type
        if goal.country:
            detail += f" in {goal.country}"
        if goal.university:
            detail += f", {goal.university}"
        lines.append(f"User's learning goal: {detail} (use it for smarter defaults, e.g. the news country).")
    return "\n".join(lines)


def followup_prompt(prompt: str, tool_results: list[dict[str, Any]]) -> str:
    return (
        f"{prompt}\n\n"
        f"Tool results:\n{json.dumps(tool_results, ensure_ascii=False, indent=2)}\n\n"
        "Now reply with the final JSON action object only."
    )


def parse_action_payload(text: str) -> dict[str, Any]:
    """Extract the single JSON object from a model reply."""
    body = (text or "").strip()
    match = _FENCE.match(body)
    if match:
        body = match.group("body")
    if not body:
        raise ResolutionError("AI returned an empty or invalid response. Missing 'kind' property.", raw=text)
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as exc:
        raise ResolutionError(MALFORMED, raw=text) from exc
    if not isinstance(payload, dict):
        raise ResolutionError(MALFORMED, raw=text)
    if not (payload.get("kind") or payload.get("action")):
        raise ResolutionError("AI returned an empty or invalid response. Missing 'kind' property.", raw=text)
    if not (payload.get("verbalResponse") or payload.get("verbal_response")):
        raise ResolutionError("AI returned an incomplete response. Missing 'verbalResponse' property.", raw=text)
    return payload


def sanitize_error(message: str) -> str:
    lowered = message.lower()
    if "api key" in lowered or "permission denied" in lowered:
        return "Assistant Error: The API key is invalid or missing permissions."
    if "model not found" in lowered or ("model" in lowered and "not found" in lowered):
        return "Assistant Error: The specified AI model was not found. This could be an API key permissions issue."
    if "unexpected token" in lowered or "json" in lowered:
        return MALFORMED
    if "timed out" in lowered or "timeout" in lowered:
        return "Assistant Error: the AI service timed out."
    if "connect" in lowered:
        return "Assistant Error: the AI service is unreachable."
    return GENERIC_FAILURE


__all__ = [
    "IntentResolver",
    "ResolutionError",
    "compose_prompt",
    "followup_prompt",
    "parse_action_payload",
    "sanitize_error",
]
