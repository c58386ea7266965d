from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from nexithra.telemetry.logging import get_logger


class ToolError(Exception):
    """Raised when a resolver tool cannot be executed."""


class CurrentTimeArgs(BaseModel):
    location: str = Field(..., min_length=1, max_length=120)


class GeneralKnowledgeArgs(BaseModel):
    question: str = Field(..., min_length=1, max_length=1000)


@dataclass(slots=True)
class ToolSpec:
    name: str
    description: str
    request_model: type[BaseModel]
    handler: Callable[[BaseModel], str]

    def declaration(self) -> dict[str, Any]:
        schema = self.request_model.model_json_schema()
        return {
            "name": self.name,
            "description": self.description,
            "parameters": {
                "type": "object",
                "properties": {
                    key: {k: v for k, v in prop.items() if k in ("type", "description")}
                    for key, prop in schema.get("properties", {}).items()
                },
                "required": schema.get("required", []),
            },
        }


def current_time(args: CurrentTimeArgs, clock: Callable[[], datetime] | None = None) -> str:
    # Server-local time; there is no timezone lookup for the location.
    now = (clock or (lambda: datetime.now(timezone.utc).astimezone()))()
    return f"The current time in {args.location} is approximately {now.strftime('%I:%M %p')}."


def general_knowledge(args: GeneralKnowledgeArgs) -> str:
    # Marker only: the model answers from its own knowledge on the next generation.
    return f"Answering question about: {args.question}"


class ResolverToolbox:
    """Tools offered to the model while it resolves a command."""

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._logger = get_logger(__name__)
        self._specs: dict[str, ToolSpec] = {}
        self.register(
            ToolSpec(
                name="getCurrentTime",
                description="Gets the current time for a specific location.",
                request_model=CurrentTimeArgs,
                handler=lambda args: current_time(args, clock),  # type: ignore[arg-type]
            )
        )
        self.register(
            ToolSpec(
                name="generalKnowledge",
                description="Answers general knowledge, informational, or conversational questions.",
                request_model=GeneralKnowledgeArgs,
                handler=general_knowledge,  # type: ignore[arg-type]
            )
        )

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._specs:
            raise ValueError(f"Tool '{spec.name}' already registered")
        self._specs[spec.name] = spec

    def declarations(self) -> list[dict[str, Any]]:
        return [spec.declaration() for spec in self._specs.values()]

    def invoke(self, call: dict[str, Any]) -> dict[str, Any]:
        name = call.get("tool") or call.get("name")
        spec = self._specs.get(name or "")
        if spec is None:
            raise ToolError(f"Unknown tool '{name}'")
        try:
            args = spec.request_model.model_validate(call.get("args") or {})
        except ValidationError as exc:
            raise ToolError(f"Invalid payload for tool '{name}': {exc}") from exc
        result = spec.handler(args)
        self._logger.info("resolver.tool.invoked", tool=name)
        return {"tool": name, "args": args.model_dump(), "result": result}


__all__ = [
    "ResolverToolbox",
    "ToolSpec",
    "ToolError",
    "CurrentTimeArgs",
    "GeneralKnowledgeArgs",
    "current_time",
    "general_knowledge",
]
