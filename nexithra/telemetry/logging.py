from __future__ import annotations

import logging
from typing import Any

import structlog

_configured = False


def configure_logging(level: str = "INFO", fmt: str = "json") -> None:
    global _configured
    if _configured:
        return

    logging.basicConfig(
        format="%(message)s",
        level=level,
    )

    renderer: Any
    if fmt == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str) -> Any:
    return structlog.get_logger(name)


def bind_turn(turn_id: int, source: str) -> None:
    """Attach the active turn to every log line emitted while it runs."""
    structlog.contextvars.bind_contextvars(turn_id=turn_id, source=source)


def clear_turn() -> None:
    structlog.contextvars.unbind_contextvars("turn_id", "source")


__all__ = ["configure_logging", "get_logger", "bind_turn", "clear_turn"]
