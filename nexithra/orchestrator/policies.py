from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ResolverPolicies:
    timeout_seconds: float | None = 20.0
    max_tool_rounds: int = 2
    temperature: float = 0.1  # low temperature keeps the JSON contract stable

    def effective_timeout(self) -> float | None:
        if self.timeout_seconds is None or self.timeout_seconds <= 0:
            return None
        return self.timeout_seconds


@dataclass
class TurnPolicies:
    settle_seconds: float = 1.0
    dedupe_window_seconds: float = 1.5


__all__ = ["ResolverPolicies", "TurnPolicies"]
