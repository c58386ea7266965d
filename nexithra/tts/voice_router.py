from __future__ import annotations

import functools
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from nexithra.lang.languages import by_code

VOICES_PATH = Path(__file__).with_name("voices.yml")


@dataclass(frozen=True, slots=True)
class VoiceProfile:
    persona: str
    gender: str
    lang: str
    pitch: float = 1.0
    rate: float = 1.0
    name_hints: tuple[str, ...] = field(default_factory=tuple)
    exclude_hints: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["name_hints"] = list(self.name_hints)
        payload["exclude_hints"] = list(self.exclude_hints)
        return payload


class VoiceRouter:
    def __init__(self, raw_config: dict[str, Any]) -> None:
        self._personas: dict[str, dict[str, Any]] = raw_config.get("personas", {})
        if not self._personas:
            raise ValueError("voice config defines no personas")
        for persona, cfg in self._personas.items():
            if "gender" not in cfg:
                raise ValueError(f"Persona '{persona}' has no gender defined")

    def resolve(self, persona: str, language_code: str) -> VoiceProfile:
        cfg = self._personas.get(persona)
        if cfg is None:
            raise ValueError(f"Unknown persona '{persona}'")
        return VoiceProfile(
            persona=persona,
            gender=str(cfg["gender"]),
            lang=by_code(language_code).bcp47,
            pitch=float(cfg.get("pitch", 1.0)),
            rate=float(cfg.get("rate", 1.0)),
            name_hints=tuple(str(hint) for hint in cfg.get("name_hints", ())),
            exclude_hints=tuple(str(hint) for hint in cfg.get("exclude_hints", ())),
        )


@functools.lru_cache(maxsize=1)
def load_router(path: Path = VOICES_PATH) -> VoiceRouter:
    if not path.exists():
        raise FileNotFoundError(path)
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError("voices.yml must define a mapping")
    return VoiceRouter(raw)


__all__ = ["VoiceProfile", "VoiceRouter", "load_router", "VOICES_PATH"]
