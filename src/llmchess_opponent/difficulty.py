"""
Difficulty policy: fixed, read-only tuning per difficulty level.

Each level maps to a search depth, the chance of playing a uniformly random
move, the magnitude of root-move evaluation noise, and the sampling
temperatures used when the remote (LLM) source is asked for a move or an
analysis.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class Difficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    MASTER = "master"


@dataclass(frozen=True)
class DifficultySettings:
    depth: int
    random_move_chance: float
    evaluation_noise: float
    move_temperature: float
    analysis_temperature: float

    def __post_init__(self):
        if self.depth < 1:
            raise ValueError("depth must be >= 1")
        if not 0.0 <= self.random_move_chance <= 1.0:
            raise ValueError("random_move_chance must be within [0, 1]")
        if self.evaluation_noise < 0:
            raise ValueError("evaluation_noise must be >= 0")


DIFFICULTY_SETTINGS: Mapping[Difficulty, DifficultySettings] = MappingProxyType({
    Difficulty.BEGINNER: DifficultySettings(1, 0.40, 2.0, move_temperature=0.9, analysis_temperature=0.8),
    Difficulty.INTERMEDIATE: DifficultySettings(2, 0.20, 1.0, move_temperature=0.7, analysis_temperature=0.7),
    Difficulty.ADVANCED: DifficultySettings(3, 0.10, 0.5, move_temperature=0.5, analysis_temperature=0.6),
    Difficulty.MASTER: DifficultySettings(4, 0.00, 0.0, move_temperature=0.2, analysis_temperature=0.5),
})

DEFAULT_CHAT_TEMPERATURE = 0.7


def parse_difficulty(value: Difficulty | str) -> Difficulty:
    """Accept an enum member or a case-insensitive label ('Master', 'beginner')."""
    if isinstance(value, Difficulty):
        return value
    try:
        return Difficulty(str(value).strip().lower())
    except ValueError:
        choices = ", ".join(d.value for d in Difficulty)
        raise ValueError(f"Unknown difficulty {value!r}; expected one of: {choices}") from None


def settings_for(difficulty: Difficulty | str) -> DifficultySettings:
    return DIFFICULTY_SETTINGS[parse_difficulty(difficulty)]


def chat_temperature(message: str) -> float:
    """Sampling temperature for a chat reply, keyed off the player's wording."""
    lowered = (message or "").lower()
    if "hint" in lowered or "help" in lowered:
        return 0.5
    if "joke" in lowered or "funny" in lowered:
        return 0.9
    return DEFAULT_CHAT_TEMPERATURE
