from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional


class Difficulty(str, Enum):
    EASY = 'easy'
    HARD = 'hard'

    @classmethod
    def parse(cls, value) -> 'Difficulty':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or '').strip().lower())
        except ValueError:
            raise ValueError(f"Unknown difficulty: {value!r}") from None


@dataclass(frozen=True)
class LevelSettings:
    difficulty: Difficulty
    time_limit_seconds: int
    max_factor: int

    def to_dict(self):
        return {
            'difficulty': self.difficulty.value,
            'time_limit_seconds': self.time_limit_seconds,
            'max_factor': self.max_factor,
        }


_DEFAULTS = {
    Difficulty.EASY: {'time_limit': 15, 'max_factor': 6},
    Difficulty.HARD: {'time_limit': 10, 'max_factor': 12},
}


def level_settings(difficulty, config: Optional[Mapping[str, Any]] = None) -> LevelSettings:
    """Resolve the per-question time limit and factor range for a difficulty.

    Values come from EASY_/HARD_ prefixed config keys when present.
    """
    level = Difficulty.parse(difficulty)
    cfg = config or {}
    prefix = level.name
    defaults = _DEFAULTS[level]
    return LevelSettings(
        difficulty=level,
        time_limit_seconds=int(cfg.get(f'{prefix}_TIME_LIMIT_SEC', defaults['time_limit'])),
        max_factor=int(cfg.get(f'{prefix}_MAX_FACTOR', defaults['max_factor'])),
    )
