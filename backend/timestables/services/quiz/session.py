from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .generator import Question
from .levels import Difficulty, LevelSettings
from .scoring import max_possible_score


class Screen(str, Enum):
    START = 'start'
    LEVEL_SELECT = 'level_select'
    PREVIEW = 'preview'
    PLAYING = 'playing'
    RESULTS = 'results'
    LEADERBOARD = 'leaderboard'
    END = 'end'


@dataclass
class GameSession:
    """State of one player's playthrough, owned by a QuizController."""
    player_name: str = ''
    difficulty: Optional[Difficulty] = None
    time_limit_seconds: int = 0
    max_factor: int = 0
    total_questions: int = 10
    question_index: int = 0
    score: int = 0
    questions: List[Question] = field(default_factory=list)
    remaining_seconds: int = 0
    preview_remaining: int = 0
    awaiting_answer: bool = False

    def apply_level(self, level: LevelSettings) -> None:
        self.difficulty = level.difficulty
        self.time_limit_seconds = level.time_limit_seconds
        self.max_factor = level.max_factor

    @property
    def current_question(self) -> Optional[Question]:
        if 0 <= self.question_index < len(self.questions):
            return self.questions[self.question_index]
        return None

    @property
    def is_last_question(self) -> bool:
        return self.question_index >= self.total_questions - 1

    @property
    def max_score(self) -> int:
        return max_possible_score(self.time_limit_seconds, self.total_questions)

    def award(self, points: int) -> None:
        if points < 0:
            raise ValueError('score can only increase')
        self.score += points

    def reset_progress(self) -> None:
        self.question_index = 0
        self.score = 0
        self.questions = []
        self.remaining_seconds = 0
        self.preview_remaining = 0
        self.awaiting_answer = False

    def to_dict(self):
        return {
            'player_name': self.player_name,
            'difficulty': self.difficulty.value if self.difficulty else None,
            'time_limit_seconds': self.time_limit_seconds,
            'max_factor': self.max_factor,
            'total_questions': self.total_questions,
            'question_index': self.question_index,
            'score': self.score,
        }
