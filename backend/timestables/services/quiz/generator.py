"""Question generation for the multiplication quiz.

Each question multiplies a factor from the selected table range by a
factor from 1..12 and carries three plausible decoys: the neighbouring
products in the same table and random values close to the answer.
"""

import random
from dataclasses import dataclass
from typing import List, Optional, Tuple

MAX_FACTOR = 12
OPTION_COUNT = 4
DECOY_OFFSET = 10
# Offset range doubles this many times before falling back to a fixed fill
MAX_WIDENINGS = 4


@dataclass(frozen=True)
class Question:
    operand_a: int
    operand_b: int
    correct_answer: int
    options: Tuple[int, ...]

    @property
    def text(self) -> str:
        return f"{self.operand_a} × {self.operand_b} = ?"

    def is_correct(self, value) -> bool:
        try:
            return int(value) == self.correct_answer
        except (TypeError, ValueError):
            return False

    def to_dict(self, reveal: bool = False):
        payload = {
            'operand_a': self.operand_a,
            'operand_b': self.operand_b,
            'text': self.text,
            'options': list(self.options),
        }
        if reveal:
            payload['correct_answer'] = self.correct_answer
        return payload


def _decoy_candidate(operand_a: int, operand_b: int, correct: int, rng: random.Random, spread: int) -> int:
    roll = rng.random()
    if roll < 0.3:
        return operand_a * (operand_b + 1)
    if roll < 0.6:
        return operand_a * (operand_b - 1)
    return correct + rng.randint(-spread, spread)


def generate_options(operand_a: int, operand_b: int, rng: Optional[random.Random] = None,
                     max_attempts: int = 50) -> Tuple[int, ...]:
    """Return the correct product plus three distinct positive decoys, shuffled.

    After every ``max_attempts`` rejected candidates the random offset
    range doubles. Once it has doubled MAX_WIDENINGS times, the remaining
    slots take the nearest unused integers above the answer.
    """
    rng = rng or random.Random()
    correct = operand_a * operand_b
    options = [correct]
    spread = DECOY_OFFSET
    rejected = 0
    widenings = 0
    while len(options) < OPTION_COUNT and widenings <= MAX_WIDENINGS:
        candidate = _decoy_candidate(operand_a, operand_b, correct, rng, spread)
        if candidate > 0 and candidate not in options:
            options.append(candidate)
            continue
        rejected += 1
        if rejected >= max_attempts:
            rejected = 0
            widenings += 1
            spread *= 2
    filler = correct + 1
    while len(options) < OPTION_COUNT:
        if filler not in options:
            options.append(filler)
        filler += 1
    rng.shuffle(options)
    return tuple(options)


def generate_questions(count: int, max_factor: int, rng: Optional[random.Random] = None,
                       max_attempts: int = 50) -> List[Question]:
    if count < 1:
        raise ValueError('count must be at least 1')
    if not 1 <= max_factor <= MAX_FACTOR:
        raise ValueError(f'max_factor must be between 1 and {MAX_FACTOR}')
    rng = rng or random.Random()
    questions = []
    for _ in range(count):
        operand_a = rng.randint(1, max_factor)
        operand_b = rng.randint(1, MAX_FACTOR)
        questions.append(Question(
            operand_a=operand_a,
            operand_b=operand_b,
            correct_answer=operand_a * operand_b,
            options=generate_options(operand_a, operand_b, rng, max_attempts),
        ))
    return questions


def multiplication_tables(max_factor: int):
    """Reference tables shown on the preview screen."""
    return [
        {
            'table': table,
            'rows': [
                {'operand_a': table, 'operand_b': n, 'product': table * n}
                for n in range(1, MAX_FACTOR + 1)
            ],
        }
        for table in range(1, max_factor + 1)
    ]
