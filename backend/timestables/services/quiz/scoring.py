from dataclasses import dataclass

THREE_STAR_PERCENT = 90
TWO_STAR_PERCENT = 60

# Highest threshold first; the last tier catches everything else
PERFORMANCE_TIERS = [
    (90, 'Outstanding! You are a times tables star!'),
    (75, 'Great job! You really know your tables!'),
    (60, 'Very good! Keep it up!'),
    (40, 'Nice work! A little more practice will help.'),
    (0, 'Good start! Have another go!'),
]


def points_for_answer(correct: bool, remaining_seconds: int) -> int:
    """+1 for a correct answer plus one point per second left on the clock."""
    if not correct:
        return 0
    return 1 + max(0, int(remaining_seconds))


def max_possible_score(time_limit_seconds: int, total_questions: int) -> int:
    return (1 + time_limit_seconds) * total_questions


def score_percentage(score: int, time_limit_seconds: int, total_questions: int) -> float:
    max_score = max_possible_score(time_limit_seconds, total_questions)
    if max_score <= 0:
        return 0.0
    return score / max_score * 100


def star_rating(percentage: float) -> int:
    if percentage >= THREE_STAR_PERCENT:
        return 3
    if percentage >= TWO_STAR_PERCENT:
        return 2
    return 1


def performance_message(percentage: float) -> str:
    for threshold, message in PERFORMANCE_TIERS:
        if percentage >= threshold:
            return message
    return PERFORMANCE_TIERS[-1][1]


@dataclass(frozen=True)
class ResultSummary:
    score: int
    max_score: int
    percentage: float
    stars: int
    message: str

    def to_dict(self):
        return {
            'score': self.score,
            'max_score': self.max_score,
            'percentage': round(self.percentage, 2),
            'stars': self.stars,
            'message': self.message,
        }


def summarize_results(score: int, time_limit_seconds: int, total_questions: int) -> ResultSummary:
    percentage = score_percentage(score, time_limit_seconds, total_questions)
    return ResultSummary(
        score=score,
        max_score=max_possible_score(time_limit_seconds, total_questions),
        percentage=percentage,
        stars=star_rating(percentage),
        message=performance_message(percentage),
    )
