import math
from typing import Optional

from aristotest.models.participant import Participant
from aristotest.models.quiz import Question

DEFAULT_MAX_TIME = 30
MAX_SPEED_BONUS = 0.5


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def speed_bonus(response_time: float, max_time: float, max_bonus: float = MAX_SPEED_BONUS) -> float:
    """Linear bonus: ``max_bonus`` at 0s, nothing at or beyond ``max_time``."""
    if max_time <= 0:
        return 0.0
    elapsed = max(0.0, response_time)
    return max(0.0, 1 - elapsed / max_time) * max_bonus


def award_points(
    base_points: int,
    is_correct: bool,
    response_time: float,
    max_time: float,
    max_bonus: float = MAX_SPEED_BONUS,
) -> int:
    if not is_correct:
        return 0
    return round_half_up(base_points * (1 + speed_bonus(response_time, max_time, max_bonus)))


def question_time_limit(question: Question, quiz_time_limit: Optional[int] = None) -> int:
    return question.time_limit_seconds or quiz_time_limit or DEFAULT_MAX_TIME


def apply_answer(
    participant: Participant,
    question: Question,
    is_correct: bool,
    response_time: float,
    max_time: float,
    max_bonus: float = MAX_SPEED_BONUS,
) -> int:
    """Fold one graded answer into the participant's running totals.

    Returns the points awarded. Only the participant record is mutated; the
    caller is responsible for persisting it.
    """
    response_time = max(0.0, response_time)
    points = award_points(question.points, is_correct, response_time, max_time, max_bonus)

    participant.score += points
    participant.answered_questions += 1
    if is_correct:
        participant.correct_answers += 1

    # Skips count as answered but are not response time samples
    n = participant.answered_questions - participant.skipped_questions
    participant.average_response_time = (participant.average_response_time * (n - 1) + response_time) / n
    return points


def apply_skip(participant: Participant) -> None:
    participant.answered_questions += 1
    participant.skipped_questions += 1


def answer_increments(points: int, is_correct: bool, response_time: float) -> dict:
    """Column expressions applying one graded answer in a single UPDATE.

    Same arithmetic as ``apply_answer``, but relative to the stored row so
    concurrent answers from one participant do not overwrite each other.
    """
    response_time = max(0.0, response_time)
    # Time samples before this answer; skips are not samples
    samples = Participant.answered_questions - Participant.skipped_questions
    return {
        "score": Participant.score + points,
        "answered_questions": Participant.answered_questions + 1,
        "correct_answers": Participant.correct_answers + (1 if is_correct else 0),
        "average_response_time": (Participant.average_response_time * samples + response_time) / (samples + 1),
    }


def skip_increments() -> dict:
    return {
        "answered_questions": Participant.answered_questions + 1,
        "skipped_questions": Participant.skipped_questions + 1,
    }
