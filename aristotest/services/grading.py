"""Answer evaluation.

A raw submitted value is first classified into one of the submission
variants below, keyed by the question's type. ``evaluate`` then grades the
variant. Submissions whose shape does not fit the question are classified as
``MalformedSubmission`` and graded incorrect rather than rejected.
"""
import logging
from dataclasses import dataclass
from typing import Any, Union

from aristotest.models.quiz import Question, QuestionType

logger = logging.getLogger("grading")


@dataclass(frozen=True)
class BooleanSubmission:
    value: str


@dataclass(frozen=True)
class ChoiceSubmission:
    value: str


@dataclass(frozen=True)
class SelectionSubmission:
    values: tuple[str, ...]


@dataclass(frozen=True)
class TextSubmission:
    value: str


@dataclass(frozen=True)
class MalformedSubmission:
    raw: Any
    reason: str


Submission = Union[BooleanSubmission, ChoiceSubmission, SelectionSubmission, TextSubmission, MalformedSubmission]


def stringify(value: Any) -> str:
    """Render a scalar the way answers are compared (booleans as true/false)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, bool, int, float))


def classify_submission(question: Question, raw: Any) -> Submission:
    question_type = question.question_type
    if raw is None:
        return MalformedSubmission(raw, "no answer given")

    if question_type == QuestionType.TRUE_FALSE:
        if not _is_scalar(raw):
            return MalformedSubmission(raw, "true/false answer must be a scalar")
        return BooleanSubmission(stringify(raw))

    if question_type == QuestionType.MULTIPLE_CHOICE:
        if question.is_multi_select:
            if not isinstance(raw, list) or not all(_is_scalar(item) for item in raw):
                return MalformedSubmission(raw, "multi-select answer must be a list")
            return SelectionSubmission(tuple(stringify(item) for item in raw))
        if not _is_scalar(raw):
            return MalformedSubmission(raw, "multiple choice answer must be a scalar")
        return ChoiceSubmission(stringify(raw))

    if question_type == QuestionType.SHORT_ANSWER:
        if not isinstance(raw, str):
            return MalformedSubmission(raw, "short answer must be text")
        return TextSubmission(raw)

    return MalformedSubmission(raw, f"unknown question type {question_type!r}")


def accepted_answers(question: Question) -> list[str]:
    correct = question.correct_answer
    if correct is None:
        return []
    if isinstance(correct, list):
        return [stringify(item) for item in correct]
    return [stringify(correct)]


def evaluate(question: Question, submitted: Any) -> bool:
    """Return True if ``submitted`` is a correct answer to ``question``."""
    submission = classify_submission(question, submitted)
    accepted = accepted_answers(question)

    if isinstance(submission, MalformedSubmission):
        if submitted is not None:
            logger.warning(
                "Malformed answer for question=%s type=%s: %s (raw=%r)",
                question.id,
                question.question_type,
                submission.reason,
                submitted,
            )
        return False
    if not accepted:
        return False
    if isinstance(submission, BooleanSubmission):
        return submission.value.lower() == accepted[0].lower()
    if isinstance(submission, ChoiceSubmission):
        return submission.value.lower() == accepted[0].lower()
    if isinstance(submission, SelectionSubmission):
        return sorted(submission.values) == sorted(accepted)
    if isinstance(submission, TextSubmission):
        normalized = submission.value.strip().lower()
        return any(normalized == answer.strip().lower() for answer in accepted)
    raise TypeError(f"Unhandled submission variant {type(submission).__name__}")


def check_definition(question_type: str, options: list[str], correct_answer: Any) -> None:
    """Raise ValueError when a question definition cannot be graded."""
    if question_type not in QuestionType.ALL:
        raise ValueError(f"question_type must be one of {', '.join(QuestionType.ALL)}")

    if question_type == QuestionType.MULTIPLE_CHOICE:
        if len(options) < 2:
            raise ValueError("multiple choice questions need at least two options")
        expected = correct_answer if isinstance(correct_answer, list) else [correct_answer]
        if not expected or any(value is None for value in expected):
            raise ValueError("correct_answer is required for multiple choice")
        missing = [value for value in expected if value not in options]
        if missing:
            raise ValueError("correct_answer must match one of the options for multiple choice")
        if len(set(map(stringify, expected))) != len(expected):
            raise ValueError("correct_answer must not repeat an option")

    elif question_type == QuestionType.TRUE_FALSE:
        if isinstance(correct_answer, bool):
            return
        if not isinstance(correct_answer, str) or correct_answer.strip().lower() not in ("true", "false"):
            raise ValueError("correct_answer must be true or false for true/false questions")

    elif question_type == QuestionType.SHORT_ANSWER:
        accepted = correct_answer if isinstance(correct_answer, list) else [correct_answer]
        if not accepted or not all(isinstance(value, str) and value.strip() for value in accepted):
            raise ValueError("correct_answer must be one or more non-empty strings for short answer")
