"""Statistics derived from persisted session answers and public quiz results."""
from typing import Iterable, Optional, Sequence

from aristotest.models.participant import Answer, Participant
from aristotest.models.quiz import Question
from aristotest.models.result import PublicQuizResult
from aristotest.models.session import QuizSession
from aristotest.schemas.public import PublicResultStatistics, TopPerformer
from aristotest.schemas.results import LeaderboardEntry, QuestionStatistics, SessionStatistics


def _mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def aggregate(
    session: QuizSession,
    participants: Sequence[Participant],
    answers: Iterable[Answer],
    questions: Sequence[Question],
) -> SessionStatistics:
    participant_ids = {p.id for p in participants}
    question_ids = {q.id for q in questions}
    total_participants = len(participant_ids)

    by_question: dict[str, list[Answer]] = {qid: [] for qid in question_ids}
    covered: dict[str, set[str]] = {pid: set() for pid in participant_ids}
    for answer in answers:
        if answer.session_id != session.id:
            continue
        if answer.participant_id not in participant_ids or answer.question_id not in question_ids:
            continue
        covered[answer.participant_id].add(answer.question_id)
        if not answer.skipped:
            by_question[answer.question_id].append(answer)

    question_stats = []
    for question in sorted(questions, key=lambda q: q.position):
        received = by_question[question.id]
        correct = sum(1 for a in received if a.is_correct)
        incorrect = len(received) - correct
        question_stats.append(
            QuestionStatistics(
                question_id=question.id,
                position=question.position,
                text=question.text,
                correct_count=correct,
                incorrect_count=incorrect,
                skipped_count=total_participants - len(received),
                average_time=_mean([a.response_time for a in received]),
                accuracy=(correct / len(received)) if received else 0.0,
            )
        )

    scores = [p.score for p in participants]
    completed = sum(1 for pid in participant_ids if question_ids and covered[pid] >= question_ids)
    return SessionStatistics(
        session_id=session.id,
        status=session.status,
        total_participants=total_participants,
        total_questions=len(question_ids),
        max_possible_score=sum(q.points for q in questions),
        average_score=_mean(scores),
        highest_score=max(scores) if scores else 0,
        lowest_score=min(scores) if scores else 0,
        completion_rate=(completed / total_participants) if total_participants else 0.0,
        questions=question_stats,
    )


def leaderboard(participants: Iterable[Participant], limit: Optional[int] = None) -> list[LeaderboardEntry]:
    ranked = sorted(participants, key=lambda p: (-p.score, p.average_response_time))
    if limit is not None:
        ranked = ranked[:limit]
    return [
        LeaderboardEntry(
            rank=idx + 1,
            participant_id=p.id,
            nickname=p.nickname,
            score=p.score,
            answered_questions=p.answered_questions,
            correct_answers=p.correct_answers,
            average_response_time=p.average_response_time,
        )
        for idx, p in enumerate(ranked)
    ]


SCORE_BUCKETS = (("90-100", 90), ("80-89", 80), ("70-79", 70), ("60-69", 60), ("50-59", 50), ("0-49", 0))


def score_bucket(score: float) -> str:
    for label, floor in SCORE_BUCKETS:
        if score >= floor:
            return label
    return SCORE_BUCKETS[-1][0]


def public_result_statistics(
    quiz_id: str,
    results: Sequence[PublicQuizResult],
    pass_percentage: float,
    top: int = 5,
) -> PublicResultStatistics:
    """Attempt statistics for one public quiz.

    Pass and fail are judged against the quiz's current ``pass_percentage``,
    so the counts follow threshold edits rather than the stored ``passed`` flag.
    """
    scores = [r.score for r in results]
    times = [r.time_spent_seconds for r in results if r.time_spent_seconds is not None]
    distribution = {label: 0 for label, _ in SCORE_BUCKETS}
    for score in scores:
        distribution[score_bucket(score)] += 1
    passed = sum(1 for score in scores if score >= pass_percentage)

    ranked = sorted(
        results,
        key=lambda r: (-r.score, r.time_spent_seconds if r.time_spent_seconds is not None else float("inf")),
    )
    return PublicResultStatistics(
        quiz_id=quiz_id,
        pass_percentage=pass_percentage,
        total_attempts=len(results),
        unique_participants=len({r.participant_email for r in results}),
        average_score=round(_mean(scores), 2),
        min_score=round(min(scores), 2) if scores else 0.0,
        max_score=round(max(scores), 2) if scores else 0.0,
        average_time_seconds=round(_mean(times)) if times else None,
        passed_count=passed,
        failed_count=len(scores) - passed,
        average_correct_answers=round(_mean([r.correct_answers for r in results]), 1),
        score_distribution=distribution,
        top_performers=[
            TopPerformer(
                participant_name=r.participant_name,
                participant_email=r.participant_email,
                score=r.score,
                time_spent_seconds=r.time_spent_seconds,
                completed_at=r.completed_at,
            )
            for r in ranked[:top]
        ],
    )
