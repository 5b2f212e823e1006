import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import selectinload
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from aristotest.dependencies import get_db_session
from aristotest.models import PublicQuizResult, Quiz
from aristotest.schemas import (
    GradedAnswer,
    PublicQuestion,
    PublicQuiz,
    PublicResult,
    PublicResultList,
    PublicResultStatistics,
    PublicSubmission,
)
from aristotest.services.aggregation import public_result_statistics
from aristotest.services.grading import evaluate

router = APIRouter(prefix="/public", tags=["public"])
logger = logging.getLogger("grading")


def serialize_public_quiz(quiz: Quiz, include_questions: bool = True) -> PublicQuiz:
    ordered = sorted(quiz.questions, key=lambda q: q.position or 0)
    return PublicQuiz(
        id=quiz.id,
        title=quiz.title,
        description=quiz.description,
        category=quiz.category,
        time_limit_seconds=quiz.time_limit_seconds,
        pass_percentage=quiz.pass_percentage,
        question_count=len(ordered),
        questions=[
            PublicQuestion(
                id=q.id,
                question_type=q.question_type,
                text=q.text,
                options=q.options or [],
                points=q.points,
                position=q.position or 0,
            )
            for q in ordered
        ]
        if include_questions
        else [],
    )


def serialize_result(result: PublicQuizResult, quiz: Quiz | None = None) -> PublicResult:
    return PublicResult(
        id=result.id,
        quiz_id=result.quiz_id,
        quiz_title=quiz.title if quiz else None,
        participant_name=result.participant_name,
        participant_email=result.participant_email,
        score=result.score,
        passed=result.passed,
        pass_percentage=quiz.pass_percentage if quiz else None,
        total_points=result.total_points,
        earned_points=result.earned_points,
        total_questions=result.total_questions,
        answered_questions=result.answered_questions,
        correct_answers=result.correct_answers,
        time_spent_seconds=result.time_spent_seconds,
        completed_at=result.completed_at,
        graded_answers={qid: GradedAnswer(**graded) for qid, graded in (result.answers or {}).items()},
    )


async def load_public_quiz(db: AsyncSession, quiz_id: str) -> Quiz:
    result = await db.exec(select(Quiz).options(selectinload(Quiz.questions)).where(Quiz.id == quiz_id))
    quiz = result.first()
    if not quiz or not quiz.is_public:
        raise HTTPException(status_code=404, detail="Quiz not found")
    return quiz


@router.get("/quizzes", response_model=List[PublicQuiz])
async def list_public_quizzes(db: AsyncSession = Depends(get_db_session)):
    result = await db.exec(
        select(Quiz).options(selectinload(Quiz.questions)).where(Quiz.is_public == True).order_by(Quiz.title)  # noqa: E712
    )
    return [serialize_public_quiz(q, include_questions=False) for q in result.all()]


@router.get("/quizzes/{quiz_id}", response_model=PublicQuiz)
async def get_public_quiz(quiz_id: str, db: AsyncSession = Depends(get_db_session)):
    return serialize_public_quiz(await load_public_quiz(db, quiz_id))


@router.post("/quizzes/{quiz_id}/submit", response_model=PublicResult, status_code=201)
async def submit_public_quiz(quiz_id: str, payload: PublicSubmission, db: AsyncSession = Depends(get_db_session)):
    quiz = await load_public_quiz(db, quiz_id)
    if not quiz.questions:
        raise HTTPException(status_code=400, detail="Quiz has no questions")

    graded = {}
    total_points = 0
    earned_points = 0
    correct = 0
    answered = 0
    for question in quiz.questions:
        submitted = payload.answers.get(question.id)
        is_correct = evaluate(question, submitted)
        points = question.points if is_correct else 0
        total_points += question.points
        earned_points += points
        correct += int(is_correct)
        answered += int(submitted is not None)
        graded[question.id] = {"user_answer": submitted, "is_correct": is_correct, "points": points}

    score = round(earned_points / total_points * 100, 2) if total_points else 0.0
    passed = score >= quiz.pass_percentage
    participant = payload.participant
    record = PublicQuizResult(
        quiz_id=quiz.id,
        participant_name=f"{participant.first_name.strip()} {participant.last_name.strip()}",
        participant_email=participant.email.strip().lower(),
        participant_organization=participant.organization,
        answers=graded,
        score=score,
        total_points=total_points,
        earned_points=earned_points,
        total_questions=len(quiz.questions),
        answered_questions=answered,
        correct_answers=correct,
        time_spent_seconds=payload.time_spent_seconds,
        passed=passed,
        started_at=payload.started_at,
    )
    quiz.times_taken = (quiz.times_taken or 0) + 1
    db.add(record)
    await db.commit()
    await db.refresh(record)
    logger.info(
        "Public quiz graded quiz=%s result=%s score=%.2f passed=%s correct=%s/%s",
        quiz.id,
        record.id,
        score,
        passed,
        correct,
        len(quiz.questions),
    )
    return serialize_result(record, quiz)


@router.get("/results/{result_id}", response_model=PublicResult)
async def get_public_result(result_id: str, db: AsyncSession = Depends(get_db_session)):
    result = await db.get(PublicQuizResult, result_id)
    if not result:
        raise HTTPException(status_code=404, detail="Result not found")
    quiz = await db.get(Quiz, result.quiz_id)
    return serialize_result(result, quiz)


@router.get("/quizzes/{quiz_id}/results", response_model=PublicResultList)
async def list_public_results(
    quiz_id: str,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    min_score: Optional[float] = Query(default=None, ge=0, le=100),
    max_score: Optional[float] = Query(default=None, ge=0, le=100),
    db: AsyncSession = Depends(get_db_session),
):
    quiz = await db.get(Quiz, quiz_id)
    if not quiz:
        raise HTTPException(status_code=404, detail="Quiz not found")

    query = select(PublicQuizResult).where(PublicQuizResult.quiz_id == quiz_id)
    if date_from is not None:
        query = query.where(PublicQuizResult.completed_at >= date_from)
    if date_to is not None:
        query = query.where(PublicQuizResult.completed_at <= date_to)
    if min_score is not None:
        query = query.where(PublicQuizResult.score >= min_score)
    if max_score is not None:
        query = query.where(PublicQuizResult.score <= max_score)
    result = await db.exec(query.order_by(PublicQuizResult.completed_at.desc()))
    rows = result.all()

    return PublicResultList(
        quiz_id=quiz.id,
        quiz_title=quiz.title,
        total_attempts=len(rows),
        average_score=round(sum(r.score for r in rows) / len(rows), 2) if rows else 0.0,
        results=[serialize_result(r, quiz) for r in rows],
    )


@router.get("/quizzes/{quiz_id}/results/stats", response_model=PublicResultStatistics)
async def public_results_statistics(quiz_id: str, db: AsyncSession = Depends(get_db_session)):
    quiz = await db.get(Quiz, quiz_id)
    if not quiz:
        raise HTTPException(status_code=404, detail="Quiz not found")
    result = await db.exec(select(PublicQuizResult).where(PublicQuizResult.quiz_id == quiz_id))
    return public_result_statistics(quiz.id, result.all(), quiz.pass_percentage)
