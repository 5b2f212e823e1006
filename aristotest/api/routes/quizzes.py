import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.orm import selectinload
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from aristotest.core.config import Settings
from aristotest.core.time import utc_now
from aristotest.dependencies import get_db_session, get_question_generator, get_settings
from aristotest.models import Answer, PublicQuizResult, Question, Quiz, QuizSession
from aristotest.schemas import (
    GenerateRequest,
    GenerateResponse,
    QuestionCreate,
    QuestionRead,
    QuestionUpdate,
    QuizCreate,
    QuizRead,
    QuizUpdate,
)
from aristotest.services.grading import check_definition
from aristotest.services.question_generator import GenerationFailed, GeneratorUnavailable, QuestionGenerator

router = APIRouter(prefix="/quizzes", tags=["quizzes"])
logger = logging.getLogger("authoring")


def serialize_question(question: Question) -> QuestionRead:
    return QuestionRead(
        id=question.id,
        question_type=question.question_type,
        text=question.text,
        options=question.options or [],
        correct_answer=question.correct_answer,
        points=question.points,
        time_limit_seconds=question.time_limit_seconds,
        explanation=question.explanation,
        position=question.position if question.position is not None else 0,
    )


def serialize_quiz(quiz: Quiz) -> QuizRead:
    ordered_questions = sorted(quiz.questions, key=lambda q: q.position or 0)
    return QuizRead(
        id=quiz.id,
        title=quiz.title,
        description=quiz.description,
        category=quiz.category,
        time_limit_seconds=quiz.time_limit_seconds,
        pass_percentage=quiz.pass_percentage,
        is_public=quiz.is_public,
        times_taken=quiz.times_taken,
        questions=[serialize_question(q) for q in ordered_questions],
    )


def validate_definition(question_type: str, options: list[str], correct_answer):
    try:
        check_definition(question_type, options, correct_answer)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


def build_question(payload: QuestionCreate, position: int, quiz_id: Optional[str] = None) -> Question:
    validate_definition(payload.question_type, payload.options, payload.correct_answer)
    return Question(
        quiz_id=quiz_id,
        question_type=payload.question_type,
        text=payload.text,
        options=payload.options,
        correct_answer=payload.correct_answer,
        points=payload.points,
        time_limit_seconds=payload.time_limit_seconds,
        explanation=payload.explanation,
        position=position,
    )


async def load_quiz(db: AsyncSession, quiz_id: str) -> Quiz:
    result = await db.exec(select(Quiz).options(selectinload(Quiz.questions)).where(Quiz.id == quiz_id))
    quiz = result.first()
    if not quiz:
        raise HTTPException(status_code=404, detail="Quiz not found")
    return quiz


@router.post("", response_model=QuizRead, status_code=201)
async def create_quiz(
    payload: QuizCreate,
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
):
    quiz = Quiz(
        title=payload.title,
        description=payload.description,
        category=payload.category,
        time_limit_seconds=(
            payload.time_limit_seconds if payload.time_limit_seconds is not None else settings.default_question_time
        ),
        pass_percentage=(
            payload.pass_percentage if payload.pass_percentage is not None else settings.default_pass_percentage
        ),
        is_public=payload.is_public,
    )
    for idx, q in enumerate(payload.questions):
        quiz.questions.append(build_question(q, idx))
    db.add(quiz)
    await db.commit()
    await db.refresh(quiz, attribute_names=["questions"])
    logger.info("Quiz created id=%s title=%r questions=%s", quiz.id, quiz.title, len(quiz.questions))
    return serialize_quiz(quiz)


@router.get("", response_model=List[QuizRead])
async def list_quizzes(category: Optional[str] = None, db: AsyncSession = Depends(get_db_session)):
    query = select(Quiz).options(selectinload(Quiz.questions)).order_by(Quiz.created_at.desc())
    if category:
        query = query.where(Quiz.category == category)
    result = await db.exec(query)
    return [serialize_quiz(q) for q in result.unique().all()]


@router.get("/{quiz_id}", response_model=QuizRead)
async def get_quiz(quiz_id: str, db: AsyncSession = Depends(get_db_session)):
    return serialize_quiz(await load_quiz(db, quiz_id))


@router.patch("/{quiz_id}", response_model=QuizRead)
async def update_quiz(quiz_id: str, payload: QuizUpdate, db: AsyncSession = Depends(get_db_session)):
    quiz = await load_quiz(db, quiz_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field not in ("description", "category"):
            continue
        setattr(quiz, field, value)
    quiz.updated_at = utc_now()
    await db.commit()
    await db.refresh(quiz, attribute_names=["questions"])
    logger.info("Quiz updated id=%s", quiz.id)
    return serialize_quiz(quiz)


@router.delete("/{quiz_id}")
async def delete_quiz(quiz_id: str, db: AsyncSession = Depends(get_db_session)):
    quiz = await load_quiz(db, quiz_id)
    sessions = await db.exec(select(QuizSession.id).where(QuizSession.quiz_id == quiz_id))
    results = await db.exec(select(PublicQuizResult.id).where(PublicQuizResult.quiz_id == quiz_id))
    if sessions.first() is not None or results.first() is not None:
        raise HTTPException(status_code=409, detail="Quiz has sessions or results and cannot be deleted")
    await db.delete(quiz)
    await db.commit()
    logger.info("Quiz deleted id=%s", quiz_id)
    return {"deleted": quiz_id}


@router.post("/{quiz_id}/clone", response_model=QuizRead, status_code=201)
async def clone_quiz(quiz_id: str, db: AsyncSession = Depends(get_db_session)):
    source = await load_quiz(db, quiz_id)
    clone = Quiz(
        title=f"{source.title} (copy)",
        description=source.description,
        category=source.category,
        time_limit_seconds=source.time_limit_seconds,
        pass_percentage=source.pass_percentage,
        is_public=False,
        times_taken=0,
    )
    for idx, q in enumerate(sorted(source.questions, key=lambda q: q.position or 0)):
        clone.questions.append(
            Question(
                question_type=q.question_type,
                text=q.text,
                options=list(q.options or []),
                correct_answer=q.correct_answer,
                points=q.points,
                time_limit_seconds=q.time_limit_seconds,
                explanation=q.explanation,
                position=idx,
            )
        )
    db.add(clone)
    await db.commit()
    await db.refresh(clone, attribute_names=["questions"])
    logger.info("Quiz cloned source=%s clone=%s", quiz_id, clone.id)
    return serialize_quiz(clone)


@router.post("/{quiz_id}/questions", response_model=QuizRead, status_code=201)
async def add_question(quiz_id: str, payload: QuestionCreate, db: AsyncSession = Depends(get_db_session)):
    quiz = await load_quiz(db, quiz_id)
    db.add(build_question(payload, len(quiz.questions), quiz_id))
    quiz.updated_at = utc_now()
    await db.commit()
    await db.refresh(quiz, attribute_names=["questions"])
    logger.info("Question added quiz=%s type=%s", quiz_id, payload.question_type)
    return serialize_quiz(quiz)


@router.post("/{quiz_id}/questions/reorder", response_model=QuizRead)
async def reorder_questions(quiz_id: str, order: List[str] = Body(...), db: AsyncSession = Depends(get_db_session)):
    quiz = await load_quiz(db, quiz_id)
    id_to_question = {q.id: q for q in quiz.questions}
    if len(order) != len(id_to_question) or set(order) != set(id_to_question.keys()):
        raise HTTPException(status_code=400, detail="Order list must include all question ids")
    for idx, qid in enumerate(order):
        id_to_question[qid].position = idx
    await db.commit()
    await db.refresh(quiz, attribute_names=["questions"])
    return serialize_quiz(quiz)


@router.patch("/{quiz_id}/questions/{question_id}", response_model=QuizRead)
async def update_question(
    quiz_id: str,
    question_id: str,
    payload: QuestionUpdate,
    db: AsyncSession = Depends(get_db_session),
):
    question = await db.get(Question, question_id)
    if not question or question.quiz_id != quiz_id:
        raise HTTPException(status_code=404, detail="Question not found")

    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if value is None and field not in ("correct_answer", "time_limit_seconds", "explanation"):
            continue
        setattr(question, field, value)

    validate_definition(question.question_type, question.options or [], question.correct_answer)
    await db.commit()
    logger.info("Question updated quiz=%s question=%s fields=%s", quiz_id, question_id, sorted(changes))
    return serialize_quiz(await load_quiz(db, quiz_id))


@router.delete("/{quiz_id}/questions/{question_id}", response_model=QuizRead)
async def delete_question(quiz_id: str, question_id: str, db: AsyncSession = Depends(get_db_session)):
    question = await db.get(Question, question_id)
    if not question or question.quiz_id != quiz_id:
        raise HTTPException(status_code=404, detail="Question not found")
    answers = await db.exec(select(Answer.id).where(Answer.question_id == question_id))
    if answers.first() is not None:
        raise HTTPException(status_code=409, detail="Question has answers and cannot be deleted")
    await db.delete(question)
    await db.commit()
    # Re-sequence remaining positions
    result = await db.exec(select(Question).where(Question.quiz_id == quiz_id).order_by(Question.position))
    for idx, q in enumerate(result.all()):
        q.position = idx
    await db.commit()
    logger.info("Question deleted quiz=%s question=%s", quiz_id, question_id)
    return serialize_quiz(await load_quiz(db, quiz_id))


@router.post("/{quiz_id}/generate", response_model=GenerateResponse, status_code=201)
async def generate_questions(
    quiz_id: str,
    payload: GenerateRequest,
    db: AsyncSession = Depends(get_db_session),
    generator: QuestionGenerator = Depends(get_question_generator),
):
    quiz = await load_quiz(db, quiz_id)
    try:
        drafts = await generator.generate(payload.source_text, payload.count, payload.question_type)
    except GeneratorUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    except GenerationFailed as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    if not drafts:
        raise HTTPException(status_code=502, detail="AI service returned no usable questions")

    start = len(quiz.questions)
    for offset, draft in enumerate(drafts):
        db.add(build_question(draft, start + offset, quiz_id))
    quiz.updated_at = utc_now()
    await db.commit()
    await db.refresh(quiz, attribute_names=["questions"])
    return GenerateResponse(requested=payload.count, created=len(drafts), quiz=serialize_quiz(quiz))
