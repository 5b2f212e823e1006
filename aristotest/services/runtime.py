import logging
from typing import Any, List, Optional

from fastapi import HTTPException
from sqlalchemy import delete, func, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from aristotest.core.config import Settings
from aristotest.core.time import utc_now
from aristotest.db import Database
from aristotest.models import Answer, Participant, Question, Quiz, QuizSession
from aristotest.models.participant import ParticipantStatus
from aristotest.models.session import SessionStatus
from aristotest.schemas import (
    AnswerOutcome,
    AnswerResult,
    CurrentQuestion,
    LiveQuestion,
    ParticipantResults,
    SessionResults,
    SessionState,
    SessionStatistics,
)
from aristotest.services import aggregation, scoring
from aristotest.services.codes import (
    CodeSpaceExhausted,
    generate_anonymous_nickname,
    generate_unique_session_code,
    normalize_session_code,
)
from aristotest.services.grading import evaluate


class SessionRuntime:
    """Drives live quiz sessions: lifecycle, joins, answers and results.

    Every call opens its own database session; no session state is kept in
    memory between requests.
    """

    def __init__(self, database: Database, settings: Settings):
        self.logger = logging.getLogger("runtime")
        self.database = database
        self.settings = settings

    # Lookups

    async def _require_session(self, db: AsyncSession, session_id: str) -> QuizSession:
        session = await db.get(QuizSession, session_id)
        if not session:
            raise HTTPException(status_code=404, detail="Session not found")
        return session

    async def _require_participant(self, db: AsyncSession, session: QuizSession, participant_id: str) -> Participant:
        participant = await db.get(Participant, participant_id)
        if not participant or participant.session_id != session.id:
            raise HTTPException(status_code=404, detail="Participant not found")
        return participant

    async def _questions(self, db: AsyncSession, quiz_id: str) -> List[Question]:
        result = await db.exec(select(Question).where(Question.quiz_id == quiz_id).order_by(Question.position))
        return list(result.all())

    async def _participants(self, db: AsyncSession, session_id: str) -> List[Participant]:
        result = await db.exec(select(Participant).where(Participant.session_id == session_id))
        return list(result.all())

    async def _participant_count(self, db: AsyncSession, session_id: str) -> int:
        result = await db.exec(select(func.count(Participant.id)).where(Participant.session_id == session_id))
        return result.one()

    async def _code_exists(self, code: str) -> bool:
        async with self.database.session() as db:
            result = await db.exec(select(QuizSession.id).where(QuizSession.session_code == code))
            return result.first() is not None

    async def get_session(self, session_id: str) -> QuizSession:
        async with self.database.session() as db:
            return await self._require_session(db, session_id)

    async def get_session_by_code(self, code: str) -> QuizSession:
        async with self.database.session() as db:
            result = await db.exec(
                select(QuizSession).where(QuizSession.session_code == normalize_session_code(code))
            )
            session = result.first()
            if not session:
                raise HTTPException(status_code=404, detail="Session not found")
            return session

    async def list_sessions(self, status: Optional[str] = None, host_id: Optional[str] = None) -> List[QuizSession]:
        async with self.database.session() as db:
            query = select(QuizSession).order_by(QuizSession.created_at.desc())
            if status:
                query = query.where(QuizSession.status == status)
            if host_id:
                query = query.where(QuizSession.host_id == host_id)
            result = await db.exec(query)
            return list(result.all())

    async def list_participants(self, session_id: str) -> List[Participant]:
        async with self.database.session() as db:
            await self._require_session(db, session_id)
            participants = await self._participants(db, session_id)
            return sorted(participants, key=lambda p: p.joined_at)

    # Lifecycle

    async def create_session(
        self,
        quiz_id: str,
        host_id: Optional[str] = None,
        allow_late_join: bool = True,
        show_leaderboard: bool = True,
        max_participants: int = 100,
    ) -> QuizSession:
        async with self.database.session() as db:
            quiz = await db.get(Quiz, quiz_id)
            if not quiz:
                raise HTTPException(status_code=404, detail="Quiz not found")
            if not await self._questions(db, quiz_id):
                raise HTTPException(status_code=400, detail="Quiz has no questions to run")
            try:
                code = await generate_unique_session_code(
                    self._code_exists,
                    length=self.settings.session_code_length,
                    max_attempts=self.settings.session_code_attempts,
                )
            except CodeSpaceExhausted as exc:
                self.logger.error("Session code generation failed quiz=%s: %s", quiz_id, exc)
                raise HTTPException(status_code=500, detail="Failed to generate unique session code")

            session = QuizSession(
                session_code=code,
                quiz_id=quiz_id,
                host_id=host_id,
                allow_late_join=allow_late_join,
                show_leaderboard=show_leaderboard,
                max_participants=max_participants,
            )
            db.add(session)
            await db.commit()
            await db.refresh(session)
            self.logger.info("Session created id=%s code=%s quiz=%s host=%s", session.id, code, quiz_id, host_id)
            return session

    def _transition(self, session: QuizSession, target: str) -> None:
        if not session.can_transition(target):
            raise HTTPException(
                status_code=409,
                detail=f"Cannot move session from {session.status} to {target}",
            )
        self.logger.info("Session %s status %s -> %s", session.session_code, session.status, target)
        session.status = target

    async def start(self, session_id: str) -> QuizSession:
        async with self.database.session() as db:
            session = await self._require_session(db, session_id)
            self._transition(session, SessionStatus.ACTIVE)
            session.started_at = utc_now()
            for participant in await self._participants(db, session_id):
                if participant.status == ParticipantStatus.WAITING:
                    participant.status = ParticipantStatus.ACTIVE
            await db.commit()
            await db.refresh(session)
            return session

    async def pause(self, session_id: str) -> QuizSession:
        async with self.database.session() as db:
            session = await self._require_session(db, session_id)
            self._transition(session, SessionStatus.PAUSED)
            await db.commit()
            await db.refresh(session)
            return session

    async def resume(self, session_id: str) -> QuizSession:
        async with self.database.session() as db:
            session = await self._require_session(db, session_id)
            if session.status != SessionStatus.PAUSED:
                raise HTTPException(status_code=409, detail="Only a paused session can be resumed")
            self._transition(session, SessionStatus.ACTIVE)
            await db.commit()
            await db.refresh(session)
            return session

    async def end(self, session_id: str) -> tuple[QuizSession, SessionStatistics]:
        async with self.database.session() as db:
            session = await self._require_session(db, session_id)
            self._transition(session, SessionStatus.COMPLETED)
            now = utc_now()
            session.ended_at = now
            participants = await self._participants(db, session_id)
            for participant in participants:
                if participant.status != ParticipantStatus.FINISHED:
                    participant.status = ParticipantStatus.FINISHED
                    participant.finished_at = now
            await db.commit()
            await db.refresh(session)

            statistics = await self._aggregate(db, session, participants)
            self.logger.info(
                "Session %s completed participants=%s average=%.2f high=%s low=%s completion=%.2f",
                session.session_code,
                statistics.total_participants,
                statistics.average_score,
                statistics.highest_score,
                statistics.lowest_score,
                statistics.completion_rate,
            )
            return session, statistics

    async def _move_to(self, session_id: str, step: int) -> QuizSession:
        async with self.database.session() as db:
            session = await self._require_session(db, session_id)
            if session.status == SessionStatus.COMPLETED:
                raise HTTPException(status_code=409, detail="Session is completed")
            total = len(await self._questions(db, session.quiz_id))
            target = session.current_question_index + step
            if target < 0:
                raise HTTPException(status_code=400, detail="Already at first question")
            if target >= total:
                raise HTTPException(status_code=400, detail="No more questions")
            session.current_question_index = target
            await db.commit()
            await db.refresh(session)
            self.logger.info("Session %s moved to question %s/%s", session.session_code, target + 1, total)
            return session

    async def next_question(self, session_id: str) -> QuizSession:
        return await self._move_to(session_id, 1)

    async def previous_question(self, session_id: str) -> QuizSession:
        return await self._move_to(session_id, -1)

    async def delete_session(self, session_id: str) -> None:
        async with self.database.session() as db:
            session = await self._require_session(db, session_id)
            # Clean up related rows to avoid FK violations
            await db.execute(delete(Answer).where(Answer.session_id == session_id))
            await db.execute(delete(Participant).where(Participant.session_id == session_id))
            await db.delete(session)
            await db.commit()
            self.logger.info("Session %s deleted", session.session_code)

    # Participants

    async def join(self, code: str, nickname: Optional[str], user_id: Optional[str] = None) -> tuple[QuizSession, Participant]:
        async with self.database.session() as db:
            result = await db.exec(select(QuizSession).where(QuizSession.session_code == normalize_session_code(code)))
            session = result.first()
            if not session:
                raise HTTPException(status_code=404, detail="Session not found")
            if session.status == SessionStatus.COMPLETED:
                raise HTTPException(status_code=409, detail="Cannot join this session")

            nickname = (nickname or "").strip() or generate_anonymous_nickname()
            joined_status = (
                ParticipantStatus.WAITING if session.status == SessionStatus.WAITING else ParticipantStatus.ACTIVE
            )
            result = await db.exec(
                select(Participant).where(Participant.session_id == session.id, Participant.nickname == nickname)
            )
            existing = result.first()
            if existing:
                if existing.status != ParticipantStatus.DISCONNECTED:
                    raise HTTPException(status_code=409, detail="Nickname already taken")
                # Reconnecting participant keeps their score and bypasses the late join rule
                existing.status = joined_status
                await db.commit()
                await db.refresh(existing)
                self.logger.info("Participant %s rejoined session %s", nickname, session.session_code)
                return session, existing

            if not session.can_join():
                raise HTTPException(status_code=409, detail="Cannot join this session")

            if await self._participant_count(db, session.id) >= session.max_participants:
                raise HTTPException(status_code=409, detail="Session is full")

            participant = Participant(
                session_id=session.id,
                user_id=user_id,
                nickname=nickname,
                status=joined_status,
            )
            db.add(participant)
            try:
                await db.commit()
            except IntegrityError:
                await db.rollback()
                raise HTTPException(status_code=409, detail="Nickname already taken")
            await db.refresh(participant)
            self.logger.info("Participant %s joined session %s", nickname, session.session_code)
            return session, participant

    async def leave(self, session_id: str, participant_id: str) -> Participant:
        async with self.database.session() as db:
            session = await self._require_session(db, session_id)
            participant = await self._require_participant(db, session, participant_id)
            if participant.status != ParticipantStatus.FINISHED:
                participant.status = ParticipantStatus.DISCONNECTED
            await db.commit()
            await db.refresh(participant)
            self.logger.info("Participant %s left session %s", participant.nickname, session.session_code)
            return participant

    # Answers

    async def _answerable(
        self, db: AsyncSession, session_id: str, participant_id: str
    ) -> tuple[QuizSession, Participant, List[Question]]:
        session = await self._require_session(db, session_id)
        if not session.accepts_answers():
            raise HTTPException(status_code=409, detail=f"Session is {session.status}; answers are not accepted")
        participant = await self._require_participant(db, session, participant_id)
        return session, participant, await self._questions(db, session.quiz_id)

    async def _record_answer(
        self,
        db: AsyncSession,
        participant: Participant,
        record: Answer,
        increments: dict,
        total_questions: int,
    ) -> None:
        """Insert the answer row and bump the participant's counters in one transaction.

        Counters are updated relative to the stored row, never written back
        from memory, so parallel answers by one participant all count.
        """
        participant_id, question_id = participant.id, record.question_id
        db.add(record)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            self.logger.info("Duplicate answer rejected participant=%s question=%s", participant_id, question_id)
            raise HTTPException(status_code=409, detail="Already answered this question")

        await db.execute(
            update(Participant)
            .where(Participant.id == participant_id)
            .values(**increments)
            .execution_options(synchronize_session=False)
        )
        await db.execute(
            update(Participant)
            .where(
                Participant.id == participant_id,
                Participant.answered_questions >= total_questions,
                Participant.status != ParticipantStatus.FINISHED,
            )
            .values(status=ParticipantStatus.FINISHED, finished_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        await db.refresh(participant)

    async def submit_answer(
        self,
        session_id: str,
        participant_id: str,
        question_id: str,
        answer: Any,
        response_time: float,
    ) -> AnswerOutcome:
        if answer is None:
            # A stored null answer marks a skip
            raise HTTPException(status_code=400, detail="Answer is required; use skip to pass on a question")
        async with self.database.session() as db:
            session, participant, questions = await self._answerable(db, session_id, participant_id)
            question = next((q for q in questions if q.id == question_id), None)
            if not question:
                raise HTTPException(status_code=404, detail="Question not found")
            quiz = await db.get(Quiz, session.quiz_id)

            is_correct = evaluate(question, answer)
            max_time = scoring.question_time_limit(
                question, quiz.time_limit_seconds if quiz else self.settings.default_question_time
            )
            points = scoring.award_points(
                question.points, is_correct, response_time, max_time, self.settings.max_speed_bonus
            )
            record = Answer(
                participant_id=participant.id,
                question_id=question.id,
                session_id=session.id,
                answer=answer,
                is_correct=is_correct,
                points=points,
                response_time=max(0.0, response_time),
            )
            await self._record_answer(
                db,
                participant,
                record,
                scoring.answer_increments(points, is_correct, response_time),
                len(questions),
            )

            self.logger.info(
                "Answer recorded session=%s participant=%s question=%s type=%s is_correct=%s points=%s time=%.2f",
                session.session_code,
                participant.id,
                question.id,
                question.question_type,
                is_correct,
                points,
                response_time,
            )
            return AnswerOutcome(
                answer_id=record.id,
                is_correct=is_correct,
                points=points,
                total_score=participant.score,
                participant_status=participant.status,
            )

    async def skip_question(self, session_id: str, participant_id: str, question_id: Optional[str] = None) -> AnswerOutcome:
        async with self.database.session() as db:
            session, participant, questions = await self._answerable(db, session_id, participant_id)
            if question_id:
                question = next((q for q in questions if q.id == question_id), None)
            elif session.current_question_index < len(questions):
                question = questions[session.current_question_index]
            else:
                question = None
            if not question:
                raise HTTPException(status_code=404, detail="Question not found")

            record = Answer(
                participant_id=participant.id,
                question_id=question.id,
                session_id=session.id,
                answer=None,
                is_correct=False,
                points=0,
                response_time=0.0,
            )
            await self._record_answer(db, participant, record, scoring.skip_increments(), len(questions))
            self.logger.info(
                "Question skipped session=%s participant=%s question=%s",
                session.session_code,
                participant.id,
                question.id,
            )
            return AnswerOutcome(
                answer_id=record.id,
                is_correct=False,
                points=0,
                total_score=participant.score,
                participant_status=participant.status,
            )

    # Read models

    async def _aggregate(
        self, db: AsyncSession, session: QuizSession, participants: Optional[List[Participant]] = None
    ) -> SessionStatistics:
        if participants is None:
            participants = await self._participants(db, session.id)
        questions = await self._questions(db, session.quiz_id)
        result = await db.exec(select(Answer).where(Answer.session_id == session.id))
        return aggregation.aggregate(session, participants, result.all(), questions)

    async def results(self, session_id: str) -> SessionResults:
        async with self.database.session() as db:
            session = await self._require_session(db, session_id)
            participants = await self._participants(db, session_id)
            statistics = await self._aggregate(db, session, participants)
            return SessionResults(
                statistics=statistics,
                leaderboard=aggregation.leaderboard(participants, self.settings.leaderboard_size),
            )

    async def participant_results(self, session_id: str, participant_id: str) -> ParticipantResults:
        async with self.database.session() as db:
            session = await self._require_session(db, session_id)
            participant = await self._require_participant(db, session, participant_id)
            questions = await self._questions(db, session.quiz_id)
            result = await db.exec(select(Answer).where(Answer.participant_id == participant.id))
            by_question = {a.question_id: a for a in result.all()}

            answers = []
            for question in questions:
                record = by_question.get(question.id)
                if not record:
                    continue
                answers.append(
                    AnswerResult(
                        question_id=question.id,
                        position=question.position,
                        text=question.text,
                        answer=record.answer,
                        correct_answer=question.correct_answer,
                        is_correct=record.is_correct,
                        skipped=record.skipped,
                        points=record.points,
                        response_time=record.response_time,
                        explanation=question.explanation,
                    )
                )
            return ParticipantResults(
                participant_id=participant.id,
                nickname=participant.nickname,
                status=participant.status,
                score=participant.score,
                max_possible_score=sum(q.points for q in questions),
                answered_questions=participant.answered_questions,
                correct_answers=participant.correct_answers,
                accuracy=participant.accuracy,
                average_response_time=participant.average_response_time,
                answers=answers,
            )

    def _live_question(self, questions: List[Question], index: int, quiz: Optional[Quiz]) -> Optional[LiveQuestion]:
        if index >= len(questions):
            return None
        question = questions[index]
        return LiveQuestion(
            id=question.id,
            question_type=question.question_type,
            text=question.text,
            options=question.options or [],
            points=question.points,
            time_limit_seconds=scoring.question_time_limit(
                question, quiz.time_limit_seconds if quiz else self.settings.default_question_time
            ),
            index=index,
            total=len(questions),
        )

    async def current_question(self, session_id: str) -> CurrentQuestion:
        async with self.database.session() as db:
            session = await self._require_session(db, session_id)
            questions = await self._questions(db, session.quiz_id)
            quiz = await db.get(Quiz, session.quiz_id)
            live = self._live_question(questions, session.current_question_index, quiz)
            return CurrentQuestion(finished=live is None, total_questions=len(questions), question=live)

    async def state(self, session_id: str) -> SessionState:
        async with self.database.session() as db:
            session = await self._require_session(db, session_id)
            participants = await self._participants(db, session_id)
            question = None
            if session.status != SessionStatus.COMPLETED:
                questions = await self._questions(db, session.quiz_id)
                quiz = await db.get(Quiz, session.quiz_id)
                question = self._live_question(questions, session.current_question_index, quiz)
            return SessionState(
                id=session.id,
                session_code=session.session_code,
                status=session.status,
                current_question_index=session.current_question_index,
                question=question,
                participant_count=len(participants),
                leaderboard=(
                    aggregation.leaderboard(participants, self.settings.leaderboard_size)
                    if session.show_leaderboard
                    else None
                ),
                now=utc_now(),
            )
