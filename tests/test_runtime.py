import asyncio

import pytest
from fastapi import HTTPException

from aristotest.db import Database
from aristotest.models import Participant, Question, Quiz
from aristotest.services.runtime import SessionRuntime


def run(coro):
    return asyncio.run(coro)


async def seed_quiz(database, count=4):
    quiz = Quiz(title="Letters", time_limit_seconds=30)
    for idx in range(count):
        quiz.questions.append(
            Question(question_type="short_answer", text=f"Type x ({idx})", correct_answer="x", points=10, position=idx)
        )
    async with database.session() as db:
        db.add(quiz)
        await db.commit()
        await db.refresh(quiz, attribute_names=["questions"])
        return quiz.id, [q.id for q in sorted(quiz.questions, key=lambda q: q.position)]


async def reload_participant(database, participant_id):
    async with database.session() as db:
        return await db.get(Participant, participant_id)


def in_live_session(settings, scenario):
    """Run ``scenario(runtime, database, session, participant, question_ids)`` against a fresh session."""

    async def main():
        database = Database(settings.assembled_db_url)
        await database.init_db()
        try:
            runtime = SessionRuntime(database, settings)
            quiz_id, question_ids = await seed_quiz(database)
            session = await runtime.create_session(quiz_id)
            _, participant = await runtime.join(session.session_code, "ada")
            return await scenario(runtime, database, session, participant, question_ids)
        finally:
            await database.dispose()

    return run(main())


def test_parallel_answers_all_count(settings):
    async def scenario(runtime, database, session, participant, question_ids):
        outcomes = await asyncio.gather(
            *(runtime.submit_answer(session.id, participant.id, qid, "x", 30) for qid in question_ids)
        )
        return outcomes, await reload_participant(database, participant.id)

    outcomes, stored = in_live_session(settings, scenario)
    assert all(o.is_correct and o.points == 10 for o in outcomes)
    assert stored.score == 40
    assert stored.answered_questions == 4
    assert stored.correct_answers == 4
    assert stored.average_response_time == pytest.approx(30.0)
    assert stored.status == "finished"
    assert stored.finished_at is not None
    # The last writer sees every earlier increment
    assert max(o.total_score for o in outcomes) == 40


def test_parallel_answers_and_skip(settings):
    async def scenario(runtime, database, session, participant, question_ids):
        first, second, third, fourth = question_ids
        await asyncio.gather(
            runtime.submit_answer(session.id, participant.id, first, "x", 10),
            runtime.submit_answer(session.id, participant.id, second, "wrong", 20),
            runtime.submit_answer(session.id, participant.id, third, "x", 30),
            runtime.skip_question(session.id, participant.id, fourth),
        )
        return await reload_participant(database, participant.id)

    stored = in_live_session(settings, scenario)
    assert stored.answered_questions == 4
    assert stored.skipped_questions == 1
    assert stored.correct_answers == 2
    # Skips are not response time samples
    assert stored.average_response_time == pytest.approx(20.0)
    assert stored.status == "finished"


def test_duplicate_answer_leaves_counters_untouched(settings):
    async def scenario(runtime, database, session, participant, question_ids):
        await runtime.submit_answer(session.id, participant.id, question_ids[0], "x", 30)
        with pytest.raises(HTTPException) as excinfo:
            await runtime.submit_answer(session.id, participant.id, question_ids[0], "x", 1)
        return excinfo.value, await reload_participant(database, participant.id)

    error, stored = in_live_session(settings, scenario)
    assert error.status_code == 409
    assert stored.score == 10
    assert stored.answered_questions == 1
    assert stored.status == "waiting"
