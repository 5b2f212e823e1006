from typing import List, Optional

from fastapi import APIRouter, Depends

from aristotest.dependencies import get_runtime
from aristotest.models import Participant, QuizSession
from aristotest.schemas import (
    AnswerOutcome,
    AnswerSubmission,
    CurrentQuestion,
    JoinRequest,
    JoinResponse,
    ParticipantRead,
    ParticipantResults,
    SessionCreate,
    SessionEnded,
    SessionRead,
    SessionResults,
    SessionState,
    SkipRequest,
)
from aristotest.services.runtime import SessionRuntime

router = APIRouter(prefix="/sessions", tags=["sessions"])


def serialize_session(session: QuizSession) -> SessionRead:
    return SessionRead(
        id=session.id,
        session_code=session.session_code,
        quiz_id=session.quiz_id,
        host_id=session.host_id,
        status=session.status,
        current_question_index=session.current_question_index,
        allow_late_join=session.allow_late_join,
        show_leaderboard=session.show_leaderboard,
        max_participants=session.max_participants,
        created_at=session.created_at,
        started_at=session.started_at,
        ended_at=session.ended_at,
    )


def serialize_participant(participant: Participant) -> ParticipantRead:
    return ParticipantRead(
        id=participant.id,
        session_id=participant.session_id,
        user_id=participant.user_id,
        nickname=participant.nickname,
        status=participant.status,
        score=participant.score,
        answered_questions=participant.answered_questions,
        correct_answers=participant.correct_answers,
        average_response_time=participant.average_response_time,
    )


@router.post("", response_model=SessionRead, status_code=201)
async def create_session(payload: SessionCreate, runtime: SessionRuntime = Depends(get_runtime)):
    session = await runtime.create_session(
        payload.quiz_id,
        host_id=payload.host_id,
        allow_late_join=payload.allow_late_join,
        show_leaderboard=payload.show_leaderboard,
        max_participants=payload.max_participants,
    )
    return serialize_session(session)


@router.get("", response_model=List[SessionRead])
async def list_sessions(
    status: Optional[str] = None,
    host_id: Optional[str] = None,
    runtime: SessionRuntime = Depends(get_runtime),
):
    return [serialize_session(s) for s in await runtime.list_sessions(status=status, host_id=host_id)]


@router.get("/code/{code}", response_model=SessionRead)
async def get_session_by_code(code: str, runtime: SessionRuntime = Depends(get_runtime)):
    return serialize_session(await runtime.get_session_by_code(code))


@router.post("/join", response_model=JoinResponse)
async def join_session(payload: JoinRequest, runtime: SessionRuntime = Depends(get_runtime)):
    session, participant = await runtime.join(payload.session_code, payload.nickname, payload.user_id)
    return JoinResponse(session=serialize_session(session), participant=serialize_participant(participant))


@router.get("/{session_id}", response_model=SessionRead)
async def get_session(session_id: str, runtime: SessionRuntime = Depends(get_runtime)):
    return serialize_session(await runtime.get_session(session_id))


@router.delete("/{session_id}")
async def delete_session(session_id: str, runtime: SessionRuntime = Depends(get_runtime)):
    await runtime.delete_session(session_id)
    return {"deleted": session_id}


@router.post("/{session_id}/start", response_model=SessionRead)
async def start_session(session_id: str, runtime: SessionRuntime = Depends(get_runtime)):
    return serialize_session(await runtime.start(session_id))


@router.post("/{session_id}/pause", response_model=SessionRead)
async def pause_session(session_id: str, runtime: SessionRuntime = Depends(get_runtime)):
    return serialize_session(await runtime.pause(session_id))


@router.post("/{session_id}/resume", response_model=SessionRead)
async def resume_session(session_id: str, runtime: SessionRuntime = Depends(get_runtime)):
    return serialize_session(await runtime.resume(session_id))


@router.post("/{session_id}/end", response_model=SessionEnded)
async def end_session(session_id: str, runtime: SessionRuntime = Depends(get_runtime)):
    session, statistics = await runtime.end(session_id)
    return SessionEnded(session=serialize_session(session), statistics=statistics)


@router.post("/{session_id}/next", response_model=SessionRead)
async def next_question(session_id: str, runtime: SessionRuntime = Depends(get_runtime)):
    return serialize_session(await runtime.next_question(session_id))


@router.post("/{session_id}/previous", response_model=SessionRead)
async def previous_question(session_id: str, runtime: SessionRuntime = Depends(get_runtime)):
    return serialize_session(await runtime.previous_question(session_id))


@router.get("/{session_id}/current-question", response_model=CurrentQuestion)
async def current_question(session_id: str, runtime: SessionRuntime = Depends(get_runtime)):
    return await runtime.current_question(session_id)


@router.get("/{session_id}/state", response_model=SessionState)
async def session_state(session_id: str, runtime: SessionRuntime = Depends(get_runtime)):
    return await runtime.state(session_id)


@router.get("/{session_id}/participants", response_model=List[ParticipantRead])
async def list_participants(session_id: str, runtime: SessionRuntime = Depends(get_runtime)):
    return [serialize_participant(p) for p in await runtime.list_participants(session_id)]


@router.post("/{session_id}/participants/{participant_id}/leave", response_model=ParticipantRead)
async def leave_session(session_id: str, participant_id: str, runtime: SessionRuntime = Depends(get_runtime)):
    return serialize_participant(await runtime.leave(session_id, participant_id))


@router.post("/{session_id}/answers", response_model=AnswerOutcome, status_code=201)
async def submit_answer(session_id: str, payload: AnswerSubmission, runtime: SessionRuntime = Depends(get_runtime)):
    return await runtime.submit_answer(
        session_id,
        payload.participant_id,
        payload.question_id,
        payload.answer,
        payload.response_time,
    )


@router.post("/{session_id}/skip", response_model=AnswerOutcome, status_code=201)
async def skip_question(session_id: str, payload: SkipRequest, runtime: SessionRuntime = Depends(get_runtime)):
    return await runtime.skip_question(session_id, payload.participant_id, payload.question_id)


@router.get("/{session_id}/results", response_model=SessionResults)
async def session_results(session_id: str, runtime: SessionRuntime = Depends(get_runtime)):
    return await runtime.results(session_id)


@router.get("/{session_id}/participants/{participant_id}/results", response_model=ParticipantResults)
async def participant_results(session_id: str, participant_id: str, runtime: SessionRuntime = Depends(get_runtime)):
    return await runtime.participant_results(session_id, participant_id)
