from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from aristotest.schemas.results import LeaderboardEntry, SessionStatistics


class SessionCreate(BaseModel):
    quiz_id: str
    host_id: Optional[str] = None
    allow_late_join: bool = True
    show_leaderboard: bool = True
    max_participants: int = Field(default=100, ge=1)


class SessionRead(BaseModel):
    id: str
    session_code: str
    quiz_id: str
    host_id: Optional[str]
    status: str
    current_question_index: int
    allow_late_join: bool
    show_leaderboard: bool
    max_participants: int
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None


class SessionEnded(BaseModel):
    session: SessionRead
    statistics: SessionStatistics


class JoinRequest(BaseModel):
    session_code: str = Field(min_length=1)
    nickname: Optional[str] = Field(default=None, max_length=50)
    user_id: Optional[str] = None


class ParticipantRead(BaseModel):
    id: str
    session_id: str
    user_id: Optional[str]
    nickname: str
    status: str
    score: int
    answered_questions: int
    correct_answers: int
    average_response_time: float


class JoinResponse(BaseModel):
    session: SessionRead
    participant: ParticipantRead


class LiveQuestion(BaseModel):
    """A question as shown to participants (no correct answer)."""

    id: str
    question_type: str
    text: str
    options: List[str]
    points: int
    time_limit_seconds: int
    index: int
    total: int


class CurrentQuestion(BaseModel):
    finished: bool
    total_questions: int
    question: Optional[LiveQuestion] = None


class AnswerSubmission(BaseModel):
    participant_id: str
    question_id: str
    answer: Any
    response_time: float = Field(ge=0)


class SkipRequest(BaseModel):
    participant_id: str
    question_id: Optional[str] = None


class AnswerOutcome(BaseModel):
    answer_id: str
    is_correct: bool
    points: int
    total_score: int
    participant_status: str


class SessionState(BaseModel):
    id: str
    session_code: str
    status: str
    current_question_index: int
    question: Optional[LiveQuestion]
    participant_count: int
    leaderboard: Optional[List[LeaderboardEntry]] = None
    now: datetime
